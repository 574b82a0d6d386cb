"""
Store Report Domain Models
Defines the core entities for the monthly store P&L report: the raw grid,
detected layout, normalized monthly records and the assembled report payload.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

CellValue = Union[str, int, float, None]
Grid = List[List[CellValue]]


class MomTrend(str, Enum):
    """Month-over-month FLR trend labels"""
    NONE = "-"
    IMPROVED = "改善"
    STEADY = "維持"
    SLIGHTLY_WORSE = "やや悪化"
    WORSE = "悪化"


class ReportSource(str, Enum):
    """Ingestion path a report was built from"""
    SPREADSHEET = "spreadsheet"
    CSV = "csv"


@dataclass(frozen=True)
class LineItemLabels:
    """Line-item names as written in the label column"""
    sales: str = "売上"
    cost: str = "原価"
    gross_profit: str = "粗利益"
    labor_cost: str = "人件費"
    operating_cf: str = "営業CF"
    rent: str = "地代家賃"
    lease: str = "リース料"
    fee: str = "支払手数料"

    @property
    def required(self) -> FrozenSet[str]:
        """Labels that identify the label column"""
        return frozenset({self.sales, self.cost, self.gross_profit, self.labor_cost})


@dataclass(frozen=True)
class ExtractionProfile:
    """
    Layout conventions of one family of report sheets.

    Row and column indices are 0-indexed grid positions.
    """
    year_row: int = 1  # "2025年", "2026年"
    marker_row: int = 2  # "実績" or blank for closed months
    month_row: int = 3  # "1月".."12月"
    label_candidate_cols: Tuple[int, ...] = (38, 1, 2)  # AM column first
    fallback_label_col: int = 38
    label_window: Tuple[int, int] = (5, 15)
    item_row_range: Tuple[int, int] = (5, 60)
    actual_marker: str = "実績"
    window_months: int = 13
    labels: LineItemLabels = field(default_factory=LineItemLabels)


@dataclass(frozen=True)
class LatestMonthColumn:
    """Result of latest-month detection; col_idx is -1 when nothing matched"""
    col_idx: int
    year: str = ""
    month: str = ""

    @property
    def found(self) -> bool:
        return self.col_idx >= 0


@dataclass(frozen=True)
class SheetLayout:
    """Detected layout of a report sheet"""
    label_col: int
    latest: LatestMonthColumn


@dataclass(frozen=True)
class MonthColumn:
    """A data column collected for the trailing window"""
    col_idx: int
    year: str
    month: str

    @property
    def label(self) -> str:
        """Display label like "25/1月", or "1月" when the year is unknown"""
        if self.year:
            return f"{self.year[2:]}/{self.month}月"
        return f"{self.month}月"


@dataclass(frozen=True)
class MonthlyRecord:
    """
    One calendar month of normalized data.

    Currency fields are in thousands; rates are percentages rounded to one
    decimal, and flr_total is the rounded sum of the three cost rates.
    """
    month: str
    sales: int = 0
    cost: int = 0
    labor_cost: int = 0
    operating_cf: int = 0
    profit_rate: float = 0.0
    f_cost_rate: float = 0.0
    l_cost_rate: float = 0.0
    r_cost_rate: float = 0.0
    flr_total: float = 0.0
    mom_trend: str = MomTrend.NONE.value

    def with_trend(self, trend: MomTrend) -> "MonthlyRecord":
        return replace(self, mom_trend=trend.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "month": self.month,
            "sales": self.sales,
            "cost": self.cost,
            "labor_cost": self.labor_cost,
            "operating_cf": self.operating_cf,
            "profit_rate": self.profit_rate,
            "f_cost_rate": self.f_cost_rate,
            "l_cost_rate": self.l_cost_rate,
            "r_cost_rate": self.r_cost_rate,
            "flr_total": self.flr_total,
            "mom_trend": self.mom_trend,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonthlyRecord":
        names = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class SummaryData:
    """Headline figures for the report month (currency in yen)"""
    sales: float = 0
    sales_yoy_label: str = ""
    operating_profit_rate: float = 0.0
    profit_rate_yoy_change: float = 0.0
    operating_cf: float = 0
    f_cost_rate: float = 0.0
    f_cost_rate_change: float = 0.0
    flr_cost_rate: float = 0.0
    flr_cost_rate_change: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sales": self.sales,
            "sales_yoy_label": self.sales_yoy_label,
            "operating_profit_rate": self.operating_profit_rate,
            "profit_rate_yoy_change": self.profit_rate_yoy_change,
            "operating_cf": self.operating_cf,
            "f_cost_rate": self.f_cost_rate,
            "f_cost_rate_change": self.f_cost_rate_change,
            "flr_cost_rate": self.flr_cost_rate,
            "flr_cost_rate_change": self.flr_cost_rate_change,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummaryData":
        names = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class YoyRow:
    sales: float = 0
    operating_cf: float = 0
    profit_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sales": self.sales,
            "operating_cf": self.operating_cf,
            "profit_rate": self.profit_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YoyRow":
        names = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class YoyChange:
    sales_amount: float = 0
    sales_rate: float = 0.0
    cf_amount: float = 0
    cf_rate: float = 0.0
    profit_rate_change: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sales_amount": self.sales_amount,
            "sales_rate": self.sales_rate,
            "cf_amount": self.cf_amount,
            "cf_rate": self.cf_rate,
            "profit_rate_change": self.profit_rate_change,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YoyChange":
        names = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class YoyComparison:
    """Same month this year vs. one year earlier"""
    previous_year: YoyRow = field(default_factory=YoyRow)
    current_year: YoyRow = field(default_factory=YoyRow)
    change: YoyChange = field(default_factory=YoyChange)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "previous_year": self.previous_year.to_dict(),
            "current_year": self.current_year.to_dict(),
            "change": self.change.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YoyComparison":
        return cls(
            previous_year=YoyRow.from_dict(data.get("previous_year") or {}),
            current_year=YoyRow.from_dict(data.get("current_year") or {}),
            change=YoyChange.from_dict(data.get("change") or {}),
        )


@dataclass
class CommentSection:
    """A narrative section; content is owned by the commentary generator"""
    id: str
    title: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "content": self.content}


@dataclass
class ReportData:
    """
    Full report payload handed to rendering and commentary collaborators.
    """
    store_name: str
    report_month: str  # "2026年1月"
    report_period: str  # "2026年1月度"
    created_date: str  # "2026年2月5日"
    summary: SummaryData
    yoy_comparison: YoyComparison
    monthly_trend: List[MonthlyRecord] = field(default_factory=list)
    comments: List[CommentSection] = field(default_factory=list)
    source: ReportSource = ReportSource.SPREADSHEET
    prior_year_average: Optional[MonthlyRecord] = None  # 前年度平均 row of the trend table

    @property
    def latest_record(self) -> Optional[MonthlyRecord]:
        return self.monthly_trend[-1] if self.monthly_trend else None

    @property
    def previous_record(self) -> Optional[MonthlyRecord]:
        return self.monthly_trend[-2] if len(self.monthly_trend) >= 2 else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response"""
        return {
            "store_name": self.store_name,
            "report_month": self.report_month,
            "report_period": self.report_period,
            "created_date": self.created_date,
            "source": self.source.value,
            "summary": self.summary.to_dict(),
            "yoy_comparison": self.yoy_comparison.to_dict(),
            "monthly_trend": [r.to_dict() for r in self.monthly_trend],
            "prior_year_average": self.prior_year_average.to_dict() if self.prior_year_average else None,
            "comments": [c.to_dict() for c in self.comments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportData":
        """Rebuild a report from its API payload"""
        return cls(
            store_name=data["store_name"],
            report_month=data.get("report_month", ""),
            report_period=data.get("report_period", ""),
            created_date=data.get("created_date", ""),
            summary=SummaryData.from_dict(data.get("summary") or {}),
            yoy_comparison=YoyComparison.from_dict(data.get("yoy_comparison") or {}),
            monthly_trend=[MonthlyRecord.from_dict(r) for r in data.get("monthly_trend") or []],
            comments=[
                CommentSection(id=c["id"], title=c.get("title", ""), content=c.get("content", ""))
                for c in data.get("comments") or []
            ],
            source=ReportSource(data.get("source", ReportSource.SPREADSHEET.value)),
            prior_year_average=(
                MonthlyRecord.from_dict(data["prior_year_average"]) if data.get("prior_year_average") else None
            ),
        )
