"""
Derived Metrics Calculator Service
Computes the prior-year average row, month-over-month trends, the summary
snapshot and the year-over-year comparison from a monthly record series.

The spreadsheet and CSV ingestion paths compare against different baselines
and are kept as two strategies:
- Spreadsheet: the same month one year earlier inside the window
- CSV: the average of all earlier months for sales and profit rate, the
  immediately preceding month for F-cost and FLR
"""
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from app.core.exceptions import InsufficientDataError
from app.shared.utils.logging_config import get_logger
from ..models.report_models import (
    MomTrend,
    MonthlyRecord,
    ReportSource,
    SummaryData,
    YoyChange,
    YoyComparison,
    YoyRow,
)
from .rounding import round1, round_int, safe_rate, to_decimal

logger = get_logger(__name__)

PRIOR_YEAR_AVERAGE_LABEL = "前年度平均"
YEAR_AGO_OFFSET = 12


def format_rate(value: float) -> str:
    """One-decimal text of a rate, rounding the exact value half away from zero."""
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def prior_year_average(records: List[MonthlyRecord]) -> MonthlyRecord:
    """
    Average of every record except the latest, for the trend table.

    Currency fields average to whole thousands, rates to one decimal.

    Raises:
        InsufficientDataError: When there is no earlier record to average
    """
    prior = records[:-1]
    if not prior:
        raise InsufficientDataError(
            "Prior-year average needs at least 2 months",
            required=2,
            available=len(records),
        )

    n = len(prior)

    def avg(values) -> int:
        return round_int(sum(values) / n)

    def avg_rate(values) -> float:
        return round1(sum(to_decimal(v) for v in values) / n)

    return MonthlyRecord(
        month=PRIOR_YEAR_AVERAGE_LABEL,
        sales=avg(r.sales for r in prior),
        cost=avg(r.cost for r in prior),
        labor_cost=avg(r.labor_cost for r in prior),
        operating_cf=avg(r.operating_cf for r in prior),
        profit_rate=avg_rate(r.profit_rate for r in prior),
        f_cost_rate=avg_rate(r.f_cost_rate for r in prior),
        l_cost_rate=avg_rate(r.l_cost_rate for r in prior),
        r_cost_rate=avg_rate(r.r_cost_rate for r in prior),
        flr_total=avg_rate(r.flr_total for r in prior),
    )


def classify_trend(flr_diff) -> MomTrend:
    """
    Classify a month-over-month change in FLR total (percentage points).

    Both bands at or below -0.5 read as improved.
    """
    if flr_diff <= -2:
        return MomTrend.IMPROVED
    elif flr_diff <= Decimal("-0.5"):
        return MomTrend.IMPROVED
    elif flr_diff <= Decimal("0.5"):
        return MomTrend.STEADY
    elif flr_diff <= 2:
        return MomTrend.SLIGHTLY_WORSE
    return MomTrend.WORSE


def apply_mom_trends(records: List[MonthlyRecord]) -> List[MonthlyRecord]:
    """Return the records with mom_trend filled in; the first month is "-"."""
    trended: List[MonthlyRecord] = []
    for index, record in enumerate(records):
        if index == 0:
            trended.append(record.with_trend(MomTrend.NONE))
            continue
        previous = records[index - 1]
        flr_diff = to_decimal(record.flr_total) - to_decimal(previous.flr_total)
        trended.append(record.with_trend(classify_trend(flr_diff)))
    return trended


def find_year_ago_record(
    records: List[MonthlyRecord],
    year: str,
    month: str
) -> Optional[MonthlyRecord]:
    """
    Record for the same calendar month in an earlier year.

    Matches labels ending in "/{month}月" whose year prefix differs from the
    latest year. Months labelled without a year never match.
    """
    if not year:
        return None
    suffix = f"/{month}月"
    current_prefix = year[2:]
    for record in records:
        if record.month.endswith(suffix) and not record.month.startswith(current_prefix):
            return record
    return None


def year_ago_by_offset(records: List[MonthlyRecord], current_index: int) -> MonthlyRecord:
    """Record twelve positions back, clamped to the first record."""
    index = current_index - YEAR_AGO_OFFSET
    return records[index] if index >= 0 else records[0]


def build_yoy_comparison(
    current: MonthlyRecord,
    previous: Optional[MonthlyRecord],
    profit_change_needs_base: bool = False,
) -> YoyComparison:
    """
    Compare the current month against its year-ago record (amounts in yen).

    Args:
        current: Latest record
        previous: Year-ago record, or None when it was not found
        profit_change_needs_base: Report no profit-rate change when the
            year-ago profit rate is 0

    Returns:
        YoyComparison; rates against a non-positive base are 0
    """
    prev_sales = previous.sales * 1000 if previous else 0
    prev_cf = previous.operating_cf * 1000 if previous else 0
    prev_profit = previous.profit_rate if previous else 0.0

    cur_sales = current.sales * 1000
    cur_cf = current.operating_cf * 1000

    sales_delta = cur_sales - prev_sales
    cf_delta = cur_cf - prev_cf

    if previous is None or (profit_change_needs_base and not prev_profit):
        profit_change = 0.0
    else:
        profit_change = round1(to_decimal(current.profit_rate) - to_decimal(prev_profit))

    return YoyComparison(
        previous_year=YoyRow(sales=prev_sales, operating_cf=prev_cf, profit_rate=prev_profit),
        current_year=YoyRow(sales=cur_sales, operating_cf=cur_cf, profit_rate=current.profit_rate),
        change=YoyChange(
            sales_amount=sales_delta,
            sales_rate=round1(safe_rate(sales_delta, prev_sales)),
            cf_amount=cf_delta,
            cf_rate=round1(safe_rate(cf_delta, prev_cf)),
            profit_rate_change=profit_change,
        ),
    )


def _point_change(current: float, baseline: Optional[float]) -> float:
    if baseline is None:
        return 0.0
    return round1(to_decimal(current) - to_decimal(baseline))


class SummaryStrategy(ABC):
    """Derivation of the summary and YoY blocks for one ingestion source."""

    source: ReportSource

    def _latest(self, records: List[MonthlyRecord]) -> MonthlyRecord:
        if not records:
            raise InsufficientDataError("No monthly records to summarize", required=1, available=0)
        return records[-1]

    @abstractmethod
    def summarize(self, records: List[MonthlyRecord]) -> SummaryData:
        ...

    @abstractmethod
    def compare(self, records: List[MonthlyRecord]) -> YoyComparison:
        ...


class YearAgoSummaryStrategy(SummaryStrategy):
    """
    Spreadsheet path: every change is measured against the same month one
    year earlier, found by label inside the window.
    """

    source = ReportSource.SPREADSHEET

    def __init__(self, year: str, month: str):
        self.year = year
        self.month = month

    def baseline(self, records: List[MonthlyRecord]) -> Optional[MonthlyRecord]:
        record = find_year_ago_record(records, self.year, self.month)
        if record is None:
            logger.warning(f"No year-ago record for {self.year}年{self.month}月; YoY figures are 0")
        return record

    def summarize(self, records: List[MonthlyRecord]) -> SummaryData:
        latest = self._latest(records)
        previous = self.baseline(records)

        prev_sales = previous.sales * 1000 if previous else 0
        prev_profit = previous.profit_rate if previous else 0.0
        cur_sales = latest.sales * 1000

        sales_label = ""
        if prev_sales > 0:
            sales_label = f"(前年同月比 {format_rate((cur_sales - prev_sales) / prev_sales * 100)}%)"

        return SummaryData(
            sales=cur_sales,
            sales_yoy_label=sales_label,
            operating_profit_rate=latest.profit_rate,
            profit_rate_yoy_change=_point_change(latest.profit_rate, prev_profit) if prev_profit else 0.0,
            operating_cf=latest.operating_cf * 1000,
            f_cost_rate=latest.f_cost_rate,
            f_cost_rate_change=_point_change(latest.f_cost_rate, previous.f_cost_rate if previous else None),
            flr_cost_rate=latest.flr_total,
            flr_cost_rate_change=_point_change(latest.flr_total, previous.flr_total if previous else None),
        )

    def compare(self, records: List[MonthlyRecord]) -> YoyComparison:
        latest = self._latest(records)
        return build_yoy_comparison(latest, self.baseline(records), profit_change_needs_base=True)


class TrailingAverageSummaryStrategy(SummaryStrategy):
    """
    CSV path: sales and profit rate against the average of all earlier
    months, F-cost and FLR against the previous month, YoY twelve rows back.
    """

    source = ReportSource.CSV

    def summarize(self, records: List[MonthlyRecord]) -> SummaryData:
        current = self._latest(records)
        current_index = len(records) - 1
        prior = records[:-1]

        avg_sales = sum(r.sales for r in prior) / len(prior) if prior else 0.0
        avg_profit = sum(to_decimal(r.profit_rate) for r in prior) / len(prior) if prior else Decimal(0)
        prev_month = records[current_index - 1] if current_index > 0 else None

        return SummaryData(
            sales=current.sales * 1000,
            sales_yoy_label=f"前年平均比 {format_rate(safe_rate(current.sales - avg_sales, avg_sales))}%",
            operating_profit_rate=current.profit_rate,
            profit_rate_yoy_change=round1(to_decimal(current.profit_rate) - avg_profit),
            operating_cf=current.operating_cf * 1000,
            f_cost_rate=current.f_cost_rate,
            f_cost_rate_change=_point_change(current.f_cost_rate, prev_month.f_cost_rate if prev_month else None),
            flr_cost_rate=current.flr_total,
            flr_cost_rate_change=_point_change(current.flr_total, prev_month.flr_total if prev_month else None),
        )

    def compare(self, records: List[MonthlyRecord]) -> YoyComparison:
        current = self._latest(records)
        previous = year_ago_by_offset(records, len(records) - 1)
        return build_yoy_comparison(current, previous)


def summary_strategy_for(source: ReportSource, year: str = "", month: str = "") -> SummaryStrategy:
    """Pick the summary strategy matching an ingestion source."""
    if source == ReportSource.SPREADSHEET:
        return YearAgoSummaryStrategy(year, month)
    return TrailingAverageSummaryStrategy()
