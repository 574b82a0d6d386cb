"""
Report Data Assembler Service
Combines records, summary, YoY block and labels into the ReportData payload
and runs the spreadsheet and CSV pipelines end to end.
"""
from datetime import date
from typing import List, Optional, Tuple

from app.core.exceptions import InsufficientDataError, LayoutDetectionError
from app.shared.utils.datetime_utils import format_japanese_date
from app.shared.utils.logging_config import get_logger
from ..models.report_models import (
    CommentSection,
    ExtractionProfile,
    MonthlyRecord,
    ReportData,
    ReportSource,
)
from .csv_record_parser import parse_csv_rows, rows_to_monthly_records
from .grid_loader import EXTRACTION_MAX_COLS, EXTRACTION_MAX_ROWS, GridLoader
from .layout_detector import detect_layout
from .metrics_calculator import apply_mom_trends, prior_year_average, summary_strategy_for
from .record_extractor import extract_monthly_records

logger = get_logger(__name__)

PLACEHOLDER_COMMENT_ID = "default-1"
PLACEHOLDER_COMMENT_TITLE = "データ取得完了"


def format_period_labels(year: str, month: str) -> Tuple[str, str]:
    """Return (report_month, report_period), e.g. ("2026年1月", "2026年1月度")."""
    report_month = f"{year}年{month}月"
    return report_month, f"{report_month}度"


def placeholder_comment(store_name: str, report_month: str) -> CommentSection:
    """Comment shown until AI commentary replaces it."""
    return CommentSection(
        id=PLACEHOLDER_COMMENT_ID,
        title=PLACEHOLDER_COMMENT_TITLE,
        content=(
            f"{store_name} {report_month}のPLデータを読み込みました。"
            "AIコメント生成ボタンで分析コメントを生成できます。"
        ),
    )


def assemble_report(
    store_name: str,
    records: List[MonthlyRecord],
    source: ReportSource,
    report_month: str,
    report_period: str,
    year: str = "",
    month: str = "",
    with_placeholder: bool = True,
    today: Optional[date] = None,
) -> ReportData:
    """
    Derive trends, summary and YoY for a record series and wrap it up.

    Args:
        store_name: Store the report is for
        records: Monthly records, oldest first, latest last
        source: Ingestion path; selects the summary strategy
        report_month: "2026年1月"-style label
        report_period: "2026年1月度"-style label
        year: Latest year, used to find the year-ago month (spreadsheet)
        month: Latest month number (spreadsheet)
        with_placeholder: Add the "data loaded" comment section
        today: Creation date override

    Raises:
        InsufficientDataError: When there are no records
    """
    if not records:
        raise InsufficientDataError("No monthly records found", required=1, available=0)

    trended = apply_mom_trends(records)
    strategy = summary_strategy_for(source, year, month)

    comments = [placeholder_comment(store_name, report_month)] if with_placeholder else []

    return ReportData(
        store_name=store_name,
        report_month=report_month,
        report_period=report_period,
        created_date=format_japanese_date(today),
        summary=strategy.summarize(trended),
        yoy_comparison=strategy.compare(trended),
        monthly_trend=trended,
        comments=comments,
        source=source,
        prior_year_average=prior_year_average(records) if len(records) >= 2 else None,
    )


def parse_workbook_to_report(
    xl_bytes: bytes,
    sheet_name: str,
    store_name: str,
    profile: Optional[ExtractionProfile] = None,
    max_rows: int = EXTRACTION_MAX_ROWS,
    max_cols: int = EXTRACTION_MAX_COLS,
    loader: Optional[GridLoader] = None,
) -> ReportData:
    """
    Spreadsheet pipeline: load, detect, extract, derive, assemble.

    Raises:
        SheetNotFoundError: When the workbook has no such sheet
        LayoutDetectionError: When no latest month column is found
    """
    profile = profile or ExtractionProfile()
    loader = loader or GridLoader()

    logger.info(f"Building report for {store_name} from sheet '{sheet_name}'")
    grid = loader.load_grid(xl_bytes, sheet_name, max_rows=max_rows, max_cols=max_cols)

    layout = detect_layout(grid, profile)
    if not layout.latest.found:
        raise LayoutDetectionError(
            "Latest month column not found",
            sheet_name=sheet_name,
            details=f"No month label with marker '{profile.actual_marker}' or blank in row {profile.month_row}",
        )

    records = extract_monthly_records(grid, layout.label_col, layout.latest.col_idx, profile)

    year, month = layout.latest.year, layout.latest.month
    report_month, report_period = format_period_labels(year, month)

    return assemble_report(
        store_name,
        records,
        ReportSource.SPREADSHEET,
        report_month,
        report_period,
        year=year,
        month=month,
    )


def csv_to_report(csv_text: str, store_name: str, report_month: str) -> ReportData:
    """
    CSV pipeline. The latest month is the last data row and report_month is
    taken as given.

    Raises:
        InsufficientDataError: When the CSV has no data rows
    """
    records = rows_to_monthly_records(parse_csv_rows(csv_text))
    return assemble_report(
        store_name,
        records,
        ReportSource.CSV,
        report_month,
        f"{report_month}度",
        with_placeholder=False,
    )
