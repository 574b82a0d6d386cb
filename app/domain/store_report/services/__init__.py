from .grid_loader import GridLoader, resolve_cell_value
from .layout_detector import detect_label_column, detect_latest_month_column, detect_layout
from .record_extractor import extract_monthly_records
from .metrics_calculator import (
    TrailingAverageSummaryStrategy,
    YearAgoSummaryStrategy,
    apply_mom_trends,
    prior_year_average,
    summary_strategy_for,
)
from .csv_record_parser import parse_csv_rows, rows_to_monthly_records
from .report_assembler import assemble_report, csv_to_report, parse_workbook_to_report

__all__ = [
    "GridLoader",
    "resolve_cell_value",
    "detect_label_column",
    "detect_latest_month_column",
    "detect_layout",
    "extract_monthly_records",
    "TrailingAverageSummaryStrategy",
    "YearAgoSummaryStrategy",
    "apply_mom_trends",
    "prior_year_average",
    "summary_strategy_for",
    "parse_csv_rows",
    "rows_to_monthly_records",
    "assemble_report",
    "csv_to_report",
    "parse_workbook_to_report",
]
