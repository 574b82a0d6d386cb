"""
Monthly Record Extractor Service
Turns the detected layout of a report sheet into a chronological series of
normalized MonthlyRecord objects.
"""
from typing import Dict, List, Optional

from app.shared.utils.logging_config import get_logger
from app.shared.utils.validators import number_or_zero
from ..models.report_models import (
    ExtractionProfile,
    Grid,
    MonthColumn,
    MonthlyRecord,
)
from .layout_detector import cell_text, grid_row, match_month_token, parse_year_token
from .rounding import round1, round_int, safe_rate, to_decimal

logger = get_logger(__name__)

MISSING_ROW = -1


def build_item_row_map(
    grid: Grid,
    label_col: int,
    profile: Optional[ExtractionProfile] = None
) -> Dict[str, int]:
    """
    Map each trimmed line-item label to the row holding its values.

    Blank labels are skipped; a repeated label keeps its first row.
    """
    profile = profile or ExtractionProfile()
    start, end = profile.item_row_range
    item_rows: Dict[str, int] = {}

    for row_idx in range(start, min(len(grid), end)):
        row = grid[row_idx]
        label = cell_text(row[label_col]).strip() if label_col < len(row) else ""
        if label and label not in item_rows:
            item_rows[label] = row_idx

    return item_rows


def get_value(grid: Grid, row_idx: int, col_idx: int) -> float:
    """Numeric value of a cell; missing rows, blanks and unreadable text are 0."""
    if row_idx < 0 or col_idx < 0 or row_idx >= len(grid):
        return 0.0
    row = grid[row_idx]
    if col_idx >= len(row):
        return 0.0
    return number_or_zero(row[col_idx])


def _year_labels_filled(year_row: List, width: int) -> List[str]:
    """Nearest year label at or left of every column ("" before the first label)."""
    filled: List[str] = []
    current = ""
    for col_idx in range(width):
        year = parse_year_token(year_row[col_idx]) if col_idx < len(year_row) else None
        if year is not None:
            current = year
        filled.append(current)
    return filled


def collect_month_columns(
    grid: Grid,
    latest_col: int,
    profile: Optional[ExtractionProfile] = None
) -> List[MonthColumn]:
    """
    Collect up to window_months month columns ending at latest_col.

    Columns are walked right to left and gathered on their month label alone;
    the actual marker only matters for picking latest_col. The year resolved
    for one column carries into the columns walked after it whenever they
    have no year label of their own.

    Returns:
        Month columns, oldest first
    """
    profile = profile or ExtractionProfile()
    month_row = grid_row(grid, profile.month_row)
    year_at = _year_labels_filled(grid_row(grid, profile.year_row), latest_col + 1)

    collected: List[MonthColumn] = []
    carried_year = ""

    for col_idx in range(min(latest_col, len(month_row) - 1), -1, -1):
        if len(collected) >= profile.window_months:
            break

        month = match_month_token(month_row[col_idx])
        if month is None:
            continue

        year = year_at[col_idx] or carried_year
        carried_year = year
        collected.append(MonthColumn(col_idx=col_idx, year=year, month=month))

    collected.reverse()
    return collected


def build_monthly_record(
    column: MonthColumn,
    sales: float,
    cost: float,
    labor: float,
    operating_cf: float,
    rent: float = 0.0,
    lease: float = 0.0,
    fee: float = 0.0,
) -> MonthlyRecord:
    """
    Derive one month's record from raw line-item amounts (yen).

    Rates are 0 when sales are not positive.
    """
    r_cost = rent + lease + fee

    f_cost_rate = round1(safe_rate(cost, sales))
    l_cost_rate = round1(safe_rate(labor, sales))
    r_cost_rate = round1(safe_rate(r_cost, sales))

    return MonthlyRecord(
        month=column.label,
        sales=round_int(sales / 1000),
        cost=round_int(cost / 1000),
        labor_cost=round_int(labor / 1000),
        operating_cf=round_int(operating_cf / 1000),
        profit_rate=round1(safe_rate(operating_cf, sales)),
        f_cost_rate=f_cost_rate,
        l_cost_rate=l_cost_rate,
        r_cost_rate=r_cost_rate,
        flr_total=flr_total_of(f_cost_rate, l_cost_rate, r_cost_rate),
    )


def flr_total_of(f_cost_rate: float, l_cost_rate: float, r_cost_rate: float) -> float:
    """Rounded sum of the three cost rates."""
    return round1(to_decimal(f_cost_rate) + to_decimal(l_cost_rate) + to_decimal(r_cost_rate))


def extract_monthly_records(
    grid: Grid,
    label_col: int,
    latest_col: int,
    profile: Optional[ExtractionProfile] = None
) -> List[MonthlyRecord]:
    """
    Extract the trailing window of monthly records.

    Args:
        grid: Loaded report sheet
        label_col: Column holding line-item names
        latest_col: Latest closed month column

    Returns:
        Records oldest first, at most window_months long
    """
    profile = profile or ExtractionProfile()
    labels = profile.labels
    item_rows = build_item_row_map(grid, label_col, profile)

    missing = [
        name for name in (labels.sales, labels.cost, labels.labor_cost, labels.operating_cf)
        if name not in item_rows
    ]
    if missing:
        logger.warning(f"Line items not found, treated as 0: {', '.join(missing)}")

    def row_of(name: str) -> int:
        return item_rows.get(name, MISSING_ROW)

    records = []
    for column in collect_month_columns(grid, latest_col, profile):
        col = column.col_idx
        records.append(build_monthly_record(
            column,
            sales=get_value(grid, row_of(labels.sales), col),
            cost=get_value(grid, row_of(labels.cost), col),
            labor=get_value(grid, row_of(labels.labor_cost), col),
            operating_cf=get_value(grid, row_of(labels.operating_cf), col),
            rent=get_value(grid, row_of(labels.rent), col),
            lease=get_value(grid, row_of(labels.lease), col),
            fee=get_value(grid, row_of(labels.fee), col),
        ))

    logger.info(
        f"Extracted {len(records)} monthly records"
        + (f" ({records[0].month} - {records[-1].month})" if records else "")
    )
    return records
