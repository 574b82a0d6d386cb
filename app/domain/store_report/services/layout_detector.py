"""
Layout Detector Service
Locates the label column and the latest closed month in a report sheet.

Expected header block (0-indexed rows, positions configurable per profile):
- Row 1: year labels ("2025年"), each applying to its own column and every
  column to its right until the next label
- Row 2: "実績" over realized months, forecast markers elsewhere
- Row 3: month labels ("1月".."12月", also "4月(30日)")

Detectors return explicit not-found values instead of raising so callers can
decide how fatal a miss is.
"""
import re
from typing import List, Optional, Sequence

from app.shared.utils.logging_config import get_logger
from ..models.report_models import (
    CellValue,
    ExtractionProfile,
    Grid,
    LatestMonthColumn,
    SheetLayout,
)

logger = get_logger(__name__)

MONTH_TOKEN = re.compile(r"^(\d{1,2})月")
YEAR_TOKEN = re.compile(r"(\d{4})年")


def cell_text(value: CellValue) -> str:
    """Text form of a cell the way labels are compared ("" for empty)."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def grid_row(grid: Grid, row_idx: int) -> List[CellValue]:
    return grid[row_idx] if 0 <= row_idx < len(grid) else []


def match_month_token(value: CellValue) -> Optional[str]:
    """Month number of a "1月"-style label, or None."""
    match = MONTH_TOKEN.match(cell_text(value))
    return match.group(1) if match else None


def parse_year_token(value: CellValue) -> Optional[str]:
    """Bare year of a "2026年"-style label, or None."""
    text = cell_text(value)
    match = YEAR_TOKEN.search(text)
    return match.group(1) if match else None


def resolve_year(year_row: Sequence[CellValue], col_idx: int) -> str:
    """
    Year of a column: the nearest year label at or left of it.

    Returns:
        Bare year string, or "" when no label exists up to column 0
    """
    for j in range(min(col_idx, len(year_row) - 1), -1, -1):
        year = parse_year_token(year_row[j])
        if year is not None:
            return year
    return ""


def detect_latest_month_column(
    grid: Grid,
    profile: Optional[ExtractionProfile] = None
) -> LatestMonthColumn:
    """
    Find the rightmost closed month.

    A column qualifies when its month-row cell is a month token and its marker
    cell is exactly the actual marker or blank. Any other marker (forecast,
    plan) disqualifies it.

    Returns:
        LatestMonthColumn, with col_idx -1 when no column qualifies
    """
    profile = profile or ExtractionProfile()
    year_row = grid_row(grid, profile.year_row)
    marker_row = grid_row(grid, profile.marker_row)
    month_row = grid_row(grid, profile.month_row)

    latest_col = -1
    latest_month = ""

    for i, value in enumerate(month_row):
        month = match_month_token(value)
        if month is None:
            continue

        marker = cell_text(marker_row[i]) if i < len(marker_row) else ""
        if marker != profile.actual_marker and marker != "":
            continue

        latest_col = i
        latest_month = month

    if latest_col < 0:
        return LatestMonthColumn(col_idx=-1)

    return LatestMonthColumn(
        col_idx=latest_col,
        year=resolve_year(year_row, latest_col),
        month=latest_month,
    )


def detect_label_column(
    grid: Grid,
    profile: Optional[ExtractionProfile] = None
) -> int:
    """
    Find the column holding line-item names.

    Candidates are tried in profile order; the first whose label window holds
    one of the required labels wins. Falls back to the profile's default
    column, which is a best guess rather than a detection.
    """
    profile = profile or ExtractionProfile()
    required = profile.labels.required
    start, end = profile.label_window
    window = grid[start:end]

    for col in profile.label_candidate_cols:
        labels = [cell_text(row[col]).strip() if col < len(row) else "" for row in window]
        if any(label in required for label in labels):
            return col

    logger.warning(
        f"No label column among {list(profile.label_candidate_cols)}; "
        f"falling back to column {profile.fallback_label_col}"
    )
    return profile.fallback_label_col


def detect_layout(
    grid: Grid,
    profile: Optional[ExtractionProfile] = None
) -> SheetLayout:
    """Run both detectors over a grid."""
    profile = profile or ExtractionProfile()
    label_col = detect_label_column(grid, profile)
    latest = detect_latest_month_column(grid, profile)

    if latest.found:
        logger.info(
            f"Layout: label column {label_col}, latest month column {latest.col_idx} "
            f"({latest.year}年{latest.month}月)"
        )
    else:
        logger.warning(f"Layout: label column {label_col}, no latest month column")

    return SheetLayout(label_col=label_col, latest=latest)
