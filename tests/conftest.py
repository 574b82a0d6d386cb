"""Shared fixtures: report grids, in-memory workbooks and fake collaborators."""
from io import BytesIO
from typing import Dict, List, Optional, Sequence, Tuple

import openpyxl
import pytest

from app.core.exceptions import DriveFetchError
from app.core.unified_config import AIAnalysisConfig, StoreDirectoryConfig, StoreSource, UnifiedConfig
from app.domain.store_report.models import CommentSection, Grid

GRID_ROWS = 60
GRID_COLS = 50
LABEL_COL = 1
FIRST_MONTH_COL = 3
FIRST_ITEM_ROW = 5

# (year label or None, marker, month label) per month column, left to right
MonthHeader = Tuple[Optional[str], Optional[str], str]


def make_report_grid(
    headers: Sequence[MonthHeader],
    items: Dict[str, Sequence],
    label_col: int = LABEL_COL,
    first_col: int = FIRST_MONTH_COL,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
) -> Grid:
    """
    Build a report-sheet grid.

    Row 1 holds year labels, row 2 markers, row 3 month labels; line items
    start at row 5 in the order given, with values aligned to headers.
    """
    grid: Grid = [[None] * cols for _ in range(rows)]
    for offset, (year, marker, month) in enumerate(headers):
        col = first_col + offset
        grid[1][col] = year
        grid[2][col] = marker
        grid[3][col] = month

    for row_offset, (label, values) in enumerate(items.items()):
        row = FIRST_ITEM_ROW + row_offset
        grid[row][label_col] = label
        for offset, value in enumerate(values):
            grid[row][first_col + offset] = value
    return grid


def thirteen_month_headers() -> List[MonthHeader]:
    """25/1月 .. 25/12月, 26/1月, every column marked 実績."""
    headers = []
    for i in range(12):
        headers.append(("2025年" if i == 0 else None, "実績", f"{i + 1}月"))
    headers.append(("2026年", "実績", "1月"))
    return headers


def thirteen_month_items() -> Dict[str, List[int]]:
    """
    Yen amounts: sales grow 100,000 a month from 6,000,000.

    Months 1-12 run at F 30% / L 25% / R 5% / profit 20%; the latest month
    runs at F 35% / profit 25%.
    """
    sales, cost, gross, labor, cf, rent = [], [], [], [], [], []
    for i in range(13):
        s = 6_000_000 + i * 100_000
        c = s * 35 // 100 if i == 12 else s * 3 // 10
        sales.append(s)
        cost.append(c)
        gross.append(s - c)
        labor.append(s // 4)
        cf.append(s // 4 if i == 12 else s // 5)
        rent.append(s // 20)
    return {
        "売上": sales,
        "原価": cost,
        "粗利益": gross,
        "人件費": labor,
        "地代家賃": rent,
        "営業CF": cf,
    }


def grid_to_workbook_bytes(grid: Grid, sheet_name: str = "かね子報告書", extra_sheets=()) -> bytes:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = sheet_name
    for r, row in enumerate(grid):
        for c, value in enumerate(row):
            if value is not None:
                ws.cell(row=r + 1, column=c + 1, value=value)
    for name in extra_sheets:
        wb.create_sheet(name)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def report_grid() -> Grid:
    return make_report_grid(thirteen_month_headers(), thirteen_month_items())


@pytest.fixture
def report_workbook(report_grid) -> bytes:
    return grid_to_workbook_bytes(report_grid, extra_sheets=["集計"])


CSV_HEADER = "月度,売上,原価,人件費,営業CF,営業利益率,Fコスト,Lコスト,Rコスト"


@pytest.fixture
def three_month_csv() -> str:
    return "\n".join([
        CSV_HEADER,
        "2025年11月,7000,2100,1750,1400,20.0,30.0,25.0,5.0",
        "2025年12月,8000,2400,2000,1600,20.0,30.0,25.0,5.0",
        "2026年1月,9000,3150,2250,2250,25.0,35.0,25.0,5.0",
    ])


class FakeDriveClient:
    """Serves workbook bytes by file id."""

    def __init__(self, files: Dict[str, bytes]):
        self.files = files
        self.requested: List[str] = []

    async def fetch_file(self, file_id: str) -> bytes:
        self.requested.append(file_id)
        if file_id not in self.files:
            raise DriveFetchError("Drive API error 404", file_id=file_id, upstream_status=404)
        return self.files[file_id]


class FakeCommentaryGenerator:
    """Returns fixed sections, or raises the given error."""

    def __init__(self, enabled: bool = True, error: Exception = None):
        self.enabled = enabled
        self.error = error
        self.calls = 0

    def generate(self, report):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [CommentSection(id="ai-100", title="FLRコストの悪化", content=f"{report.store_name}のFLRが上昇しました。")]


def make_config(enable_ai_commentary: bool = True):
    return UnifiedConfig(
        ai_analysis=AIAnalysisConfig(enable_ai_commentary=enable_ai_commentary),
        store_directory=StoreDirectoryConfig(stores={
            "かね子": StoreSource(file_id="file-kaneko", sheet_name="かね子報告書"),
            "スロパチ": StoreSource(file_id="file-missing", sheet_name="スロパチ　報告書"),
        }),
    )
