from datetime import datetime
from io import BytesIO

import openpyxl
import pytest

from app.core.exceptions import FileProcessingError, SheetNotFoundError
from app.domain.store_report.services.grid_loader import GridLoader, resolve_cell_value

from .conftest import grid_to_workbook_bytes


class TestResolveCellValue:
    def test_plain_values_pass_through(self):
        assert resolve_cell_value(None) is None
        assert resolve_cell_value(12.5) == 12.5
        assert resolve_cell_value(7) == 7
        assert resolve_cell_value("売上") == "売上"

    def test_bool_becomes_int(self):
        assert resolve_cell_value(True) == 1

    def test_cached_result_preferred_over_text(self):
        assert resolve_cell_value({"result": 6316, "text": "6,316"}) == 6316

    def test_text_used_without_result(self):
        assert resolve_cell_value({"text": "リンク"}) == "リンク"

    def test_uncached_formula_is_none(self):
        assert resolve_cell_value({"formula": "SUM(A1:A3)"}) is None
        assert resolve_cell_value("=SUM(A1:A3)") is None

    def test_datetime_becomes_iso_text(self):
        assert resolve_cell_value(datetime(2026, 1, 31)) == "2026-01-31T00:00:00"


class TestGridLoader:
    def test_window_is_padded_to_max_cols(self, report_workbook):
        grid = GridLoader().load_grid(report_workbook, "かね子報告書", max_rows=60, max_cols=50)

        assert all(len(row) == 50 for row in grid)
        assert grid[3][3] == "1月"
        assert grid[5][1] == "売上"
        assert grid[5][3] == 6_000_000

    def test_rows_are_bounded(self, report_workbook):
        grid = GridLoader().load_grid(report_workbook, "かね子報告書", max_rows=4, max_cols=10)

        assert len(grid) == 4
        assert all(len(row) == 10 for row in grid)

    def test_sheet_name_matched_across_width_and_spacing(self):
        xl_bytes = grid_to_workbook_bytes([["x"]], sheet_name="スロパチ　報告書")

        grid = GridLoader().load_grid(xl_bytes, "スロパチ 報告書", max_rows=5, max_cols=3)

        assert grid[0][0] == "x"

    def test_missing_sheet_lists_available_sheets(self, report_workbook):
        with pytest.raises(SheetNotFoundError) as exc_info:
            GridLoader().load_grid(report_workbook, "存在しない報告書")

        assert exc_info.value.status_code == 404
        assert "かね子報告書" in exc_info.value.details

    def test_formula_without_cached_value_reads_as_none(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "報告書"
        ws["A1"] = 10
        ws["A2"] = "=A1*2"
        buffer = BytesIO()
        wb.save(buffer)

        grid = GridLoader().load_grid(buffer.getvalue(), "報告書", max_rows=5, max_cols=2)

        assert grid[0][0] == 10
        assert grid[1][0] is None

    def test_corrupt_bytes_raise_file_processing_error(self):
        with pytest.raises(FileProcessingError):
            GridLoader().load_grid(b"not a workbook", "報告書")

    def test_list_sheets(self, report_workbook):
        assert GridLoader().list_sheets(report_workbook) == ["かね子報告書", "集計"]
