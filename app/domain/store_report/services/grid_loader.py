"""
Grid Loader Service
Reads a bounded window of a report sheet into an in-memory 2-D grid.
"""
from datetime import date, datetime, time
from io import BytesIO
from typing import Any, List, Optional

import openpyxl
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.formula import ArrayFormula, DataTableFormula

from app.core.exceptions import FileProcessingError, SheetNotFoundError
from app.shared.utils.logging_config import get_logger
from app.shared.utils.sheet_detection import find_sheet
from ..models.report_models import CellValue, Grid

logger = get_logger(__name__)

# Extraction reads 60 x 50; layout inspection looks a little further out
EXTRACTION_MAX_ROWS = 60
EXTRACTION_MAX_COLS = 50
ANALYSIS_MAX_ROWS = 80
ANALYSIS_MAX_COLS = 55


def resolve_cell_value(value: Any) -> CellValue:
    """
    Reduce a raw cell value to number, text or None.

    Formula cells resolve to their cached result. A formula with no cached
    result (e.g. a member of a shared-formula group) is None; formulas are
    never evaluated.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return int(value)

    if isinstance(value, str):
        # Formula text survives only when the workbook was saved without cached values
        return None if value.startswith("=") else value

    if isinstance(value, (int, float)):
        return value

    if isinstance(value, (ArrayFormula, DataTableFormula)):
        return None

    if isinstance(value, dict):
        if value.get("result") is not None:
            return resolve_cell_value(value["result"])
        if value.get("text") is not None:
            return str(value["text"])
        return None

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    # Rich text runs and similar wrappers render to their plain text
    text = str(value)
    return text if text else None


class GridLoader:
    """
    Loads report sheets from xlsx bytes.

    Workbooks are opened with cached values (data_only) so formula cells come
    back as the value Excel last computed for them.
    """

    def load_workbook(self, xl_bytes: bytes, file_name: Optional[str] = None) -> Workbook:
        try:
            return openpyxl.load_workbook(BytesIO(xl_bytes), data_only=True)
        except Exception as e:
            logger.error(f"Could not open workbook {file_name or ''}: {e}")
            raise FileProcessingError(
                f"Invalid format: could not open workbook: {e}",
                details=str(e),
                file_name=file_name,
            )

    def list_sheets(self, xl_bytes: bytes) -> List[str]:
        wb = self.load_workbook(xl_bytes)
        try:
            return list(wb.sheetnames)
        finally:
            wb.close()

    def load_grid(
        self,
        xl_bytes: bytes,
        sheet_name: str,
        max_rows: int = EXTRACTION_MAX_ROWS,
        max_cols: int = EXTRACTION_MAX_COLS,
    ) -> Grid:
        """
        Read the top-left max_rows x max_cols window of a sheet.

        Args:
            xl_bytes: xlsx file content
            sheet_name: Name of the report sheet
            max_rows: Row bound of the window
            max_cols: Column bound of the window

        Returns:
            Row-major grid, 0-indexed, every row exactly max_cols wide

        Raises:
            SheetNotFoundError: When the workbook has no such sheet
        """
        wb = self.load_workbook(xl_bytes)
        try:
            matched = find_sheet(wb.sheetnames, sheet_name)
            if matched is None:
                raise SheetNotFoundError(sheet_name, list(wb.sheetnames))
            if matched != sheet_name:
                logger.info(f"Sheet '{sheet_name}' matched as '{matched}'")

            return self.read_window(wb[matched], max_rows, max_cols)
        finally:
            wb.close()

    def read_window(self, ws, max_rows: int, max_cols: int) -> Grid:
        """Read a bounded window from an openpyxl worksheet."""
        last_row = min(ws.max_row or 0, max_rows)
        grid: Grid = []

        if last_row > 0:
            for row in ws.iter_rows(min_row=1, max_row=last_row, max_col=max_cols, values_only=True):
                values = [resolve_cell_value(v) for v in row]
                values.extend([None] * (max_cols - len(values)))
                grid.append(values)

        logger.info(f"Loaded grid {len(grid)}x{max_cols} from sheet '{ws.title}'")
        return grid
