"""
Generate Store Report Use Case
Orchestrates fetch -> extract -> derive -> assemble -> commentary for the
monthly store P&L report.
"""
import asyncio
from dataclasses import replace
from typing import Any, Dict, List, Optional

from app.core.exceptions import AnalysisError, StoreNotFoundError
from app.core.unified_config import UnifiedConfig, get_unified_config
from app.domain.store_report.models import ReportData
from app.domain.store_report.services.grid_loader import GridLoader
from app.domain.store_report.services.layout_detector import detect_layout
from app.domain.store_report.services.record_extractor import collect_month_columns
from app.domain.store_report.services.report_assembler import (
    csv_to_report,
    parse_workbook_to_report,
)
from app.infrastructure.external.commentary_generator import CommentaryGenerator
from app.infrastructure.external.drive_client import DriveFileClient
from app.shared.utils.logging_config import get_logger
from app.shared.utils.sheet_detection import find_report_sheets

logger = get_logger(__name__)


class GenerateStoreReportUseCase:
    """
    Builds monthly store reports from Drive workbooks, uploaded workbooks or
    CSV exports, and optionally attaches AI commentary.
    """

    def __init__(
        self,
        config: Optional[UnifiedConfig] = None,
        drive_client: Optional[DriveFileClient] = None,
        commentary_generator: Optional[CommentaryGenerator] = None,
        loader: Optional[GridLoader] = None,
    ):
        self.config = config or get_unified_config()
        self.profile = self.config.extraction.to_profile()
        self.loader = loader or GridLoader()
        self.drive_client = drive_client or DriveFileClient(self.config.drive)
        self.commentary_generator = commentary_generator  # Lazy initialization

    def _get_commentary_generator(self) -> CommentaryGenerator:
        if self.commentary_generator is None:
            self.commentary_generator = CommentaryGenerator(self.config.ai_analysis)
        return self.commentary_generator

    def list_stores(self) -> List[Dict[str, str]]:
        """Configured stores with their source sheet names."""
        return [
            {"store_name": name, "sheet_name": source.sheet_name}
            for name, source in self.config.store_directory.stores.items()
        ]

    def _build_from_workbook(self, xl_bytes: bytes, sheet_name: str, store_name: str) -> ReportData:
        return parse_workbook_to_report(
            xl_bytes,
            sheet_name,
            store_name,
            profile=self.profile,
            max_rows=self.config.extraction.max_rows,
            max_cols=self.config.extraction.max_cols,
            loader=self.loader,
        )

    async def generate_for_store(self, store_name: str, with_commentary: bool = True) -> ReportData:
        """
        Fetch the store's workbook from Drive and build its report.

        Raises:
            StoreNotFoundError: When the store is not configured
            DriveFetchError: When the download fails
            SheetNotFoundError, LayoutDetectionError: When the sheet is unusable
        """
        source = self.config.store_directory.stores.get(store_name)
        if source is None:
            raise StoreNotFoundError(store_name)

        logger.info(f"Generating report for {store_name} (file {source.file_id})")
        xl_bytes = await self.drive_client.fetch_file(source.file_id)

        report = self._build_from_workbook(xl_bytes, source.sheet_name, store_name)

        if with_commentary:
            report = await self._attach_commentary(report)
        return report

    def generate_from_workbook(self, xl_bytes: bytes, sheet_name: str, store_name: str) -> ReportData:
        """Build a report from an uploaded workbook."""
        logger.info(f"Generating report for {store_name} from uploaded workbook, sheet '{sheet_name}'")
        return self._build_from_workbook(xl_bytes, sheet_name, store_name)

    def generate_from_csv(self, csv_text: str, store_name: str, report_month: str) -> ReportData:
        """Build a report from a CSV export; the last row is the report month."""
        logger.info(f"Generating report for {store_name} from CSV ({report_month})")
        return csv_to_report(csv_text, store_name, report_month)

    def detect_sheets(self, xl_bytes: bytes) -> Dict[str, Any]:
        """All sheet names of a workbook and the ones that look like reports."""
        sheets = self.loader.list_sheets(xl_bytes)
        return {"sheets": sheets, "report_sheets": find_report_sheets(sheets)}

    def inspect_layout(self, xl_bytes: bytes) -> List[Dict[str, Any]]:
        """
        Describe the detected layout of every report sheet in a workbook.

        Sheets are read with the wider analysis bounds so a header block that
        drifted past the extraction window still shows up.
        """
        extraction = self.config.extraction
        wb = self.loader.load_workbook(xl_bytes)
        try:
            results = []
            for sheet_name in find_report_sheets(wb.sheetnames):
                grid = self.loader.read_window(
                    wb[sheet_name], extraction.analysis_max_rows, extraction.analysis_max_cols
                )
                layout = detect_layout(grid, self.profile)
                columns = []
                if layout.latest.found:
                    columns = collect_month_columns(grid, layout.latest.col_idx, self.profile)

                results.append({
                    "sheet_name": sheet_name,
                    "label_col": layout.label_col,
                    "latest_col": layout.latest.col_idx,
                    "latest_year": layout.latest.year,
                    "latest_month": layout.latest.month,
                    "months": [c.label for c in columns],
                })
        finally:
            wb.close()

        logger.info(f"Inspected {len(results)} report sheets")
        return results

    async def regenerate_commentary(self, report: ReportData) -> ReportData:
        """
        Replace a report's comments with fresh AI commentary.

        Errors propagate; this is the explicit user action.
        """
        generator = self._get_commentary_generator()
        sections = await asyncio.to_thread(generator.generate, report)
        return replace(report, comments=sections)

    async def _attach_commentary(self, report: ReportData) -> ReportData:
        if not self.config.ai_analysis.enable_ai_commentary:
            return report

        generator = self._get_commentary_generator()
        if not generator.enabled:
            return report

        try:
            sections = await asyncio.to_thread(generator.generate, report)
        except AnalysisError as e:
            logger.warning(f"AI commentary skipped for {report.store_name}: {e.message}")
            return report

        return replace(report, comments=sections)
