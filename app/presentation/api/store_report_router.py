"""
Store Report API Router
Provides REST API endpoints for building monthly store P&L reports from
Google Drive workbooks, uploaded workbooks and CSV exports.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from datetime import datetime

from app.application.store_report.generate_store_report import GenerateStoreReportUseCase
from app.core.dependencies import get_config, get_store_report_use_case
from app.core.exceptions import ValidationError
from app.core.unified_config import UnifiedConfig
from app.domain.store_report.models import ReportData
from app.presentation.schemas.report_schemas import (
    CommentsResponse,
    GenerateReportRequest,
    LayoutInspectionResponse,
    RegenerateCommentsRequest,
    ReportResponse,
    SheetDetectionResponse,
    StoreInfo,
    StoreListResponse,
    validate_report_month,
)
from app.shared.utils.datetime_utils import recent_month_options
from app.shared.utils.logging_config import get_logger
from app.shared.utils.validators import (
    ALLOWED_EXTENSIONS,
    DEFAULT_MAX_FILE_SIZE,
    is_valid_file_extension,
    is_valid_file_size,
    is_zip_archive,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["Store Reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _read_workbook_upload(file: UploadFile) -> bytes:
    """Read an uploaded workbook, rejecting anything that is not a sized xlsx."""
    if not is_valid_file_extension(file.filename, ALLOWED_EXTENSIONS["excel"]):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type: {file.filename}. Only Excel files (.xlsx, .xlsm) are supported."
        )

    content = await file.read()
    if not is_valid_file_size(len(content), DEFAULT_MAX_FILE_SIZE):
        raise HTTPException(status_code=400, detail="File is empty or exceeds the 20MB limit")
    if not is_zip_archive(content):
        raise HTTPException(status_code=400, detail=f"{file.filename} is not a valid xlsx workbook")
    return content


@router.get("/health")
async def health_check():
    """Health check endpoint for the store report module"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "module": "Monthly Store Report",
        "version": "1.0.0"
    }


@router.get("/stores", response_model=StoreListResponse)
async def list_stores(use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case)):
    """List the stores whose workbooks can be fetched from Google Drive"""
    return StoreListResponse(stores=[StoreInfo(**s) for s in use_case.list_stores()])


@router.get("/months")
async def list_report_months(count: int = 24):
    """Recent report months, newest first, for month pickers"""
    return {"months": recent_month_options(count=max(1, min(count, 120)))}


@router.post("/generate", response_model=ReportResponse)
async def generate_report(
    request: GenerateReportRequest,
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
):
    """
    Generate the monthly report for a configured store.

    This endpoint:
    1. Downloads the store's workbook from Google Drive
    2. Detects the label column and the latest closed month on its report sheet
    3. Extracts up to 13 months and derives ratios, summary and YoY figures
    4. Attaches AI commentary when an API key is configured
    """
    logger.info(f"Generating report for store: {request.store_name}")
    report = await use_case.generate_for_store(request.store_name, with_commentary=request.with_commentary)
    logger.info(f"Report generated: {report.store_name} {report.report_month}")
    return ReportResponse(report=report.to_dict())


@router.post("/upload", response_model=ReportResponse)
async def generate_from_upload(
    file: UploadFile = File(..., description="Monthly P&L workbook (.xlsx)"),
    sheet_name: str = Form(..., description="Report sheet name, e.g. かね子報告書"),
    store_name: str = Form(..., description="Store name printed on the report"),
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
):
    """Generate a report from an uploaded workbook"""
    logger.info(f"Generating report from upload: {file.filename} (sheet '{sheet_name}')")
    content = await _read_workbook_upload(file)
    report = use_case.generate_from_workbook(content, sheet_name.strip(), store_name.strip())
    return ReportResponse(report=report.to_dict())


@router.post("/csv", response_model=ReportResponse)
async def generate_from_csv(
    file: UploadFile = File(..., description="Monthly P&L CSV export"),
    store_name: str = Form(..., description="Store name printed on the report"),
    report_month: str = Form(..., description="Report month, e.g. 2026年1月"),
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
):
    """
    Generate a report from a CSV export.

    Columns: 月度, 売上, 原価, 人件費, 営業CF, 営業利益率, Fコスト, Lコスト, Rコスト
    (amounts in thousands). The last row is the report month.
    """
    if not is_valid_file_extension(file.filename, ALLOWED_EXTENSIONS["csv"]):
        raise HTTPException(status_code=400, detail=f"Invalid file type: {file.filename}. Only CSV files are supported.")

    try:
        report_month = validate_report_month(report_month)
    except ValueError as e:
        raise ValidationError(str(e), field="report_month", value=report_month)

    content = await file.read()
    if not is_valid_file_size(len(content), DEFAULT_MAX_FILE_SIZE):
        raise HTTPException(status_code=400, detail="File is empty or exceeds the 20MB limit")

    try:
        csv_text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Excel on Japanese Windows saves CSV as Shift_JIS
        csv_text = content.decode("cp932", errors="replace")

    report = use_case.generate_from_csv(csv_text, store_name.strip(), report_month)
    return ReportResponse(report=report.to_dict())


@router.post("/detect-sheets", response_model=SheetDetectionResponse)
async def detect_sheets(
    file: UploadFile = File(..., description="Workbook to inspect"),
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
):
    """List a workbook's sheets and the ones that look like store reports"""
    content = await _read_workbook_upload(file)
    result = use_case.detect_sheets(content)
    logger.info(f"Detected {len(result['report_sheets'])} report sheets in {file.filename}")
    return SheetDetectionResponse(**result)


@router.post("/inspect-layout", response_model=LayoutInspectionResponse)
async def inspect_layout(
    file: UploadFile = File(..., description="Workbook to inspect"),
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
):
    """Show the detected label column, latest month and month window of each report sheet"""
    content = await _read_workbook_upload(file)
    return LayoutInspectionResponse(sheets=use_case.inspect_layout(content))


@router.post("/comments/regenerate", response_model=CommentsResponse)
async def regenerate_comments(
    request: RegenerateCommentsRequest,
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
):
    """Generate fresh AI commentary for an assembled report"""
    report = ReportData.from_dict(request.report.model_dump())
    logger.info(f"Regenerating commentary for {report.store_name} {report.report_month}")
    updated = await use_case.regenerate_commentary(report)
    return CommentsResponse(comments=[c.to_dict() for c in updated.comments])


@router.get("/drive-file/{file_id}")
async def download_drive_file(
    file_id: str,
    use_case: GenerateStoreReportUseCase = Depends(get_store_report_use_case),
    config: UnifiedConfig = Depends(get_config),
):
    """Proxy a workbook from Google Drive (xlsx, cached privately for a few minutes)"""
    content = await use_case.drive_client.fetch_file(file_id)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Cache-Control": f"private, max-age={config.drive.cache_max_age_seconds}"},
    )
