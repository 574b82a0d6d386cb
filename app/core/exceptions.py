# app/core/exceptions.py
"""Custom exceptions and error handlers with business-friendly messages."""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, List
from datetime import datetime

from app.shared.utils.logging_config import get_logger

logger = get_logger(__name__)


class AnalysisError(Exception):
    """Custom exception for report generation errors with business-friendly messaging."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        details: str = None,
        user_message: str = None,
        error_code: str = None,
        suggestions: list = None
    ):
        self.message = message
        self.details = details
        self.user_message = user_message or self._generate_user_friendly_message(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.suggestions = suggestions or []
        self.timestamp = datetime.now().isoformat()
        super().__init__(self.message)

    def _generate_user_friendly_message(self, technical_message: str) -> str:
        """Generate user-friendly message from technical error."""
        user_friendly_map = {
            "not found": "The requested data could not be found.",
            "timeout": "Fetching the spreadsheet took too long. Please try again.",
            "connection": "There's a network connectivity issue. Please check your connection.",
            "invalid format": "The file format is not supported or the file may be corrupted.",
            "missing data": "Required data is missing from the spreadsheet.",
        }

        message_lower = technical_message.lower()
        for key, friendly_msg in user_friendly_map.items():
            if key in message_lower:
                return friendly_msg

        return "An error occurred while generating the report. Please try again or contact support."

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error_code": self.error_code,
            "message": self.user_message,
            "technical_details": self.details,
            "suggestions": self.suggestions,
            "timestamp": self.timestamp,
            "type": self.__class__.__name__,
        }


class FileProcessingError(AnalysisError):
    """Exception for workbook/CSV files that cannot be read at all."""

    def __init__(self, message: str, details: str = None, file_name: str = None):
        file_ref = f" '{file_name}'" if file_name else ""
        super().__init__(
            message=message,
            details=details,
            user_message=f"The file{file_ref} could not be read. Please upload a valid .xlsx or .csv file.",
            error_code="FILE_PROCESSING_ERROR",
            suggestions=[
                "Ensure the file is a valid Excel workbook (.xlsx)",
                "Verify the file is not corrupted by opening it in Excel first",
                "CSV files must be UTF-8 with a header row",
            ]
        )


class SheetNotFoundError(AnalysisError):
    """Exception raised when the named report sheet is absent from the workbook."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, sheet_name: str, available_sheets: List[str] = None):
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []
        super().__init__(
            message=f"Sheet '{sheet_name}' not found",
            details=f"Available sheets: {', '.join(self.available_sheets)}" if self.available_sheets else None,
            user_message=f"シート \"{sheet_name}\" が見つかりません",
            error_code="SHEET_NOT_FOUND",
            suggestions=[
                "Check the sheet name configured for this store",
                "Use the detect-sheets endpoint to list the workbook's sheets",
            ]
        )


class LayoutDetectionError(AnalysisError):
    """Exception raised when the sheet's header block cannot be interpreted."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, sheet_name: str = None, details: str = None):
        sheet_ref = f" in sheet '{sheet_name}'" if sheet_name else ""
        super().__init__(
            message=f"{message}{sheet_ref}",
            details=details,
            user_message="最新月列の検出に失敗しました",
            error_code="LAYOUT_DETECTION_ERROR",
            suggestions=[
                "Row 4 must hold month labels such as '1月'",
                "Row 3 must mark closed months with '実績' or leave them blank",
            ]
        )


class InsufficientDataError(AnalysisError):
    """Exception raised when a derivation needs more months than were extracted."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, required: int = None, available: int = None):
        details = None
        if required is not None and available is not None:
            details = f"required {required} months, found {available}"
        super().__init__(
            message=message,
            details=details,
            user_message="There are not enough months of data to build this report.",
            error_code="INSUFFICIENT_DATA",
        )


class StoreNotFoundError(AnalysisError):
    """Exception raised for a store with no configured source file."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, store_name: str):
        self.store_name = store_name
        super().__init__(
            message=f"Store '{store_name}' is not configured",
            user_message=f"店舗 \"{store_name}\" のファイル情報が見つかりません",
            error_code="STORE_NOT_FOUND",
            suggestions=["Use the stores endpoint to list configured stores"]
        )


class DriveFetchError(AnalysisError):
    """Exception raised when the spreadsheet bytes cannot be fetched."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, file_id: str = None, upstream_status: int = None):
        self.file_id = file_id
        self.upstream_status = upstream_status
        status_ref = f" (status {upstream_status})" if upstream_status else ""
        super().__init__(
            message=f"{message}{status_ref}",
            details=f"file_id={file_id}" if file_id else None,
            user_message=f"Drive API エラー{status_ref}",
            error_code="DRIVE_FETCH_ERROR",
            suggestions=[
                "Check that the service account can read the file",
                "Retry in a few moments",
            ]
        )


class ConfigurationError(AnalysisError):
    """Exception for configuration errors with helpful guidance."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: str = None, parameter: str = None):
        param_ref = f" for parameter '{parameter}'" if parameter else ""
        super().__init__(
            message=message,
            details=details,
            user_message=f"There's an issue with the service configuration{param_ref}.",
            error_code="CONFIGURATION_ERROR",
            suggestions=[
                "Check that all required environment variables are set",
                "Contact support if you need help with the settings",
            ]
        )


class CommentaryError(AnalysisError):
    """Exception raised when the AI commentary could not be generated or parsed."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, details: str = None):
        super().__init__(
            message=message,
            details=details,
            user_message="AIコメントの生成に失敗しました。",
            error_code="COMMENTARY_ERROR",
        )


class ValidationError(AnalysisError):
    """Exception for input validation errors."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        field_ref = f" in field '{field}'" if field else ""
        value_ref = f" (value: {value})" if value else ""

        super().__init__(
            message=message,
            user_message=f"Invalid input{field_ref}{value_ref}. Please check your data and try again.",
            error_code="VALIDATION_ERROR",
            suggestions=[
                "Check that all required fields are filled",
                "Report months use the form '2026年1月'",
            ]
        )


# Error handlers with enhanced user experience
async def analysis_error_handler(request: Request, exc: AnalysisError) -> JSONResponse:
    """Handle custom analysis errors with user-friendly messages."""
    logger.error(f"Report error: {exc.message}", extra={
        "error_code": exc.error_code,
        "details": exc.details,
        "timestamp": exc.timestamp,
        "request_url": str(request.url)
    })

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors with user-friendly messages."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")

    user_friendly_errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error.get('loc', []))
        msg = error.get('msg', '')
        user_friendly_errors.append({
            "field": field,
            "message": _convert_validation_error_to_user_message(field, msg),
            "type": error.get('type'),
            "technical_message": msg
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error_code": "VALIDATION_ERROR",
            "message": "Please check your input and try again.",
            "validation_errors": user_friendly_errors,
            "timestamp": datetime.now().isoformat(),
            "type": "ValidationError"
        }
    )


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP errors with consistent format."""
    logger.info(f"HTTP error {exc.status_code}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error_code": f"HTTP_{exc.status_code}",
            "message": exc.detail,
            "timestamp": datetime.now().isoformat(),
            "type": "HTTPException"
        }
    )


async def general_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions with user-friendly messages."""
    logger.error(f"Unexpected error: {str(exc)}", extra={
        "request_url": str(request.url),
        "exception_type": exc.__class__.__name__
    }, exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "INTERNAL_SERVER_ERROR",
            "message": "レポートの生成に失敗しました。",
            "suggestions": [
                "Please try again in a few moments",
                "If the problem persists, contact our support team",
            ],
            "timestamp": datetime.now().isoformat(),
            "type": "InternalServerError"
        }
    )


def _convert_validation_error_to_user_message(field: str, msg: str) -> str:
    """Convert technical validation errors to user-friendly messages."""
    if "required" in msg.lower():
        return f"The field '{field}' is required. Please provide a value."
    elif "string" in msg.lower():
        return f"The field '{field}' must be text."
    elif "number" in msg.lower() or "float" in msg.lower() or "integer" in msg.lower():
        return f"The field '{field}' must be a valid number."
    return f"The field '{field}' has an invalid value. Please check and try again."


def register_exception_handlers(app) -> None:
    """Attach the handlers above to a FastAPI application."""
    app.add_exception_handler(AnalysisError, analysis_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, general_error_handler)
