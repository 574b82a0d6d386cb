# app/presentation/schemas/report_schemas.py
"""
Pydantic models for store report requests and responses.

Report payloads mirror the domain dataclasses' to_dict() output.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
import re
import uuid


class BaseResponseModel(BaseModel):
    """Base response model with common fields."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        use_enum_values=True
    )

    success: bool = Field(True, description="Indicates if the request was successful")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Response timestamp")
    request_id: Optional[str] = Field(default_factory=lambda: str(uuid.uuid4()), description="Unique request identifier")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(default_factory=datetime.now, description="Health check timestamp")


# Report payload

class MonthlyRecordSchema(BaseModel):
    month: str
    sales: float = 0
    cost: float = 0
    labor_cost: float = 0
    operating_cf: float = 0
    profit_rate: float = 0.0
    f_cost_rate: float = 0.0
    l_cost_rate: float = 0.0
    r_cost_rate: float = 0.0
    flr_total: float = 0.0
    mom_trend: str = "-"


class SummarySchema(BaseModel):
    sales: float = 0
    sales_yoy_label: str = ""
    operating_profit_rate: float = 0.0
    profit_rate_yoy_change: float = 0.0
    operating_cf: float = 0
    f_cost_rate: float = 0.0
    f_cost_rate_change: float = 0.0
    flr_cost_rate: float = 0.0
    flr_cost_rate_change: float = 0.0


class YoyRowSchema(BaseModel):
    sales: float = 0
    operating_cf: float = 0
    profit_rate: float = 0.0


class YoyChangeSchema(BaseModel):
    sales_amount: float = 0
    sales_rate: float = 0.0
    cf_amount: float = 0
    cf_rate: float = 0.0
    profit_rate_change: float = 0.0


class YoyComparisonSchema(BaseModel):
    previous_year: YoyRowSchema = Field(default_factory=YoyRowSchema)
    current_year: YoyRowSchema = Field(default_factory=YoyRowSchema)
    change: YoyChangeSchema = Field(default_factory=YoyChangeSchema)


class CommentSectionSchema(BaseModel):
    id: str
    title: str = ""
    content: str = ""


class ReportDataSchema(BaseModel):
    """Full monthly report payload."""
    store_name: str = Field(..., description="Store name")
    report_month: str = Field(..., description="Report month, e.g. 2026年1月")
    report_period: str = Field("", description="Report period, e.g. 2026年1月度")
    created_date: str = Field("", description="Creation date, e.g. 2026年2月5日")
    source: str = Field("spreadsheet", description="spreadsheet or csv")
    summary: SummarySchema = Field(default_factory=SummarySchema)
    yoy_comparison: YoyComparisonSchema = Field(default_factory=YoyComparisonSchema)
    monthly_trend: List[MonthlyRecordSchema] = Field(default_factory=list)
    prior_year_average: Optional[MonthlyRecordSchema] = Field(None, description="Average of every month but the latest")
    comments: List[CommentSectionSchema] = Field(default_factory=list)


# Requests

class GenerateReportRequest(BaseModel):
    """Generate a report for a configured store."""
    model_config = ConfigDict(str_strip_whitespace=True)

    store_name: str = Field(..., min_length=1, description="Configured store name")
    with_commentary: bool = Field(True, description="Attach AI commentary when available")


class RegenerateCommentsRequest(BaseModel):
    """Regenerate AI commentary for an already assembled report."""
    report: ReportDataSchema

    @field_validator('report')
    @classmethod
    def validate_has_records(cls, v):
        if not v.monthly_trend:
            raise ValueError("report must contain at least one monthly record")
        return v


REPORT_MONTH_PATTERN = re.compile(r"^\d{4}年\d{1,2}月$")


def validate_report_month(value: str) -> str:
    """Check a '2026年1月'-style report month."""
    value = (value or "").strip()
    if not REPORT_MONTH_PATTERN.match(value):
        raise ValueError("report_month must look like 2026年1月")
    return value


# Responses

class StoreInfo(BaseModel):
    store_name: str
    sheet_name: str


class StoreListResponse(BaseResponseModel):
    stores: List[StoreInfo] = Field(default_factory=list)


class ReportResponse(BaseResponseModel):
    report: ReportDataSchema


class CommentsResponse(BaseResponseModel):
    comments: List[CommentSectionSchema] = Field(default_factory=list)


class SheetDetectionResponse(BaseResponseModel):
    sheets: List[str] = Field(default_factory=list, description="All sheet names")
    report_sheets: List[str] = Field(default_factory=list, description="Sheets whose name contains 報告書")


class SheetLayoutInfo(BaseModel):
    """Detected layout of one report sheet (0-indexed columns, -1 when not found)."""
    sheet_name: str
    label_col: int
    latest_col: int
    latest_year: str = ""
    latest_month: str = ""
    months: List[str] = Field(default_factory=list, description="Month window, oldest first")


class LayoutInspectionResponse(BaseResponseModel):
    sheets: List[SheetLayoutInfo] = Field(default_factory=list)
