"""
Store Report Domain Models
"""
from .report_models import (
    CellValue,
    Grid,
    MomTrend,
    ReportSource,
    LineItemLabels,
    ExtractionProfile,
    LatestMonthColumn,
    SheetLayout,
    MonthColumn,
    MonthlyRecord,
    SummaryData,
    YoyRow,
    YoyChange,
    YoyComparison,
    CommentSection,
    ReportData,
)

__all__ = [
    "CellValue",
    "Grid",
    "MomTrend",
    "ReportSource",
    "LineItemLabels",
    "ExtractionProfile",
    "LatestMonthColumn",
    "SheetLayout",
    "MonthColumn",
    "MonthlyRecord",
    "SummaryData",
    "YoyRow",
    "YoyChange",
    "YoyComparison",
    "CommentSection",
    "ReportData",
]
