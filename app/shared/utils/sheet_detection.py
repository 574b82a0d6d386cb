# app/shared/utils/sheet_detection.py
"""Sheet name matching utilities for store report workbooks."""

import re
import unicodedata
from typing import List, Optional

# Report sheets are named like "かね子報告書" or "DARUMA池袋　報告書"
REPORT_SHEET_MARKER = "報告書"


def normalize_sheet_name(name: str) -> str:
    """
    Normalize a sheet name for comparison.

    Handles variations like:
    - Full-width vs half-width characters ("ＤＡＲＵＭＡ" / "DARUMA")
    - Full-width spaces and doubled spaces ("スロパチ　報告書" / "スロパチ 報告書")
    - Case ("Sanga" / "SANGA")
    """
    text = unicodedata.normalize("NFKC", name or "")
    return re.sub(r"\s+", "", text).lower()


def find_sheet(sheet_names: List[str], target: str) -> Optional[str]:
    """
    Find a sheet by name using 2-tier matching.

    Args:
        sheet_names: Sheet names available in the workbook
        target: Requested sheet name

    Returns:
        The workbook's own spelling of the matched sheet, or None
    """
    # TIER 1: exact name
    if target in sheet_names:
        return target

    # TIER 2: width/whitespace/case-insensitive match
    wanted = normalize_sheet_name(target)
    for name in sheet_names:
        if normalize_sheet_name(name) == wanted:
            return name

    return None


def find_report_sheets(sheet_names: List[str]) -> List[str]:
    """List the sheets that hold a store report, in workbook order."""
    return [name for name in sheet_names if REPORT_SHEET_MARKER in unicodedata.normalize("NFKC", name)]
