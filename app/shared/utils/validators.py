"""
Input validation utilities for the store report backend.

This module provides common validation functions for:
- Upload validation (extension, size, signature)
- Numeric cell coercion for Japanese-locale spreadsheets
"""

import math
import re
import unicodedata
from pathlib import Path
from typing import Any, Optional


# =============================================================================
# File Validation
# =============================================================================

# Allowed file extensions for different upload types
ALLOWED_EXTENSIONS = {
    "excel": {".xlsx", ".xlsm"},
    "csv": {".csv", ".txt"},
}

# Default max file size: 20 MB
DEFAULT_MAX_FILE_SIZE = 20 * 1024 * 1024


def is_valid_file_extension(
    filename: str,
    allowed_types: Optional[set] = None
) -> bool:
    """
    Check if a filename has a valid extension.

    Args:
        filename: The filename to check
        allowed_types: Set of allowed extensions (defaults to Excel types)

    Returns:
        True if the extension is valid, False otherwise
    """
    if not filename:
        return False

    if allowed_types is None:
        allowed_types = ALLOWED_EXTENSIONS["excel"]

    extension = Path(filename).suffix.lower()
    return extension in allowed_types


def is_valid_file_size(
    size_bytes: int,
    max_size: int = DEFAULT_MAX_FILE_SIZE
) -> bool:
    """Check if a file size is within the allowed limit."""
    return 0 < size_bytes <= max_size


def is_zip_archive(content: bytes) -> bool:
    """xlsx workbooks are ZIP archives; anything else cannot be loaded."""
    return len(content) >= 4 and content[:2] == b'PK'


# =============================================================================
# Amount Parsing
# =============================================================================

# Leading numeric prefix, the same portion a lenient float parser accepts
_NUMERIC_PREFIX = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

# Decorations that appear around amounts in hand-maintained sheets
_DECORATIONS = ('千円', '円', '¥', '%', ' ', ',')

# Japanese accounting notation for negative amounts
_NEGATIVE_MARKS = ('△', '▲')


def coerce_number(value: Any) -> Optional[float]:
    """
    Coerce a raw cell value to a number.

    Handles:
    - Plain numbers: 1000000, 12.5
    - Text numbers: "1000000", "1,000,000", "１２３"
    - Currency and percent decoration: "¥1,000", "1,000円", "18.0%"
    - Negatives: "-500", "(500)", "△500", "▲500"
    - Trailing junk after a numeric prefix: "4月(30日)" -> 4

    Args:
        value: Raw cell value

    Returns:
        Parsed float, or None when no number can be read
    """
    if value is None or isinstance(value, bool):
        return float(value) if isinstance(value, bool) else None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return float(value)

    text = unicodedata.normalize('NFKC', str(value)).strip()
    if not text:
        return None

    is_negative = False
    if text.startswith('(') and text.endswith(')'):
        is_negative = True
        text = text[1:-1].strip()
    elif text.startswith(_NEGATIVE_MARKS):
        is_negative = True
        text = text[1:].strip()

    for decoration in _DECORATIONS:
        text = text.replace(decoration, '')

    match = _NUMERIC_PREFIX.match(text)
    if not match:
        return None

    try:
        result = float(match.group(0))
    except ValueError:
        return None

    if math.isinf(result):
        return None
    return -result if is_negative else result


def number_or_zero(value: Any) -> float:
    """Coerce a value, degrading anything unreadable to 0."""
    result = coerce_number(value)
    return 0.0 if result is None else result
