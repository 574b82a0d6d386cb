"""
Datetime utilities for consistent timezone handling.

IMPORTANT: Reports are dated in Japan time. Use these functions instead of
datetime.now() so the created date does not drift with the server timezone.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

JST = timezone(timedelta(hours=9), name="JST")


def utc_now() -> datetime:
    """
    Get the current UTC time as a timezone-aware datetime.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def jst_now() -> datetime:
    """
    Get the current Japan time as a timezone-aware datetime.

    Example:
        >>> jst_now().tzinfo  # JST (+09:00)
    """
    return utc_now().astimezone(JST)


def format_japanese_date(value: Optional[date] = None) -> str:
    """
    Format a date the way report headers print it.

    Args:
        value: Date to format (defaults to today in Japan time)

    Returns:
        Date string like "2026年2月5日"

    Example:
        >>> format_japanese_date(date(2026, 2, 5))  # '2026年2月5日'
    """
    if value is None:
        value = jst_now().date()
    return f"{value.year}年{value.month}月{value.day}日"


def format_year_month(year: int, month: int) -> str:
    """Format a year/month pair as "2026年1月"."""
    return f"{year}年{month}月"


def recent_month_options(count: int = 24, today: Optional[date] = None) -> list:
    """
    List the most recent months, newest first, as "YYYY年M月" labels.

    Args:
        count: Number of months to list
        today: Reference date (defaults to today in Japan time)

    Returns:
        Month labels starting with the reference month
    """
    if today is None:
        today = jst_now().date()

    options = []
    year, month = today.year, today.month
    for _ in range(count):
        options.append(format_year_month(year, month))
        month -= 1
        if month == 0:
            year -= 1
            month = 12
    return options
