"""
Date helpers shared by the grid builder and the streak calculator.

All dates are timezone-naive calendar dates in YYYY-MM-DD format.
"""

import re
from datetime import date, datetime, timedelta

DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class InvalidDate(ValueError):
    """Raised when a date string fails calendar validation."""

    pass


def parse_date(value: str | date) -> date:
    """
    Parse an ISO date string into a date.

    Args:
        value: Date string in YYYY-MM-DD format, or a date (returned as is)

    Returns:
        The parsed date

    Raises:
        InvalidDate: If the value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"Expected a YYYY-MM-DD string, got {type(value).__name__}")
    # strptime also accepts unpadded fields such as 2024-1-5
    if not DATE_PATTERN.fullmatch(value):
        raise InvalidDate(f"Invalid date: {value!r} (expected YYYY-MM-DD)")

    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def format_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def normalize_date(value: str | date) -> str:
    """Validate a date and return its canonical YYYY-MM-DD string."""
    return format_date(parse_date(value))


def sunday_index(value: date) -> int:
    """Day of week with Sunday = 0 and Saturday = 6."""
    return (value.weekday() + 1) % 7


def week_start(value: date, first_weekday: int) -> date:
    """
    Find the first occurrence of a weekday on or before a date.

    Args:
        value: The reference date
        first_weekday: Weekday to align to, Sunday = 0 ... Saturday = 6

    Returns:
        The aligned date (may be the date itself)
    """
    offset = (sunday_index(value) - first_weekday) % 7
    return value - timedelta(days=offset)

