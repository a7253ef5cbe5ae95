"""
Date utilities for budgeting and paycheck planning.

All planning math works on calendar dates (``datetime.date``); times and
time zones never enter into it.
"""
import re
from calendar import monthrange, month_abbr, month_name
from datetime import date, datetime
from typing import Optional, Tuple

from budget_api.exceptions import BadRequestError

_YMD_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DATE_FORMATS = ("MMM dd", "MMM dd, yyyy", "yyyy-MM-dd", "MMM yyyy")


def get_month_start_date(value: date) -> date:
    """
    Get the first day of the month for the given date.

    Args:
        value: Any date in the target month

    Returns:
        date: First day of the month
    """
    return date(value.year, value.month, 1)


def get_month_end_date(value: date) -> date:
    """
    Get the last day of the month for the given date, leap years included.

    Args:
        value: Any date in the target month

    Returns:
        date: Last day of the month
    """
    # monthrange returns (weekday_of_first_day, number_of_days_in_month)
    _, last_day_of_month = monthrange(value.year, value.month)
    return date(value.year, value.month, last_day_of_month)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return (first_day, last_day) of the given month."""
    first = date(year, month, 1)
    return first, get_month_end_date(first)


def add_months(value: date, months: int) -> date:
    """
    Move a date by whole calendar months.

    The day of month is kept when the target month has it; otherwise it is
    clamped to that month's last day (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, monthrange(year, month)[1])
    return date(year, month, day)


def with_day_clamped(year: int, month: int, day: int) -> date:
    """Build a date in the given month, clamping ``day`` to the month length."""
    return date(year, month, min(day, monthrange(year, month)[1]))


def planning_window_end(year: int, month: int, window: int = 0) -> date:
    """Last day of the month ``window`` months after (year, month)."""
    return get_month_end_date(add_months(date(year, month, 1), window))


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start``'s month to ``end``'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def to_ymd(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def parse_ymd(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_transaction_date(value: Optional[str]) -> date:
    """
    Parse a user supplied transaction date.

    Accepts ``YYYY-MM-DD`` or an ISO-8601 datetime (only the date part is
    kept). Empty input means today.

    Raises:
        BadRequestError: If the value is not a valid calendar date
    """
    if not value:
        return date.today()

    candidate = value.split("T", 1)[0] if "T" in value else value
    if not _YMD_PATTERN.match(candidate):
        raise BadRequestError(f"Invalid date format: {value}. Expected YYYY-MM-DD format.")
    try:
        return parse_ymd(candidate)
    except ValueError:
        raise BadRequestError(f"Invalid date format: {value}. Expected YYYY-MM-DD format.")


def month_label(year: int, month: int) -> str:
    """``January 2025``"""
    return f"{month_name[month]} {year}"


def format_date_label(value: date, fmt: str = "MMM dd, yyyy") -> str:
    """Format a date with one of the display patterns in DATE_FORMATS."""
    if fmt == "MMM dd":
        return f"{month_abbr[value.month]} {value.day:02d}"
    if fmt == "MMM dd, yyyy":
        return f"{month_abbr[value.month]} {value.day:02d}, {value.year}"
    if fmt == "yyyy-MM-dd":
        return to_ymd(value)
    if fmt == "MMM yyyy":
        return f"{month_abbr[value.month]} {value.year}"
    raise ValueError(f"Unsupported date format: {fmt}")
