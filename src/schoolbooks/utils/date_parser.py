"""Date parsing utilities."""

import calendar
import re
from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "15 January 2024") and a few
    relative forms: "today", "yesterday", "tomorrow", "start of month",
    "end of month", "start of year", "end of last month".

    Args:
        date_str: Date string
        today: Reference date for relative forms (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    relative = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "start of month": today.replace(day=1),
        "end of month": month_end(today.year, today.month),
        "start of year": today.replace(month=1, day=1),
        "end of last month": today.replace(day=1) - timedelta(days=1),
    }
    if text in relative:
        return relative[text]

    try:
        return date_parser.parse(text, dayfirst=False).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def month_end(year: int, month: int) -> date:
    """Return the last day of the given month."""
    return date(year, month, calendar.monthrange(year, month)[1])


def parse_period(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a reporting period.

    Args:
        period: One of this-month, last-month, this-year, last-year,
            a month ("2024-03") or a year ("2024")

    Returns:
        Tuple of (start_date, end_date), both inclusive

    Raises:
        ValueError: If period string is not recognized
    """
    text = period.strip().lower()
    today = today or date.today()

    if text == "this-month":
        return today.replace(day=1), month_end(today.year, today.month)
    if text == "last-month":
        start = (today - relativedelta(months=1)).replace(day=1)
        return start, month_end(start.year, start.month)
    if text == "this-year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if text == "last-year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    month_match = re.fullmatch(r"(\d{4})-(\d{1,2})", text)
    if month_match:
        year, month = int(month_match.group(1)), int(month_match.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month in period '{period}'")
        return date(year, month, 1), month_end(year, month)
    if re.fullmatch(r"\d{4}", text):
        year = int(text)
        return date(year, 1, 1), date(year, 12, 31)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
        "this-year, last-year, YYYY-MM, YYYY"
    )


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (zero if end precedes start)."""
    if end < start:
        return 0
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months
