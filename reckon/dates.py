"""Date utilities for reckon.

Pure functions for date parsing, range calculations and formatting.
"""

from datetime import date, datetime, timedelta

import pandas as pd

from reckon.domain.models import Month


def parse_date(raw_date: str) -> date:
    """Parse a receipt date in any common format.

    Uses pandas.to_datetime, which handles ISO, European and American formats.
    Ambiguous day/month orders are read day first (15/04/2023).

    Args:
        raw_date: Date string from user input or an upload.

    Returns:
        Calendar date.

    Raises:
        ValueError: If the string is not a recognizable date.
    """
    text = raw_date.strip()
    if not text:
        raise ValueError("Date is empty")
    try:
        parsed = pd.to_datetime(text, dayfirst=not _is_iso(text))
    except (ValueError, pd.errors.ParserError) as e:
        raise ValueError(f"Invalid date: {raw_date!r}") from e
    if pd.isna(parsed):
        raise ValueError(f"Invalid date: {raw_date!r}")
    return parsed.date()


def _is_iso(text: str) -> bool:
    return len(text) >= 10 and text[4] == "-" and text[7] == "-"


def format_date(value: date) -> str:
    """Long display form, e.g. "April 15, 2023"."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def month_of(value: date) -> Month:
    """Month containing a date."""
    return Month(value.strftime("%Y-%m"))


def previous_month(month: Month) -> Month:
    """The month before ``month``."""
    dt = datetime.strptime(month, "%Y-%m")
    return Month((dt.replace(day=1) - timedelta(days=1)).strftime("%Y-%m"))


def month_range(month: Month) -> tuple[date, date, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (first_day, last_day, label) where:
        - first_day: First day of month
        - last_day: Last day of month (inclusive)
        - label: Human-readable month (e.g., "January 2025")
    """
    dt = datetime.strptime(month, "%Y-%m")
    next_month = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    last_day = next_month - timedelta(days=1)
    label = dt.strftime("%B %Y")
    return dt.date(), last_day.date(), label
