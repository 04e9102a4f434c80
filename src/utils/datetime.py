# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Date utilities for StudyTrack.

Records are logged with a calendar date string (``YYYY-MM-DD``) rather than
a timestamp, so almost every analytics operation works on naive
``datetime.date`` values. These helpers are the single place where record
dates are parsed and where bucket keys are derived from them.

Design Decisions:
-----------------
1. Record dates are calendar dates with no timezone; "today" is always passed
   in explicitly by the caller so analytics stay deterministic.
2. Parsing never raises: an unparseable value yields ``None`` and the caller
   decides whether to skip the record.
3. Week numbering follows ISO 8601 (weeks start Monday, week 1 contains the
   first Thursday of the year).

Usage:
------
    from src.utils.datetime import parse_record_date, iso_week_key

    day = parse_record_date("2025-01-06")
    iso_week_key(day)  # "2025-W02"
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Get the current UTC calendar date."""
    return utc_now().date()


def parse_record_date(value: Any) -> date | None:
    """Parse a record date into a calendar date.

    Accepts ``date``/``datetime`` objects (Firestore timestamps arrive as
    ``datetime`` subclasses) and ISO 8601 strings, with or without a time
    component.

    Args:
        value: Raw date value from a record.

    Returns:
        The calendar date, or None if the value cannot be parsed.

    Example:
        >>> parse_record_date("2025-01-12")
        datetime.date(2025, 1, 12)
        >>> parse_record_date("12/01/2025") is None
        True
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def format_record_date(value: date) -> str:
    """Format a calendar date the way records store it (``YYYY-MM-DD``)."""
    return value.isoformat()


def iso_week_key(value: date) -> str:
    """Build the ISO week bucket key for a date.

    Args:
        value: Calendar date.

    Returns:
        Key formatted as ``{iso_year}-W{week:02d}``.

    Example:
        >>> iso_week_key(date(2025, 1, 6))
        '2025-W02'
        >>> iso_week_key(date(2024, 12, 30))
        '2025-W01'
    """
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_key(value: date) -> str:
    """Build the month bucket key (``{year}-{month:02d}``) for a date."""
    return f"{value.year}-{value.month:02d}"


def parse_week_key(key: str) -> tuple[int, int] | None:
    """Split a week key into ``(iso_year, iso_week)``, or None if malformed."""
    year_part, sep, week_part = key.partition("-W")
    if not sep:
        return None
    try:
        return int(year_part), int(week_part)
    except ValueError:
        return None


def week_bounds(iso_year: int, iso_week: int) -> tuple[date, date]:
    """Get the Monday and Sunday of an ISO week."""
    monday = date.fromisocalendar(iso_year, iso_week, 1)
    return monday, monday + timedelta(days=6)


def days_in_month(year: int, month: int) -> int:
    """Get the number of days in a month."""
    return calendar.monthrange(year, month)[1]


def days_between(start: date, end: date) -> int:
    """Number of whole days from start to end (negative if end is earlier)."""
    return (end - start).days


def minutes_to_human(minutes: float) -> str:
    """Convert a duration in minutes to a short human string.

    Args:
        minutes: Duration in minutes (negative values count as zero).

    Returns:
        Human-readable string like "2h 30m", "2h" or "45m".
    """
    total = max(0, round(minutes))
    hours, remaining = divmod(total, 60)

    if hours > 0 and remaining > 0:
        return f"{hours}h {remaining}m"
    if hours > 0:
        return f"{hours}h"
    return f"{remaining}m"
