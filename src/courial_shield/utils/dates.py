"""Date helpers for ticket and membership dates.

Policy windows are measured in calendar days, never in elapsed hours: a
ticket issued at 23:50 and submitted at 00:10 two days later is two days old.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

# ISO: 2026-01-23 (optionally followed by T or space + time)
_RE_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T\s].*)?$")

# US numeric: MM/DD/YYYY or MM-DD-YY
_RE_US = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})$")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_ticket_date(value: Any) -> Optional[date]:
    """Parse a citation date.

    Supported formats:
    - ``date`` / ``datetime`` objects
    - ISO: 2026-01-23, 2026-01-23T08:15:00Z
    - US numeric: 01/23/2026, 1-23-26

    Returns:
        The calendar date, or None if the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    match = _RE_ISO.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
    else:
        match = _RE_US.match(text)
        if not match:
            return None
        month, day, year = (int(g) for g in match.groups())
        if year < 100:
            year += 2000

    try:
        return date(year, month, day)
    except ValueError:
        return None


def to_date(value: date) -> date:
    """Reduce a datetime to its calendar date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def calendar_days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return (to_date(end) - to_date(start)).days


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored and injected times compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def assume_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware values keep their own zone.

    Use this where the caller's calendar date matters (submission dates):
    converting to UTC first would move an evening submission in the US to
    the next day.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
