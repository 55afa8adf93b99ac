"""Shared utilities used across the booking assistant."""

import re
from datetime import datetime, time
from typing import Optional

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_MERIDIEM_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?\s*$", re.IGNORECASE)


def normalize_text(value: str) -> str:
    """Lowercase and collapse whitespace for keyword matching.

    Examples:
        >>> normalize_text("  Actually,   CHANGE the date ")
        'actually, change the date'
    """
    return re.sub(r"\s+", " ", value.strip().lower())


def parse_clock_time(value: str) -> Optional[time]:
    """Parse a 24h "HH:MM" or a 12h "7pm" / "7:30 pm" clock string.

    Returns None when the string is not a clock time.

    Examples:
        >>> parse_clock_time("19:00")
        datetime.time(19, 0)
        >>> parse_clock_time("7:30 pm")
        datetime.time(19, 30)
    """
    match = _CLOCK_RE.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour <= 23 and minute <= 59:
            return time(hour, minute)
        return None

    match = _MERIDIEM_RE.match(value)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        if match.group(3).lower() == "p" and hour != 12:
            hour += 12
        elif match.group(3).lower() == "a" and hour == 12:
            hour = 0
        return time(hour, minute)
    return None


def format_date(value) -> str:
    """Format a date as YYYY-MM-DD."""
    return value.strftime("%Y-%m-%d")


def format_time(value: time) -> str:
    """Format a time as 24h HH:MM."""
    return value.strftime("%H:%M")


def combine_local(day, clock: time, tz) -> datetime:
    """Combine a calendar date and a wall-clock time in the given timezone."""
    return datetime.combine(day, clock, tzinfo=tz)
