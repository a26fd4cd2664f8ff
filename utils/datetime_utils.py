"""
Datetime utilities for consistent timezone handling across the application.
All datetime operations should use timezone-aware datetimes.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List
from zoneinfo import ZoneInfo

from utils.constants import DATE_VALUE_FORMAT, TIME_FORMAT


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def local_now(tz: ZoneInfo) -> datetime:
    """Current time in the business timezone."""
    return datetime.now(tz)


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Args:
        iso_string: ISO format datetime string

    Returns:
        Timezone-aware datetime object

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    # Normalize 'Z' suffix to '+00:00'
    normalized = iso_string.replace("Z", "+00:00")

    try:
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def to_iso_string(dt: datetime) -> str:
    """
    Convert datetime to ISO format string.
    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.isoformat()


def parse_date_value(value: str) -> date:
    """Parse a YYYY-MM-DD callback value."""
    return datetime.strptime(value, DATE_VALUE_FORMAT).date()


def parse_time_value(value: str) -> time:
    """Parse an HH:MM callback value."""
    return datetime.strptime(value, TIME_FORMAT).time()


def combine_local(day: date, at: time, tz: ZoneInfo) -> datetime:
    """Attach a wall-clock time on a given day to the business timezone."""
    return datetime.combine(day, at, tzinfo=tz)


def upcoming_dates(today: date, days: int) -> List[date]:
    """Return `days` consecutive dates starting with today."""
    return [today + timedelta(days=offset) for offset in range(days)]
