"""
Clock Helpers

Services take a zero-argument clock so tests can pin "now". Day and week
boundaries are computed in UTC.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(now: datetime) -> datetime:
    """Midnight UTC of the day containing now."""
    now = as_utc(now)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(now: datetime) -> datetime:
    """Midnight UTC of the most recent Sunday (weeks start on Sunday)."""
    day = start_of_day(now)
    # weekday(): Monday=0 ... Sunday=6
    return day - timedelta(days=(day.weekday() + 1) % 7)


def utc_date(value: datetime) -> date:
    """Calendar date of a timestamp in UTC."""
    return as_utc(value).date()
