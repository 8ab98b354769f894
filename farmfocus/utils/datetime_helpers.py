"""
Standardized Date/Time Handling Utilities

All "today" / "yesterday" decisions (streaks, drought, habit resets, daily
sweeps) are made in the application timezone (APP_TIMEZONE).

CRITICAL RULES:
- Engine code gets the current moment from an injectable clock, never
  from datetime.now() directly, so tests can pin the calendar day
- Clocks return timezone-aware datetimes
- Never mix naive and aware datetimes
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable

from farmfocus import config

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def now_local() -> datetime:
    """
    Get current datetime in the application timezone

    Returns:
        Current timezone-aware datetime
    """
    return datetime.now(config.get_timezone())


def to_local(dt: datetime) -> datetime:
    """
    Convert a datetime to the application timezone

    Naive datetimes are assumed to already be local wall-clock time.
    """
    tz = config.get_timezone()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def local_date(dt: datetime) -> date:
    """Calendar day of a moment in the application timezone"""
    return to_local(dt).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """
    Start (inclusive) and end (exclusive) of a calendar day

    Args:
        day: Calendar day in the application timezone

    Returns:
        (start, end) as timezone-aware datetimes
    """
    tz = config.get_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end

