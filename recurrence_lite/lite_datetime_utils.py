"""Date helpers shared by the recurrence modules.

All values handled here are naive wall-clock dates and datetimes. Calendar
arithmetic is done on ``date`` objects so day boundaries never drift.
"""

from datetime import date, datetime, time, timedelta
from typing import Union

DateLike = Union[date, datetime]


def as_day(value: DateLike) -> date:
    """Return the calendar date of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day(value: DateLike) -> datetime:
    """Return midnight at the start of ``value``'s calendar day."""
    return datetime.combine(as_day(value), time.min)


def start_of_next_day(value: DateLike) -> datetime:
    """Return midnight at the start of the day after ``value``.

    Used as the exclusive upper bound of a one-day query window.
    """
    return datetime.combine(as_day(value) + timedelta(days=1), time.min)


def as_datetime(value: DateLike) -> datetime:
    """Promote a date to midnight; datetimes pass through unchanged."""
    if isinstance(value, datetime):
        return value
    return start_of_day(value)


def same_day(first: DateLike, second: DateLike) -> bool:
    """True when both values fall on the same calendar day."""
    return as_day(first) == as_day(second)


def day_key(value: DateLike) -> str:
    """ISO calendar date (YYYY-MM-DD) used in instance identifiers."""
    return as_day(value).isoformat()


def with_time_of(day: DateLike, clock: datetime) -> datetime:
    """Combine the calendar date of ``day`` with the time of day of ``clock``."""
    return datetime.combine(as_day(day), clock.time())
