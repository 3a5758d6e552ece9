"""Apply per-occurrence exceptions (deleted / rescheduled / modified) to a series."""

import logging
from datetime import date, datetime
from typing import Iterable, TypeVar, Union

from .lite_datetime_utils import as_day, with_time_of
from .lite_models import (
    LiteCalendarEvent,
    LiteDeletedOccurrence,
    LiteModifiedOccurrence,
    LiteRescheduledOccurrence,
)

logger = logging.getLogger(__name__)

AnyException = Union[LiteDeletedOccurrence, LiteRescheduledOccurrence, LiteModifiedOccurrence]
Occurrence = TypeVar("Occurrence", datetime, LiteCalendarEvent)


def _start_of(occurrence: Union[datetime, LiteCalendarEvent]) -> datetime:
    if isinstance(occurrence, LiteCalendarEvent):
        return occurrence.start
    return occurrence


def index_exceptions(exceptions: Iterable[AnyException]) -> dict[date, AnyException]:
    """Key exceptions by the calendar day of their original date.

    When several exceptions target the same day, the last one wins.
    """
    by_day: dict[date, AnyException] = {}
    for exception in exceptions:
        day = exception.original_day
        if day in by_day:
            logger.debug(
                "Exception for %s replaces earlier %s exception", day.isoformat(), by_day[day].type
            )
        by_day[day] = exception
    return by_day


def rescheduled_start(exception: LiteRescheduledOccurrence, original_start: datetime) -> datetime:
    """New start for a rescheduled occurrence.

    A date-only ``new_date`` keeps the time of day of the original occurrence.
    """
    if isinstance(exception.new_date, datetime):
        return exception.new_date
    return with_time_of(exception.new_date, original_start)


def _apply_one(occurrence, exception: AnyException):
    if isinstance(exception, LiteRescheduledOccurrence):
        new_start = rescheduled_start(exception, _start_of(occurrence))
        if isinstance(occurrence, LiteCalendarEvent):
            return occurrence.model_copy(
                update={"start": new_start, "end": new_start + occurrence.duration}
            )
        return new_start

    # modified
    if isinstance(occurrence, LiteCalendarEvent):
        return exception.modified_event
    return exception.modified_event.start


def apply_exceptions(
    occurrences: Iterable[Occurrence], exceptions: Iterable[AnyException]
) -> list[Occurrence]:
    """Overlay exceptions onto a list of generated occurrences.

    Occurrences are matched to exceptions by calendar date. Deleted
    occurrences are dropped, rescheduled ones move to their new start (events
    keep their duration and content) and modified ones are replaced by the
    exception's event. Exceptions that match nothing are ignored.

    Args:
        occurrences: Occurrence datetimes or expanded event instances
        exceptions: Exceptions for the series

    Returns:
        The overlaid occurrences, stably ordered by start
    """
    by_day = index_exceptions(exceptions)
    if not by_day:
        return sorted(occurrences, key=_start_of)

    matched: set[date] = set()
    result = []
    for occurrence in occurrences:
        day = as_day(_start_of(occurrence))
        exception = by_day.get(day)
        if exception is None:
            result.append(occurrence)
            continue

        matched.add(day)
        if isinstance(exception, LiteDeletedOccurrence):
            continue
        result.append(_apply_one(occurrence, exception))

    unmatched = set(by_day) - matched
    if unmatched:
        logger.debug(
            "Ignoring %d exceptions with no matching occurrence: %s",
            len(unmatched),
            ", ".join(sorted(d.isoformat() for d in unmatched)),
        )

    return sorted(result, key=_start_of)
