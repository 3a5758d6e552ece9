"""Expand recurring calendar events into concrete instances.

Builds on ``get_occurrences`` and the exception overlay to turn master events
into the per-occurrence ``LiteCalendarEvent`` instances a view renders, and
provides ``split_series`` for "this and following" edits.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .lite_datetime_utils import (
    DateLike,
    as_day,
    day_key,
    start_of_day,
    start_of_next_day,
    with_time_of,
)
from .lite_exception_overlay import AnyException, apply_exceptions, index_exceptions
from .lite_exceptions import LiteRecurrenceError, LiteSeriesError
from .lite_models import LiteCalendarEvent, LiteDeletedOccurrence, LiteModifiedOccurrence, SetTo
from .lite_occurrences import get_occurrences
from .lite_rrule_expander import LiteRRuleExpander

logger = logging.getLogger(__name__)


class LiteSeriesSplit(BaseModel):
    """Result of splitting a recurring series at a date."""

    model_config = ConfigDict(frozen=True)

    truncated_master: LiteCalendarEvent = Field(..., description="Original series ending the day before the split")
    new_master: LiteCalendarEvent = Field(..., description="New series starting on the split date")
    truncated_exceptions: list[Any] = Field(
        default_factory=list, description="Exceptions staying with the original series"
    )
    new_exceptions: list[Any] = Field(
        default_factory=list, description="Exceptions moved to the new series"
    )


def _make_instance(master: LiteCalendarEvent, occurrence: datetime) -> LiteCalendarEvent:
    key = day_key(occurrence)
    return master.model_copy(
        update={
            "id": f"{master.id}_{key}",
            "start": occurrence,
            "end": occurrence + master.duration,
            "recurrence_rule": None,
            "occurrence_id": key,
            "is_expanded_instance": True,
            "rrule_master_uid": master.id,
        }
    )


def _link_modified_event(master: LiteCalendarEvent, exception: AnyException) -> AnyException:
    """Tag a modified occurrence's replacement event with its series and original date."""
    if not isinstance(exception, LiteModifiedOccurrence):
        return exception
    event = exception.modified_event.model_copy(
        update={
            "occurrence_id": day_key(exception.original_date),
            "is_expanded_instance": True,
            "rrule_master_uid": master.id,
        }
    )
    return exception.model_copy(update={"modified_event": event})


def expand_event_series(
    master: LiteCalendarEvent,
    range_start: datetime,
    range_end: datetime,
    exceptions: Iterable[AnyException] = (),
    *,
    expander: Optional[LiteRRuleExpander] = None,
) -> list[LiteCalendarEvent]:
    """Expand one event into the instances overlapping ``[range_start, range_end)``.

    Args:
        master: Standalone event or recurring master
        range_start: Inclusive range start
        range_end: Exclusive range end
        exceptions: Per-occurrence exceptions of this series
        expander: Engine to use; defaults to the module-level expander

    Returns:
        Event instances ordered by start

    Raises:
        LiteRRuleExpansionError: If the occurrence generator fails
    """
    rule = master.recurrence_rule
    if rule is None:
        return [master] if master.overlaps(range_start, range_end) else []

    # Pad backwards so occurrences starting before the range but still running are found
    padded_start = range_start - master.duration
    starts = get_occurrences(rule, master.start, padded_start, range_end, expander=expander)
    instances = [_make_instance(master, start) for start in starts]

    linked = [_link_modified_event(master, e) for e in exceptions]
    expanded = apply_exceptions(instances, linked)

    # Moved occurrences whose original date lies outside the padded window
    generated_days = {as_day(start) for start in starts}
    for day, exception in index_exceptions(linked).items():
        if day in generated_days or isinstance(exception, LiteDeletedOccurrence):
            continue
        original = get_occurrences(
            rule, master.start, start_of_day(day), start_of_next_day(day), expander=expander
        )
        if not original:
            logger.debug("Exception on %s for %s matches no occurrence", day.isoformat(), master.id)
            continue
        expanded.extend(apply_exceptions([_make_instance(master, original[0])], [exception]))

    visible = [event for event in expanded if event.overlaps(range_start, range_end)]
    logger.debug(
        "Expanded series %s: %d instances in [%s, %s)",
        master.id,
        len(visible),
        range_start.isoformat(),
        range_end.isoformat(),
    )
    return sorted(visible, key=lambda event: event.start)


def expand_events(
    events: Iterable[LiteCalendarEvent],
    range_start: datetime,
    range_end: datetime,
    exceptions_by_series: Optional[Mapping[str, Sequence[AnyException]]] = None,
    *,
    expander: Optional[LiteRRuleExpander] = None,
) -> list[LiteCalendarEvent]:
    """Expand many events into one list of instances ordered by start.

    A series that fails to expand is logged and skipped so one bad rule does
    not hide the rest of the calendar.
    """
    exceptions_by_series = exceptions_by_series or {}
    results: list[LiteCalendarEvent] = []

    for event in events:
        try:
            results.extend(
                expand_event_series(
                    event,
                    range_start,
                    range_end,
                    exceptions_by_series.get(event.id, ()),
                    expander=expander,
                )
            )
        except LiteRecurrenceError:
            logger.exception("expand_events: failed to expand series %s", event.id)
            continue

    return sorted(results, key=lambda event: event.start)


def split_series(
    master: LiteCalendarEvent,
    from_date: DateLike,
    exceptions: Iterable[AnyException] = (),
) -> LiteSeriesSplit:
    """Split a recurring series into "before" and "from this date on" halves.

    The original master is truncated with UNTIL set to the day before
    ``from_date`` (COUNT is cleared). The new master starts on ``from_date``
    with the original time of day, duration and rule, and receives the id
    ``"{id}_split_{YYYY-MM-DD}"``. Exceptions on or after ``from_date`` move to
    the new series.

    Args:
        master: Recurring master event
        from_date: First day of the new series
        exceptions: Exceptions of the original series

    Returns:
        LiteSeriesSplit with both masters and the partitioned exceptions

    Raises:
        LiteSeriesError: If ``master`` is not recurring or ``from_date``
            precedes its start
    """
    rule = master.recurrence_rule
    if rule is None:
        raise LiteSeriesError(f"Event {master.id!r} is not a recurring event")

    split_day = as_day(from_date)
    if split_day < as_day(master.start):
        raise LiteSeriesError(
            f"Cannot split series {master.id!r} at {split_day.isoformat()}, "
            f"before its start {day_key(master.start)}"
        )

    truncated_rule = rule.copy_with(
        until=SetTo(split_day - timedelta(days=1)),
        count=SetTo(None),
    )
    truncated_master = master.model_copy(update={"recurrence_rule": truncated_rule})

    new_start = with_time_of(split_day, master.start)
    new_master = master.model_copy(
        update={
            "id": f"{master.id}_split_{day_key(split_day)}",
            "start": new_start,
            "end": new_start + master.duration,
        }
    )

    kept: list[AnyException] = []
    moved: list[AnyException] = []
    for exception in exceptions:
        (moved if exception.original_day >= split_day else kept).append(exception)

    logger.debug(
        "Split series %s at %s: %d exceptions kept, %d moved to %s",
        master.id,
        split_day.isoformat(),
        len(kept),
        len(moved),
        new_master.id,
    )
    return LiteSeriesSplit(
        truncated_master=truncated_master,
        new_master=new_master,
        truncated_exceptions=kept,
        new_exceptions=moved,
    )
