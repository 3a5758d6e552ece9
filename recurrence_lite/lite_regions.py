"""Recurring time-of-day and whole-day regions.

Regions are background bands (lunch breaks, blocked weekends, ...) that may
repeat via an RRULE string. The matchers below answer "does this region occur
on that date" and never raise: a malformed rule or a generator failure is
treated as "no match" and logged at debug level.
"""

from __future__ import annotations

import datetime as dt
import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .lite_datetime_utils import DateLike, as_day, day_key, same_day, start_of_day, start_of_next_day
from .lite_exceptions import LiteRecurrenceError
from .lite_models import LiteRecurrenceRule
from .lite_occurrences import get_occurrences
from .lite_rrule_codec import parse_rrule

logger = logging.getLogger(__name__)


def contains(start: datetime, end: datetime, instant: datetime) -> bool:
    """True when ``instant`` lies in the half-open interval ``[start, end)``."""
    return start <= instant < end


def overlaps(start: datetime, end: datetime, range_start: datetime, range_end: datetime) -> bool:
    """True when ``[start, end)`` and ``[range_start, range_end)`` intersect."""
    return start < range_end and end > range_start


class LiteTimeRegion(BaseModel):
    """A time-bounded band within a day, optionally recurring."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Region ID")
    start_time: datetime = Field(..., description="Start of the first occurrence")
    end_time: datetime = Field(..., description="End of the first occurrence (exclusive)")
    color: Optional[str] = Field(default=None, description="Background colour for rendering")
    text: Optional[str] = Field(default=None, description="Label shown inside the region")
    icon: Optional[str] = Field(default=None, description="Icon name shown inside the region")
    block_interaction: bool = Field(default=False, description="Reject drops that overlap this region")
    recurrence_rule: Optional[str] = Field(default=None, description="RRULE text, None for one-off")
    custom_data: Optional[dict[str, Any]] = Field(default=None, description="Free-form metadata")

    @model_validator(mode="after")
    def validate_time_order(self) -> LiteTimeRegion:
        if self.end_time < self.start_time:
            raise ValueError(f"time region {self.id!r} ends before it starts")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rule is not None

    def contains(self, instant: datetime) -> bool:
        return contains(self.start_time, self.end_time, instant)

    def overlaps(self, range_start: datetime, range_end: datetime) -> bool:
        return overlaps(self.start_time, self.end_time, range_start, range_end)

    def expanded_for_date(self, query_date: DateLike) -> Optional[LiteTimeRegion]:
        return expanded_for_date(self, query_date)


class LiteDayRegion(BaseModel):
    """A whole-day band, optionally recurring."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Region ID")
    date: dt.date = Field(..., description="Anchor date; only the calendar date is significant")
    color: Optional[str] = Field(default=None, description="Background colour for rendering")
    text: Optional[str] = Field(default=None, description="Label shown in the day cell")
    icon: Optional[str] = Field(default=None, description="Icon name shown in the day cell")
    block_interaction: bool = Field(default=False, description="Reject drops onto matching days")
    recurrence_rule: Optional[str] = Field(default=None, description="RRULE text, None for one-off")
    custom_data: Optional[dict[str, Any]] = Field(default=None, description="Free-form metadata")

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rule is not None

    def contains(self, instant: datetime) -> bool:
        """True when ``instant`` falls on the anchor day."""
        return contains(start_of_day(self.date), start_of_next_day(self.date), instant)

    def overlaps(self, range_start: datetime, range_end: datetime) -> bool:
        return overlaps(start_of_day(self.date), start_of_next_day(self.date), range_start, range_end)

    def applies_to(self, query_date: DateLike) -> bool:
        return applies_to(self, query_date)


def _parse_region_rule(region_id: str, rrule_text: str) -> Optional[LiteRecurrenceRule]:
    result = parse_rrule(rrule_text)
    if not result.success:
        logger.debug(
            "Region %s has unusable recurrence rule %r (%s): %s",
            region_id,
            rrule_text,
            result.error_kind.value if result.error_kind else "unknown",
            result.error_message,
        )
        return None
    return result.rule


def _occurrences_on(
    region_id: str, rrule_text: str, anchor: datetime, query_date: DateLike
) -> list[datetime]:
    rule = _parse_region_rule(region_id, rrule_text)
    if rule is None:
        return []
    try:
        return get_occurrences(rule, anchor, start_of_day(query_date), start_of_next_day(query_date))
    except LiteRecurrenceError as e:
        logger.debug("Region %s expansion failed for %s: %s", region_id, day_key(query_date), e)
        return []


def expanded_for_date(region: LiteTimeRegion, query_date: DateLike) -> Optional[LiteTimeRegion]:
    """Return the concrete instance of ``region`` on ``query_date``, if any.

    A non-recurring region is returned unchanged when it starts on
    ``query_date``. A recurring region yields a copy with id
    ``"{id}_{YYYY-MM-DD}"``, shifted to the occurrence while keeping its
    duration, and with ``recurrence_rule`` cleared.

    Args:
        region: Region to expand
        query_date: Day to look at (time of day is ignored)

    Returns:
        The region instance on that day, or None
    """
    if region.recurrence_rule is None:
        return region if same_day(region.start_time, query_date) else None

    occurrences = _occurrences_on(region.id, region.recurrence_rule, region.start_time, query_date)
    if not occurrences:
        return None

    occurrence = occurrences[0]
    return region.model_copy(
        update={
            "id": f"{region.id}_{day_key(occurrence)}",
            "start_time": occurrence,
            "end_time": occurrence + region.duration,
            "recurrence_rule": None,
        }
    )


def applies_to(region: LiteDayRegion, query_date: DateLike) -> bool:
    """True when ``region`` occurs on the calendar day of ``query_date``."""
    if region.recurrence_rule is None:
        return region.date == as_day(query_date)

    return bool(_occurrences_on(region.id, region.recurrence_rule, start_of_day(region.date), query_date))


def time_regions_for_date(regions: Iterable[LiteTimeRegion], query_date: DateLike) -> list[LiteTimeRegion]:
    """Concrete time regions occurring on ``query_date``, ordered by start."""
    instances = []
    for region in regions:
        instance = expanded_for_date(region, query_date)
        if instance is not None:
            instances.append(instance)
    return sorted(instances, key=lambda r: r.start_time)


def day_regions_for_date(regions: Iterable[LiteDayRegion], query_date: DateLike) -> list[LiteDayRegion]:
    """Day regions that apply to ``query_date``, in input order."""
    return [region for region in regions if applies_to(region, query_date)]


def find_blocking_time_region(
    regions: Iterable[LiteTimeRegion], start: datetime, end: datetime
) -> Optional[LiteTimeRegion]:
    """Return the first blocking region instance overlapping ``[start, end)``.

    Every calendar day touched by the proposed span is checked, so a drop that
    crosses midnight is validated against both days.

    Args:
        regions: Candidate regions (only ``block_interaction`` ones are considered)
        start: Proposed start
        end: Proposed end (exclusive)

    Returns:
        The overlapping region instance, or None if the span is free
    """
    blocking = [region for region in regions if region.block_interaction]
    if not blocking or end <= start:
        return None

    day = as_day(start)
    last_day = as_day(end - timedelta(microseconds=1))
    while day <= last_day:
        for instance in time_regions_for_date(blocking, day):
            if instance.overlaps(start, end):
                logger.debug(
                    "Span %s-%s blocked by region %s", start.isoformat(), end.isoformat(), instance.id
                )
                return instance
        day += timedelta(days=1)
    return None


def is_date_blocked(regions: Iterable[LiteDayRegion], query_date: DateLike) -> bool:
    """True when any blocking day region applies to ``query_date``."""
    return any(region.block_interaction and applies_to(region, query_date) for region in regions)
