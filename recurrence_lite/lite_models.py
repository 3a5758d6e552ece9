"""Data models for recurrence rules, calendar events and occurrence exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .lite_datetime_utils import as_day

T = TypeVar("T")

# Weekday numbering used throughout the package (ISO 8601: Monday = 1)
MONDAY = 1
TUESDAY = 2
WEDNESDAY = 3
THURSDAY = 4
FRIDAY = 5
SATURDAY = 6
SUNDAY = 7

# Allowed magnitude for each integer BY* collection
_BY_FIELD_LIMITS: dict[str, tuple[int, bool]] = {
    # field name -> (max absolute value, negatives allowed)
    "by_month_days": (31, True),
    "by_months": (12, False),
    "by_set_positions": (366, True),
    "by_year_days": (366, True),
    "by_week_numbers": (53, True),
}


class LiteFrequency(str, Enum):
    """Supported recurrence frequencies.

    Sub-daily frequencies (SECONDLY, MINUTELY, HOURLY) are intentionally absent.
    """

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


@dataclass(frozen=True)
class Keep:
    """Field update marker: leave the field unchanged."""


@dataclass(frozen=True)
class SetTo(Generic[T]):
    """Field update marker: replace the field with ``value`` (``None`` clears it)."""

    value: T


KEEP = Keep()

FieldUpdate = Union[Keep, SetTo[T]]


@dataclass(frozen=True)
class LiteNeverEnds:
    """Terminator: the series repeats forever."""


@dataclass(frozen=True)
class LiteEndsAfterCount:
    """Terminator: the series stops after ``count`` occurrences."""

    count: int


@dataclass(frozen=True)
class LiteEndsOnDate:
    """Terminator: the series stops on ``until`` (inclusive)."""

    until: Union[date, datetime]


LiteTerminator = Union[LiteNeverEnds, LiteEndsAfterCount, LiteEndsOnDate]


class LiteWeekDay(BaseModel):
    """A weekday, optionally qualified by its position inside the period.

    ``occurrence`` counts from the start of the month/year when positive
    (1 = first) and from the end when negative (-1 = last). ``None`` matches
    every occurrence of the weekday.
    """

    model_config = ConfigDict(frozen=True)

    day_of_week: int = Field(..., ge=MONDAY, le=SUNDAY, description="ISO weekday, Monday=1")
    occurrence: Optional[int] = Field(default=None, ge=-53, le=53, description="Nth qualifier")

    @field_validator("occurrence")
    @classmethod
    def reject_zero_occurrence(cls, v: Optional[int]) -> Optional[int]:
        """RFC 5545 has no zeroth weekday."""
        if v == 0:
            raise ValueError("occurrence must be non-zero")
        return v

    @classmethod
    def every(cls, day_of_week: int) -> LiteWeekDay:
        """Match every ``day_of_week`` in the period."""
        return cls(day_of_week=day_of_week)

    @classmethod
    def nth(cls, day_of_week: int, n: int) -> LiteWeekDay:
        """Match the ``n``th ``day_of_week`` of the period (negative counts from the end)."""
        return cls(day_of_week=day_of_week, occurrence=n)

    def sort_key(self) -> tuple[int, int]:
        return (self.day_of_week, self.occurrence or 0)


class LiteRecurrenceRule(BaseModel):
    """Immutable RFC 5545 recurrence rule.

    Equality contract: the BY* collections are sets semantically. They are
    stored in caller order for readability but compared and hashed as sets,
    so ``by_months=(3, 1)`` equals ``by_months=(1, 3)``.

    Construction fails fast with ``pydantic.ValidationError`` when COUNT and
    UNTIL are both set, when ``interval < 1``, or when BYYEARDAY/BYWEEKNO are
    used with a non-yearly frequency.
    """

    model_config = ConfigDict(frozen=True)

    frequency: LiteFrequency = Field(..., description="Repeat unit")
    interval: int = Field(default=1, description="Repeat every N units of frequency")
    count: Optional[int] = Field(default=None, description="Maximum number of occurrences")
    until: Optional[Union[datetime, date]] = Field(
        default=None, description="Inclusive end of the series"
    )
    by_week_days: Optional[frozenset[LiteWeekDay]] = Field(default=None, description="BYDAY")
    by_month_days: Optional[tuple[int, ...]] = Field(default=None, description="BYMONTHDAY")
    by_months: Optional[tuple[int, ...]] = Field(default=None, description="BYMONTH")
    by_set_positions: Optional[tuple[int, ...]] = Field(default=None, description="BYSETPOS")
    by_year_days: Optional[tuple[int, ...]] = Field(default=None, description="BYYEARDAY")
    by_week_numbers: Optional[tuple[int, ...]] = Field(default=None, description="BYWEEKNO")
    week_start: int = Field(default=MONDAY, ge=MONDAY, le=SUNDAY, description="WKST")

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"interval must be >= 1, but was {v}")
        return v

    @field_validator("count")
    @classmethod
    def validate_count(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"count must be >= 1, but was {v}")
        return v

    @field_validator("until")
    @classmethod
    def validate_until(cls, v: Optional[Union[datetime, date]]) -> Optional[Union[datetime, date]]:
        """UNTIL must be expressible in RRULE text: naive, whole seconds."""
        if isinstance(v, datetime):
            if v.tzinfo is not None:
                raise ValueError(f"until must be a naive datetime, got offset {v.utcoffset()}")
            if v.microsecond:
                raise ValueError(f"until must not have sub-second precision, got {v.isoformat()}")
        return v

    @field_validator(
        "by_week_days",
        "by_month_days",
        "by_months",
        "by_set_positions",
        "by_year_days",
        "by_week_numbers",
        mode="before",
    )
    @classmethod
    def empty_collection_is_none(cls, v: Any) -> Any:
        """Treat an empty BY* collection the same as an absent one."""
        if v is not None and len(v) == 0:
            return None
        if isinstance(v, (set, frozenset)) and v and all(isinstance(i, int) for i in v):
            return tuple(sorted(v))
        return v

    @field_validator(
        "by_month_days", "by_months", "by_set_positions", "by_year_days", "by_week_numbers"
    )
    @classmethod
    def validate_by_field_range(
        cls, v: Optional[tuple[int, ...]], info: ValidationInfo
    ) -> Optional[tuple[int, ...]]:
        if v is None:
            return v
        limit, negatives = _BY_FIELD_LIMITS[info.field_name]
        for value in v:
            lowest = -limit if negatives else 1
            if value == 0 or not lowest <= value <= limit:
                raise ValueError(
                    f"{info.field_name} values must be within {lowest}..{limit} excluding 0, got {value}"
                )
        return v

    @model_validator(mode="after")
    def validate_rule_consistency(self) -> LiteRecurrenceRule:
        if self.count is not None and self.until is not None:
            raise ValueError("count and until are mutually exclusive; only one may be specified")
        if self.by_year_days is not None and self.frequency != LiteFrequency.YEARLY:
            raise ValueError(
                f"by_year_days is only valid with YEARLY frequency, but frequency was {self.frequency.value}"
            )
        if self.by_week_numbers is not None and self.frequency != LiteFrequency.YEARLY:
            raise ValueError(
                f"by_week_numbers is only valid with YEARLY frequency, but frequency was {self.frequency.value}"
            )
        return self

    @property
    def terminator(self) -> LiteTerminator:
        """Tagged view of the termination condition."""
        if self.count is not None:
            return LiteEndsAfterCount(self.count)
        if self.until is not None:
            return LiteEndsOnDate(self.until)
        return LiteNeverEnds()

    @property
    def is_infinite(self) -> bool:
        return self.count is None and self.until is None

    def copy_with(
        self,
        *,
        frequency: FieldUpdate[LiteFrequency] = KEEP,
        interval: FieldUpdate[int] = KEEP,
        count: FieldUpdate[Optional[int]] = KEEP,
        until: FieldUpdate[Optional[Union[date, datetime]]] = KEEP,
        by_week_days: FieldUpdate[Optional[Any]] = KEEP,
        by_month_days: FieldUpdate[Optional[Any]] = KEEP,
        by_months: FieldUpdate[Optional[Any]] = KEEP,
        by_set_positions: FieldUpdate[Optional[Any]] = KEEP,
        by_year_days: FieldUpdate[Optional[Any]] = KEEP,
        by_week_numbers: FieldUpdate[Optional[Any]] = KEEP,
        week_start: FieldUpdate[int] = KEEP,
    ) -> LiteRecurrenceRule:
        """Return a re-validated copy with the ``SetTo`` fields replaced.

        Example:
            >>> rule.copy_with(count=SetTo(None), until=SetTo(date(2024, 6, 30)))
        """
        updates: dict[str, Any] = {
            "frequency": frequency,
            "interval": interval,
            "count": count,
            "until": until,
            "by_week_days": by_week_days,
            "by_month_days": by_month_days,
            "by_months": by_months,
            "by_set_positions": by_set_positions,
            "by_year_days": by_year_days,
            "by_week_numbers": by_week_numbers,
            "week_start": week_start,
        }
        data = {name: getattr(self, name) for name in type(self).model_fields}
        for name, update in updates.items():
            if isinstance(update, SetTo):
                data[name] = update.value
            elif not isinstance(update, Keep):
                raise TypeError(f"{name} must be KEEP or SetTo(value), got {update!r}")
        return type(self).model_validate(data)

    @classmethod
    def from_rrule_string(cls, rrule_string: str) -> LiteRecurrenceRule:
        """Parse RRULE text, raising ``LiteRRuleParseError`` on failure."""
        from .lite_rrule_codec import parse_rrule

        return parse_rrule(rrule_string).unwrap()

    def to_rrule_string(self, include_prefix: bool = True) -> str:
        """Serialize to canonical RRULE text (``RRULE:FREQ=...``)."""
        from .lite_rrule_codec import serialize_rrule

        return serialize_rrule(self, include_prefix=include_prefix)

    def _comparison_key(self) -> tuple[Any, ...]:
        return (
            self.frequency,
            self.interval,
            self.count,
            type(self.until),
            self.until,
            self.by_week_days,
            _as_set(self.by_month_days),
            _as_set(self.by_months),
            _as_set(self.by_set_positions),
            _as_set(self.by_year_days),
            _as_set(self.by_week_numbers),
            self.week_start,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LiteRecurrenceRule):
            return NotImplemented
        return self._comparison_key() == other._comparison_key()

    def __hash__(self) -> int:
        return hash(self._comparison_key())


def _as_set(values: Optional[tuple[int, ...]]) -> Optional[frozenset[int]]:
    return frozenset(values) if values is not None else None


class LiteCalendarEvent(BaseModel):
    """Calendar event; a master event carries a recurrence rule, instances do not."""

    model_config = ConfigDict(frozen=True)

    # Core properties
    id: str = Field(..., description="Event ID")
    subject: str = Field(default="", description="Event subject/title")
    body_preview: Optional[str] = Field(default=None, description="Event body preview")
    location: Optional[str] = Field(default=None, description="Display name of the location")

    # Time information
    start: datetime = Field(..., description="Event start (naive local time)")
    end: datetime = Field(..., description="Event end (naive local time)")
    is_all_day: bool = Field(default=False, description="All-day event flag")

    # Recurrence
    recurrence_rule: Optional[LiteRecurrenceRule] = Field(
        default=None, description="Rule for recurring masters"
    )
    occurrence_id: Optional[str] = Field(
        default=None, description="Original occurrence date (YYYY-MM-DD) for expanded instances"
    )
    is_expanded_instance: bool = Field(
        default=False, description="True if generated from RRULE expansion"
    )
    rrule_master_uid: Optional[str] = Field(
        default=None, description="ID of the master recurring event for expanded instances"
    )

    # Metadata
    external_id: Optional[str] = Field(default=None, description="Caller-side identifier")
    custom_data: Optional[dict[str, Any]] = Field(default=None, description="Free-form metadata")

    @model_validator(mode="after")
    def validate_time_order(self) -> LiteCalendarEvent:
        if self.end < self.start:
            raise ValueError(f"event {self.id!r} ends before it starts")
        return self

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_rule is not None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, range_start: datetime, range_end: datetime) -> bool:
        """Half-open overlap test against ``[range_start, range_end)``.

        A zero-length event overlaps when its start lies inside the range.
        """
        if self.start == self.end:
            return range_start <= self.start < range_end
        return self.start < range_end and self.end > range_start


class _OccurrenceExceptionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    original_date: Union[datetime, date] = Field(
        ..., description="Date of the occurrence being excepted, as originally generated"
    )

    @property
    def original_day(self) -> date:
        return as_day(self.original_date)


class LiteDeletedOccurrence(_OccurrenceExceptionBase):
    """The occurrence is skipped."""

    type: Literal["deleted"] = "deleted"


class LiteRescheduledOccurrence(_OccurrenceExceptionBase):
    """The occurrence moves to ``new_date``; duration and content are unchanged."""

    type: Literal["rescheduled"] = "rescheduled"
    new_date: Union[datetime, date] = Field(..., description="New start of the occurrence")


class LiteModifiedOccurrence(_OccurrenceExceptionBase):
    """The occurrence is replaced wholesale by ``modified_event``."""

    type: Literal["modified"] = "modified"
    modified_event: LiteCalendarEvent = Field(..., description="Replacement event")


LiteRecurrenceException = Annotated[
    Union[LiteDeletedOccurrence, LiteRescheduledOccurrence, LiteModifiedOccurrence],
    Field(discriminator="type"),
]

_exception_adapter: TypeAdapter[Any] = TypeAdapter(LiteRecurrenceException)


def parse_recurrence_exception(data: Any) -> Union[
    LiteDeletedOccurrence, LiteRescheduledOccurrence, LiteModifiedOccurrence
]:
    """Validate a plain dict (e.g. loaded from JSON) into the matching exception model.

    Raises:
        pydantic.ValidationError: If the payload is not a valid exception
    """
    return _exception_adapter.validate_python(data)
