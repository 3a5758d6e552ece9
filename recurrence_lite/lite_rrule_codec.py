"""RRULE text codec: parse RFC 5545 RRULE strings into rules and back."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .lite_exceptions import LiteRRuleParseError
from .lite_models import MONDAY, LiteFrequency, LiteRecurrenceRule, LiteWeekDay

logger = logging.getLogger(__name__)

RRULE_PREFIX = "RRULE:"

# Two-letter RFC 5545 weekday codes, indexed by ISO weekday (Monday = 1)
WEEKDAY_CODES = {1: "MO", 2: "TU", 3: "WE", 4: "TH", 5: "FR", 6: "SA", 7: "SU"}
_CODE_TO_WEEKDAY = {code: number for number, code in WEEKDAY_CODES.items()}

_SUB_DAILY_FREQUENCIES = frozenset({"SECONDLY", "MINUTELY", "HOURLY"})

_BYDAY_PATTERN = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")

_SUPPORTED_KEYS = frozenset(
    {
        "FREQ",
        "INTERVAL",
        "COUNT",
        "UNTIL",
        "BYDAY",
        "BYMONTHDAY",
        "BYMONTH",
        "BYSETPOS",
        "BYYEARDAY",
        "BYWEEKNO",
        "WKST",
    }
)

# RRULE key -> model field for the plain integer lists
_INT_LIST_KEYS = {
    "BYMONTHDAY": "by_month_days",
    "BYMONTH": "by_months",
    "BYSETPOS": "by_set_positions",
    "BYYEARDAY": "by_year_days",
    "BYWEEKNO": "by_week_numbers",
}


class LiteRRuleErrorKind(str, Enum):
    """Why an RRULE string was rejected."""

    EMPTY = "empty"
    MALFORMED = "malformed"
    MISSING_FREQUENCY = "missing_frequency"
    UNKNOWN_FREQUENCY = "unknown_frequency"
    UNSUPPORTED_FREQUENCY = "unsupported_frequency"
    UNSUPPORTED_PART = "unsupported_part"
    INVALID_RULE = "invalid_rule"


class LiteRRuleParseResult(BaseModel):
    """Result of an RRULE parse operation."""

    success: bool
    rule: Optional[LiteRecurrenceRule] = Field(default=None, description="Parsed rule on success")
    error_kind: Optional[LiteRRuleErrorKind] = Field(default=None, description="Failure category")
    error_message: Optional[str] = None
    source_text: Optional[str] = Field(default=None, description="Text that was parsed")

    @classmethod
    def ok(cls, rule: LiteRecurrenceRule, source_text: Optional[str] = None) -> LiteRRuleParseResult:
        return cls(success=True, rule=rule, source_text=source_text)

    @classmethod
    def fail(
        cls, kind: LiteRRuleErrorKind, message: str, source_text: Optional[str] = None
    ) -> LiteRRuleParseResult:
        return cls(success=False, error_kind=kind, error_message=message, source_text=source_text)

    def unwrap(self) -> LiteRecurrenceRule:
        """Return the parsed rule.

        Raises:
            LiteRRuleParseError: If parsing failed
        """
        if self.success and self.rule is not None:
            return self.rule
        kind = self.error_kind.value if self.error_kind else None
        raise LiteRRuleParseError(
            self.error_message or "Invalid RRULE", kind=kind, rrule_text=self.source_text
        )


class _PartError(Exception):
    """Internal signal carrying the error kind of a rejected RRULE part."""

    def __init__(self, kind: LiteRRuleErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def parse_rrule(rrule_string: Optional[str]) -> LiteRRuleParseResult:
    """Parse RRULE text into a rule without raising for bad input.

    Args:
        rrule_string: RRULE text, with or without the ``RRULE:`` prefix
            (e.g. "RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=TU,TH")

    Returns:
        LiteRRuleParseResult with either ``rule`` or ``error_kind``/``error_message`` set
    """
    if rrule_string is None or not rrule_string.strip():
        return LiteRRuleParseResult.fail(
            LiteRRuleErrorKind.EMPTY, "Empty RRULE string", source_text=rrule_string
        )

    text = rrule_string.strip()
    if text[: len(RRULE_PREFIX)].upper() == RRULE_PREFIX:
        text = text[len(RRULE_PREFIX) :]

    try:
        fields = _parse_parts(text)
    except _PartError as e:
        logger.debug("Rejected RRULE %r: %s", rrule_string, e)
        return LiteRRuleParseResult.fail(e.kind, str(e), source_text=rrule_string)

    try:
        rule = LiteRecurrenceRule(**fields)
    except ValidationError as e:
        message = "; ".join(error["msg"] for error in e.errors())
        logger.debug("RRULE %r violates rule invariants: %s", rrule_string, message)
        return LiteRRuleParseResult.fail(
            LiteRRuleErrorKind.INVALID_RULE, message, source_text=rrule_string
        )

    return LiteRRuleParseResult.ok(rule, source_text=rrule_string)


def _parse_parts(text: str) -> dict:
    """Split ``KEY=VALUE;...`` text into model keyword arguments."""
    seen: set[str] = set()
    fields: dict = {}

    for part in text.split(";"):
        if not part.strip():
            # tolerate trailing or doubled separators
            continue
        if "=" not in part:
            raise _PartError(LiteRRuleErrorKind.MALFORMED, f"RRULE part without '=': {part!r}")

        key, value = part.split("=", 1)
        key = key.strip().upper()
        value = value.strip()

        if key in seen:
            raise _PartError(LiteRRuleErrorKind.MALFORMED, f"Duplicate RRULE key {key}")
        seen.add(key)

        if key not in _SUPPORTED_KEYS:
            raise _PartError(LiteRRuleErrorKind.UNSUPPORTED_PART, f"Unsupported RRULE part {key}")
        if not value:
            raise _PartError(LiteRRuleErrorKind.MALFORMED, f"Empty value for RRULE key {key}")

        if key == "FREQ":
            fields["frequency"] = _parse_frequency(value)
        elif key == "INTERVAL":
            fields["interval"] = _parse_int(key, value)
        elif key == "COUNT":
            fields["count"] = _parse_int(key, value)
        elif key == "UNTIL":
            fields["until"] = parse_until(value)
        elif key == "BYDAY":
            fields["by_week_days"] = [_parse_weekday_token(token) for token in value.split(",")]
        elif key == "WKST":
            fields["week_start"] = _parse_weekday_code(value)
        else:
            fields[_INT_LIST_KEYS[key]] = [_parse_int(key, token) for token in value.split(",")]

    if "frequency" not in fields:
        raise _PartError(LiteRRuleErrorKind.MISSING_FREQUENCY, "RRULE missing required FREQ parameter")

    return fields


def _parse_frequency(value: str) -> LiteFrequency:
    upper = value.upper()
    if upper in _SUB_DAILY_FREQUENCIES:
        raise _PartError(
            LiteRRuleErrorKind.UNSUPPORTED_FREQUENCY, f"Sub-daily frequency {upper} is not supported"
        )
    try:
        return LiteFrequency(upper)
    except ValueError as e:
        raise _PartError(LiteRRuleErrorKind.UNKNOWN_FREQUENCY, f"Unknown frequency {value!r}") from e


def _parse_int(key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as e:
        raise _PartError(
            LiteRRuleErrorKind.MALFORMED, f"{key} expects an integer, got {value!r}"
        ) from e


def _parse_weekday_code(code: str) -> int:
    weekday = _CODE_TO_WEEKDAY.get(code.strip().upper())
    if weekday is None:
        raise _PartError(LiteRRuleErrorKind.MALFORMED, f"Unknown weekday code {code!r}")
    return weekday


def _parse_weekday_token(token: str) -> LiteWeekDay:
    match = _BYDAY_PATTERN.match(token.strip().upper())
    if not match:
        raise _PartError(LiteRRuleErrorKind.MALFORMED, f"Invalid BYDAY token {token!r}")

    ordinal, code = match.groups()
    occurrence = int(ordinal) if ordinal else None
    try:
        return LiteWeekDay(day_of_week=_CODE_TO_WEEKDAY[code], occurrence=occurrence)
    except ValidationError as e:
        raise _PartError(
            LiteRRuleErrorKind.INVALID_RULE, f"Invalid BYDAY ordinal in {token!r}"
        ) from e


def parse_until(value: str) -> Union[date, datetime]:
    """Parse an UNTIL value.

    ``YYYYMMDD`` yields a ``date``; ``YYYYMMDDTHHMMSS`` (optionally suffixed
    with ``Z``, which is dropped) yields a naive ``datetime``.
    """
    text = value.strip().upper()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        if "T" in text:
            if len(text) != 15:
                raise ValueError(text)
            return datetime.strptime(text, "%Y%m%dT%H%M%S")
        if len(text) != 8:
            raise ValueError(text)
        return datetime.strptime(text, "%Y%m%d").date()
    except ValueError as e:
        raise _PartError(LiteRRuleErrorKind.MALFORMED, f"Invalid UNTIL value {value!r}") from e


def format_until(until: Union[date, datetime]) -> str:
    if isinstance(until, datetime):
        return until.strftime("%Y%m%dT%H%M%S")
    return until.strftime("%Y%m%d")


def _format_weekday(weekday: LiteWeekDay) -> str:
    prefix = str(weekday.occurrence) if weekday.occurrence is not None else ""
    return f"{prefix}{WEEKDAY_CODES[weekday.day_of_week]}"


def _join_ints(values: tuple[int, ...]) -> str:
    return ",".join(str(v) for v in sorted(values))


def serialize_rrule(rule: LiteRecurrenceRule, include_prefix: bool = True) -> str:
    """Serialize a rule to canonical RRULE text.

    Parts are emitted in a fixed order and collection values are sorted, so
    equal rules always serialize identically. INTERVAL=1 and WKST=MO are
    omitted as defaults.

    Args:
        rule: Rule to serialize
        include_prefix: Prepend ``RRULE:`` when True

    Returns:
        RRULE text such as "RRULE:FREQ=MONTHLY;BYDAY=-1FR"
    """
    parts = [f"FREQ={rule.frequency.value}"]

    if rule.interval != 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.count is not None:
        parts.append(f"COUNT={rule.count}")
    if rule.until is not None:
        parts.append(f"UNTIL={format_until(rule.until)}")
    if rule.by_months:
        parts.append(f"BYMONTH={_join_ints(rule.by_months)}")
    if rule.by_week_numbers:
        parts.append(f"BYWEEKNO={_join_ints(rule.by_week_numbers)}")
    if rule.by_year_days:
        parts.append(f"BYYEARDAY={_join_ints(rule.by_year_days)}")
    if rule.by_month_days:
        parts.append(f"BYMONTHDAY={_join_ints(rule.by_month_days)}")
    if rule.by_week_days:
        days = sorted(rule.by_week_days, key=LiteWeekDay.sort_key)
        parts.append("BYDAY=" + ",".join(_format_weekday(d) for d in days))
    if rule.by_set_positions:
        parts.append(f"BYSETPOS={_join_ints(rule.by_set_positions)}")
    if rule.week_start != MONDAY:
        parts.append(f"WKST={WEEKDAY_CODES[rule.week_start]}")

    body = ";".join(parts)
    return f"{RRULE_PREFIX}{body}" if include_prefix else body
