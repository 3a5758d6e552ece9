"""Occurrence expansion engine for recurrence_lite.

The engine turns a rule plus an anchor (DTSTART) into the concrete occurrence
datetimes inside a half-open window. Candidate generation is delegated to a
pluggable ``LiteOccurrenceDelegate``; the default delegate is backed by
``dateutil.rrule``.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Iterable, Optional, Protocol

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, YEARLY, rrule, weekday

from .lite_datetime_utils import as_datetime
from .lite_models import LiteFrequency, LiteRecurrenceRule, LiteWeekDay

logger = logging.getLogger(__name__)

_DATEUTIL_FREQUENCIES = {
    LiteFrequency.DAILY: DAILY,
    LiteFrequency.WEEKLY: WEEKLY,
    LiteFrequency.MONTHLY: MONTHLY,
    LiteFrequency.YEARLY: YEARLY,
}


@dataclass
class RRuleExpanderConfig:
    """Configuration for occurrence expansion.

    Consolidates all expansion-related settings with explicit defaults.
    """

    # Safety ceiling on occurrences returned for a single window
    max_occurrences_per_window: int = 5000

    # Move never-ending DAILY/WEEKLY anchors toward the query window
    enable_anchor_advance: bool = True

    # COUNT rules are expanded from (anchor - epsilon) so the anchor itself is included
    count_epsilon_microseconds: int = 1

    @classmethod
    def from_settings(cls, settings: Any) -> "RRuleExpanderConfig":
        """Extract expansion configuration from a settings object.

        Args:
            settings: Configuration object with expansion settings

        Returns:
            RRuleExpanderConfig with values from settings or defaults
        """
        return cls(
            max_occurrences_per_window=getattr(settings, "max_occurrences_per_window", 5000),
            enable_anchor_advance=getattr(settings, "enable_anchor_advance", True),
            count_epsilon_microseconds=getattr(settings, "count_epsilon_microseconds", 1),
        )


class LiteOccurrenceDelegate(Protocol):
    """Generates raw candidate occurrences for a rule.

    Implementations must honour every by-field (BYSETPOS applied to the full
    per-period set), count COUNT from the anchor, and treat ``until`` as the
    generator's own bound. Results may be returned in any order.
    """

    def generate(
        self,
        rule: LiteRecurrenceRule,
        anchor: datetime,
        window_start: datetime,
        window_end: datetime,
    ) -> Iterable[datetime]:
        ...


def _to_dateutil_weekday(day: LiteWeekDay) -> weekday:
    # dateutil numbers weekdays from Monday = 0
    base = weekday(day.day_of_week - 1)
    return base(day.occurrence) if day.occurrence is not None else base


def build_dateutil_rule(rule: LiteRecurrenceRule, anchor: datetime) -> rrule:
    """Translate a rule and anchor into a ``dateutil.rrule.rrule``.

    A date-only ``until`` is promoted to midnight, which is dateutil's native
    (exclusive-of-the-rest-of-the-day) interpretation.
    """
    kwargs: dict[str, Any] = {
        "dtstart": anchor,
        "interval": rule.interval,
        "wkst": rule.week_start - 1,
    }
    if rule.count is not None:
        kwargs["count"] = rule.count
    if rule.until is not None:
        kwargs["until"] = as_datetime(rule.until)
    if rule.by_week_days:
        kwargs["byweekday"] = [_to_dateutil_weekday(d) for d in rule.by_week_days]
    if rule.by_month_days:
        kwargs["bymonthday"] = list(rule.by_month_days)
    if rule.by_months:
        kwargs["bymonth"] = list(rule.by_months)
    if rule.by_set_positions:
        kwargs["bysetpos"] = list(rule.by_set_positions)
    if rule.by_year_days:
        kwargs["byyearday"] = list(rule.by_year_days)
    if rule.by_week_numbers:
        kwargs["byweekno"] = list(rule.by_week_numbers)

    return rrule(_DATEUTIL_FREQUENCIES[rule.frequency], **kwargs)


class DateutilOccurrenceDelegate:
    """Default delegate backed by python-dateutil."""

    def generate(
        self,
        rule: LiteRecurrenceRule,
        anchor: datetime,
        window_start: datetime,
        window_end: datetime,
    ) -> Iterable[datetime]:
        generator = build_dateutil_rule(rule, anchor)
        # between() is inclusive at both ends here; the caller drops window_end itself
        return generator.between(window_start, window_end, inc=True)


class LiteRRuleExpander:
    """Expands recurrence rules into sorted, de-duplicated occurrence lists."""

    def __init__(
        self,
        settings: Any = None,
        delegate: Optional[LiteOccurrenceDelegate] = None,
    ):
        """Initialize expander with settings.

        Args:
            settings: Configuration object with expansion settings, an
                ``RRuleExpanderConfig``, or None for defaults
            delegate: Candidate generator; defaults to DateutilOccurrenceDelegate
        """
        if isinstance(settings, RRuleExpanderConfig):
            self.config = settings
        else:
            self.config = RRuleExpanderConfig.from_settings(settings)
        self.delegate: LiteOccurrenceDelegate = delegate or DateutilOccurrenceDelegate()

    def expand(
        self,
        rule: LiteRecurrenceRule,
        anchor: datetime,
        window_start: datetime,
        window_end: datetime,
        apply_ceiling: bool = True,
    ) -> list[datetime]:
        """Return occurrences of ``rule`` inside ``[window_start, window_end)``.

        COUNT is counted from ``anchor``, never from ``window_start``. The
        result is strictly increasing and truncated at
        ``max_occurrences_per_window`` with a warning.

        Args:
            rule: Recurrence rule to expand
            anchor: Series start (DTSTART)
            window_start: Inclusive lower bound
            window_end: Exclusive upper bound
            apply_ceiling: False when the caller narrows the result itself and
                applies ``limit_occurrences`` afterwards

        Returns:
            Sorted list of occurrence datetimes
        """
        if window_end <= window_start:
            return []

        candidates = self.delegate.generate(rule, anchor, window_start, window_end)
        occurrences = sorted({c for c in candidates if window_start <= c < window_end})

        if apply_ceiling:
            occurrences = self.limit_occurrences(rule, occurrences)

        logger.debug(
            "Expanded %s from %s: %d occurrences in [%s, %s)",
            rule.frequency.value,
            anchor.isoformat(),
            len(occurrences),
            window_start.isoformat(),
            window_end.isoformat(),
        )
        return occurrences

    def limit_occurrences(self, rule: LiteRecurrenceRule, occurrences: list[datetime]) -> list[datetime]:
        """Truncate an in-window list at ``max_occurrences_per_window``."""
        limit = self.config.max_occurrences_per_window
        if len(occurrences) <= limit:
            return occurrences
        logger.warning(
            "Expansion of %s produced %d occurrences in window, truncating to %d",
            rule.to_rrule_string(),
            len(occurrences),
            limit,
        )
        return occurrences[:limit]
