"""Boundary-corrected occurrence queries.

``get_occurrences`` is the single entry point used by regions and event
expansion. It wraps the expansion engine and fixes up the two terminators
whose raw generator semantics do not match calendar expectations:

- COUNT is always counted from the anchor, even when the query window starts
  long after it.
- UNTIL is inclusive: a date-only bound covers its whole calendar day and a
  date-time bound includes an occurrence at exactly that instant.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from .lite_datetime_utils import DateLike, as_datetime, start_of_next_day
from .lite_exceptions import LiteRRuleExpansionError
from .lite_models import LiteFrequency, LiteRecurrenceRule, SetTo
from .lite_rrule_expander import LiteRRuleExpander

logger = logging.getLogger(__name__)

_default_expander = LiteRRuleExpander()


def get_default_expander() -> LiteRRuleExpander:
    """Return the module-level expander used when callers do not pass one."""
    return _default_expander


def until_is_included(occurrence: datetime, until: Union[date, datetime]) -> bool:
    """True when ``occurrence`` is not past the inclusive UNTIL bound."""
    if isinstance(until, datetime):
        return occurrence <= until
    return occurrence < start_of_next_day(until)


def advance_anchor(
    anchor: datetime, rule: LiteRecurrenceRule, target: datetime
) -> datetime:
    """Move a DAILY/WEEKLY anchor forward by whole periods toward ``target``.

    One period of margin is kept so the first in-window occurrence is never
    skipped. Monthly and yearly anchors are returned unchanged since their
    period length varies.

    Args:
        anchor: Original series start
        rule: Rule whose frequency and interval define the period
        target: Instant the expansion needs to reach (query window start)

    Returns:
        An anchor on the same occurrence grid, at or before ``target``
    """
    if target <= anchor:
        return anchor

    if rule.frequency == LiteFrequency.DAILY:
        period_days = rule.interval
    elif rule.frequency == LiteFrequency.WEEKLY:
        period_days = rule.interval * 7
    else:
        return anchor

    periods = (target - anchor).days // period_days
    safe_periods = max(periods - 1, 0)
    return anchor + timedelta(days=safe_periods * period_days)


def get_occurrences(
    rule: LiteRecurrenceRule,
    anchor: DateLike,
    after: DateLike,
    before: DateLike,
    *,
    expander: Optional[LiteRRuleExpander] = None,
) -> list[datetime]:
    """Return occurrences of ``rule`` inside ``[after, before)``.

    Args:
        rule: Recurrence rule
        anchor: Series start (DTSTART); a date is promoted to midnight
        after: Inclusive window start
        before: Exclusive window end
        expander: Engine to use; defaults to the module-level expander

    Returns:
        Strictly increasing list of occurrence datetimes

    Raises:
        LiteRRuleExpansionError: If the occurrence generator fails
    """
    engine = expander or _default_expander
    anchor_dt = as_datetime(anchor)
    after_dt = as_datetime(after)
    before_dt = as_datetime(before)

    if before_dt <= after_dt:
        return []

    try:
        if rule.count is not None:
            return _count_occurrences(engine, rule, anchor_dt, after_dt, before_dt)
        if rule.until is not None:
            return _until_occurrences(engine, rule, anchor_dt, after_dt, before_dt)

        start = anchor_dt
        if engine.config.enable_anchor_advance:
            start = advance_anchor(anchor_dt, rule, after_dt)
        return engine.expand(rule, start, after_dt, before_dt)
    except LiteRRuleExpansionError:
        raise
    except Exception as e:
        raise LiteRRuleExpansionError(
            f"Failed to expand {rule.to_rrule_string()} from {anchor_dt.isoformat()}: {e}"
        ) from e


def _count_occurrences(
    engine: LiteRRuleExpander,
    rule: LiteRecurrenceRule,
    anchor: datetime,
    after: datetime,
    before: datetime,
) -> list[datetime]:
    # Expand from just before the anchor so COUNT is consumed from the series start.
    # The ceiling bounds the query window, not the walk from the anchor.
    epsilon = timedelta(microseconds=engine.config.count_epsilon_microseconds)
    raw = engine.expand(rule, anchor, anchor - epsilon, before, apply_ceiling=False)
    counted = raw[: rule.count]
    occurrences = engine.limit_occurrences(rule, [o for o in counted if after <= o < before])
    if not occurrences and counted:
        logger.debug(
            "COUNT=%d exhausted at %s before window starting %s",
            rule.count,
            counted[-1].isoformat(),
            after.isoformat(),
        )
    return occurrences


def _until_occurrences(
    engine: LiteRRuleExpander,
    rule: LiteRecurrenceRule,
    anchor: datetime,
    after: datetime,
    before: datetime,
) -> list[datetime]:
    until = rule.until
    if until is None:
        return engine.expand(rule, anchor, after, before)

    if not until_is_included(after, until):
        logger.debug("Window start %s is past UNTIL %s", after.isoformat(), until.isoformat())
        return []

    unbounded = rule.copy_with(until=SetTo(None))
    start = anchor
    if engine.config.enable_anchor_advance:
        start = advance_anchor(anchor, unbounded, after)
    raw = engine.expand(unbounded, start, after, before)
    return [o for o in raw if until_is_included(o, until)]
