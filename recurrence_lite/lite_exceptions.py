"""Custom exception hierarchy for recurrence_lite.

Construction errors surface as ``pydantic.ValidationError`` from the models
themselves. The classes below cover the remaining failure families so callers
can catch recurrence problems without catching every ``Exception``.
"""

from __future__ import annotations

from typing import Optional


class LiteRecurrenceError(Exception):
    """Base exception for all recurrence_lite errors."""


class LiteRRuleParseError(LiteRecurrenceError):
    """RRULE text could not be turned into a rule.

    Raised only by the explicit unwrap helpers; ``parse_rrule`` itself
    reports failures through its result object.

    Attributes:
        kind: Machine-readable error kind (a ``LiteRRuleErrorKind`` value)
        rrule_text: The text that failed to parse, when available
    """

    def __init__(self, message: str, kind: Optional[str] = None, rrule_text: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.rrule_text = rrule_text


class LiteRRuleExpansionError(LiteRecurrenceError):
    """The occurrence generator failed while expanding a rule."""


class LiteSeriesError(LiteRecurrenceError):
    """A series-level operation was applied to an unsuitable event.

    Raised when:
    - split_series() receives an event without a recurrence rule
    - the split date precedes the series anchor
    """
