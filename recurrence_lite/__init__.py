"""recurrence_lite - RFC 5545 recurrence rules for calendar views.

Computes the concrete occurrences of recurring events, time regions and day
regions inside a query window, and applies per-occurrence exceptions.
"""

__version__ = "0.1.0"

from .lite_event_expander import LiteSeriesSplit, expand_event_series, expand_events, split_series
from .lite_exception_overlay import apply_exceptions
from .lite_exceptions import (
    LiteRecurrenceError,
    LiteRRuleExpansionError,
    LiteRRuleParseError,
    LiteSeriesError,
)
from .lite_models import (
    KEEP,
    FRIDAY,
    MONDAY,
    SATURDAY,
    SUNDAY,
    THURSDAY,
    TUESDAY,
    WEDNESDAY,
    Keep,
    LiteCalendarEvent,
    LiteDeletedOccurrence,
    LiteEndsAfterCount,
    LiteEndsOnDate,
    LiteFrequency,
    LiteModifiedOccurrence,
    LiteNeverEnds,
    LiteRecurrenceException,
    LiteRecurrenceRule,
    LiteRescheduledOccurrence,
    LiteWeekDay,
    SetTo,
    parse_recurrence_exception,
)
from .lite_occurrences import get_occurrences
from .lite_regions import (
    LiteDayRegion,
    LiteTimeRegion,
    applies_to,
    day_regions_for_date,
    expanded_for_date,
    find_blocking_time_region,
    is_date_blocked,
    time_regions_for_date,
)
from .lite_rrule_codec import LiteRRuleErrorKind, LiteRRuleParseResult, parse_rrule, serialize_rrule
from .lite_rrule_expander import (
    DateutilOccurrenceDelegate,
    LiteOccurrenceDelegate,
    LiteRRuleExpander,
    RRuleExpanderConfig,
)

__all__ = [
    "__version__",
    "KEEP",
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
    "DateutilOccurrenceDelegate",
    "Keep",
    "LiteCalendarEvent",
    "LiteDayRegion",
    "LiteDeletedOccurrence",
    "LiteEndsAfterCount",
    "LiteEndsOnDate",
    "LiteFrequency",
    "LiteModifiedOccurrence",
    "LiteNeverEnds",
    "LiteOccurrenceDelegate",
    "LiteRRuleErrorKind",
    "LiteRRuleExpander",
    "LiteRRuleExpansionError",
    "LiteRRuleParseError",
    "LiteRRuleParseResult",
    "LiteRecurrenceError",
    "LiteRecurrenceException",
    "LiteRecurrenceRule",
    "LiteRescheduledOccurrence",
    "LiteSeriesError",
    "LiteSeriesSplit",
    "LiteTimeRegion",
    "LiteWeekDay",
    "RRuleExpanderConfig",
    "SetTo",
    "applies_to",
    "apply_exceptions",
    "day_regions_for_date",
    "expand_event_series",
    "expand_events",
    "expanded_for_date",
    "find_blocking_time_region",
    "get_occurrences",
    "is_date_blocked",
    "parse_recurrence_exception",
    "parse_rrule",
    "serialize_rrule",
    "split_series",
    "time_regions_for_date",
]
