"""Unit tests for recurrence_lite.lite_rrule_codec."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from recurrence_lite.lite_exceptions import LiteRRuleParseError
from recurrence_lite.lite_models import (
    FRIDAY,
    MONDAY,
    SUNDAY,
    THURSDAY,
    TUESDAY,
    LiteFrequency,
    LiteRecurrenceRule,
    LiteWeekDay,
)
from recurrence_lite.lite_rrule_codec import (
    LiteRRuleErrorKind,
    parse_rrule,
    serialize_rrule,
)

pytestmark = pytest.mark.unit


class TestParseRRule:
    """Successful parses."""

    def test_parse_with_prefix(self):
        result = parse_rrule("RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=TU,TH")
        assert result.success
        assert result.rule == LiteRecurrenceRule(
            frequency=LiteFrequency.WEEKLY,
            interval=2,
            by_week_days=[LiteWeekDay.every(TUESDAY), LiteWeekDay.every(THURSDAY)],
        )

    def test_parse_without_prefix_and_lowercase_keys(self):
        result = parse_rrule("freq=daily;count=5")
        assert result.success
        assert result.rule.frequency == LiteFrequency.DAILY
        assert result.rule.count == 5

    def test_trailing_separator_tolerated(self):
        assert parse_rrule("FREQ=MONTHLY;BYMONTHDAY=-1;").success

    def test_nth_weekday_tokens(self):
        rule = parse_rrule("FREQ=MONTHLY;BYDAY=-1FR,+2MO").unwrap()
        assert rule.by_week_days == frozenset({LiteWeekDay.nth(FRIDAY, -1), LiteWeekDay.nth(MONDAY, 2)})

    def test_until_date_only(self):
        rule = parse_rrule("FREQ=DAILY;UNTIL=20240105").unwrap()
        assert rule.until == date(2024, 1, 5)
        assert not isinstance(rule.until, datetime)

    @pytest.mark.parametrize("value", ["20240105T170000", "20240105T170000Z"])
    def test_until_datetime_is_naive(self, value):
        rule = parse_rrule(f"FREQ=DAILY;UNTIL={value}").unwrap()
        assert rule.until == datetime(2024, 1, 5, 17, 0)
        assert rule.until.tzinfo is None

    def test_wkst_and_yearly_fields(self):
        rule = parse_rrule("FREQ=YEARLY;BYWEEKNO=1,-1;BYYEARDAY=100;BYMONTH=1,12;WKST=SU").unwrap()
        assert rule.week_start == SUNDAY
        assert set(rule.by_week_numbers) == {1, -1}
        assert rule.by_year_days == (100,)
        assert set(rule.by_months) == {1, 12}

    def test_from_rrule_string_convenience(self):
        rule = LiteRecurrenceRule.from_rrule_string("RRULE:FREQ=MONTHLY;BYDAY=MO,TU,WE,TH,FR;BYSETPOS=-1")
        assert rule.by_set_positions == (-1,)
        assert len(rule.by_week_days) == 5


class TestParseRRuleErrors:
    """Failures are reported through the result, never raised."""

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("", LiteRRuleErrorKind.EMPTY),
            ("   ", LiteRRuleErrorKind.EMPTY),
            ("RRULE:", LiteRRuleErrorKind.MISSING_FREQUENCY),
            ("INTERVAL=2", LiteRRuleErrorKind.MISSING_FREQUENCY),
            ("FREQ=DAILY;INTERVAL", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=DAILY;INTERVAL=two", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=DAILY;FREQ=WEEKLY", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=WEEKLY;BYDAY=XX", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=WEEKLY;WKST=XX", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=DAILY;UNTIL=2024-01-05", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=DAILY;UNTIL=20241305", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=DAILY;COUNT=", LiteRRuleErrorKind.MALFORMED),
            ("FREQ=FORTNIGHTLY", LiteRRuleErrorKind.UNKNOWN_FREQUENCY),
            ("FREQ=HOURLY", LiteRRuleErrorKind.UNSUPPORTED_FREQUENCY),
            ("FREQ=MINUTELY", LiteRRuleErrorKind.UNSUPPORTED_FREQUENCY),
            ("FREQ=SECONDLY", LiteRRuleErrorKind.UNSUPPORTED_FREQUENCY),
            ("FREQ=DAILY;BYHOUR=9", LiteRRuleErrorKind.UNSUPPORTED_PART),
            ("FREQ=DAILY;X-NAME=1", LiteRRuleErrorKind.UNSUPPORTED_PART),
            ("FREQ=DAILY;COUNT=3;UNTIL=20240105", LiteRRuleErrorKind.INVALID_RULE),
            ("FREQ=MONTHLY;BYYEARDAY=100", LiteRRuleErrorKind.INVALID_RULE),
            ("FREQ=DAILY;INTERVAL=0", LiteRRuleErrorKind.INVALID_RULE),
            ("FREQ=MONTHLY;BYMONTHDAY=0", LiteRRuleErrorKind.INVALID_RULE),
            ("FREQ=MONTHLY;BYDAY=0MO", LiteRRuleErrorKind.INVALID_RULE),
        ],
    )
    def test_error_kinds(self, text, kind):
        result = parse_rrule(text)
        assert not result.success
        assert result.rule is None
        assert result.error_kind == kind
        assert result.error_message

    def test_none_is_empty(self):
        assert parse_rrule(None).error_kind == LiteRRuleErrorKind.EMPTY

    def test_unwrap_raises_with_kind(self):
        result = parse_rrule("FREQ=HOURLY")
        with pytest.raises(LiteRRuleParseError) as exc_info:
            result.unwrap()
        assert exc_info.value.kind == LiteRRuleErrorKind.UNSUPPORTED_FREQUENCY.value
        assert exc_info.value.rrule_text == "FREQ=HOURLY"

    def test_from_rrule_string_raises(self):
        with pytest.raises(LiteRRuleParseError):
            LiteRecurrenceRule.from_rrule_string("FREQ=DAILY;BYSECOND=1")


class TestSerializeRRule:
    """Canonical serialization."""

    def test_defaults_omitted(self):
        rule = LiteRecurrenceRule(frequency=LiteFrequency.DAILY)
        assert serialize_rrule(rule) == "RRULE:FREQ=DAILY"

    def test_without_prefix(self):
        rule = LiteRecurrenceRule(frequency=LiteFrequency.DAILY, interval=3)
        assert rule.to_rrule_string(include_prefix=False) == "FREQ=DAILY;INTERVAL=3"

    def test_canonical_order_and_sorted_values(self):
        rule = LiteRecurrenceRule(
            frequency=LiteFrequency.YEARLY,
            interval=2,
            count=10,
            by_months=[12, 1],
            by_week_numbers=[20],
            by_year_days=[-1],
            by_month_days=[15, 1],
            by_week_days=[LiteWeekDay.every(FRIDAY), LiteWeekDay.nth(MONDAY, 1)],
            by_set_positions=[2, -1],
            week_start=SUNDAY,
        )
        assert serialize_rrule(rule) == (
            "RRULE:FREQ=YEARLY;INTERVAL=2;COUNT=10;BYMONTH=1,12;BYWEEKNO=20;BYYEARDAY=-1;"
            "BYMONTHDAY=1,15;BYDAY=1MO,FR;BYSETPOS=-1,2;WKST=SU"
        )

    def test_until_formats(self):
        by_date = LiteRecurrenceRule(frequency=LiteFrequency.DAILY, until=date(2024, 1, 5))
        by_datetime = LiteRecurrenceRule(frequency=LiteFrequency.DAILY, until=datetime(2024, 1, 5, 17, 30))
        assert by_date.to_rrule_string() == "RRULE:FREQ=DAILY;UNTIL=20240105"
        assert by_datetime.to_rrule_string() == "RRULE:FREQ=DAILY;UNTIL=20240105T173000"

    @pytest.mark.parametrize(
        "rule",
        [
            LiteRecurrenceRule(
                frequency=LiteFrequency.WEEKLY,
                interval=2,
                by_week_days=[LiteWeekDay.every(TUESDAY), LiteWeekDay.every(THURSDAY)],
            ),
            LiteRecurrenceRule(frequency=LiteFrequency.MONTHLY, by_month_days=[-1], count=12),
            LiteRecurrenceRule(
                frequency=LiteFrequency.MONTHLY,
                by_week_days=[LiteWeekDay.nth(FRIDAY, -1)],
                until=datetime(2024, 12, 31, 23, 59, 59),
            ),
            LiteRecurrenceRule(
                frequency=LiteFrequency.YEARLY,
                by_week_numbers=[1, 53],
                by_year_days=[1, -366],
                week_start=SUNDAY,
                until=date(2030, 1, 1),
            ),
        ],
    )
    def test_round_trip(self, rule):
        assert parse_rrule(serialize_rrule(rule)).rule == rule

    @pytest.mark.parametrize(
        "until",
        [
            datetime(2024, 1, 5, 9, 0, 0, 500),
            datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc),
            datetime(2024, 1, 5, 9, 0, tzinfo=timezone(timedelta(hours=2))),
        ],
    )
    def test_until_not_expressible_in_rrule_text_rejected(self, until):
        with pytest.raises(ValidationError):
            LiteRecurrenceRule(frequency=LiteFrequency.DAILY, until=until)

    def test_round_trip_keeps_until_seconds(self):
        rule = LiteRecurrenceRule(frequency=LiteFrequency.DAILY, until=datetime(2024, 1, 5, 9, 0, 59))
        back = parse_rrule(serialize_rrule(rule)).rule
        assert back == rule
        assert back.until == datetime(2024, 1, 5, 9, 0, 59)
