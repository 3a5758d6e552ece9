"""Unit tests for recurrence_lite.lite_regions."""

import logging
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from recurrence_lite import lite_regions
from recurrence_lite.lite_exceptions import LiteRRuleExpansionError
from recurrence_lite.lite_regions import (
    LiteDayRegion,
    LiteTimeRegion,
    applies_to,
    contains,
    day_regions_for_date,
    expanded_for_date,
    find_blocking_time_region,
    is_date_blocked,
    overlaps,
    time_regions_for_date,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def lunch() -> LiteTimeRegion:
    return LiteTimeRegion(
        id="lunch",
        start_time=datetime(2024, 1, 1, 12, 0),
        end_time=datetime(2024, 1, 1, 13, 0),
        text="Lunch",
        recurrence_rule="RRULE:FREQ=DAILY",
    )


@pytest.fixture
def focus_block() -> LiteTimeRegion:
    return LiteTimeRegion(
        id="focus",
        start_time=datetime(2024, 1, 1, 14, 0),
        end_time=datetime(2024, 1, 1, 16, 0),
        block_interaction=True,
        recurrence_rule="RRULE:FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR",
    )


@pytest.fixture
def weekends() -> LiteDayRegion:
    return LiteDayRegion(
        id="weekend",
        date=date(2024, 1, 6),
        block_interaction=True,
        recurrence_rule="RRULE:FREQ=WEEKLY;BYDAY=SA,SU",
    )


class TestIntervalPredicates:
    def test_contains_is_half_open(self):
        start, end = datetime(2024, 1, 1, 12), datetime(2024, 1, 1, 13)
        assert contains(start, end, start)
        assert contains(start, end, datetime(2024, 1, 1, 12, 59))
        assert not contains(start, end, end)

    @pytest.mark.parametrize(
        "range_start,range_end,expected",
        [
            (datetime(2024, 1, 1, 12, 30), datetime(2024, 1, 1, 14), True),
            (datetime(2024, 1, 1, 11), datetime(2024, 1, 1, 12), False),
            (datetime(2024, 1, 1, 13), datetime(2024, 1, 1, 14), False),
            (datetime(2024, 1, 1, 11), datetime(2024, 1, 1, 14), True),
        ],
    )
    def test_overlaps(self, range_start, range_end, expected):
        assert overlaps(datetime(2024, 1, 1, 12), datetime(2024, 1, 1, 13), range_start, range_end) is expected

    def test_time_region_rejects_inverted_times(self):
        with pytest.raises(ValidationError):
            LiteTimeRegion(id="bad", start_time=datetime(2024, 1, 1, 13), end_time=datetime(2024, 1, 1, 12))

    def test_day_region_covers_its_whole_day(self, weekends):
        assert weekends.contains(datetime(2024, 1, 6, 23, 59))
        assert not weekends.contains(datetime(2024, 1, 7))
        assert weekends.overlaps(datetime(2024, 1, 5, 22), datetime(2024, 1, 6, 1))


class TestExpandedForDate:
    def test_lunch_region_shifted_to_query_day(self, lunch):
        instance = expanded_for_date(lunch, date(2024, 3, 15))
        assert instance is not None
        assert instance.id == "lunch_2024-03-15"
        assert instance.start_time == datetime(2024, 3, 15, 12, 0)
        assert instance.end_time == datetime(2024, 3, 15, 13, 0)
        assert instance.recurrence_rule is None
        assert instance.text == "Lunch"

    def test_method_form_matches_function(self, lunch):
        assert lunch.expanded_for_date(datetime(2024, 3, 15, 18)) == expanded_for_date(lunch, date(2024, 3, 15))

    def test_no_occurrence_before_anchor(self, lunch):
        assert expanded_for_date(lunch, date(2023, 12, 31)) is None

    def test_weekday_only_region_skips_weekend(self, focus_block):
        assert expanded_for_date(focus_block, date(2024, 1, 6)) is None
        assert expanded_for_date(focus_block, date(2024, 1, 8)) is not None

    def test_non_recurring_region_on_its_day(self):
        region = LiteTimeRegion(
            id="offsite", start_time=datetime(2024, 2, 1, 9), end_time=datetime(2024, 2, 1, 17)
        )
        assert expanded_for_date(region, date(2024, 2, 1)) is region
        assert expanded_for_date(region, date(2024, 2, 2)) is None

    def test_until_day_is_inclusive(self):
        region = LiteTimeRegion(
            id="sprint",
            start_time=datetime(2024, 1, 1, 10),
            end_time=datetime(2024, 1, 1, 10, 15),
            recurrence_rule="FREQ=DAILY;UNTIL=20240110",
        )
        assert expanded_for_date(region, date(2024, 1, 10)) is not None
        assert expanded_for_date(region, date(2024, 1, 11)) is None

    def test_malformed_rule_is_no_match(self, caplog):
        region = LiteTimeRegion(
            id="broken",
            start_time=datetime(2024, 1, 1, 10),
            end_time=datetime(2024, 1, 1, 11),
            recurrence_rule="FREQ=HOURLY",
        )
        with caplog.at_level(logging.DEBUG, logger="recurrence_lite.lite_regions"):
            assert expanded_for_date(region, date(2024, 1, 1)) is None
        assert "broken" in caplog.text

    def test_expansion_failure_is_no_match(self, lunch, monkeypatch):
        def explode(*args, **kwargs):
            raise LiteRRuleExpansionError("boom")

        monkeypatch.setattr(lite_regions, "get_occurrences", explode)
        assert expanded_for_date(lunch, date(2024, 3, 15)) is None


class TestAppliesTo:
    @pytest.mark.parametrize(
        "query,expected",
        [
            (date(2024, 1, 6), True),
            (date(2024, 1, 7), True),
            (date(2024, 1, 13), True),
            (date(2024, 1, 10), False),
            (date(2023, 12, 30), False),
        ],
    )
    def test_weekend_region(self, weekends, query, expected):
        assert applies_to(weekends, query) is expected

    def test_query_time_of_day_ignored(self, weekends):
        assert weekends.applies_to(datetime(2024, 1, 13, 18, 45))

    def test_non_recurring_region(self):
        holiday = LiteDayRegion(id="holiday", date=date(2024, 12, 25))
        assert applies_to(holiday, date(2024, 12, 25))
        assert not applies_to(holiday, date(2025, 12, 25))

    def test_yearly_region(self):
        holiday = LiteDayRegion(id="holiday", date=date(2024, 12, 25), recurrence_rule="RRULE:FREQ=YEARLY")
        assert applies_to(holiday, date(2025, 12, 25))
        assert not applies_to(holiday, date(2025, 12, 24))

    def test_until_day_is_inclusive(self):
        region = LiteDayRegion(id="trip", date=date(2024, 1, 1), recurrence_rule="FREQ=DAILY;UNTIL=20240110")
        assert applies_to(region, date(2024, 1, 10))
        assert not applies_to(region, date(2024, 1, 11))

    def test_malformed_rule_is_no_match(self):
        region = LiteDayRegion(id="broken", date=date(2024, 1, 1), recurrence_rule="FREQ=DAILY;BYHOUR=3")
        assert not applies_to(region, date(2024, 1, 1))


class TestCollaboratorHelpers:
    def test_time_regions_for_date_sorted_by_start(self, lunch, focus_block):
        instances = time_regions_for_date([focus_block, lunch], date(2024, 1, 8))
        assert [r.id for r in instances] == ["lunch_2024-01-08", "focus_2024-01-08"]

    def test_day_regions_for_date(self, weekends):
        holiday = LiteDayRegion(id="holiday", date=date(2024, 1, 10))
        assert day_regions_for_date([weekends, holiday], date(2024, 1, 10)) == [holiday]
        assert day_regions_for_date([weekends, holiday], date(2024, 1, 13)) == [weekends]

    def test_find_blocking_region_overlap(self, lunch, focus_block):
        found = find_blocking_time_region(
            [lunch, focus_block], datetime(2024, 2, 1, 15), datetime(2024, 2, 1, 15, 30)
        )
        assert found is not None
        assert found.id == "focus_2024-02-01"

    def test_non_blocking_region_ignored(self, lunch, focus_block):
        assert (
            find_blocking_time_region([lunch, focus_block], datetime(2024, 2, 1, 12), datetime(2024, 2, 1, 13))
            is None
        )

    def test_adjacent_span_not_blocked(self, focus_block):
        assert find_blocking_time_region([focus_block], datetime(2024, 2, 1, 16), datetime(2024, 2, 1, 17)) is None

    def test_span_crossing_midnight_checks_next_day(self):
        night = LiteTimeRegion(
            id="maintenance",
            start_time=datetime(2024, 1, 1, 0, 0),
            end_time=datetime(2024, 1, 1, 1, 0),
            block_interaction=True,
            recurrence_rule="FREQ=DAILY",
        )
        found = find_blocking_time_region([night], datetime(2024, 1, 31, 23, 30), datetime(2024, 2, 1, 0, 30))
        assert found is not None
        assert found.id == "maintenance_2024-02-01"

    def test_is_date_blocked(self, weekends):
        visual_only = LiteDayRegion(id="payday", date=date(2024, 1, 10))
        assert is_date_blocked([weekends, visual_only], date(2024, 1, 13))
        assert not is_date_blocked([weekends, visual_only], date(2024, 1, 10))
