"""Unit tests for recurrence_lite.lite_datetime_utils."""

from datetime import date, datetime

import pytest

from recurrence_lite.lite_datetime_utils import (
    as_datetime,
    as_day,
    day_key,
    same_day,
    start_of_day,
    start_of_next_day,
    with_time_of,
)

pytestmark = pytest.mark.unit


class TestDayHelpers:
    def test_as_day(self):
        assert as_day(datetime(2024, 2, 29, 23, 59)) == date(2024, 2, 29)
        assert as_day(date(2024, 2, 29)) == date(2024, 2, 29)

    def test_day_bounds_cross_month_and_year(self):
        assert start_of_day(datetime(2024, 12, 31, 18)) == datetime(2024, 12, 31)
        assert start_of_next_day(datetime(2024, 12, 31, 18)) == datetime(2025, 1, 1)
        assert start_of_next_day(date(2024, 2, 28)) == datetime(2024, 2, 29)

    def test_as_datetime(self):
        value = datetime(2024, 1, 1, 9, 30)
        assert as_datetime(value) is value
        assert as_datetime(date(2024, 1, 1)) == datetime(2024, 1, 1)

    def test_same_day_ignores_time(self):
        assert same_day(datetime(2024, 1, 8, 0, 0), datetime(2024, 1, 8, 23, 59))
        assert same_day(date(2024, 1, 8), datetime(2024, 1, 8, 12))
        assert not same_day(datetime(2024, 1, 8, 23, 59), datetime(2024, 1, 9))

    def test_day_key(self):
        assert day_key(datetime(2024, 3, 5, 9)) == "2024-03-05"

    def test_with_time_of(self):
        assert with_time_of(date(2024, 3, 15), datetime(2024, 1, 1, 12, 45)) == datetime(2024, 3, 15, 12, 45)
