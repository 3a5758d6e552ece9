from collections.abc import Generator
from datetime import datetime, timedelta
from types import SimpleNamespace
from typing import Any

import pytest

from recurrence_lite.lite_models import LiteCalendarEvent, LiteFrequency, LiteRecurrenceRule


@pytest.fixture
def simple_settings() -> SimpleNamespace:
    """Lightweight settings object used across lite tests.

    Fields:
      - max_occurrences_per_window: per-window safety ceiling
      - enable_anchor_advance: advance DAILY/WEEKLY anchors toward the window
      - count_epsilon_microseconds: offset used when expanding COUNT rules
    """
    return SimpleNamespace(
        max_occurrences_per_window=500,
        enable_anchor_advance=True,
        count_epsilon_microseconds=1,
    )


@pytest.fixture
def weekly_standup() -> LiteCalendarEvent:
    """Recurring master: 30 minute standup every Monday from 2024-01-01 09:00."""
    start = datetime(2024, 1, 1, 9, 0)
    return LiteCalendarEvent(
        id="standup",
        subject="Weekly Standup",
        start=start,
        end=start + timedelta(minutes=30),
        recurrence_rule=LiteRecurrenceRule(frequency=LiteFrequency.WEEKLY),
    )


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure recurrence_lite environment variables do not leak into tests."""
    for key in (
        "RECURRENCE_LITE_MAX_OCCURRENCES",
        "RECURRENCE_LITE_ANCHOR_ADVANCE",
        "RECURRENCE_LITE_DEBUG",
        "RECURRENCE_LITE_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    yield
