"""Shared fixtures for calendarzone tests."""

from collections.abc import Generator
from datetime import datetime
from types import SimpleNamespace
from typing import Any
from zoneinfo import ZoneInfo

import pytest
from dateutil.rrule import rrulestr

from calendarzone.expansion import occurrence_patch


def pytest_configure(config: Any) -> None:
    """Register test markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "critical_path: Core functionality tests")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear CALENDARZONE_* overrides so the host environment never leaks in."""
    for name in (
        "CALENDARZONE_TEST_TIME",
        "CALENDARZONE_DEBUG",
        "CALENDARZONE_LOG_LEVEL",
        "CALENDARZONE_SETTINGS_FILE",
        "CALENDARZONE_DISPLAY_TIMEZONE",
        "CALENDARZONE_NOTICE_DURATION_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_expansion_patch() -> Generator[None, Any, None]:
    """Give every test a fresh process-wide expansion patch."""
    occurrence_patch._patch = occurrence_patch.OccurrenceExpansionPatch()
    yield
    occurrence_patch._patch = occurrence_patch.OccurrenceExpansionPatch()


class FakeDateEnv:
    """Rendering-layer date env: markers are naive wall-clock in the display zone."""

    def __init__(self, display_zone: str) -> None:
        self.zone = ZoneInfo(display_zone)
        self.created: list[datetime] = []

    def create_marker(self, instant: datetime) -> datetime:
        self.created.append(instant)
        return instant.astimezone(self.zone).replace(tzinfo=None)


class FakeRecurringType:
    """Expands with dateutil in naive wall-clock time, ignoring the series zone."""

    def __init__(self) -> None:
        self.calls = 0

    def expand(self, expand_data: Any, frame_range: Any, date_env: Any) -> list[datetime]:
        self.calls += 1
        rrule_set = expand_data.rrule_set
        rule = rrulestr(rrule_set.rrule, dtstart=rrule_set.dtstart, ignoretz=True)
        start, end = frame_range
        return [
            occurrence
            for occurrence in rule.between(start, end, inc=True)
            if occurrence.date() not in rrule_set.exdates
        ]


@pytest.fixture
def expansion_host() -> SimpleNamespace:
    """Rendering-layer plugin exposing one patchable recurring type."""
    return SimpleNamespace(recurring_types=[FakeRecurringType()])


@pytest.fixture
def utc_date_env() -> FakeDateEnv:
    return FakeDateEnv("UTC")
