"""Unit tests for the per-occurrence expansion patch."""

import logging
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from calendarzone.calendar.models import RecurringEvent, RRuleEvent
from calendarzone.conversion.converter import convert
from calendarzone.expansion import occurrence_patch
from calendarzone.expansion.occurrence_patch import (
    OccurrenceExpansionPatch,
    RecurrenceSource,
    patch_expansion,
)
from calendarzone.exceptions import TimeParseError

pytestmark = pytest.mark.unit

YEAR_2025 = (datetime(2025, 1, 1), datetime(2025, 12, 31, 23, 59))


def _expand(host, source, date_env, frame_range=YEAR_2025):
    return host.recurring_types[0].expand(SimpleNamespace(rrule_set=source), frame_range, date_env)


class TestRecurrenceSource:
    def test_from_rrule_event_with_embedded_time(self):
        event = RRuleEvent(
            title="x", startDate="2025-06-02T09:15:00", rrule="FREQ=WEEKLY;BYDAY=MO", timezone="Europe/Bucharest"
        )
        source = RecurrenceSource.from_event(event)

        assert source.dtstart == datetime(2025, 6, 2, 9, 15)
        assert source.tzid() == "Europe/Bucharest"
        assert source.rrule == "FREQ=WEEKLY;BYDAY=MO"

    def test_from_rrule_event_with_start_time(self):
        event = RRuleEvent(
            title="x", startDate="2025-06-02", startTime="11:00", rrule="FREQ=DAILY", skipDates=["2025-06-03"]
        )
        source = RecurrenceSource.from_event(event)

        assert source.dtstart == datetime(2025, 6, 2, 11, 0)
        assert source.tzid() is None
        assert source.exdates == [date(2025, 6, 3)]

    def test_invalid_skip_date_ignored(self, caplog):
        event = RRuleEvent(
            title="x",
            startDate="2025-06-02",
            startTime="11:00",
            rrule="FREQ=DAILY",
            skipDates=["soon", "2025-06-04T11:00:00", "2025-13-40"],
        )
        with caplog.at_level(logging.WARNING):
            source = RecurrenceSource.from_event(event)

        assert source.exdates == [date(2025, 6, 4)]
        assert "soon" in caplog.text

    def test_from_weekday_series(self):
        event = RecurringEvent(
            title="x",
            daysOfWeek=["M", "R"],
            startTime="07:45",
            startRecur="2025-01-06",
            endRecur="2025-03-31",
            timezone="America/New_York",
        )
        source = RecurrenceSource.from_event(event)

        assert source.rrule == "FREQ=WEEKLY;BYDAY=MO,TH;UNTIL=20250331T235959"
        assert source.dtstart == datetime(2025, 1, 6, 7, 45)
        assert source.tzid() == "America/New_York"

    def test_weekday_series_needs_a_first_day(self):
        event = RecurringEvent(title="x", daysOfWeek=["M"], startTime="07:45")
        with pytest.raises(ValueError, match="reference date"):
            RecurrenceSource.from_event(event)
        assert RecurrenceSource.from_event(event, reference_date=date(2025, 1, 6)).dtstart == datetime(2025, 1, 6, 7, 45)

    def test_untimed_series_rejected(self):
        event = RecurringEvent(title="x", daysOfWeek=["M"], startRecur="2025-01-06")
        with pytest.raises(TimeParseError):
            RecurrenceSource.from_event(event)


class TestInstall:
    def test_install_is_idempotent(self, expansion_host, utc_date_env):
        recurring_type = expansion_host.recurring_types[0]
        original = recurring_type.expand
        patch = OccurrenceExpansionPatch()

        assert not patch.is_installed()
        patch.install(expansion_host, "utc")
        patch.install(expansion_host, "utc")
        patch.install(expansion_host, "Europe/London")

        assert patch.is_installed()
        assert patch.original_expand == original
        assert patch.display_zone == "Europe/London"

        source = RecurrenceSource(rrule="FREQ=DAILY;COUNT=3", dtstart=datetime(2025, 1, 6, 9, 0), tz="utc")
        result = _expand(expansion_host, source, utc_date_env)

        # The original runs once per expansion, never through a stack of wrappers
        assert recurring_type.calls == 1
        assert len(result) == 3

    def test_uninstall_restores_original(self, expansion_host):
        original = expansion_host.recurring_types[0].expand
        patch = OccurrenceExpansionPatch()
        patch.install(expansion_host, "utc")
        patch.uninstall(expansion_host)

        assert not patch.is_installed()
        assert expansion_host.recurring_types[0].expand == original

    def test_patch_expansion_uses_process_instance(self, expansion_host):
        patch_expansion(expansion_host, "utc")

        assert occurrence_patch.get_expansion_patch().is_installed()


class TestCorrection:
    def test_without_tzid_returns_original_result(self, expansion_host, utc_date_env):
        patch_expansion(expansion_host, "utc")
        source = RecurrenceSource(rrule="FREQ=DAILY;COUNT=2", dtstart=datetime(2025, 6, 2, 11, 0))

        result = _expand(expansion_host, source, utc_date_env)

        assert result == [datetime(2025, 6, 2, 11, 0), datetime(2025, 6, 3, 11, 0)]
        assert utc_date_env.created == []

    def test_without_display_zone_returns_original_result(self, expansion_host, utc_date_env):
        patch_expansion(expansion_host, None)
        source = RecurrenceSource(
            rrule="FREQ=DAILY;COUNT=1", dtstart=datetime(2025, 6, 2, 11, 0), tz="Europe/Bucharest"
        )

        assert _expand(expansion_host, source, utc_date_env) == [datetime(2025, 6, 2, 11, 0)]

    def test_occurrences_follow_source_zone_dst(self, expansion_host, utc_date_env):
        patch_expansion(expansion_host, "utc")
        source = RecurrenceSource(
            rrule="FREQ=MONTHLY;INTERVAL=6;COUNT=2", dtstart=datetime(2025, 1, 2, 11, 0), tz="Europe/Bucharest"
        )

        result = _expand(expansion_host, source, utc_date_env, (datetime(2025, 1, 1), datetime(2025, 8, 1)))

        # 11:00 Bucharest is UTC+2 in winter and UTC+3 in summer
        assert result == [datetime(2025, 1, 2, 9, 0), datetime(2025, 7, 2, 8, 0)]

    def test_failed_occurrence_keeps_raw_marker(self, expansion_host):
        class FlakyDateEnv:
            def create_marker(self, instant):
                if instant.day == 3:
                    raise ValueError("marker out of range")
                return instant.replace(tzinfo=None)

        patch_expansion(expansion_host, "utc")
        source = RecurrenceSource(
            rrule="FREQ=DAILY;COUNT=3", dtstart=datetime(2025, 6, 2, 12, 0), tz="Europe/Prague"
        )

        result = _expand(expansion_host, source, FlakyDateEnv())

        assert result == [datetime(2025, 6, 2, 10, 0), datetime(2025, 6, 3, 12, 0), datetime(2025, 6, 4, 10, 0)]

    def test_unknown_tzid_keeps_raw_markers(self, expansion_host, utc_date_env):
        patch_expansion(expansion_host, "utc")
        source = RecurrenceSource(rrule="FREQ=DAILY;COUNT=1", dtstart=datetime(2025, 6, 2, 12, 0), tz="Mars/Base")

        assert _expand(expansion_host, source, utc_date_env) == [datetime(2025, 6, 2, 12, 0)]


@pytest.mark.critical_path
def test_weekly_series_across_dst_boundary(expansion_host, utc_date_env):
    """A London Monday 00:30 series falls on Sunday in UTC once BST starts."""
    event = RecurringEvent(
        title="Early standup",
        daysOfWeek=["M"],
        startTime="00:30",
        startRecur="2025-01-06",
        timezone="Europe/London",
    )
    patch_expansion(expansion_host, "utc")

    occurrences = _expand(expansion_host, RecurrenceSource.from_event(event), utc_date_env)
    by_month = {marker.month: marker for marker in occurrences if marker.month in (1, 7)}

    assert datetime(2025, 1, 6, 0, 30) in occurrences
    assert datetime(2025, 7, 6, 23, 30) in occurrences
    assert by_month[1].weekday() == 0
    assert by_month[7].weekday() == 6

    # The eager conversion only knows the January offset and keeps Monday 00:30
    eager = convert(event, "Europe/London", "utc")
    assert eager.days_of_week == ["M"]
    assert eager.start_time == "00:30"
