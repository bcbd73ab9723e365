"""Unit tests for skip-date translation and the zone helpers."""

import logging
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from calendarzone.calendar.time_parser import TimeOfDay
from calendarzone.conversion.skip_dates import translate_skip_dates
from calendarzone.conversion.zoned import (
    ZonePair,
    day_offset,
    end_after_start,
    shift_weekday_code,
    shift_weekday_codes,
)
from calendarzone.exceptions import TimezoneLookupError

pytestmark = pytest.mark.unit

PRAGUE = ZoneInfo("Europe/Prague")
NEW_YORK = ZoneInfo("America/New_York")


class TestTranslateSkipDates:
    def test_late_anchor_moves_date_forward(self):
        assert translate_skip_dates(["2025-06-15"], time(23, 0), UTC, PRAGUE) == ["2025-06-16"]

    def test_midday_anchor_keeps_date(self):
        assert translate_skip_dates(["2025-06-15"], time(12, 0), UTC, PRAGUE) == ["2025-06-15"]

    def test_early_anchor_moves_date_back(self):
        assert translate_skip_dates(["2025-06-16"], time(1, 0), UTC, NEW_YORK) == ["2025-06-15"]

    def test_embedded_time_keeps_encoding(self):
        result = translate_skip_dates(
            ["2025-06-15T23:00:00", "2025-06-15T23:00:00+00:00"], time(9, 0), UTC, PRAGUE
        )
        assert result == ["2025-06-16T01:00:00", "2025-06-16T01:00:00+02:00"]

    def test_invalid_entries_pass_through(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = translate_skip_dates(["2025-02-30", "2025-06-15"], time(23, 0), UTC, PRAGUE)
        assert result == ["2025-02-30", "2025-06-16"]
        assert "2025-02-30" in caplog.text

    def test_empty_list(self):
        assert translate_skip_dates([], time(0, 0), UTC, PRAGUE) == []


class TestDayOffset:
    def test_same_day(self):
        instant = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)
        assert day_offset(instant, instant.astimezone(PRAGUE)) == 0

    def test_year_boundary(self):
        instant = datetime(2024, 12, 31, 23, 30, tzinfo=UTC)
        assert day_offset(instant, instant.astimezone(PRAGUE)) == 1
        instant = datetime(2025, 1, 1, 1, 0, tzinfo=UTC)
        assert day_offset(instant, instant.astimezone(NEW_YORK)) == -1

    def test_clamped_to_one_day(self, caplog):
        source = datetime(2025, 1, 6, 23, 30, tzinfo=ZoneInfo("Pacific/Pago_Pago"))
        target = source.astimezone(ZoneInfo("Pacific/Kiritimati"))
        assert (target.date() - source.date()).days == 2
        with caplog.at_level(logging.WARNING):
            assert day_offset(source, target) == 1
        assert "clamped" in caplog.text

    @pytest.mark.parametrize("hour", range(0, 24, 3))
    @pytest.mark.parametrize(
        "target", ["Asia/Tokyo", "America/Los_Angeles", "Australia/Sydney", "Asia/Kolkata", "utc"]
    )
    def test_offset_always_within_one_day(self, hour, target):
        zones = ZonePair.resolve("Europe/Prague", target)
        instant = datetime(2025, 3, 30, hour, 0, tzinfo=zones.source)
        assert day_offset(instant, instant.astimezone(zones.target)) in (-1, 0, 1)


class TestWeekdayShift:
    def test_wraps_both_ways(self):
        assert shift_weekday_code("S", 1) == "U"
        assert shift_weekday_code("U", -1) == "S"

    def test_keeps_count_and_order(self):
        assert shift_weekday_codes(["M", "W", "F"], 1) == ["T", "R", "S"]
        assert shift_weekday_codes(["M", "W", "F"], 0) == ["M", "W", "F"]


def test_end_after_start_rolls_past_midnight():
    end = end_after_start(date(2025, 6, 13), TimeOfDay(23, 0), TimeOfDay(0, 30), UTC)
    assert end == datetime(2025, 6, 14, 0, 30, tzinfo=UTC)


class TestZonePair:
    def test_normalizes_names(self):
        zones = ZonePair.resolve("Z", "Pacific Standard Time")
        assert zones.source_name == "utc"
        assert zones.target_name == "America/Los_Angeles"
        assert not zones.is_identity

    def test_identity(self):
        assert ZonePair.resolve("UTC", "utc").is_identity

    def test_unknown_zone_raises(self):
        with pytest.raises(TimezoneLookupError):
            ZonePair.resolve("utc", "Mars/Olympus_Mons")
