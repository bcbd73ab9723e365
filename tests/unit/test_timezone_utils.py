"""Unit tests for timezone normalization, loading and the time provider."""

import datetime
from zoneinfo import ZoneInfo

import pytest

from calendarzone.core.timezone_utils import (
    TimeProvider,
    TimezoneDetector,
    get_system_timezone,
    load_zone,
    normalize_timezone,
    today_in,
)
from calendarzone.exceptions import TimezoneLookupError

pytestmark = pytest.mark.unit


class TestNormalizeTimezone:
    @pytest.mark.parametrize("zone", [None, "", "   ", "Z", "utc", "UTC", "Utc"])
    def test_utc_spellings(self, zone):
        assert normalize_timezone(zone) == "utc"

    @pytest.mark.parametrize("zone", ["Europe/Prague", "America/New_York", "Asia/Tokyo"])
    def test_valid_iana_unchanged(self, zone):
        assert normalize_timezone(zone) == zone

    @pytest.mark.parametrize(
        ("windows_name", "iana"),
        [
            ("Pacific Standard Time", "America/Los_Angeles"),
            ("W. Europe Standard Time", "Europe/Berlin"),
            ("Tokyo Standard Time", "Asia/Tokyo"),
            ("AUS Eastern Standard Time", "Australia/Sydney"),
        ],
    )
    def test_windows_names_mapped(self, windows_name, iana):
        assert normalize_timezone(windows_name) == iana

    def test_unknown_returned_unchanged(self):
        assert normalize_timezone("Mars/Olympus_Mons") == "Mars/Olympus_Mons"

    def test_every_mapped_windows_zone_loads(self):
        for iana in TimezoneDetector.WINDOWS_TZ_MAP.values():
            assert load_zone(iana) is not None


def test_windows_lookup():
    detector = TimezoneDetector()

    assert detector.windows_to_iana("Eastern Standard Time") == "America/New_York"
    assert detector.windows_to_iana("Nowhere Standard Time") is None


def test_alias_lookup():
    detector = TimezoneDetector()

    assert detector.resolve_alias("US/Eastern") == "America/New_York"
    assert detector.resolve_alias("Zulu") == "utc"
    assert detector.resolve_alias("Europe/Prague") is None


def test_aliases_resolved_when_host_database_lacks_them(monkeypatch):
    monkeypatch.setattr(TimezoneDetector, "is_valid_iana", lambda self, zone: False)
    detector = TimezoneDetector()

    assert detector.normalize("US/Eastern") == "America/New_York"
    assert detector.normalize("Asia/Rangoon") == "Asia/Yangon"
    assert detector.normalize("Pacific Standard Time") == "America/Los_Angeles"


class TestLoadZone:
    def test_utc_spellings_give_utc(self):
        assert load_zone("utc") is datetime.UTC
        assert load_zone("Z") is datetime.UTC

    def test_iana_zone(self):
        assert load_zone("Europe/Prague") == ZoneInfo("Europe/Prague")

    def test_unknown_zone_raises(self):
        with pytest.raises(TimezoneLookupError, match="Mars/Olympus_Mons"):
            load_zone("Mars/Olympus_Mons")


class TestTimeProvider:
    def test_override_with_offset(self, monkeypatch):
        monkeypatch.setenv("CALENDARZONE_TEST_TIME", "2025-10-27T08:20:00-07:00")
        assert TimeProvider().now_utc() == datetime.datetime(2025, 10, 27, 15, 20, tzinfo=datetime.UTC)

    def test_naive_override_read_as_utc(self, monkeypatch):
        monkeypatch.setenv("CALENDARZONE_TEST_TIME", "2025-10-27T08:20:00")
        assert TimeProvider().now_utc() == datetime.datetime(2025, 10, 27, 8, 20, tzinfo=datetime.UTC)

    def test_invalid_override_falls_back_to_clock(self, monkeypatch):
        monkeypatch.setenv("CALENDARZONE_TEST_TIME", "not-a-time")
        before = datetime.datetime.now(datetime.UTC)
        assert TimeProvider().now_utc() >= before

    def test_today_in_zone(self, monkeypatch):
        monkeypatch.setenv("CALENDARZONE_TEST_TIME", "2025-10-27T20:00:00Z")
        assert today_in(ZoneInfo("Asia/Tokyo")) == datetime.date(2025, 10, 28)
        assert today_in(ZoneInfo("America/New_York")) == datetime.date(2025, 10, 27)


def test_get_system_timezone_uses_tzlocal(monkeypatch):
    monkeypatch.setattr(
        "calendarzone.core.timezone_utils.get_localzone_name", lambda: "Europe/Bucharest"
    )
    assert get_system_timezone() == "Europe/Bucharest"
