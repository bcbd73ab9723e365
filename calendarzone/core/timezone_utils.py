"""Timezone normalization, detection and loading utilities for calendarzone."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from functools import lru_cache
from typing import ClassVar

from dateutil import parser as date_parser
from tzlocal import get_localzone_name

from calendarzone.exceptions import TimezoneLookupError

logger = logging.getLogger(__name__)

# Canonical name returned for every spelling of UTC
UTC_ZONE_NAME = "utc"

TEST_TIME_ENV = "CALENDARZONE_TEST_TIME"


class TimezoneDetector:
    """Resolves timezone identifiers and detects the host timezone."""

    # Windows timezone names to IANA identifier mapping
    # Outlook/Exchange ICS exports use these display names instead of IANA ids
    # https://docs.microsoft.com/en-us/windows-hardware/manufacture/desktop/default-time-zones
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        # US Timezones
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "Arizona Standard Time": "America/Phoenix",
        "US Mountain Standard Time": "America/Phoenix",
        "Atlantic Standard Time": "America/Halifax",
        "Newfoundland Standard Time": "America/St_Johns",
        "Saskatchewan Standard Time": "America/Regina",
        # Central & South America
        "Central America Standard Time": "America/Guatemala",
        "Mexico Standard Time": "America/Mexico_City",
        "Pacific SA Standard Time": "America/Santiago",
        "SA Pacific Standard Time": "America/Bogota",
        "SA Western Standard Time": "America/Caracas",
        "SA Eastern Standard Time": "America/Sao_Paulo",
        "Argentina Standard Time": "America/Argentina/Buenos_Aires",
        "E. South America Standard Time": "America/Sao_Paulo",
        "Greenland Standard Time": "America/Nuuk",
        # Europe
        "GMT Standard Time": "Europe/London",
        "Greenwich Standard Time": "Europe/London",
        "W. Europe Standard Time": "Europe/Berlin",
        "Central European Standard Time": "Europe/Warsaw",
        "Central Europe Standard Time": "Europe/Budapest",
        "Romance Standard Time": "Europe/Paris",
        "E. Europe Standard Time": "Europe/Bucharest",
        "FLE Standard Time": "Europe/Helsinki",
        "GTB Standard Time": "Europe/Athens",
        "Turkey Standard Time": "Europe/Istanbul",
        "Russian Standard Time": "Europe/Moscow",
        # Asia
        "Tokyo Standard Time": "Asia/Tokyo",
        "Korea Standard Time": "Asia/Seoul",
        "China Standard Time": "Asia/Shanghai",
        "Taipei Standard Time": "Asia/Taipei",
        "Singapore Standard Time": "Asia/Singapore",
        "India Standard Time": "Asia/Kolkata",
        "Sri Lanka Standard Time": "Asia/Colombo",
        "SE Asia Standard Time": "Asia/Bangkok",
        "Pakistan Standard Time": "Asia/Karachi",
        "Iran Standard Time": "Asia/Tehran",
        "Arabian Standard Time": "Asia/Dubai",
        "Arab Standard Time": "Asia/Riyadh",
        "Israel Standard Time": "Asia/Jerusalem",
        # Australia & Pacific
        "AUS Eastern Standard Time": "Australia/Sydney",
        "AUS Central Standard Time": "Australia/Darwin",
        "E. Australia Standard Time": "Australia/Brisbane",
        "W. Australia Standard Time": "Australia/Perth",
        "New Zealand Standard Time": "Pacific/Auckland",
        # Africa
        "South Africa Standard Time": "Africa/Johannesburg",
        "Egypt Standard Time": "Africa/Cairo",
        "Morocco Standard Time": "Africa/Casablanca",
        "W. Central Africa Standard Time": "Africa/Lagos",
    }

    # Obsolete IANA names found in older calendar exports
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "US/Alaska": "America/Anchorage",
        "US/Hawaii": "Pacific/Honolulu",
        "US/Arizona": "America/Phoenix",
        "GMT": UTC_ZONE_NAME,
        "Etc/UTC": UTC_ZONE_NAME,
        "Etc/GMT": UTC_ZONE_NAME,
        "Universal": UTC_ZONE_NAME,
        "Zulu": UTC_ZONE_NAME,
        "Asia/Rangoon": "Asia/Yangon",
        "America/Godthab": "America/Nuuk",
    }

    def is_utc_name(self, zone: str) -> bool:
        """Return True for every spelling of UTC this module accepts."""
        return zone == "Z" or zone.lower() == UTC_ZONE_NAME

    def is_valid_iana(self, zone: str) -> bool:
        """Check whether ``zone`` loads from the IANA database."""
        if self.is_utc_name(zone):
            return True
        try:
            zoneinfo.ZoneInfo(zone)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            return False
        return True

    def windows_to_iana(self, windows_tz: str) -> str | None:
        """Convert a Windows timezone name to its IANA identifier, or None if unknown."""
        return self.WINDOWS_TZ_MAP.get(windows_tz)

    def resolve_alias(self, tz_name: str) -> str | None:
        """Resolve an obsolete alias such as ``US/Pacific`` to its current IANA name."""
        return self.TZ_ALIAS_MAP.get(tz_name)

    def normalize(self, zone: str | None) -> str:
        """Map a timezone identifier onto an IANA name.

        Args:
            zone: IANA id, Windows display name, ``"Z"``, ``"utc"`` or empty

        Returns:
            ``"utc"`` for empty/UTC spellings, the input itself when it is
            already loadable, the mapped IANA name for known Windows names
            and aliases, otherwise the input unchanged so the caller can
            apply its own fallback.
        """
        if zone is None or not zone.strip():
            return UTC_ZONE_NAME

        if self.is_utc_name(zone):
            return UTC_ZONE_NAME

        if self.is_valid_iana(zone):
            return zone

        mapped = self.windows_to_iana(zone) or self.resolve_alias(zone)
        if mapped:
            logger.debug("Mapped non-IANA timezone %r -> %r", zone, mapped)
            return mapped

        logger.debug("No IANA mapping for timezone %r, returning unchanged", zone)
        return zone

    def get_system_timezone(self) -> str:
        """Return the host's IANA timezone name.

        Raises:
            Exception: whatever the host lookup raises; callers decide how
                to degrade.
        """
        return get_localzone_name()


class TimeProvider:
    """Provides current time with test time override support."""

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via CALENDARZONE_TEST_TIME environment variable.
        Format: ISO 8601 datetime string (e.g., "2025-10-27T08:20:00-07:00").
        A naive override is read as UTC.
        """
        test_time = os.environ.get(TEST_TIME_ENV)
        if test_time:
            try:
                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.UTC)
                return dt.replace(tzinfo=datetime.UTC)
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

        return datetime.datetime.now(datetime.UTC)

    def today(self, zone: datetime.tzinfo) -> datetime.date:
        """Return the current calendar date as seen in ``zone``."""
        return self.now_utc().astimezone(zone).date()


# Singleton instances for global use
_detector = TimezoneDetector()
_time_provider = TimeProvider()


@lru_cache(maxsize=64)
def load_zone(zone: str) -> datetime.tzinfo:
    """Load a tzinfo for ``zone``, accepting every UTC spelling.

    Raises:
        TimezoneLookupError: If the identifier cannot be loaded
    """
    if _detector.is_utc_name(zone):
        return datetime.UTC
    try:
        return zoneinfo.ZoneInfo(zone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise TimezoneLookupError(f"Unknown timezone: {zone!r}") from e


def normalize_timezone(zone: str | None) -> str:
    """Normalize a timezone identifier (convenience function)."""
    return _detector.normalize(zone)


def get_system_timezone() -> str:
    """Get the host's IANA timezone name (convenience function)."""
    return _detector.get_system_timezone()


def today_in(zone: datetime.tzinfo) -> datetime.date:
    """Get today's date in ``zone`` (convenience function)."""
    return _time_provider.today(zone)
