"""Zone-aware building blocks shared by the event converters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from calendarzone.calendar.models import WEEKDAY_CODES
from calendarzone.calendar.time_parser import TimeOfDay
from calendarzone.core.timezone_utils import load_zone, normalize_timezone

logger = logging.getLogger(__name__)

MAX_DAY_OFFSET = 1


@dataclass(frozen=True)
class ZonePair:
    """Normalized source/target zone names with their loaded tzinfo."""

    source_name: str
    target_name: str
    source: tzinfo
    target: tzinfo

    @classmethod
    def resolve(cls, source_zone: str | None, target_zone: str | None) -> ZonePair:
        """Normalize and load both zones.

        Raises:
            TimezoneLookupError: If either zone cannot be loaded
        """
        source_name = normalize_timezone(source_zone)
        target_name = normalize_timezone(target_zone)
        return cls(
            source_name=source_name,
            target_name=target_name,
            source=load_zone(source_name),
            target=load_zone(target_name),
        )

    @property
    def is_identity(self) -> bool:
        return self.source_name == self.target_name


def zoned_instant(day: date, wall_time: TimeOfDay | time, zone: tzinfo) -> datetime:
    """Interpret ``day`` at ``wall_time`` as local time in ``zone``."""
    if isinstance(wall_time, TimeOfDay):
        wall_time = wall_time.as_time()
    return datetime.combine(day, wall_time.replace(tzinfo=None), tzinfo=zone)


def day_offset(source_instant: datetime, target_instant: datetime) -> int:
    """Signed calendar-day difference between two local views of one instant.

    Compares calendar dates directly so year and month boundaries need no
    special handling. The result is clamped to -1..+1.
    """
    delta = (target_instant.date() - source_instant.date()).days
    if abs(delta) > MAX_DAY_OFFSET:
        clamped = MAX_DAY_OFFSET if delta > 0 else -MAX_DAY_OFFSET
        logger.warning(
            "Day offset %d between %s and %s clamped to %d",
            delta,
            source_instant.isoformat(),
            target_instant.isoformat(),
            clamped,
        )
        return clamped
    return delta


def shift_weekday_code(code: str, offset: int) -> str:
    """Move a one-letter weekday code by ``offset`` days, wrapping around the week."""
    index = WEEKDAY_CODES.index(code)
    return WEEKDAY_CODES[(index + offset) % len(WEEKDAY_CODES)]


def shift_weekday_codes(codes: list[str], offset: int) -> list[str]:
    """Shift every code by the same offset, keeping count and order."""
    if offset == 0:
        return list(codes)
    return [shift_weekday_code(code, offset) for code in codes]


def end_after_start(day: date, start: TimeOfDay, end: TimeOfDay, zone: tzinfo) -> datetime:
    """Build the end instant for a same-day time range.

    When the end time numerically precedes the start time the range crosses
    midnight, so the end lands on the following calendar day.
    """
    if end < start:
        day = day + timedelta(days=1)
    return zoned_instant(day, end, zone)


def is_local_midnight(value: datetime) -> bool:
    return value.time() == time(0, 0)
