"""Time-of-day parsing for event ``startTime`` / ``endTime`` strings."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time
from typing import NamedTuple, Optional

from calendarzone.exceptions import TimeParseError

logger = logging.getLogger(__name__)

# Tried in order: zero-padded 24-hour, then 12-hour with an AM/PM marker.
# The meridiem is matched literally, independent of LC_TIME.
_HOUR_24 = re.compile(r"(?P<hour>[01]\d|2[0-3]):(?P<minute>[0-5]\d)")
_HOUR_12 = re.compile(r"(?P<hour>1[0-2]|0?[1-9]):(?P<minute>[0-5]\d) (?P<meridiem>[AaPp][Mm])")


class TimeOfDay(NamedTuple):
    """Wall-clock hour and minute."""

    hour: int
    minute: int

    def as_time(self) -> time:
        return time(self.hour, self.minute)


def parse_time_strict(text: str) -> TimeOfDay:
    """Parse ``HH:mm`` (two-digit hour) or ``h:mm a`` (``2:30 PM``, any case).

    Raises:
        TimeParseError: If the text matches neither format
    """
    candidate = text.strip()

    match = _HOUR_24.fullmatch(candidate)
    if match:
        return TimeOfDay(int(match["hour"]), int(match["minute"]))

    match = _HOUR_12.fullmatch(candidate)
    if match:
        hour = int(match["hour"]) % 12
        if match["meridiem"].lower() == "pm":
            hour += 12
        return TimeOfDay(hour, int(match["minute"]))

    raise TimeParseError(f"Unable to parse time of day: {text!r}")


def parse_time(text: Optional[str]) -> Optional[TimeOfDay]:
    """Parse a time-of-day string, returning None when it cannot be read.

    Callers treat None as "leave the event unmodified", never as fatal.

    Examples:
        >>> parse_time("14:30")
        TimeOfDay(hour=14, minute=30)
        >>> parse_time("2:30 PM")
        TimeOfDay(hour=14, minute=30)
        >>> parse_time("noon") is None
        True
    """
    if not text:
        return None
    try:
        return parse_time_strict(text)
    except TimeParseError:
        logger.debug("Unparseable time of day %r", text)
        return None


def format_time(value: datetime) -> str:
    """Format the wall-clock part of ``value`` as ``HH:mm``."""
    return value.strftime("%H:%M")
