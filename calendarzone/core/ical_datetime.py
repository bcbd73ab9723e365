"""iCalendar DATE / DATE-TIME helpers used by event providers.

Providers hand the converter ISO strings plus a source zone. These helpers
turn raw iCalendar values (``20250623T083000``, ``TZID=...`` parameters,
Windows zone names) into that shape.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime
from typing import Optional, Union

from dateutil import parser as date_parser
from icalendar.prop import vDDDTypes

from calendarzone.core.timezone_utils import load_zone, normalize_timezone
from calendarzone.exceptions import TimezoneLookupError

logger = logging.getLogger(__name__)

_DATE_ONLY_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_DATE_TIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(Z?)$")


def convert_ical_date_to_iso(date_str: str) -> Optional[str]:
    """Convert a basic-format iCalendar date string to ISO extended format.

    Examples:
        >>> convert_ical_date_to_iso("20250623")
        '2025-06-23'
        >>> convert_ical_date_to_iso("20250623T083000Z")
        '2025-06-23T08:30:00Z'
        >>> convert_ical_date_to_iso("2025-06-23") is None
        True
    """
    match = _DATE_ONLY_RE.match(date_str)
    if match:
        year, month, day = match.groups()
        return f"{year}-{month}-{day}"

    match = _DATE_TIME_RE.match(date_str)
    if match:
        year, month, day, hour, minute, second, utc_marker = match.groups()
        return f"{year}-{month}-{day}T{hour}:{minute}:{second}{utc_marker}"

    return None


def _parse_raw(text: str) -> Union[date, datetime]:
    """Parse raw iCalendar value text, falling back to ISO parsing."""
    try:
        return vDDDTypes.from_ical(text)
    except ValueError:
        logger.debug("icalendar rejected %r, retrying as ISO", text)

    iso = convert_ical_date_to_iso(text) or text
    try:
        parsed = date_parser.isoparse(iso)
    except ValueError as e:
        raise TimezoneLookupError(f"Unable to parse iCalendar value: {text!r}") from e
    if "T" not in iso:
        return parsed.date()
    return parsed


def parse_timezone_aware(value: Union[str, date, datetime], tzid: Optional[str] = None) -> datetime:
    """Interpret an iCalendar DATE / DATE-TIME value as an aware datetime.

    Args:
        value: Raw iCalendar text or an already-parsed date/datetime
        tzid: TZID parameter; IANA id, Windows name, ``"Z"`` or None

    Returns:
        Aware datetime. Date-only values are anchored at UTC midnight so the
        calendar date survives regardless of the host zone. Values that carry
        their own offset keep it. Unknown zones fall back to UTC.

    Raises:
        TimezoneLookupError: If a raw string cannot be parsed at all
    """
    parsed = _parse_raw(value) if isinstance(value, str) else value

    if not isinstance(parsed, datetime):
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=UTC)

    if parsed.tzinfo is not None:
        return parsed

    zone_name = normalize_timezone(tzid)
    try:
        zone = load_zone(zone_name)
    except TimezoneLookupError:
        logger.warning("Unknown TZID %r for %s, assuming UTC", tzid, parsed)
        zone = UTC

    return parsed.replace(tzinfo=zone)
