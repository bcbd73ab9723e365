"""Convert RRULE-based recurring events between zones.

Only the ``BYDAY`` component of the rule text is ever rewritten; ``FREQ``,
``UNTIL``, ``COUNT``, ``INTERVAL`` and anything else pass through
byte-for-byte.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser
from dateutil.rrule import rrulestr

from calendarzone.calendar.models import RRuleEvent
from calendarzone.calendar.time_parser import TimeOfDay, format_time, parse_time
from calendarzone.conversion.skip_dates import translate_skip_dates
from calendarzone.conversion.zoned import ZonePair, day_offset, end_after_start, zoned_instant
from calendarzone.exceptions import RRuleParseError

logger = logging.getLogger(__name__)

# Sunday-first, matching the one-letter daysOfWeek codes
RRULE_WEEKDAYS: tuple[str, ...] = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")

# [+-]?ordinal? weekday, ordinal 1..53 per RFC5545 "ordwk"
BYDAY_TOKEN_RE = re.compile(r"^([+-]?(?:[1-9]|[1-4][0-9]|5[0-3])?)(MO|TU|WE|TH|FR|SA|SU)$")
BYDAY_COMPONENT_RE = re.compile(r"(?i)(?<![A-Z])(BYDAY=)([^;\r\n]*)")

_VALIDATION_DTSTART = datetime(2000, 1, 1)


def validate_rrule(rrule_text: str) -> None:
    """Check that ``rrule_text`` is a rule dateutil can evaluate.

    Raises:
        RRuleParseError: If the rule is empty, lacks FREQ or fails to parse
    """
    if not rrule_text or not rrule_text.strip():
        raise RRuleParseError("Empty RRULE string")
    if "FREQ=" not in rrule_text.upper():
        raise RRuleParseError(f"RRULE missing required FREQ parameter: {rrule_text!r}")
    try:
        rrulestr(rrule_text, dtstart=_VALIDATION_DTSTART, ignoretz=True)
    except (ValueError, KeyError, TypeError, IndexError) as e:
        raise RRuleParseError(f"Invalid RRULE format: {rrule_text!r}") from e


def shift_byday_token(token: str, offset: int) -> str:
    """Shift one BYDAY token, keeping any ordinal prefix.

    Raises:
        RRuleParseError: If the token does not follow the BYDAY grammar
    """
    match = BYDAY_TOKEN_RE.match(token.strip().upper())
    if match is None:
        raise RRuleParseError(f"Invalid BYDAY token: {token!r}")
    ordinal, weekday = match.groups()
    index = RRULE_WEEKDAYS.index(weekday)
    return f"{ordinal}{RRULE_WEEKDAYS[(index + offset) % len(RRULE_WEEKDAYS)]}"


def shift_byday(rrule_text: str, offset: int) -> str:
    """Return ``rrule_text`` with every BYDAY weekday moved by ``offset`` days.

    Rules without BYDAY, and a zero offset, come back unchanged.

    Raises:
        RRuleParseError: If the rule or one of its BYDAY tokens is invalid

    Examples:
        >>> shift_byday("FREQ=WEEKLY;BYDAY=MO,WE", -1)
        'FREQ=WEEKLY;BYDAY=SU,TU'
        >>> shift_byday("FREQ=MONTHLY;BYDAY=-1SA;COUNT=3", 1)
        'FREQ=MONTHLY;BYDAY=-1SU;COUNT=3'
    """
    validate_rrule(rrule_text)
    if offset == 0:
        return rrule_text

    def _replace(match: re.Match[str]) -> str:
        tokens = [tok for tok in match.group(2).split(",") if tok.strip()]
        return match.group(1) + ",".join(shift_byday_token(tok, offset) for tok in tokens)

    return BYDAY_COMPONENT_RE.sub(_replace, rrule_text)


def _reference_start(event: RRuleEvent, zones: ZonePair) -> tuple[datetime, TimeOfDay | None] | None:
    """Build the series' authoritative start instant.

    Returns (instant, parsed startTime) or None when the start cannot be read.
    """
    if event.has_embedded_time:
        try:
            parsed = date_parser.isoparse(event.start_date)
        except ValueError:
            logger.warning("Invalid startDate %r on %r", event.start_date, event.title)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=zones.source)
        return parsed, parse_time(event.start_time)

    try:
        start_day = date.fromisoformat(event.start_date)
    except ValueError:
        logger.warning("Invalid startDate %r on %r", event.start_date, event.title)
        return None

    start_tod = parse_time(event.start_time)
    if start_tod is None:
        logger.warning("Unparseable startTime %r on %r", event.start_time, event.title)
        return None
    return zoned_instant(start_day, start_tod, zones.source), start_tod


def _format_start_date(event: RRuleEvent, target_start: datetime) -> str:
    """Express the new start in the same encoding the event arrived with."""
    if not event.has_embedded_time:
        return target_start.date().isoformat()
    if date_parser.isoparse(event.start_date).tzinfo is None:
        return target_start.replace(tzinfo=None).isoformat(timespec="seconds")
    return target_start.isoformat(timespec="seconds")


def convert_rrule_event(event: RRuleEvent, zones: ZonePair) -> RRuleEvent:
    """Re-express a timed RRULE series in ``zones.target``.

    The start instant is re-zoned and ``startDate`` rewritten in its original
    encoding. The calendar-day change of that instant shifts every BYDAY
    weekday by the same amount. Invalid RRULE text is logged and kept while
    the date/time fields are still converted.

    Like the weekday-series converter this produces the stored form; display
    time correction belongs to the occurrence expansion patch.
    """
    reference = _reference_start(event, zones)
    if reference is None:
        return event.model_copy(deep=True)
    ref_start, start_tod = reference

    source_start = ref_start.astimezone(zones.source)
    target_start = ref_start.astimezone(zones.target)
    offset = day_offset(source_start, target_start)

    update: dict[str, Any] = {
        "start_date": _format_start_date(event, target_start),
        "timezone": zones.target_name,
    }

    if start_tod is not None:
        update["start_time"] = format_time(target_start)
        end_tod = parse_time(event.end_time)
        if end_tod is not None:
            ref_end = end_after_start(source_start.date(), start_tod, end_tod, zones.source)
            update["end_time"] = format_time(ref_end.astimezone(zones.target))
        elif event.end_time:
            logger.warning("Unparseable endTime %r on %r; keeping it as is", event.end_time, event.title)

    if offset:
        try:
            update["rrule"] = shift_byday(event.rrule, offset)
            logger.debug("Shifted RRULE for %r by %+d: %s", event.title, offset, update["rrule"])
        except RRuleParseError as e:
            logger.warning("Keeping RRULE of %r unchanged: %s", event.title, e)

    update["skip_dates"] = translate_skip_dates(
        event.skip_dates, source_start.timetz().replace(tzinfo=None), zones.source, zones.target
    )

    return event.model_copy(update=update, deep=True)
