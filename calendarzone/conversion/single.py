"""Convert one-off timed events between zones."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any

from calendarzone.calendar.models import SingleEvent
from calendarzone.calendar.time_parser import format_time, parse_time
from calendarzone.conversion.zoned import ZonePair, is_local_midnight, zoned_instant

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)


def convert_single_event(event: SingleEvent, zones: ZonePair) -> SingleEvent:
    """Re-express a timed single event in ``zones.target``.

    The start (and end, when ``endTime`` parses) are built as instants in the
    source zone and re-zoned. ``endDate`` is recomputed from the converted
    range: None when start and end share a calendar day, otherwise the end's
    date, where an end exactly at midnight belongs to the previous day.

    An unparseable ``startTime`` or ``date`` returns the event unchanged. An
    absent or unparseable ``endTime`` leaves ``endTime``/``endDate`` as given;
    the effective duration is then one hour.
    """
    start_tod = parse_time(event.start_time)
    if start_tod is None:
        logger.warning(
            "Unparseable startTime %r on %r; leaving event unchanged", event.start_time, event.title
        )
        return event.model_copy(deep=True)

    try:
        start_day = date.fromisoformat(event.date)
        end_day = date.fromisoformat(event.end_date) if event.end_date else start_day
    except ValueError:
        logger.warning("Invalid date on %r; leaving event unchanged", event.title)
        return event.model_copy(deep=True)

    start = zoned_instant(start_day, start_tod, zones.source)
    target_start = start.astimezone(zones.target)

    update: dict[str, Any] = {
        "date": target_start.date().isoformat(),
        "start_time": format_time(target_start),
        "timezone": zones.target_name,
    }

    end_tod = parse_time(event.end_time)
    if end_tod is None:
        if event.end_time:
            logger.warning(
                "Unparseable endTime %r on %r; assuming a %s duration",
                event.end_time,
                event.title,
                DEFAULT_DURATION,
            )
        logger.debug("Effective end for %r: %s", event.title, target_start + DEFAULT_DURATION)
        return event.model_copy(update=update, deep=True)

    end = zoned_instant(end_day, end_tod, zones.source)
    if event.end_date is None and end < start:
        end = zoned_instant(end_day + timedelta(days=1), end_tod, zones.source)
    target_end = end.astimezone(zones.target)

    update["end_time"] = format_time(target_end)
    update["end_date"] = _derive_end_date(target_start.date(), target_end)

    return event.model_copy(update=update, deep=True)


def _derive_end_date(start_day: date, target_end: datetime) -> str | None:
    """Return the converted ``endDate`` or None for a same-day range."""
    if target_end.date() == start_day:
        return None

    end_day = target_end.date()
    if is_local_midnight(target_end):
        # Midnight is the exclusive end of the previous day
        end_day = (target_end - timedelta(milliseconds=1)).date()

    if end_day == start_day:
        return None
    return end_day.isoformat()
