"""Convert weekday-set recurring events between zones."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from calendarzone.calendar.models import RecurringEvent
from calendarzone.calendar.time_parser import format_time, parse_time
from calendarzone.conversion.skip_dates import translate_skip_dates
from calendarzone.conversion.zoned import (
    ZonePair,
    day_offset,
    end_after_start,
    shift_weekday_codes,
    zoned_instant,
)
from calendarzone.core.timezone_utils import today_in

logger = logging.getLogger(__name__)


def _reference_day(event: RecurringEvent, zones: ZonePair, reference_date: Optional[date]) -> date:
    """Pick the date whose occurrence defines the day offset.

    ``startRecur`` wins; otherwise the caller's reference date, otherwise
    today in the source zone.
    """
    if event.start_recur:
        try:
            return date.fromisoformat(event.start_recur)
        except ValueError:
            logger.warning(
                "Invalid startRecur %r on %r; using reference date instead",
                event.start_recur,
                event.title,
            )
    if reference_date is not None:
        return reference_date
    return today_in(zones.source)


def convert_recurring_event(
    event: RecurringEvent,
    zones: ZonePair,
    reference_date: Optional[date] = None,
) -> RecurringEvent:
    """Re-express a timed weekly series in ``zones.target``.

    One reference occurrence (on ``startRecur`` or the reference date) is
    re-zoned. Its new wall-clock times become ``startTime``/``endTime`` and
    the calendar-day change it undergoes shifts every ``daysOfWeek`` code by
    the same amount. Skip dates are translated through the original start
    time.

    The result is the stored form of the series. Rendering goes through
    ``RecurrenceSource.from_event`` and the occurrence expansion patch, which
    re-times every occurrence and stays right across DST changes where this
    single offset does not.
    """
    start_tod = parse_time(event.start_time)
    if start_tod is None:
        logger.warning(
            "Unparseable startTime %r on %r; leaving event unchanged", event.start_time, event.title
        )
        return event.model_copy(deep=True)

    ref_day = _reference_day(event, zones, reference_date)
    ref_start = zoned_instant(ref_day, start_tod, zones.source)
    target_start = ref_start.astimezone(zones.target)
    offset = day_offset(ref_start, target_start)

    update: dict[str, Any] = {
        "start_time": format_time(target_start),
        "timezone": zones.target_name,
    }

    end_tod = parse_time(event.end_time)
    if end_tod is not None:
        ref_end = end_after_start(ref_day, start_tod, end_tod, zones.source)
        update["end_time"] = format_time(ref_end.astimezone(zones.target))
    elif event.end_time:
        logger.warning("Unparseable endTime %r on %r; keeping it as is", event.end_time, event.title)

    if offset:
        update["days_of_week"] = shift_weekday_codes(list(event.days_of_week), offset)
        logger.debug(
            "Shifted daysOfWeek for %r by %+d: %s -> %s",
            event.title,
            offset,
            event.days_of_week,
            update["days_of_week"],
        )

    update["skip_dates"] = translate_skip_dates(
        event.skip_dates, start_tod.as_time(), zones.source, zones.target
    )

    return event.model_copy(update=update, deep=True)
