"""Public conversion entry point dispatching on event variant."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any, Optional, TypeVar, Union, overload

from pydantic import ValidationError

from calendarzone.calendar.models import RecurringEvent, RRuleEvent, SingleEvent, parse_event
from calendarzone.conversion.recurring import convert_recurring_event
from calendarzone.conversion.rrule import convert_rrule_event
from calendarzone.conversion.single import convert_single_event
from calendarzone.conversion.zoned import ZonePair
from calendarzone.exceptions import TimezoneLookupError

logger = logging.getLogger(__name__)

EventModel = Union[SingleEvent, RecurringEvent, RRuleEvent]
E = TypeVar("E", SingleEvent, RecurringEvent, RRuleEvent)

Converter = Callable[[Any, ZonePair, Optional[date]], Any]

# One converter per variant; a new variant must register here before it converts
_CONVERTERS: dict[str, Converter] = {
    "single": lambda event, zones, _ref: convert_single_event(event, zones),
    "recurring": convert_recurring_event,
    "rrule": lambda event, zones, _ref: convert_rrule_event(event, zones),
}


def convert_event(
    event: E,
    source_zone: Optional[str],
    target_zone: Optional[str],
    *,
    reference_date: Optional[date] = None,
) -> E:
    """Re-express ``event``'s wall-clock fields in ``target_zone``.

    All-day events come back as an equal copy. Timed events go to the
    converter for their variant. Conversion never raises for data problems:
    an unloadable zone, an unparseable time or a bad date returns a copy of
    the input.

    Args:
        event: Event whose time fields are expressed in ``source_zone``
        source_zone: IANA name (or Windows name / ``Z``) the fields are in now
        target_zone: Zone to express them in
        reference_date: Date used to derive the day offset of a weekday
            series without ``startRecur``; defaults to today in the source zone

    Returns:
        A new event; the input is never mutated
    """
    if event.all_day:
        return event.model_copy(deep=True)

    try:
        zones = ZonePair.resolve(source_zone, target_zone)
    except TimezoneLookupError as e:
        logger.warning("Cannot convert %r from %r to %r: %s", event.title, source_zone, target_zone, e)
        return event.model_copy(deep=True)

    if zones.is_identity:
        return event.model_copy(update={"timezone": zones.target_name}, deep=True)

    converter = _CONVERTERS.get(event.type)
    if converter is None:
        raise TypeError(f"No converter registered for event type {event.type!r}")

    return converter(event, zones, reference_date)


@overload
def convert(
    event: E,
    source_zone: Optional[str],
    target_zone: Optional[str],
    *,
    reference_date: Optional[date] = None,
) -> E: ...


@overload
def convert(
    event: Mapping[str, Any],
    source_zone: Optional[str],
    target_zone: Optional[str],
    *,
    reference_date: Optional[date] = None,
) -> dict[str, Any]: ...


def convert(
    event: Union[EventModel, Mapping[str, Any]],
    source_zone: Optional[str],
    target_zone: Optional[str],
    *,
    reference_date: Optional[date] = None,
) -> Union[EventModel, dict[str, Any]]:
    """Convert a model or a plain camelCase mapping.

    A mapping in gives a new mapping out; a model in gives a model out. A
    mapping that does not describe a valid event comes back as an unchanged
    copy.
    """
    if isinstance(event, Mapping):
        if event.get("allDay", event.get("all_day", False)):
            return copy.deepcopy(dict(event))
        try:
            model = parse_event(event)
        except ValidationError as e:
            logger.warning(
                "Leaving invalid event %r unconverted: %d validation error(s)",
                event.get("title"),
                e.error_count(),
            )
            return copy.deepcopy(dict(event))
        converted = convert_event(model, source_zone, target_zone, reference_date=reference_date)
        return converted.to_dict()
    return convert_event(event, source_zone, target_zone, reference_date=reference_date)
