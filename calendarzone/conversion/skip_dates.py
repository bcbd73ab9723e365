"""Translate exception (skip) dates between zones."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, time, tzinfo

from dateutil import parser as date_parser

from calendarzone.conversion.zoned import zoned_instant

logger = logging.getLogger(__name__)


def _translate_one(value: str, anchor: time, source: tzinfo, target: tzinfo) -> str:
    """Translate one skip date, keeping its encoding.

    Raises:
        ValueError: If the value is not an ISO date or datetime
    """
    if "T" in value:
        parsed = date_parser.isoparse(value)
        if parsed.tzinfo is None:
            moved = parsed.replace(tzinfo=source).astimezone(target)
            return moved.replace(tzinfo=None).isoformat(timespec="seconds")
        return parsed.astimezone(target).isoformat(timespec="seconds")

    instant = zoned_instant(date.fromisoformat(value), anchor, source)
    return instant.astimezone(target).date().isoformat()


def translate_skip_dates(
    dates: Sequence[str],
    anchor: time,
    source: tzinfo,
    target: tzinfo,
) -> list[str]:
    """Translate each skip date through ``anchor`` time-of-day.

    Each date is read as "that date at ``anchor``" in ``source``, moved to
    ``target``, and reduced back to a calendar date. Entries that already
    carry a time are moved as instants. Invalid entries pass through
    unchanged so the list keeps its length and order.

    Args:
        dates: ISO dates (or datetimes) in the source zone
        anchor: Wall-clock time that governs the series in the source zone
        source: Zone the dates are currently expressed in
        target: Zone to express them in

    Returns:
        New list of the same length
    """
    translated: list[str] = []
    for value in dates:
        try:
            translated.append(_translate_one(value, anchor, source, target))
        except (ValueError, OverflowError) as e:
            logger.warning("Keeping invalid skip date %r unchanged: %s", value, e)
            translated.append(value)
    return translated
