"""Per-occurrence timezone correction for the rendering layer's RRULE expansion.

The eager converters shift a series by one day offset computed at a single
reference instant. Across a DST boundary that offset stops being right, so
at display time every expanded occurrence is rebuilt here from the series'
stable wall-clock time in its source zone and handed back to the rendering
layer as a true UTC instant.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, tzinfo
from typing import Any, Optional, Protocol, Union

from dateutil import parser as date_parser

from calendarzone.calendar.models import WEEKDAY_CODES, RecurringEvent, RRuleEvent
from calendarzone.calendar.time_parser import parse_time
from calendarzone.conversion.rrule import RRULE_WEEKDAYS
from calendarzone.core.timezone_utils import load_zone, normalize_timezone
from calendarzone.exceptions import CalendarZoneError, TimeParseError, TimezoneLookupError

logger = logging.getLogger(__name__)

Marker = Union[datetime, date]
ExpandFn = Callable[[Any, Any, Any], Sequence[Marker]]

_BYDAY_FOR_CODE: dict[str, str] = dict(zip(WEEKDAY_CODES, RRULE_WEEKDAYS))


class DateEnvLike(Protocol):
    """Rendering-layer date environment."""

    def create_marker(self, instant: datetime) -> Marker:
        """Build a display-zone marker from an aware UTC instant."""
        ...


class RecurrenceSetLike(Protocol):
    """Recurrence set handed to the expansion routine."""

    dtstart: Optional[datetime]

    def tzid(self) -> Optional[str]:
        """Return the series' source zone, if it has one."""
        ...


class ExpandDataLike(Protocol):
    rrule_set: RecurrenceSetLike


class RecurringTypeLike(Protocol):
    expand: ExpandFn


class ExpansionHostLike(Protocol):
    """Rendering-layer plugin whose first recurring type gets patched."""

    recurring_types: list[RecurringTypeLike]


@dataclass
class RecurrenceSource:
    """Recurrence set built from a stored event.

    ``dtstart`` is naive wall-clock time in ``tz``. Both recurring variants
    map onto this shape, so a ``daysOfWeek`` series is corrected by the same
    adapter as an RRULE series.
    """

    rrule: str
    dtstart: datetime
    tz: Optional[str] = None
    exdates: list[date] = field(default_factory=list)

    def tzid(self) -> Optional[str]:
        return self.tz

    @classmethod
    def from_event(
        cls,
        event: Union[RRuleEvent, RecurringEvent],
        reference_date: Optional[date] = None,
    ) -> RecurrenceSource:
        """Build the recurrence set for a timed recurring event.

        Args:
            event: RRULE or weekday-set series
            reference_date: First day of a weekday series without ``startRecur``

        Raises:
            TimeParseError: If the series has no usable start time
            ValueError: If a start date is not ISO formatted
        """
        exdates = _parse_exdates(event)

        if isinstance(event, RRuleEvent):
            if event.has_embedded_time:
                dtstart = date_parser.isoparse(event.start_date).replace(tzinfo=None)
            else:
                dtstart = datetime.combine(
                    date.fromisoformat(event.start_date), _required_time(event)
                )
            return cls(rrule=event.rrule, dtstart=dtstart, tz=event.timezone, exdates=exdates)

        first_day = date.fromisoformat(event.start_recur) if event.start_recur else reference_date
        if first_day is None:
            raise ValueError(f"Series {event.title!r} needs startRecur or a reference date")

        parts = ["FREQ=WEEKLY"]
        if event.days_of_week:
            parts.append("BYDAY=" + ",".join(_BYDAY_FOR_CODE[code] for code in event.days_of_week))
        if event.end_recur:
            parts.append(f"UNTIL={date.fromisoformat(event.end_recur):%Y%m%d}T235959")

        return cls(
            rrule=";".join(parts),
            dtstart=datetime.combine(first_day, _required_time(event)),
            tz=event.timezone,
            exdates=exdates,
        )


def _parse_exdates(event: Union[RRuleEvent, RecurringEvent]) -> list[date]:
    exdates = []
    for value in event.skip_dates:
        try:
            exdates.append(date.fromisoformat(value[:10]))
        except ValueError:
            logger.warning("Ignoring invalid skip date %r on %r", value, event.title)
    return exdates


def _required_time(event: Union[RRuleEvent, RecurringEvent]) -> time:
    start = parse_time(event.start_time)
    if start is None:
        raise TimeParseError(f"Series {event.title!r} has no usable startTime: {event.start_time!r}")
    return start.as_time()


def _occurrence_day(marker: Marker) -> date:
    return marker.date() if isinstance(marker, datetime) else marker


class OccurrenceExpansionPatch:
    """Wraps a host's expand routine with per-occurrence DST correction.

    The unpatched routine is captured once, the first time ``install`` runs.
    Later installs rewrap that same original, so the wrapper never wraps
    itself.
    """

    def __init__(self) -> None:
        self._original: Optional[ExpandFn] = None
        self.display_zone: Optional[str] = None

    @property
    def original_expand(self) -> Optional[ExpandFn]:
        return self._original

    def is_installed(self) -> bool:
        return self._original is not None

    def install(self, host: ExpansionHostLike, display_zone: Optional[str]) -> None:
        """Patch ``host.recurring_types[0].expand``.

        Args:
            host: Rendering-layer plugin to patch
            display_zone: Zone the calendar is displayed in; None disables
                correction while leaving the patch in place
        """
        recurring_type = host.recurring_types[0]
        if self._original is None:
            self._original = recurring_type.expand
            logger.debug("Captured original expansion routine %r", self._original)

        self.display_zone = display_zone
        recurring_type.expand = self._make_expand(self._original)
        logger.info("Per-occurrence expansion patch installed (display zone: %s)", display_zone)

    def uninstall(self, host: ExpansionHostLike) -> None:
        """Restore the captured original and clear the cell."""
        if self._original is None:
            return
        host.recurring_types[0].expand = self._original
        self._original = None
        self.display_zone = None
        logger.debug("Per-occurrence expansion patch removed")

    def _make_expand(self, original: ExpandFn) -> ExpandFn:
        def expand(expand_data: ExpandDataLike, frame_range: Any, date_env: DateEnvLike) -> Sequence[Marker]:
            result = original(expand_data, frame_range, date_env)
            tzid = expand_data.rrule_set.tzid()
            if not tzid or not self.display_zone:
                return result
            return self.correct_occurrences(result, expand_data.rrule_set, tzid, date_env)

        return expand

    def correct_occurrences(
        self,
        markers: Sequence[Marker],
        rrule_set: RecurrenceSetLike,
        tzid: str,
        date_env: DateEnvLike,
    ) -> list[Marker]:
        """Rebuild each occurrence from the series' stable wall-clock time.

        The occurrence's calendar date is kept; its time is replaced by
        ``dtstart``'s time read in ``tzid``, and the resulting UTC instant is
        turned into a display marker by ``date_env``.
        """
        try:
            source = load_zone(normalize_timezone(tzid))
        except TimezoneLookupError as e:
            logger.warning("Cannot correct occurrences for TZID %r: %s", tzid, e)
            return list(markers)

        dtstart = rrule_set.dtstart
        corrected: list[Marker] = []
        for marker in markers:
            try:
                corrected.append(self._correct_one(marker, dtstart, source, date_env))
            except (CalendarZoneError, ValueError, OverflowError, AttributeError) as e:
                logger.warning("Keeping raw occurrence %r: %s", marker, e)
                corrected.append(marker)
        return corrected

    @staticmethod
    def _correct_one(
        marker: Marker,
        dtstart: Optional[datetime],
        source: tzinfo,
        date_env: DateEnvLike,
    ) -> Marker:
        if dtstart is not None:
            wall_clock = dtstart.time().replace(microsecond=0)
        elif isinstance(marker, datetime):
            wall_clock = marker.time().replace(microsecond=0)
        else:
            wall_clock = time(0, 0)

        source_instant = datetime.combine(_occurrence_day(marker), wall_clock, tzinfo=source)
        return date_env.create_marker(source_instant.astimezone(UTC))


# Process-wide patch instance
_patch = OccurrenceExpansionPatch()


def get_expansion_patch() -> OccurrenceExpansionPatch:
    return _patch


def patch_expansion(host: ExpansionHostLike, display_zone: Optional[str]) -> None:
    """Install the per-occurrence correction on ``host`` (convenience function)."""
    _patch.install(host, display_zone)
