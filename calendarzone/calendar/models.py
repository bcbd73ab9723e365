"""Calendar event data models.

``CalendarEvent`` is a tagged union discriminated on ``type``. Field names on
the wire are camelCase (``allDay``, ``startTime``); Python attributes are
snake_case. Dates stay ISO strings so every encoding a provider uses
round-trips untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

logger = logging.getLogger(__name__)

# Sunday-first ordering shared by daysOfWeek codes and weekday arithmetic
WEEKDAY_CODES: tuple[str, ...] = ("U", "M", "T", "W", "R", "F", "S")

WeekdayCode = Literal["U", "M", "T", "W", "R", "F", "S"]


class EventBase(BaseModel):
    """Fields shared by every event variant."""

    title: str
    all_day: bool = Field(default=False, alias="allDay")
    timezone: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def drop_times_for_all_day(cls, data: Any) -> Any:
        """All-day events never carry startTime/endTime."""
        if not isinstance(data, Mapping):
            return data
        all_day = data.get("allDay", data.get("all_day", False))
        if not all_day:
            return data

        cleaned = dict(data)
        dropped = [
            key for key in ("startTime", "start_time", "endTime", "end_time") if cleaned.pop(key, None)
        ]
        if dropped:
            logger.warning(
                "Dropping %s from all-day event %r", ", ".join(dropped), cleaned.get("title")
            )
        return cleaned

    def to_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, omitting optional fields that were never set."""
        data = self.model_dump(by_alias=True, exclude_unset=True)
        data["type"] = getattr(self, "type")
        return data


class SingleEvent(EventBase):
    """A one-off event on ``date`` (optionally spanning to ``end_date``)."""

    type: Literal["single"] = "single"
    date: str
    end_date: Optional[str] = Field(default=None, alias="endDate")


class RecurringEvent(EventBase):
    """A weekly series defined by a set of weekday codes."""

    type: Literal["recurring"] = "recurring"
    days_of_week: list[WeekdayCode] = Field(default_factory=list, alias="daysOfWeek")
    start_recur: Optional[str] = Field(default=None, alias="startRecur")
    end_recur: Optional[str] = Field(default=None, alias="endRecur")
    skip_dates: list[str] = Field(default_factory=list, alias="skipDates")

    @field_validator("days_of_week", mode="before")
    @classmethod
    def upper_case_codes(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [code.upper() if isinstance(code, str) else code for code in v]
        return v


class RRuleEvent(EventBase):
    """A series defined by RFC5545 RRULE text.

    ``start_date`` is either a bare date (time in ``start_time``) or an ISO
    datetime with the time embedded.
    """

    type: Literal["rrule"] = "rrule"
    start_date: str = Field(alias="startDate")
    rrule: str
    skip_dates: list[str] = Field(default_factory=list, alias="skipDates")

    @property
    def has_embedded_time(self) -> bool:
        return "T" in self.start_date


CalendarEvent = Annotated[
    Union[SingleEvent, RecurringEvent, RRuleEvent],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[CalendarEvent] = TypeAdapter(CalendarEvent)


def parse_event(data: Mapping[str, Any]) -> Union[SingleEvent, RecurringEvent, RRuleEvent]:
    """Build the matching event model from a plain mapping.

    A mapping without ``type`` is read as a single event.

    Raises:
        pydantic.ValidationError: If the mapping does not describe a valid event
    """
    payload = dict(data)
    payload.setdefault("type", "single")
    return _event_adapter.validate_python(payload)
