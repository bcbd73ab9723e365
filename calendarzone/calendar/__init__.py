"""Calendar event models and time-of-day parsing."""

from .models import CalendarEvent, RecurringEvent, RRuleEvent, SingleEvent, parse_event
from .time_parser import TimeOfDay, parse_time

__all__ = [
    "CalendarEvent",
    "RRuleEvent",
    "RecurringEvent",
    "SingleEvent",
    "TimeOfDay",
    "parse_event",
    "parse_time",
]
