"""Eager conversion of stored events between timezones."""

from .converter import convert, convert_event
from .rrule import shift_byday
from .skip_dates import translate_skip_dates

__all__ = ["convert", "convert_event", "shift_byday", "translate_skip_dates"]
