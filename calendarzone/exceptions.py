"""Exception hierarchy for calendarzone.

These exceptions are raised by internal helpers and caught at each converter
boundary. Public entry points degrade to "return something usable" instead of
letting them escape, so callers normally only see them when using the helper
modules directly.
"""


class CalendarZoneError(Exception):
    """Base exception for all calendarzone errors."""


class TimeParseError(CalendarZoneError):
    """A time-of-day string matched neither supported format.

    Raised when:
    - The text is not ``HH:mm`` (24-hour)
    - The text is not ``h:mm a`` (12-hour with AM/PM)
    """


class RRuleParseError(CalendarZoneError):
    """RRULE text could not be parsed.

    Raised when:
    - The rule is empty or has no FREQ component
    - A BYDAY token does not follow the RFC5545 weekday grammar
    - dateutil rejects the rule text
    """


class TimezoneLookupError(CalendarZoneError):
    """A timezone identifier could not be resolved to a loadable zone.

    Raised when:
    - The name is neither an IANA identifier, a known alias, nor a known
      Windows display name
    - An iCalendar value cannot be interpreted even with a UTC fallback
    """


class SettingsStoreError(CalendarZoneError):
    """Persisted settings could not be read or written."""
