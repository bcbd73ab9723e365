"""calendarzone - timezone conversion core for calendar events.

Converts single, weekday-set and RRULE events between zones, corrects
recurrence expansion per occurrence at display time, and tracks host
timezone changes across restarts.
"""

__version__ = "0.1.0"

from typing import Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors CALENDARZONE_DEBUG (truthy values: "1", "true", "yes", "on"),
    which forces DEBUG verbosity regardless of ``level_name``.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("CALENDARZONE_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none is present to avoid duplicate output
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message, with only the level colorized
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug("Logging initialized at level %s", logging.getLevelName(level))


from calendarzone.calendar.models import (  # noqa: E402
    CalendarEvent,
    RecurringEvent,
    RRuleEvent,
    SingleEvent,
    parse_event,
)
from calendarzone.conversion.converter import convert, convert_event  # noqa: E402
from calendarzone.core.timezone_utils import normalize_timezone  # noqa: E402
from calendarzone.domain.timezone_monitor import manage_timezone  # noqa: E402
from calendarzone.expansion.occurrence_patch import patch_expansion  # noqa: E402

__all__ = [
    "CalendarEvent",
    "RRuleEvent",
    "RecurringEvent",
    "SingleEvent",
    "__version__",
    "convert",
    "convert_event",
    "manage_timezone",
    "normalize_timezone",
    "parse_event",
    "patch_expansion",
]
