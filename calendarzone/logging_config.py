"""
Central logging configuration for calendarzone.

Sets module logger levels for the conversion core and quiets third-party
libraries that log parsing details at DEBUG.
"""

import logging
import os
from typing import Optional

PACKAGE_MODULES = [
    "calendarzone",
    "calendarzone.calendar.models",
    "calendarzone.conversion",
    "calendarzone.expansion.occurrence_patch",
    "calendarzone.domain.timezone_monitor",
    "calendarzone.core.settings_store",
]

THIRD_PARTY_LEVELS: dict[str, int] = {
    "asyncio": logging.WARNING,
    "icalendar": logging.INFO,
    "tzlocal": logging.WARNING,
}


def _env_debug() -> bool:
    return os.getenv("CALENDARZONE_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging levels for calendarzone modules.

    Args:
        debug_mode: Whether to enable debug logging for calendarzone modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        CALENDARZONE_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        CALENDARZONE_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_log_level = os.getenv("CALENDARZONE_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif _env_debug():
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    # Keep whatever handlers _init_logging installed
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s"))
        root_logger.addHandler(handler)

    logger_config = dict(THIRD_PARTY_LEVELS)
    package_level = logging.DEBUG if final_debug else logging.INFO
    for module in PACKAGE_MODULES:
        logger_config[module] = package_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.debug("Debug logging enabled for calendarzone modules")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ["calendarzone", *THIRD_PARTY_LEVELS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
