"""Configuration management for calendarzone."""

from __future__ import annotations

import contextlib
import logging
import os
import zoneinfo
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_NOTICE_DURATION_MS = 10_000
DEFAULT_SETTINGS_FILENAME = "timezone_settings.json"


def default_settings_path() -> Path:
    """Return the per-user location of the persisted timezone settings."""
    return Path.home() / ".config" / "calendarzone" / DEFAULT_SETTINGS_FILENAME


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment to avoid
        surprising overrides of user's environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []

        try:
            content = self.env_file_path.read_text(encoding="utf-8")

            for raw_line in content.splitlines():
                line = raw_line.strip()

                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue

                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")

                if key and key not in os.environ:
                    os.environ[key] = val
                    set_keys.append(key)

            if set_keys:
                logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        except OSError:
            logger.debug(
                "Failed to read .env file for defaults (continuing): %s",
                str(self.env_file_path),
                exc_info=True,
            )

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from environment variables.

        Recognizes:
        - CALENDARZONE_SETTINGS_FILE -> 'settings_file' (Path)
        - CALENDARZONE_DISPLAY_TIMEZONE -> 'display_timezone' (validated, else 'utc')
        - CALENDARZONE_LOG_LEVEL -> 'log_level'
        - CALENDARZONE_NOTICE_DURATION_MS -> 'notice_duration_ms' (int)

        Returns:
            Configuration dictionary; missing keys fall back to defaults
        """
        cfg: dict[str, Any] = {
            "settings_file": default_settings_path(),
            "notice_duration_ms": DEFAULT_NOTICE_DURATION_MS,
        }

        settings_file = os.environ.get("CALENDARZONE_SETTINGS_FILE")
        if settings_file:
            cfg["settings_file"] = Path(settings_file).expanduser()

        if os.environ.get("CALENDARZONE_DISPLAY_TIMEZONE"):
            cfg["display_timezone"] = get_default_timezone()

        log_level = os.environ.get("CALENDARZONE_LOG_LEVEL")
        if log_level:
            cfg["log_level"] = log_level.upper()

        duration = os.environ.get("CALENDARZONE_NOTICE_DURATION_MS")
        if duration:
            try:
                cfg["notice_duration_ms"] = int(duration)
            except ValueError:
                logger.warning("Invalid CALENDARZONE_NOTICE_DURATION_MS=%r; ignoring", duration)

        return cfg

    def load_full_config(self) -> dict[str, Any]:
        """Load .env file and build configuration from environment.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return self.build_config_from_env()


def get_default_timezone(fallback: str = "utc") -> str:
    """Get the configured display timezone with validation.

    Args:
        fallback: Returned when CALENDARZONE_DISPLAY_TIMEZONE is unset or invalid

    Returns:
        Timezone identifier accepted by ``load_zone``
    """
    timezone = os.environ.get("CALENDARZONE_DISPLAY_TIMEZONE", fallback)
    if timezone.lower() == "utc":
        return timezone

    try:
        zoneinfo.ZoneInfo(timezone)
        return timezone
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.warning("Invalid timezone %r, falling back to %r", timezone, fallback)
        return fallback


def get_config_value(config: Any, key: str, default: Any = None) -> Any:
    """Get configuration value supporting both dict and attribute-style objects."""
    if isinstance(config, dict):
        return config.get(key, default)
    with contextlib.suppress(AttributeError):
        return getattr(config, key)
    return default
