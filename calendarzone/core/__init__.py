"""Timezone lookup, configuration and settings persistence."""

from .settings_store import SettingsStore, TimezoneSettings
from .timezone_utils import load_zone, normalize_timezone

__all__ = ["SettingsStore", "TimezoneSettings", "load_zone", "normalize_timezone"]
