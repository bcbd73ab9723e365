"""Host timezone tracking."""

from .timezone_monitor import JsonSettingsContext, SystemTimezoneMonitor, manage_timezone

__all__ = ["JsonSettingsContext", "SystemTimezoneMonitor", "manage_timezone"]
