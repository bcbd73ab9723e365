"""Detect host timezone drift across restarts and reset the display timezone."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Optional, Protocol

from calendarzone.core.config_manager import DEFAULT_NOTICE_DURATION_MS
from calendarzone.core.settings_store import SettingsStore, TimezoneSettings
from calendarzone.core.timezone_utils import get_system_timezone

logger = logging.getLogger(__name__)

TIMEZONE_CHANGED_NOTICE = "System timezone changed to {timezone}. Calendar view updated to match."


class SettingsContext(Protocol):
    """What the monitor needs from its host application."""

    settings: TimezoneSettings

    async def save_settings(self, settings: TimezoneSettings) -> None:
        """Persist settings."""
        ...

    def notify(self, message: str, duration_ms: int) -> None:
        """Show a user-facing notice. May raise."""
        ...


class MonitorState(str, Enum):
    """Persisted-settings state the monitor reasons about."""

    UNINITIALIZED = "uninitialized"
    STABLE = "stable"


class MonitorOutcome(str, Enum):
    """What a single check did."""

    INITIALIZED = "initialized"
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    SKIPPED = "skipped"


class SystemTimezoneMonitor:
    """Compare the host timezone against the last one persisted.

    - Uninitialized settings are seeded with the host zone, silently.
    - An unchanged host zone leaves the user's display zone alone.
    - A changed host zone forces the display zone to it, persists, then
      notifies the user.
    """

    def __init__(
        self,
        detect_timezone: Callable[[], str] = get_system_timezone,
        notice_duration_ms: int = DEFAULT_NOTICE_DURATION_MS,
    ) -> None:
        self._detect_timezone = detect_timezone
        self.notice_duration_ms = notice_duration_ms

    @staticmethod
    def state_of(settings: TimezoneSettings) -> MonitorState:
        if not settings.last_system_timezone or not settings.display_timezone:
            return MonitorState.UNINITIALIZED
        return MonitorState.STABLE

    async def check(self, context: SettingsContext) -> MonitorOutcome:
        """Run the state machine once against ``context``."""
        try:
            system_tz = self._detect_timezone()
        except Exception:
            # Host lookups fail in many platform-specific ways; none may block startup
            logger.warning("System timezone detection failed; skipping check", exc_info=True)
            return MonitorOutcome.SKIPPED

        settings = context.settings

        if self.state_of(settings) is MonitorState.UNINITIALIZED:
            settings.last_system_timezone = system_tz
            settings.display_timezone = system_tz
            await self._persist(context, settings)
            logger.info("Initialized timezone settings to %s", system_tz)
            return MonitorOutcome.INITIALIZED

        if settings.last_system_timezone == system_tz:
            logger.debug("System timezone unchanged (%s)", system_tz)
            return MonitorOutcome.UNCHANGED

        previous = settings.last_system_timezone
        settings.display_timezone = system_tz
        settings.last_system_timezone = system_tz
        await self._persist(context, settings)
        logger.info("System timezone changed from %s to %s; display timezone reset", previous, system_tz)

        try:
            context.notify(TIMEZONE_CHANGED_NOTICE.format(timezone=system_tz), self.notice_duration_ms)
        except Exception:
            logger.warning("Failed to show timezone change notice", exc_info=True)

        return MonitorOutcome.CHANGED

    async def _persist(self, context: SettingsContext, settings: TimezoneSettings) -> None:
        try:
            await context.save_settings(settings)
        except Exception:
            logger.exception("Failed to persist timezone settings")


class JsonSettingsContext:
    """SettingsContext backed by a SettingsStore, with notices sent to the log."""

    def __init__(
        self,
        store: SettingsStore,
        notifier: Optional[Callable[[str, int], None]] = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self.settings = store.load()

    async def save_settings(self, settings: TimezoneSettings) -> None:
        await asyncio.to_thread(self._store.save, settings)

    def notify(self, message: str, duration_ms: int) -> None:
        if self._notifier is not None:
            self._notifier(message, duration_ms)
            return
        logger.warning("%s", message)


async def manage_timezone(
    context: SettingsContext,
    monitor: Optional[SystemTimezoneMonitor] = None,
) -> MonitorOutcome:
    """Run the system timezone check once (convenience function)."""
    return await (monitor or SystemTimezoneMonitor()).check(context)
