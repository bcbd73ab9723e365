"""JSON-backed persisted settings blob with atomic writes."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from calendarzone.exceptions import SettingsStoreError

logger = logging.getLogger(__name__)


class TimezoneSettings(BaseModel):
    """Persisted settings read and written by the timezone monitor.

    Other keys stored alongside these two are kept and written back as-is.
    """

    last_system_timezone: Optional[str] = Field(default=None, alias="lastSystemTimezone")
    display_timezone: Optional[str] = Field(default=None, alias="displayTimezone")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_dict(self) -> dict[str, object]:
        """Dump using the persisted camelCase key names."""
        return self.model_dump(by_alias=True)


class SettingsStore:
    """Persistent settings file.

    The on-disk format is a single JSON object. Reads never raise: a missing
    or corrupt file yields default settings. Writes are atomic.
    """

    def __init__(self, path: str | Path) -> None:
        """Create a SettingsStore.

        Args:
            path: Location of the JSON file; parent directories are created on save
        """
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TimezoneSettings:
        """Load settings from disk, returning defaults when absent or unreadable."""
        with self._lock:
            if not self._path.exists():
                logger.debug("Settings file not found; using defaults: %s", self._path)
                return TimezoneSettings()

            try:
                with self._path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
                if not isinstance(data, dict):
                    raise ValueError("settings JSON root must be an object")  # noqa: TRY004
                return TimezoneSettings.model_validate(data)
            except (OSError, ValueError, ValidationError) as exc:
                logger.warning("Failed to read settings %s: %s", self._path, exc)
                return TimezoneSettings()

    def save(self, settings: TimezoneSettings) -> None:
        """Persist ``settings`` atomically.

        Writes to a temporary file in the same directory then replaces the
        target, so readers never observe a half-written file.

        Raises:
            SettingsStoreError: If the file cannot be written
        """
        data = settings.to_dict()

        with self._lock:
            tmp_path: Path | None = None
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w", dir=self._path.parent, delete=False, encoding="utf-8"
                ) as tf:
                    tmp_path = Path(tf.name)
                    json.dump(data, tf, ensure_ascii=False, indent=2)
                    tf.flush()
                    with contextlib.suppress(OSError):
                        os.fsync(tf.fileno())

                tmp_path.replace(self._path)
            except OSError as exc:
                if tmp_path is not None:
                    with contextlib.suppress(OSError):
                        tmp_path.unlink()
                raise SettingsStoreError(f"Failed to persist settings to {self._path}: {exc}") from exc

        logger.debug("Persisted settings to %s", self._path)
