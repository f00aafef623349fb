from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from .timer import TimerMode

logger = logging.getLogger(__name__)

PREFERENCES_PATH_ENV = "TIMEPIECE_PREFERENCES_PATH"


class Theme(StrEnum):
    DIURNAL = "diurnal"
    NOCTURNAL = "nocturnal"

    def toggled(self) -> "Theme":
        return Theme.NOCTURNAL if self is Theme.DIURNAL else Theme.DIURNAL


@dataclass(slots=True)
class Preferences:
    """Shell preferences. Timer values are deliberately absent."""

    theme: Theme = Theme.DIURNAL
    immersive: bool = False
    mode: TimerMode = TimerMode.CLOCK

    def to_dict(self) -> dict[str, Any]:
        return {
            "theme": str(self.theme),
            "immersive": bool(self.immersive),
            "mode": str(self.mode),
        }

    @classmethod
    def from_dict(cls, data: object) -> "Preferences":
        if not isinstance(data, dict):
            return cls()
        try:
            theme = Theme(str(data.get("theme", Theme.DIURNAL)))
        except ValueError:
            theme = Theme.DIURNAL
        try:
            mode = TimerMode(str(data.get("mode", TimerMode.CLOCK)))
        except ValueError:
            mode = TimerMode.CLOCK
        immersive = data.get("immersive", False)
        if not isinstance(immersive, bool):
            immersive = False
        return cls(theme=theme, immersive=immersive, mode=mode)


class PreferencesStore:
    _version = 1

    def __init__(self, path: Path) -> None:
        self._path = path
        self._prefs = Preferences()
        self._load()

    @classmethod
    def default_path(cls) -> Path:
        explicit = os.environ.get(PREFERENCES_PATH_ENV)
        if explicit:
            return Path(explicit).expanduser()
        return Path.home() / ".timepiece_preferences.json"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def preferences(self) -> Preferences:
        return Preferences(theme=self._prefs.theme, immersive=self._prefs.immersive, mode=self._prefs.mode)

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preferences at %s: %s", self._path, exc)
            return
        if not isinstance(payload, dict):
            return
        self._prefs = Preferences.from_dict(payload.get("preferences"))

    def save(self) -> None:
        payload = {
            "version": self._version,
            "preferences": self._prefs.to_dict(),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            logger.warning("Could not save preferences to %s: %s", self._path, exc)

    def toggle_theme(self) -> Theme:
        self._prefs.theme = self._prefs.theme.toggled()
        self.save()
        return self._prefs.theme

    def set_immersive(self, engaged: bool) -> None:
        if self._prefs.immersive == bool(engaged):
            return
        self._prefs.immersive = bool(engaged)
        self.save()

    def set_mode(self, mode: TimerMode) -> None:
        mode = TimerMode(mode)
        if self._prefs.mode is mode:
            return
        self._prefs.mode = mode
        self.save()
