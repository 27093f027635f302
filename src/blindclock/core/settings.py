"""Clock settings: sound toggles plus opaque display fields for observers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from blindclock.core.levels import to_number

DEFAULT_SOUND_ID = "beep3"

DEFAULT_SOUND_MAP = {
    "alert60": "beep3",
    "alert10": "triangle",
    "level_change": "levelup",
    "break_start": "gong",
    "break_end": "bell",
}

DEFAULT_DISPLAY = {
    "tournament_name": "Poker Tournament",
    "subtitle": "Main Event",
}

_TOGGLES = ("sounds_enabled", "enable_alerts", "enable_level_change_sound", "enable_break_sounds")

# Keys handled by the clock itself rather than stored as display fields.
CONTROL_KEYS = frozenset({"levels", "alert_seconds", "alertSeconds", "tick_interval"})


def _clamp_volume(value: float) -> float:
    return min(1.0, max(0.0, value))


@dataclass
class Settings:
    """Everything the clock stores for its observers but does not time by.

    ``display`` holds pass-through fields (tournament name, player counts,
    theme, asset paths...) that are rebroadcast without interpretation.
    """

    sounds_enabled: bool = True
    enable_alerts: bool = True
    enable_level_change_sound: bool = True
    enable_break_sounds: bool = True
    sound_volume: float = 0.5
    sound_map: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SOUND_MAP))
    display: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_DISPLAY))

    def update(self, payload: Mapping[str, Any]) -> None:
        """Apply the recognised keys of *payload*; unknown keys become display fields.

        Values of the wrong type for a known key are ignored.
        """
        for key, value in payload.items():
            if key in CONTROL_KEYS:
                continue
            if key in _TOGGLES:
                if isinstance(value, bool):
                    setattr(self, key, value)
            elif key == "sound_volume":
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    volume = to_number(value)
                    if volume is not None:
                        self.sound_volume = _clamp_volume(volume)
            elif key == "sound_map":
                if isinstance(value, Mapping):
                    self.sound_map.update({str(k): str(v) for k, v in value.items()})
            else:
                self.display[key] = value

    def sound_for(self, kind: str) -> str:
        return self.sound_map.get(kind, DEFAULT_SOUND_ID)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sounds_enabled": self.sounds_enabled,
            "enable_alerts": self.enable_alerts,
            "enable_level_change_sound": self.enable_level_change_sound,
            "enable_break_sounds": self.enable_break_sounds,
            "sound_volume": self.sound_volume,
            "sound_map": dict(self.sound_map),
            "display": dict(self.display),
        }
