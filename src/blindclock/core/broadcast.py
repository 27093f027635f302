"""Outbound side of the clock: observers, and the signal-to-sound dispatcher."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from blindclock.core.engine import (
    AlertFired,
    BreakEntered,
    BreakExited,
    LevelChanged,
    Signal,
)
from blindclock.core.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SoundEvent:
    """A request for the audio layer to play *sound_id*."""

    kind: str
    sound_id: str
    volume: float


class Broadcaster(Protocol):
    """Anything that delivers clock output to observers."""

    def publish_state(self, snapshot: dict[str, Any]) -> None: ...

    def publish_signal(self, signal: Signal) -> None: ...

    def publish_sound(self, event: SoundEvent) -> None: ...


class RecordingBroadcaster:
    """Keeps every published message, in order, as ``(channel, payload)`` pairs."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, Any]] = []

    def publish_state(self, snapshot: dict[str, Any]) -> None:
        self.messages.append(("state", snapshot))

    def publish_signal(self, signal: Signal) -> None:
        self.messages.append(("signal", signal))

    def publish_sound(self, event: SoundEvent) -> None:
        self.messages.append(("sound", event))

    def of(self, channel: str) -> list[Any]:
        return [payload for name, payload in self.messages if name == channel]

    def clear(self) -> None:
        self.messages.clear()


class FanoutBroadcaster:
    """Forwards every message to all subscribed observers.

    An observer that raises is logged and skipped; the others still receive
    the message.
    """

    def __init__(self, observers: Iterable[Broadcaster] = ()) -> None:
        self._observers: list[Broadcaster] = list(observers)

    def subscribe(self, observer: Broadcaster) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: Broadcaster) -> None:
        self._observers.remove(observer)

    def publish_state(self, snapshot: dict[str, Any]) -> None:
        self._deliver("publish_state", snapshot)

    def publish_signal(self, signal: Signal) -> None:
        self._deliver("publish_signal", signal)

    def publish_sound(self, event: SoundEvent) -> None:
        self._deliver("publish_sound", event)

    def _deliver(self, method: str, payload: Any) -> None:
        for observer in list(self._observers):
            try:
                getattr(observer, method)(payload)
            except Exception:
                logger.exception(f"Observer {observer!r} failed in {method}")


def sound_kind(signal: Signal, settings: Settings) -> str | None:
    """Return the sound kind for *signal*, or ``None`` if it should stay silent."""
    if not settings.sounds_enabled:
        return None
    if isinstance(signal, AlertFired):
        return f"alert{signal.threshold}" if settings.enable_alerts else None
    if isinstance(signal, LevelChanged):
        return "level_change" if settings.enable_level_change_sound else None
    if isinstance(signal, BreakEntered):
        return "break_start" if settings.enable_break_sounds else None
    if isinstance(signal, BreakExited):
        return "break_end" if settings.enable_break_sounds else None
    return None


class SignalDispatcher:
    """Forwards engine signals to a broadcaster, adding sound events per settings."""

    def __init__(self, settings: Settings, broadcaster: Broadcaster) -> None:
        self._settings = settings
        self._broadcaster = broadcaster

    def dispatch(self, signals: Iterable[Signal]) -> None:
        for signal in signals:
            self._broadcaster.publish_signal(signal)
            kind = sound_kind(signal, self._settings)
            if kind is not None:
                self._broadcaster.publish_sound(
                    SoundEvent(kind, self._settings.sound_for(kind), self._settings.sound_volume)
                )

    def broadcast_state(self, snapshot: dict[str, Any]) -> None:
        self._broadcaster.publish_state(snapshot)
