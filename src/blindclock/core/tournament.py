"""Tournament clock — wires the engine, the ticker and the observers together."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from blindclock.core.broadcast import Broadcaster, FanoutBroadcaster, SignalDispatcher
from blindclock.core.config import ClockConfig
from blindclock.core.engine import CommandResult, TimerState, TimerStatus, TransitionEngine
from blindclock.core.scheduler import Ticker
from blindclock.core.settings import Settings

logger = logging.getLogger(__name__)

_ALERT_KEYS = ("alert_seconds", "alertSeconds")


def format_remaining(seconds: int) -> str:
    """Format *seconds* as ``M:SS``."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def describe_snapshot(snapshot: Mapping[str, Any]) -> str:
    """One-line human summary of the current level and time left."""
    level = snapshot["current_level"]
    if level["is_break"]:
        label = "BREAK"
    else:
        label = f"{level['small_blind']}/{level['big_blind']}"
        if level["ante"]:
            label += f" ante {level['ante']}"
    return (
        f"Level {snapshot['current_level_index'] + 1}/{len(snapshot['schedule'])} {label} "
        f"{format_remaining(snapshot['remaining_seconds'])} [{snapshot['status']}]"
    )


class TournamentClock:
    """One clock instance: its state, its single ticker and its observers.

    Every command runs to completion before the next command or tick, then
    the transition signals are dispatched and a full snapshot is broadcast.
    Whatever the command did, the ticker is left running exactly when the
    status is ``running``.

    The facade is meant to live on an asyncio event loop.  With the default
    :class:`Ticker`, a command that leaves the clock running (``start``,
    ``resume``, a level change while running) raises ``RuntimeError`` when
    no loop is running; the state has changed by then but nothing was
    broadcast, so call ``reset`` before retrying from a loop.
    """

    def __init__(
        self,
        config: ClockConfig | None = None,
        broadcaster: Broadcaster | None = None,
        ticker_factory: Callable[[Callable[[], object], float], Ticker] = Ticker,
    ) -> None:
        config = config if config is not None else ClockConfig()
        self._state = TimerState.initial(config.schedule, config.alert_thresholds)
        self._engine = TransitionEngine(self._state)
        self._settings = Settings()
        self._settings.update(config.settings)
        self._observers = FanoutBroadcaster([broadcaster] if broadcaster is not None else [])
        self._dispatcher = SignalDispatcher(self._settings, self._observers)
        self._ticker = ticker_factory(self.tick, config.tick_interval)

    # -- read access ---------------------------------------------------------

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def ticker(self) -> Ticker:
        return self._ticker

    @property
    def status(self) -> TimerStatus:
        return self._state.status

    def snapshot(self) -> dict[str, Any]:
        snapshot = self._state.to_dict()
        snapshot["settings"] = self._settings.to_dict()
        return snapshot

    def subscribe(self, observer: Broadcaster) -> None:
        """Add *observer* and send it the current snapshot right away."""
        self._observers.subscribe(observer)
        observer.publish_state(self.snapshot())

    def unsubscribe(self, observer: Broadcaster) -> None:
        self._observers.unsubscribe(observer)

    # -- control surface -----------------------------------------------------

    def start(self, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.start(now))

    def pause(self, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.pause(now))

    def resume(self, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.resume(now))

    def reset(self, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.reset(now))

    def next_level(self, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.next_level(now))

    def prev_level(self, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.prev_level(now))

    def set_schedule(self, levels: Any, now: float | None = None) -> CommandResult:
        return self._apply(lambda: self._engine.set_schedule(levels, now))

    def set_alert_thresholds(self, seconds: Any) -> CommandResult:
        return self._apply(lambda: self._engine.set_alert_thresholds(seconds))

    def update_settings(self, payload: Mapping[str, Any]) -> CommandResult:
        """Merge *payload* into the settings without touching the countdown."""

        def command() -> CommandResult:
            self._settings.update(payload)
            for key in _ALERT_KEYS:
                if key in payload:
                    return self._engine.set_alert_thresholds(payload[key])
            return CommandResult(accepted=True)

        return self._apply(command)

    def apply_payload(self, payload: Mapping[str, Any], now: float | None = None) -> CommandResult:
        """Reconfigure from a full admin payload and rewind to a stopped first level."""

        def command() -> CommandResult:
            self._settings.update(payload)
            for key in _ALERT_KEYS:
                if key in payload:
                    self._engine.set_alert_thresholds(payload[key])
                    break
            levels = payload.get("levels")
            if not isinstance(levels, (list, tuple)):
                levels = self._state.schedule
            return self._engine.set_schedule(levels, now)

        return self._apply(command)

    def tick(self, now: float | None = None) -> CommandResult:
        """Scheduler entry point; a no-op unless the clock is running."""
        return self._apply(lambda: self._engine.tick(now))

    # -- private helpers -----------------------------------------------------

    def _apply(self, command: Callable[[], CommandResult]) -> CommandResult:
        try:
            result = command()
        finally:
            self._sync_ticker()

        if result.accepted:
            self._dispatcher.dispatch(result.signals)
            self._dispatcher.broadcast_state(self.snapshot())
        else:
            logger.debug(f"Command ignored in {self._state.status.value} state")
        return result

    def _sync_ticker(self) -> None:
        if self._state.status is TimerStatus.RUNNING:
            self._ticker.start()
        else:
            self._ticker.stop()
