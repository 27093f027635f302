"""Transition engine — the level/timer state machine of the clock."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from blindclock.core.alerts import should_fire
from blindclock.core.clock import remaining_now
from blindclock.core.levels import (
    DEFAULT_ALERT_THRESHOLDS,
    DEFAULT_SCHEDULE,
    Level,
    normalize_alert_thresholds,
    normalize_schedule,
)

logger = logging.getLogger(__name__)


class TimerStatus(str, Enum):
    """Possible states of the clock."""

    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class AdvanceMode(str, Enum):
    """What asked for a level change.  ``RESET`` changes are silent."""

    RESET = "reset"
    MANUAL = "manual"
    AUTO = "auto"


# -- signals -----------------------------------------------------------------


@dataclass(frozen=True)
class LevelChanged:
    index: int
    mode: AdvanceMode


@dataclass(frozen=True)
class BreakEntered:
    index: int


@dataclass(frozen=True)
class BreakExited:
    index: int


@dataclass(frozen=True)
class AlertFired:
    threshold: int
    remaining: int


@dataclass(frozen=True)
class ScheduleComplete:
    """The last level ran out (or was skipped); the clock stopped on it."""

    index: int


Signal = Union[LevelChanged, BreakEntered, BreakExited, AlertFired, ScheduleComplete]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one engine call.

    ``accepted`` is false when the command did not apply to the current
    status (e.g. ``pause`` while stopped); nothing was changed then.
    """

    accepted: bool
    signals: tuple[Signal, ...] = ()


_REJECTED = CommandResult(accepted=False)


# -- state -------------------------------------------------------------------


@dataclass
class TimerState:
    """The canonical clock state.  Only :class:`TransitionEngine` mutates it."""

    schedule: tuple[Level, ...]
    alert_thresholds: tuple[int, ...]
    status: TimerStatus = TimerStatus.STOPPED
    current_level_index: int = 0
    remaining_seconds: int = 0
    run_started_at: float | None = None
    paused_offset: int = 0
    last_observed_remaining: int | None = field(default=None, compare=False)

    @classmethod
    def initial(
        cls,
        schedule: Any = DEFAULT_SCHEDULE,
        alert_thresholds: Any = DEFAULT_ALERT_THRESHOLDS,
    ) -> TimerState:
        levels = normalize_schedule(schedule)
        return cls(
            schedule=levels,
            alert_thresholds=normalize_alert_thresholds(alert_thresholds),
            remaining_seconds=levels[0].duration_seconds,
        )

    @property
    def current_level(self) -> Level:
        return self.schedule[self.current_level_index]

    @property
    def next_level(self) -> Level | None:
        index = self.current_level_index + 1
        return self.schedule[index] if index < len(self.schedule) else None

    def to_dict(self) -> dict[str, Any]:
        next_level = self.next_level
        return {
            "status": self.status.value,
            "current_level_index": self.current_level_index,
            "remaining_seconds": self.remaining_seconds,
            "schedule": [level.to_dict() for level in self.schedule],
            "alert_thresholds": list(self.alert_thresholds),
            "current_level": self.current_level.to_dict(),
            "next_level": next_level.to_dict() if next_level is not None else None,
        }


# -- engine ------------------------------------------------------------------


class TransitionEngine:
    """Applies control commands and clock ticks to a :class:`TimerState`.

    Holds no timers and performs no I/O: every call takes an optional
    ``now`` (defaulting to ``time.monotonic()``) and returns the signals the
    transition produced, in order, for a dispatcher to forward.
    """

    def __init__(self, state: TimerState) -> None:
        self._state = state

    @property
    def state(self) -> TimerState:
        return self._state

    # -- control commands ----------------------------------------------------

    def start(self, now: float | None = None) -> CommandResult:
        """Run the current level from its full duration."""
        state = self._state
        state.status = TimerStatus.RUNNING
        state.run_started_at = self._now(now)
        state.paused_offset = 0
        state.remaining_seconds = state.current_level.duration_seconds
        state.last_observed_remaining = None
        logger.info(f"Clock started at level {state.current_level_index}")
        return CommandResult(accepted=True)

    def pause(self, now: float | None = None) -> CommandResult:
        """Freeze the countdown.  Valid only while running."""
        state = self._state
        if state.status is not TimerStatus.RUNNING:
            return _REJECTED

        state.remaining_seconds = self._remaining(self._now(now))
        state.paused_offset = state.current_level.duration_seconds - state.remaining_seconds
        state.run_started_at = None
        state.status = TimerStatus.PAUSED
        logger.info(f"Clock paused with {state.remaining_seconds}s remaining")
        return CommandResult(accepted=True)

    def resume(self, now: float | None = None) -> CommandResult:
        """Continue a paused countdown from where it stopped.  Valid only while paused."""
        state = self._state
        if state.status is not TimerStatus.PAUSED:
            return _REJECTED

        # paused_offset is kept; alert edge memory too, so resuming exactly on a
        # threshold does not announce it a second time.
        state.run_started_at = self._now(now)
        state.status = TimerStatus.RUNNING
        logger.info(f"Clock resumed with {state.remaining_seconds}s remaining")
        return CommandResult(accepted=True)

    def reset(self, now: float | None = None) -> CommandResult:
        """Stop and rewind to the first level without emitting transition signals."""
        self._state.status = TimerStatus.STOPPED
        self.goto_level(0, AdvanceMode.RESET, now)
        logger.info("Clock reset")
        return CommandResult(accepted=True)

    def next_level(self, now: float | None = None) -> CommandResult:
        return self.goto_level(self._state.current_level_index + 1, AdvanceMode.MANUAL, now)

    def prev_level(self, now: float | None = None) -> CommandResult:
        return self.goto_level(self._state.current_level_index - 1, AdvanceMode.MANUAL, now)

    def set_schedule(self, raw_levels: Any, now: float | None = None) -> CommandResult:
        """Install a new schedule; any run in progress is discarded."""
        self._state.schedule = normalize_schedule(raw_levels)
        # The old index may not exist in the new schedule.
        self._state.current_level_index = 0
        logger.info(f"Schedule replaced with {len(self._state.schedule)} levels")
        return self.reset(now)

    def set_alert_thresholds(self, raw: Any) -> CommandResult:
        self._state.alert_thresholds = normalize_alert_thresholds(raw)
        return CommandResult(accepted=True)

    # -- transitions ---------------------------------------------------------

    def goto_level(
        self,
        index: int,
        mode: AdvanceMode = AdvanceMode.MANUAL,
        now: float | None = None,
    ) -> CommandResult:
        """Move to level *index*, clamping out-of-range targets.

        Going past the last level completes the event: the clock stops on the
        last level with its full duration restored.
        """
        state = self._state
        last_index = len(state.schedule) - 1
        index = max(0, index)

        if index > last_index:
            state.current_level_index = last_index
            state.remaining_seconds = state.current_level.duration_seconds
            state.status = TimerStatus.STOPPED
            state.run_started_at = None
            state.paused_offset = 0
            state.last_observed_remaining = None
            logger.info(f"Schedule complete at level {last_index}")
            return CommandResult(accepted=True, signals=(ScheduleComplete(last_index),))

        was_break = state.current_level.is_break
        state.current_level_index = index
        level = state.current_level
        state.remaining_seconds = level.duration_seconds
        state.paused_offset = 0
        # Readings from the previous level must not count as an edge on this one.
        state.last_observed_remaining = None
        state.run_started_at = self._now(now) if state.status is TimerStatus.RUNNING else None

        if mode is AdvanceMode.RESET:
            return CommandResult(accepted=True)

        logger.info(f"Level {index} ({mode.value}){' break' if level.is_break else ''}")
        signals: list[Signal] = [LevelChanged(index, mode)]
        if level.is_break and not was_break:
            signals.append(BreakEntered(index))
        elif was_break and not level.is_break:
            signals.append(BreakExited(index))
        return CommandResult(accepted=True, signals=tuple(signals))

    def tick(self, now: float | None = None) -> CommandResult:
        """Re-evaluate the running level: alert on crossings, advance on expiry."""
        state = self._state
        if state.status is not TimerStatus.RUNNING:
            return _REJECTED

        now = self._now(now)
        remaining = self._remaining(now)
        signals: list[Signal] = []

        threshold = should_fire(state.last_observed_remaining, remaining, state.alert_thresholds)
        if threshold is not None:
            logger.info(f"Alert threshold {threshold}s crossed at {remaining}s remaining")
            signals.append(AlertFired(threshold, remaining))
        state.last_observed_remaining = remaining

        if remaining <= 0:
            signals.extend(self.goto_level(state.current_level_index + 1, AdvanceMode.AUTO, now).signals)
        else:
            state.remaining_seconds = remaining
        return CommandResult(accepted=True, signals=tuple(signals))

    # -- private helpers -----------------------------------------------------

    def _remaining(self, now: float) -> int:
        state = self._state
        return remaining_now(state.current_level, state.run_started_at, state.paused_offset, now)

    @staticmethod
    def _now(now: float | None) -> float:
        return time.monotonic() if now is None else now
