"""CLI entry point for blindclock.

Uses Click to expose the ``blindclock`` command group.  ``run`` drives a
:class:`TournamentClock` on an asyncio event loop and takes control commands
from stdin, one per line.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from dataclasses import replace
from pathlib import Path
from typing import IO, Any, Callable, TypeVar

import click

import blindclock
from blindclock.core.broadcast import SoundEvent
from blindclock.core.config import BlindclockError, ClockConfig, coerce_interval, load_config
from blindclock.core.engine import (
    AlertFired,
    BreakEntered,
    BreakExited,
    LevelChanged,
    ScheduleComplete,
    Signal,
    TimerStatus,
)
from blindclock.core.levels import normalize_alert_thresholds
from blindclock.core.tournament import TournamentClock, describe_snapshot, format_remaining

T = TypeVar("T")

COMMANDS: dict[str, Callable[[TournamentClock], Any]] = {
    "start": TournamentClock.start,
    "pause": TournamentClock.pause,
    "resume": TournamentClock.resume,
    "reset": TournamentClock.reset,
    "next": TournamentClock.next_level,
    "prev": TournamentClock.prev_level,
}

_QUIT_COMMANDS = frozenset({"quit", "exit"})


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting ``BlindclockError`` to a CLI error.

    On ``BlindclockError`` the message is printed to stderr and the
    process exits with code 1.
    """
    try:
        return action()
    except BlindclockError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)


def _load(config_path: Path | None, alerts: tuple[int, ...], interval: float | None) -> ClockConfig:
    config = load_config(config_path) if config_path is not None else ClockConfig()
    changes: dict[str, Any] = {}
    if alerts:
        changes["alert_thresholds"] = normalize_alert_thresholds(list(alerts))
    if interval is not None:
        changes["tick_interval"] = coerce_interval(interval)
    return replace(config, **changes)


def _describe_signal(signal: Signal) -> str | None:
    if isinstance(signal, AlertFired):
        return f"Alert: {format_remaining(signal.remaining)} left in level"
    if isinstance(signal, LevelChanged):
        return f"Level {signal.index + 1} ({signal.mode.value})"
    if isinstance(signal, BreakEntered):
        return "Break started"
    if isinstance(signal, BreakExited):
        return "Break over"
    if isinstance(signal, ScheduleComplete):
        return "Schedule complete"
    return None


class ConsoleObserver:
    """Renders clock output to the terminal."""

    def __init__(self, bell: bool = False) -> None:
        self._bell = bell

    def publish_state(self, snapshot: dict[str, Any]) -> None:
        click.echo(describe_snapshot(snapshot))

    def publish_signal(self, signal: Signal) -> None:
        message = _describe_signal(signal)
        if message is not None:
            click.echo(f"* {message}")

    def publish_sound(self, event: SoundEvent) -> None:
        if self._bell:
            click.echo("\a", nl=False)


class _CompletionObserver:
    """Queues a quit command when the schedule completes."""

    def __init__(self, queue: asyncio.Queue[str | None]) -> None:
        self._queue = queue

    def publish_state(self, snapshot: dict[str, Any]) -> None:
        pass

    def publish_signal(self, signal: Signal) -> None:
        if isinstance(signal, ScheduleComplete):
            self._queue.put_nowait("quit")

    def publish_sound(self, event: SoundEvent) -> None:
        pass


def _pump_lines(stream: IO[str], loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str | None]) -> None:
    """Feed *stream* into *queue* from a worker thread; ``None`` marks EOF."""
    try:
        for line in stream:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)
    except RuntimeError:
        # The event loop closed first; nothing is left to feed.
        return


async def _serve(config: ClockConfig, stream: IO[str], autostart: bool, exit_on_complete: bool, bell: bool) -> None:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    clock = TournamentClock(config)
    # Subscribing prints the initial status line.
    clock.subscribe(ConsoleObserver(bell=bell))
    if exit_on_complete:
        clock.subscribe(_CompletionObserver(queue))

    threading.Thread(target=_pump_lines, args=(stream, loop, queue), daemon=True).start()

    if autostart:
        clock.start()

    try:
        while True:
            line = await queue.get()
            if line is None:
                # stdin closed; with --exit-on-complete keep running until the schedule ends.
                if exit_on_complete and clock.status is TimerStatus.RUNNING:
                    continue
                break
            command = line.strip().lower()
            if not command:
                continue
            if command in _QUIT_COMMANDS:
                break
            handler = COMMANDS.get(command)
            if handler is None:
                click.echo(f"Unknown command: {command} (try: {', '.join(COMMANDS)}, quit)", err=True)
                continue
            handler(clock)
    finally:
        clock.ticker.stop()


@click.group()
@click.version_option(version=blindclock.__version__, prog_name="blindclock")
@click.option("-v", "--verbose", is_flag=True, help="Log clock transitions to stderr.")
def cli(verbose: bool) -> None:
    """blindclock: an authoritative tournament blind clock."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with levels, alert_seconds, tick_interval and display settings.",
)


@cli.command()
@_config_option
def levels(config_path: Path | None) -> None:
    """Print the normalized level schedule."""
    config = _run(lambda: _load(config_path, (), None))
    for index, level in enumerate(config.schedule, start=1):
        if level.is_break:
            label = "break"
        else:
            label = f"{level.small_blind}/{level.big_blind}"
            if level.ante:
                label += f" ante {level.ante}"
        click.echo(f"{index:>3}  {format_remaining(level.duration_seconds):>6}  {label}")


@cli.command()
@_config_option
@click.option("--alert", "alerts", type=int, multiple=True, help="Alert threshold in seconds; repeatable.")
@click.option("--interval", type=float, default=None, help="Scheduler period in seconds.")
@click.option("--autostart", is_flag=True, help="Start the first level immediately.")
@click.option("--exit-on-complete", is_flag=True, help="Exit once the last level runs out.")
@click.option("--bell", is_flag=True, help="Ring the terminal bell on sound events.")
def run(
    config_path: Path | None,
    alerts: tuple[int, ...],
    interval: float | None,
    autostart: bool,
    exit_on_complete: bool,
    bell: bool,
) -> None:
    """Run the clock, reading commands from stdin.

    Commands: start, pause, resume, reset, next, prev, quit.
    """
    config = _run(lambda: _load(config_path, alerts, interval))
    stream = click.get_text_stream("stdin")
    asyncio.run(_serve(config, stream, autostart, exit_on_complete, bell))
