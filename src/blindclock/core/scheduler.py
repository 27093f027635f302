"""Scheduler loop — a single cancellable fixed-rate asyncio task."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable

logger = logging.getLogger(__name__)

MIN_INTERVAL = 0.05


class Ticker:
    """Calls *callback* every *interval* seconds on the running event loop.

    At most one task is alive per ticker: ``start()`` on a running ticker and
    ``stop()`` on a stopped one are no-ops.  Wakeups are scheduled on a fixed
    grid from the start instant; beats missed while the loop was busy are
    skipped rather than replayed.
    """

    def __init__(self, callback: Callable[[], object], interval: float = 1.0) -> None:
        self._callback = callback
        self._interval = max(MIN_INTERVAL, float(interval))
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start ticking.  Must be called from inside a running event loop."""
        if self.running:
            return False
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(loop))
        logger.debug(f"Ticker started ({self._interval}s)")
        return True

    def stop(self) -> bool:
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Ticker stopped")
        return True

    async def _run(self, loop: asyncio.AbstractEventLoop) -> None:
        next_beat = loop.time()
        while True:
            next_beat += self._interval
            now = loop.time()
            if next_beat < now:
                next_beat += math.ceil((now - next_beat) / self._interval) * self._interval
            await asyncio.sleep(next_beat - now)
            try:
                self._callback()
            except Exception:
                logger.exception("Tick callback failed")
