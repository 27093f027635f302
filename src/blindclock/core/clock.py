"""Timer clock — remaining time computed from instants, never decremented."""

from __future__ import annotations

import math

from blindclock.core.levels import Level


def remaining_now(
    level: Level,
    run_started_at: float | None,
    paused_offset: int,
    now: float,
) -> int:
    """Return whole seconds left in *level* at instant *now*.

    ``run_started_at`` is ``None`` whenever the clock is not running; the
    level then has exactly ``paused_offset`` seconds consumed.  While running,
    elapsed time is re-derived from the two instants on every call, so late or
    skipped ticks cannot make the countdown drift.
    """
    if run_started_at is None:
        return max(0, level.duration_seconds - paused_offset)

    elapsed = math.floor(max(0.0, now - run_started_at)) + paused_offset
    return max(0, level.duration_seconds - elapsed)
