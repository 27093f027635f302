"""Alert policy — edge-triggered detection of alert threshold crossings."""

from __future__ import annotations

from collections.abc import Iterable


def should_fire(
    previous_remaining: int | None,
    current_remaining: int,
    thresholds: Iterable[int],
) -> int | None:
    """Return the threshold crossed between two readings, or ``None``.

    Only the falling edge fires: a reading equal to the previous one never
    fires, so time standing still at a threshold (a paused clock, a repeated
    evaluation) is silent.  With no previous reading only an exact match
    fires.  When one step crosses several thresholds the smallest one is
    reported, since it is the most urgent.
    """
    if current_remaining == previous_remaining:
        return None

    if previous_remaining is None:
        return current_remaining if current_remaining in set(thresholds) else None

    crossed = [t for t in thresholds if current_remaining <= t < previous_remaining]
    if not crossed:
        return None
    return min(crossed)
