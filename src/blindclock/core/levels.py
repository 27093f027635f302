"""Level normalizer — coerces raw level descriptors into canonical levels."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

MIN_DURATION_SECONDS = 60
FALLBACK_DURATION_SECONDS = 600
DEFAULT_ALERT_THRESHOLDS = (60, 10)

_FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})

# Accepted spellings for each field, canonical name first.
_ALIASES = {
    "duration_seconds": ("duration_seconds", "durationSec", "durationSeconds"),
    "small_blind": ("small_blind", "sb", "smallBlind"),
    "big_blind": ("big_blind", "bb", "bigBlind"),
    "ante": ("ante",),
    "is_break": ("is_break", "isBreak"),
}


@dataclass(frozen=True)
class Level:
    """One timed stage of the event: a playing level or a break."""

    duration_seconds: int = FALLBACK_DURATION_SECONDS
    small_blind: int = 0
    big_blind: int = 0
    ante: int = 0
    is_break: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration_seconds": self.duration_seconds,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "ante": self.ante,
            "is_break": self.is_break,
        }


FALLBACK_LEVEL = Level(FALLBACK_DURATION_SECONDS, 100, 200, 0, False)

DEFAULT_SCHEDULE = (
    Level(1200, 100, 200, 0, False),
    Level(1200, 100, 300, 0, False),
    Level(1200, 200, 400, 0, False),
)


def to_number(value: Any) -> float | None:
    """Parse *value* as a finite number, or return ``None``."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # ints beyond float range, which json.load happily produces
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_int(value: Any, fallback: int, minimum: int) -> int:
    number = to_number(value)
    # A zero reads as "unset", so it takes the fallback too.
    if number is None or number == 0:
        number = fallback
    return max(minimum, math.floor(number))


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _lookup(raw: Mapping[str, Any], field: str) -> Any:
    for key in _ALIASES[field]:
        if key in raw:
            return raw[key]
    return None


def normalize_level(raw: Any) -> Level:
    """Return the canonical :class:`Level` for *raw*.

    Never fails: anything that is not a mapping or a :class:`Level` is
    treated as an empty descriptor and every field takes its fallback.
    """
    if isinstance(raw, Level):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        raw = {}

    return Level(
        duration_seconds=_coerce_int(
            _lookup(raw, "duration_seconds"), FALLBACK_DURATION_SECONDS, MIN_DURATION_SECONDS
        ),
        small_blind=_coerce_int(_lookup(raw, "small_blind"), 0, 0),
        big_blind=_coerce_int(_lookup(raw, "big_blind"), 0, 0),
        ante=_coerce_int(_lookup(raw, "ante"), 0, 0),
        is_break=_coerce_bool(_lookup(raw, "is_break")),
    )


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def normalize_schedule(raw_levels: Any) -> tuple[Level, ...]:
    """Normalize every level; a missing or empty schedule becomes one fallback level."""
    if not _is_sequence(raw_levels) or len(raw_levels) == 0:
        return (FALLBACK_LEVEL,)
    return tuple(normalize_level(raw) for raw in raw_levels)


def normalize_alert_thresholds(raw: Any) -> tuple[int, ...]:
    """Keep positive whole-second thresholds, deduplicated and sorted descending."""
    if not _is_sequence(raw):
        return DEFAULT_ALERT_THRESHOLDS
    thresholds = set()
    for value in raw:
        if isinstance(value, bool):
            continue
        number = to_number(value)
        if number is None:
            continue
        seconds = math.floor(number)
        if seconds > 0:
            thresholds.add(seconds)
    return tuple(sorted(thresholds, reverse=True))
