"""Clock configuration, optionally loaded from a JSON file."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from blindclock.core.levels import (
    DEFAULT_ALERT_THRESHOLDS,
    DEFAULT_SCHEDULE,
    Level,
    normalize_alert_thresholds,
    normalize_schedule,
    to_number,
)
from blindclock.core.scheduler import MIN_INTERVAL
from blindclock.core.settings import CONTROL_KEYS

DEFAULT_TICK_INTERVAL = 1.0


class BlindclockError(Exception):
    """Base class for errors reported to the user."""


class ConfigError(BlindclockError):
    """Raised when a configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class ClockConfig:
    """Initial schedule, alert thresholds, tick cadence and settings payload."""

    schedule: tuple[Level, ...] = DEFAULT_SCHEDULE
    alert_thresholds: tuple[int, ...] = DEFAULT_ALERT_THRESHOLDS
    tick_interval: float = DEFAULT_TICK_INTERVAL
    settings: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ClockConfig:
        """Build a config from a raw mapping, normalizing every value."""
        alert_key = "alert_seconds" if "alert_seconds" in data else "alertSeconds"
        return cls(
            schedule=normalize_schedule(data.get("levels", DEFAULT_SCHEDULE)),
            alert_thresholds=normalize_alert_thresholds(
                data.get(alert_key, DEFAULT_ALERT_THRESHOLDS)
            ),
            tick_interval=coerce_interval(data.get("tick_interval", DEFAULT_TICK_INTERVAL)),
            settings={k: v for k, v in data.items() if k not in CONTROL_KEYS},
        )


def coerce_interval(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_TICK_INTERVAL
    number = to_number(value)
    if number is None:
        return DEFAULT_TICK_INTERVAL
    return max(MIN_INTERVAL, number)


def load_config(path: Path) -> ClockConfig:
    """Read a :class:`ClockConfig` from the JSON file at *path*."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    return ClockConfig.from_mapping(data)
