"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from blindclock.core.config import (
    DEFAULT_TICK_INTERVAL,
    ClockConfig,
    ConfigError,
    load_config,
)
from blindclock.core.levels import DEFAULT_ALERT_THRESHOLDS, DEFAULT_SCHEDULE, Level
from blindclock.core.scheduler import MIN_INTERVAL


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "clock.json"
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestClockConfigDefaults:
    def test_defaults(self) -> None:
        config = ClockConfig()
        assert config.schedule == DEFAULT_SCHEDULE
        assert config.alert_thresholds == DEFAULT_ALERT_THRESHOLDS
        assert config.tick_interval == DEFAULT_TICK_INTERVAL
        assert dict(config.settings) == {}


class TestLoadConfig:
    def test_loads_levels_alerts_and_settings(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            {
                "levels": [{"durationSec": 900, "sb": 50, "bb": 100}, {"durationSec": 300, "isBreak": True}],
                "alertSeconds": [10, 60, 60],
                "tick_interval": 0.5,
                "tournament_name": "Sunday Major",
                "enable_break_sounds": False,
            },
        )
        config = load_config(path)
        assert config.schedule == (Level(900, 50, 100, 0, False), Level(300, 0, 0, 0, True))
        assert config.alert_thresholds == (60, 10)
        assert config.tick_interval == 0.5
        assert config.settings == {"tournament_name": "Sunday Major", "enable_break_sounds": False}

    def test_snake_case_alert_key(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, {"alert_seconds": [30]}))
        assert config.alert_thresholds == (30,)

    def test_missing_keys_use_defaults(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, {}))
        assert config.schedule == DEFAULT_SCHEDULE
        assert config.alert_thresholds == DEFAULT_ALERT_THRESHOLDS

    def test_empty_levels_become_fallback(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, {"levels": []}))
        assert len(config.schedule) == 1

    @pytest.mark.parametrize(("raw", "expected"), [(0, MIN_INTERVAL), ("fast", 1.0), (True, 1.0), (2, 2.0)])
    def test_tick_interval_is_coerced(self, tmp_path: Path, raw, expected: float) -> None:
        config = load_config(_write(tmp_path, {"tick_interval": raw}))
        assert config.tick_interval == expected

    def test_integers_beyond_float_range_are_normalized(self, tmp_path: Path) -> None:
        huge = "1" + "0" * 400
        path = _write(
            tmp_path,
            f'{{"levels": [{{"durationSec": {huge}, "sb": {huge}}}], "alert_seconds": [60, {huge}], "tick_interval": {huge}}}',
        )
        config = load_config(path)
        assert config.schedule == (Level(600, 0, 0, 0, False),)
        assert config.alert_thresholds == (60,)
        assert config.tick_interval == DEFAULT_TICK_INTERVAL

    def test_missing_file_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.json")

    def test_invalid_json_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not valid JSON"):
            load_config(_write(tmp_path, "{levels: ["))

    def test_non_object_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(_write(tmp_path, [1, 2, 3]))
