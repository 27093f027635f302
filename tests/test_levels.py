"""Tests for level, schedule and alert-threshold normalization."""

import math

import pytest

from blindclock.core.levels import (
    DEFAULT_ALERT_THRESHOLDS,
    FALLBACK_LEVEL,
    Level,
    normalize_alert_thresholds,
    normalize_level,
    normalize_schedule,
)

# ---------------------------------------------------------------------------
# normalize_level()
# ---------------------------------------------------------------------------


class TestNormalizeLevel:
    """normalize_level() never fails and always returns a canonical Level."""

    def test_canonical_fields_pass_through(self) -> None:
        raw = {"duration_seconds": 900, "small_blind": 50, "big_blind": 100, "ante": 10, "is_break": False}
        assert normalize_level(raw) == Level(900, 50, 100, 10, False)

    def test_short_field_names_are_accepted(self) -> None:
        raw = {"durationSec": 1200, "sb": 100, "bb": 200, "ante": 0, "isBreak": True}
        assert normalize_level(raw) == Level(1200, 100, 200, 0, True)

    def test_duration_below_floor_is_raised_to_floor(self) -> None:
        assert normalize_level({"duration_seconds": 5}).duration_seconds == 60

    def test_missing_duration_uses_fallback(self) -> None:
        assert normalize_level({}).duration_seconds == 600

    def test_zero_duration_uses_fallback(self) -> None:
        assert normalize_level({"duration_seconds": 0}).duration_seconds == 600

    def test_fractional_values_are_floored(self) -> None:
        level = normalize_level({"duration_seconds": 90.9, "sb": 25.7, "bb": 50.2})
        assert level.duration_seconds == 90
        assert level.small_blind == 25
        assert level.big_blind == 50

    def test_numeric_strings_are_parsed(self) -> None:
        level = normalize_level({"duration_seconds": "300", "sb": " 25 "})
        assert level.duration_seconds == 300
        assert level.small_blind == 25

    def test_negative_blinds_are_clamped_to_zero(self) -> None:
        level = normalize_level({"sb": -5, "bb": -10, "ante": -1})
        assert (level.small_blind, level.big_blind, level.ante) == (0, 0, 0)

    @pytest.mark.parametrize(
        "bad", [math.nan, math.inf, -math.inf, 10**400, -(10**400), "1e400", "abc", None, [1], {"x": 1}]
    )
    def test_unusable_numbers_fall_back(self, bad: object) -> None:
        level = normalize_level({"duration_seconds": bad, "sb": bad})
        assert level.duration_seconds == 600
        assert level.small_blind == 0

    @pytest.mark.parametrize("raw", [None, 42, "level", [1, 2]])
    def test_non_mapping_input_gives_all_fallbacks(self, raw: object) -> None:
        assert normalize_level(raw) == Level(600, 0, 0, 0, False)

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(True, True), (1, True), ("yes", True), ("false", False), ("0", False), ("", False), (0, False)],
    )
    def test_break_flag_is_coerced(self, value: object, expected: bool) -> None:
        assert normalize_level({"is_break": value}).is_break is expected

    def test_level_instance_is_accepted(self) -> None:
        level = Level(300, 10, 20, 0, False)
        assert normalize_level(level) == level

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"durationSec": 12.5, "sb": "7", "bb": -3, "isBreak": "no"},
            {"duration_seconds": math.nan, "ante": 99.99, "is_break": 1},
            None,
        ],
    )
    def test_normalization_is_idempotent(self, raw: object) -> None:
        once = normalize_level(raw)
        assert normalize_level(once) == once
        assert normalize_level(once.to_dict()) == once


# ---------------------------------------------------------------------------
# normalize_schedule()
# ---------------------------------------------------------------------------


class TestNormalizeSchedule:
    """normalize_schedule() keeps play order and never returns an empty schedule."""

    def test_levels_keep_their_order(self) -> None:
        schedule = normalize_schedule([{"sb": 1}, {"sb": 2}, {"sb": 3}])
        assert [level.small_blind for level in schedule] == [1, 2, 3]

    def test_every_level_is_normalized(self) -> None:
        schedule = normalize_schedule([{"duration_seconds": 1}])
        assert schedule[0].duration_seconds == 60

    @pytest.mark.parametrize("raw", [[], (), None, "levels", {"sb": 1}, 3])
    def test_empty_or_invalid_schedule_becomes_fallback_level(self, raw: object) -> None:
        assert normalize_schedule(raw) == (FALLBACK_LEVEL,)


# ---------------------------------------------------------------------------
# normalize_alert_thresholds()
# ---------------------------------------------------------------------------


class TestNormalizeAlertThresholds:
    def test_sorted_descending_and_deduplicated(self) -> None:
        assert normalize_alert_thresholds([10, 60, 10, 30]) == (60, 30, 10)

    def test_invalid_entries_are_dropped(self) -> None:
        assert normalize_alert_thresholds([0, -5, "x", None, math.nan, True, 15.8, "20"]) == (20, 15)

    def test_out_of_range_integers_are_dropped(self) -> None:
        assert normalize_alert_thresholds([60, 10**400]) == (60,)

    def test_empty_list_means_no_alerts(self) -> None:
        assert normalize_alert_thresholds([]) == ()

    def test_non_sequence_gives_defaults(self) -> None:
        assert normalize_alert_thresholds(None) == DEFAULT_ALERT_THRESHOLDS
