"""Tests for threshold table validation and band lookups.

Covers every validation branch in validate_thresholds() plus the
professional settings defaults.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import time

import pytest

from harmony.domain.thresholds import (
    DEFAULT_THRESHOLDS,
    DimensionWeights,
    HarmonyThresholds,
    ProfessionalSettings,
    ScoreBand,
    daily_load_intensity,
    score_level,
    validate_thresholds,
    weekly_load_intensity,
)


def valid_thresholds(**overrides) -> HarmonyThresholds:
    """Return the default table, optionally overriding fields."""
    return replace(DEFAULT_THRESHOLDS, **overrides)


# --- Baseline pass ---

def test_default_thresholds_pass() -> None:
    validate_thresholds(valid_thresholds())


def test_default_weights_sum_to_one_hundred() -> None:
    assert sum(DimensionWeights().as_mapping().values()) == pytest.approx(100.0)


# --- load bands ---

def test_daily_bands_not_ascending_raise() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(daily_good=3))


def test_weekly_bands_not_ascending_raise() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(weekly_danger_hours=38.0))


# --- clock hours ---

def test_evening_hour_out_of_range_raises() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(evening_hour=24))


def test_night_before_evening_raises() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(evening_hour=22, night_hour=21))


# --- recovery ---

def test_ideal_break_ratio_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(ideal_break_ratio=0.0))


def test_ideal_break_ratio_above_one_raises() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(ideal_break_ratio=1.5))


def test_max_consecutive_intensive_days_zero_raises() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(max_consecutive_intensive_days=0))


# --- weights ---

def test_weights_not_summing_to_one_hundred_raise() -> None:
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(weights=DimensionWeights(daily_load=30.0)))


def test_negative_weight_raises() -> None:
    weights = DimensionWeights(daily_load=-5.0, break_compliance=50.0)
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(weights=weights))


# --- score bands ---

def test_score_bands_with_gap_raise() -> None:
    bands = (
        ScoreBand("excellent", 85, 100, "Excellent"),
        ScoreBand("critical", 0, 80, "Critical"),
    )
    with pytest.raises(ValueError):
        validate_thresholds(valid_thresholds(score_bands=bands))


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (100, "excellent"),
        (85, "excellent"),
        (84, "good"),
        (70, "good"),
        (69, "moderate"),
        (50, "moderate"),
        (49, "warning"),
        (30, "warning"),
        (29, "critical"),
        (0, "critical"),
    ],
)
def test_score_level_band_edges(score: int, expected: str) -> None:
    assert score_level(score) == expected


@pytest.mark.parametrize(
    ("count", "expected"),
    [(4, "optimal"), (5, "good"), (6, "good"), (8, "warning"), (10, "danger"), (11, "critical")],
)
def test_daily_load_intensity(count: int, expected: str) -> None:
    assert daily_load_intensity(count) == expected


def test_weekly_load_intensity_edges() -> None:
    assert weekly_load_intensity(25.0) == "optimal"
    assert weekly_load_intensity(32.0) == "good"
    assert weekly_load_intensity(40.0) == "warning"
    assert weekly_load_intensity(50.0) == "danger"
    assert weekly_load_intensity(50.5) == "critical"


# --- professional settings ---

def test_professional_settings_defaults_when_absent() -> None:
    settings = ProfessionalSettings.from_mapping(None)
    assert settings.break_duration == 20
    assert settings.max_daily_appointments == 8
    assert settings.max_weekly_hours == 40.0
    assert settings.working_window_hours == pytest.approx(10.0)


def test_professional_settings_accept_camel_case_and_working_hours() -> None:
    settings = ProfessionalSettings.from_mapping(
        {
            "breakDuration": 15,
            "maxDailyAppointments": 6,
            "maxWeeklyHours": 35,
            "workingHours": {"start": "09:00", "end": "17:30"},
        }
    )
    assert settings.break_duration == 15
    assert settings.max_daily_appointments == 6
    assert settings.max_weekly_hours == 35.0
    assert settings.working_hours_start == time(9, 0)
    assert settings.working_hours_end == time(17, 30)


def test_professional_settings_fall_back_on_unusable_values() -> None:
    settings = ProfessionalSettings.from_mapping(
        {
            "break_duration": "not-a-number",
            "max_daily_appointments": -3,
            "workingHours": {"start": "18:00", "end": "08:00"},
        }
    )
    assert settings.break_duration == 20
    assert settings.max_daily_appointments == 8
    assert settings.working_hours_start == time(8, 0)
    assert settings.working_hours_end == time(18, 0)
