"""Threshold tables, dimension weights and professional settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Any, Mapping, Optional

from harmony.utils.time_utils import parse_clock


DIMENSIONS = (
    "dailyLoad",
    "breakCompliance",
    "eveningWork",
    "weeklyBalance",
    "recoveryAdequacy",
    "predictiveStress",
)


@dataclass(frozen=True)
class ScoreBand:
    level: str
    minimum: int
    maximum: int
    label: str


@dataclass(frozen=True)
class DimensionWeights:
    daily_load: float = 25.0
    break_compliance: float = 20.0
    evening_work: float = 15.0
    weekly_balance: float = 20.0
    recovery_adequacy: float = 15.0
    predictive_stress: float = 5.0

    def as_mapping(self) -> dict[str, float]:
        return {
            "dailyLoad": self.daily_load,
            "breakCompliance": self.break_compliance,
            "eveningWork": self.evening_work,
            "weeklyBalance": self.weekly_balance,
            "recoveryAdequacy": self.recovery_adequacy,
            "predictiveStress": self.predictive_stress,
        }


def _default_score_bands() -> tuple[ScoreBand, ...]:
    return (
        ScoreBand("excellent", 85, 100, "Excellent"),
        ScoreBand("good", 70, 84, "Balanced"),
        ScoreBand("moderate", 50, 69, "Needs attention"),
        ScoreBand("warning", 30, 49, "Concerning"),
        ScoreBand("critical", 0, 29, "Critical"),
    )


@dataclass(frozen=True)
class HarmonyThresholds:
    """Immutable threshold table injected into the engine."""

    score_bands: tuple[ScoreBand, ...] = field(default_factory=_default_score_bands)

    # Daily load bands (appointment counts, inclusive upper bounds).
    daily_optimal: int = 4
    daily_good: int = 6
    daily_warning: int = 8
    daily_danger: int = 10

    # Weekly hour bands (inclusive upper bounds, hours).
    weekly_optimal_hours: float = 25.0
    weekly_good_hours: float = 32.0
    weekly_warning_hours: float = 40.0
    weekly_danger_hours: float = 50.0
    weekly_critical_hours: float = 60.0

    evening_hour: int = 18
    night_hour: int = 21

    ideal_break_ratio: float = 0.25
    min_rest_hours_between_days: float = 12.0
    max_consecutive_intensive_days: int = 3

    # Stress model and weighting triggers.
    stress_intensive_day_count: int = 6
    weighting_intensive_day_count: int = 8
    weighting_long_week_hours: float = 35.0

    # Critical-day tiers.
    critical_day_count: int = 12
    critical_day_hours: float = 10.0
    high_day_count: int = 9
    medium_day_count: int = 7
    insufficient_break_score: int = 50

    # Overload predictor.
    poor_recovery_debt_hours: float = 20.0
    consecutive_stress_days: int = 2
    evening_heavy_count: int = 5

    weights: DimensionWeights = field(default_factory=DimensionWeights)


def validate_thresholds(thresholds: HarmonyThresholds) -> None:
    daily = (
        thresholds.daily_optimal,
        thresholds.daily_good,
        thresholds.daily_warning,
        thresholds.daily_danger,
    )
    if any(value <= 0 for value in daily) or list(daily) != sorted(set(daily)):
        raise ValueError("daily load bands must be positive and strictly ascending")

    weekly = (
        thresholds.weekly_optimal_hours,
        thresholds.weekly_good_hours,
        thresholds.weekly_warning_hours,
        thresholds.weekly_danger_hours,
        thresholds.weekly_critical_hours,
    )
    if any(value <= 0 for value in weekly) or list(weekly) != sorted(set(weekly)):
        raise ValueError("weekly hour bands must be positive and strictly ascending")

    if not 0 <= thresholds.evening_hour <= 23 or not 0 <= thresholds.night_hour <= 23:
        raise ValueError("evening_hour and night_hour must be between 0 and 23")
    if thresholds.night_hour < thresholds.evening_hour:
        raise ValueError("night_hour must not be earlier than evening_hour")

    if not 0.0 < thresholds.ideal_break_ratio <= 1.0:
        raise ValueError("ideal_break_ratio must be in (0, 1]")
    if thresholds.min_rest_hours_between_days < 0:
        raise ValueError("min_rest_hours_between_days must be >= 0")
    if thresholds.max_consecutive_intensive_days <= 0:
        raise ValueError("max_consecutive_intensive_days must be > 0")

    weights = thresholds.weights.as_mapping()
    if any(value < 0 for value in weights.values()):
        raise ValueError("dimension weights must be >= 0")
    if abs(sum(weights.values()) - 100.0) > 1e-6:
        raise ValueError("dimension weights must sum to 100")

    covered = sorted(
        (band.minimum, band.maximum) for band in thresholds.score_bands
    )
    if not covered or covered[0][0] != 0 or covered[-1][1] != 100:
        raise ValueError("score bands must cover 0 to 100")
    for (_, previous_max), (current_min, _) in zip(covered, covered[1:]):
        if current_min != previous_max + 1:
            raise ValueError("score bands must be contiguous")


def score_level(score: float, thresholds: Optional[HarmonyThresholds] = None) -> str:
    """Qualitative level of a 0-100 score."""
    bands = (thresholds or DEFAULT_THRESHOLDS).score_bands
    for band in bands:
        if band.minimum <= score <= band.maximum:
            return band.level
    if score > 100:
        return max(bands, key=lambda band: band.maximum).level
    return min(bands, key=lambda band: band.minimum).level


def daily_load_intensity(count: float, thresholds: Optional[HarmonyThresholds] = None) -> str:
    """Intensity tier of a daily appointment count."""
    table = thresholds or DEFAULT_THRESHOLDS
    if count <= table.daily_optimal:
        return "optimal"
    if count <= table.daily_good:
        return "good"
    if count <= table.daily_warning:
        return "warning"
    if count <= table.daily_danger:
        return "danger"
    return "critical"


def weekly_load_intensity(hours: float, thresholds: Optional[HarmonyThresholds] = None) -> str:
    """Intensity tier of a weekly hour total."""
    table = thresholds or DEFAULT_THRESHOLDS
    if hours <= table.weekly_optimal_hours:
        return "optimal"
    if hours <= table.weekly_good_hours:
        return "good"
    if hours <= table.weekly_warning_hours:
        return "warning"
    if hours <= table.weekly_danger_hours:
        return "danger"
    return "critical"


DEFAULT_THRESHOLDS = HarmonyThresholds()


_SETTING_KEYS = {
    "break_duration": ("breakDuration", "break_duration"),
    "max_daily_appointments": ("maxDailyAppointments", "max_daily_appointments"),
    "max_weekly_hours": ("maxWeeklyHours", "max_weekly_hours"),
}


@dataclass(frozen=True)
class ProfessionalSettings:
    """Per-professional personalisation; absent values use the defaults."""

    break_duration: int = 20
    max_daily_appointments: int = 8
    max_weekly_hours: float = 40.0
    working_hours_start: time = time(8, 0)
    working_hours_end: time = time(18, 0)

    @property
    def working_window_hours(self) -> float:
        start = self.working_hours_start.hour + self.working_hours_start.minute / 60
        end = self.working_hours_end.hour + self.working_hours_end.minute / 60
        return max(0.0, end - start)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ProfessionalSettings":
        defaults = cls()
        if not data:
            return defaults

        resolved: dict[str, Any] = {}
        for attribute, keys in _SETTING_KEYS.items():
            raw = next((data[key] for key in keys if data.get(key) is not None), None)
            default_value = getattr(defaults, attribute)
            try:
                value = type(default_value)(raw) if raw is not None else default_value
            except (TypeError, ValueError):
                value = default_value
            resolved[attribute] = value if value > 0 else default_value

        working_hours = data.get("workingHours") or data.get("working_hours") or {}
        if not isinstance(working_hours, Mapping):
            working_hours = {}
        start = parse_clock(working_hours.get("start"), defaults.working_hours_start)
        end = parse_clock(working_hours.get("end"), defaults.working_hours_end)
        if end <= start:
            start, end = defaults.working_hours_start, defaults.working_hours_end

        return cls(
            break_duration=resolved["break_duration"],
            max_daily_appointments=resolved["max_daily_appointments"],
            max_weekly_hours=resolved["max_weekly_hours"],
            working_hours_start=start,
            working_hours_end=end,
        )
