"""Recommended rest allocation and recovery debt for a scheduling period."""

from __future__ import annotations

from harmony.domain.models import Appointment, RecoveryRecommendation
from harmony.domain.thresholds import HarmonyThresholds, ProfessionalSettings
from harmony.services.dimension_scoring import calculate_recovery_metrics, total_work_hours
from harmony.utils.stats import round_half_up, round_int
from harmony.utils.time_utils import group_by_day


POOR_BREAK_QUALITY = 0.5
POOR_BREAK_MULTIPLIER = 1.3
LIGHT_RECOVERY_DAILY_HOURS = 7.0
LIGHT_RECOVERY_HOURS = 4.0


def recommend_base_recovery(
    hours: float,
    mean_daily_hours: float,
    thresholds: HarmonyThresholds,
) -> tuple[float, str]:
    """Recommended rest hours and recovery type, matched top-down."""
    if hours > thresholds.weekly_critical_hours:
        return min(24.0, (hours - 40) * 0.8), "extended"
    if hours > thresholds.weekly_danger_hours:
        return min(16.0, (hours - 35) * 0.6), "significant"
    if hours > thresholds.weekly_warning_hours:
        return min(8.0, (hours - 32) * 0.5), "moderate"
    if mean_daily_hours > LIGHT_RECOVERY_DAILY_HOURS:
        return LIGHT_RECOVERY_HOURS, "light"
    return 0.0, "none"


def recovery_priority(debt: float) -> str:
    if debt > 8:
        return "high"
    if debt > 4:
        return "medium"
    return "low"


def _recovery_suggestions(
    recovery_type: str,
    debt: float,
    break_quality: float,
    hours: float,
    settings: ProfessionalSettings,
) -> list[str]:
    suggestions: list[str] = []
    if recovery_type == "extended":
        suggestions.append("Plan a full day off within the next week")
        suggestions.append("Reduce next week's bookings by at least a third")
    elif recovery_type == "significant":
        suggestions.append("Block two half-days for recovery this week")
    elif recovery_type == "moderate":
        suggestions.append("Block one half-day for recovery this week")
    elif recovery_type == "light":
        suggestions.append("Finish earlier on at least two days")

    if break_quality < POOR_BREAK_QUALITY:
        suggestions.append(
            f"Keep at least {settings.break_duration} minutes between appointments"
        )
    if hours > settings.max_weekly_hours:
        suggestions.append(
            f"Weekly hours exceed your {settings.max_weekly_hours:g}h limit"
        )
    if debt > 0:
        suggestions.append(f"Recover {round_half_up(debt, 1):g}h of missing rest")
    return suggestions


def calculate_recovery_recommendation(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> RecoveryRecommendation:
    hours = total_work_hours(appointments)
    day_count = len(group_by_day(appointments))
    mean_daily_hours = hours / day_count if day_count else 0.0

    metrics = calculate_recovery_metrics(appointments, settings)
    recommended, recovery_type = recommend_base_recovery(hours, mean_daily_hours, thresholds)
    if metrics.break_quality < POOR_BREAK_QUALITY:
        recommended *= POOR_BREAK_MULTIPLIER

    debt = max(0.0, recommended - metrics.actual_recovery_hours)
    return RecoveryRecommendation(
        recommended_hours=round_half_up(recommended, 1),
        recovery_type=recovery_type,
        recovery_debt=round_half_up(debt, 1),
        break_quality=round_int(metrics.break_quality * 100),
        actual_recovery_hours=round_half_up(metrics.actual_recovery_hours, 1),
        suggestions=_recovery_suggestions(
            recovery_type, debt, metrics.break_quality, hours, settings
        ),
        priority=recovery_priority(debt),
    )
