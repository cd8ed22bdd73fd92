"""Human-readable insights and per-dimension recommendations."""

from __future__ import annotations

from typing import Optional

from harmony.domain.models import Recommendation, ScoreBreakdown, TrendAnalysis
from harmony.domain.thresholds import HarmonyThresholds, ProfessionalSettings
from harmony.utils.stats import average, round_half_up


ATTENTION_SCORE = 70
URGENT_SCORE = 50

DIMENSION_ADVICE = {
    "dailyLoad": "Spread appointments more evenly across the week.",
    "breakCompliance": "Keep at least {break_duration} minutes between appointments.",
    "eveningWork": "Move evening appointments into regular working hours.",
    "weeklyBalance": "Reduce weekly hours towards {max_weekly_hours:g}h.",
    "recoveryAdequacy": "Reserve longer breaks to recover from intensive stretches.",
    "predictiveStress": "Avoid back-to-back appointments and long intensive streaks.",
}


def generate_insights(
    breakdown: ScoreBreakdown,
    trends: Optional[TrendAnalysis],
    score_level: str,
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> list[str]:
    insights: list[str] = []
    if score_level == "excellent":
        insights.append("Your schedule is well balanced this period.")

    points = [point for point in trends.daily_load if point.appointment_count] if trends else []
    if breakdown.daily_load < ATTENTION_SCORE and points:
        mean_count = average([point.appointment_count for point in points])
        insights.append(
            f"Average of {round_half_up(mean_count, 1):g} appointments per working day; "
            "some days are heavily loaded."
        )
    if breakdown.break_compliance < URGENT_SCORE:
        insights.append(
            f"Fewer than half of your transitions leave a {settings.break_duration}-minute break."
        )
    if breakdown.evening_work < ATTENTION_SCORE:
        insights.append(
            f"A significant share of appointments starts after {thresholds.evening_hour}:00."
        )
    if breakdown.recovery_adequacy < ATTENTION_SCORE:
        insights.append(
            f"Breaks cover less than {round_half_up(thresholds.ideal_break_ratio * 100):g}% "
            "of your working time."
        )
    if breakdown.predictive_stress < URGENT_SCORE:
        insights.append("Rapid successions and intensive streaks point to rising stress.")

    if trends is not None:
        total_hours = sum(point.work_hours for point in trends.daily_load)
        if total_hours > settings.max_weekly_hours:
            insights.append(
                f"{round_half_up(total_hours, 1):g}h scheduled, above your "
                f"{settings.max_weekly_hours:g}h weekly limit."
            )
        over_limit = [
            point for point in points if point.appointment_count > settings.max_daily_appointments
        ]
        if over_limit:
            insights.append(
                f"{len(over_limit)} day(s) exceed your limit of "
                f"{settings.max_daily_appointments} appointments."
            )
        if trends.workload_direction == "increasing":
            insights.append("Workload is increasing through the period.")
        if trends.direction == "down":
            insights.append(
                f"Harmony score dropped {abs(trends.change)}% compared with the previous period."
            )
        elif trends.direction == "up":
            insights.append(
                f"Harmony score improved {trends.change}% compared with the previous period."
            )

    if not insights:
        insights.append("No notable imbalance detected.")
    return insights


def generate_recommendations(
    breakdown: ScoreBreakdown,
    settings: ProfessionalSettings,
) -> list[Recommendation]:
    """One recommendation per weak dimension, weakest first."""
    scores = breakdown.to_dict()
    weak = sorted(
        (dimension for dimension, score in scores.items() if score < ATTENTION_SCORE),
        key=lambda dimension: scores[dimension],
    )
    return [
        Recommendation(
            dimension=dimension,
            priority="high" if scores[dimension] < URGENT_SCORE else "medium",
            message=DIMENSION_ADVICE[dimension].format(
                break_duration=settings.break_duration,
                max_weekly_hours=settings.max_weekly_hours,
            ),
        )
        for dimension in weak
    ]
