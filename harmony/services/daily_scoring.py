"""Single-day scoring used by day views and by the overload predictor."""

from __future__ import annotations

from datetime import date

from harmony.domain.models import Appointment, DailyScore, TimeDistribution
from harmony.domain.thresholds import (
    HarmonyThresholds,
    ProfessionalSettings,
    daily_load_intensity,
    score_level,
)
from harmony.services.dimension_scoring import (
    compute_break_compliance_score,
    is_evening,
    is_night,
    total_work_minutes,
)
from harmony.utils.stats import clamp, round_half_up
from harmony.utils.time_utils import day_key, format_clock, hours_between


INTENSITY_PENALTIES = {
    "optimal": 0,
    "good": 5,
    "warning": 20,
    "danger": 40,
    "critical": 60,
}

NOON_HOUR = 12
CLUSTER_MIN_APPOINTMENTS = 3
CLUSTER_SPAN_RATIO = 0.5


def appointments_on(appointments: list[Appointment], day: date) -> list[Appointment]:
    return [item for item in appointments if day_key(item.start) == day]


def analyze_time_distribution(
    day_events: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> TimeDistribution:
    """Describe how a day's appointments spread over the clock.

    A day is clustered when at least three appointments fit inside half of
    the professional's working window.
    """
    if not day_events:
        return TimeDistribution(
            first_start=None,
            last_end=None,
            span_hours=0.0,
            morning_count=0,
            afternoon_count=0,
            evening_count=0,
            is_clustered=False,
        )

    first_start = min(item.start for item in day_events)
    last_end = max(item.end for item in day_events)
    span_hours = hours_between(first_start, last_end)

    # An evening appointment is never also counted as morning.
    evening = sum(1 for item in day_events if is_evening(item, thresholds))
    morning = sum(
        1
        for item in day_events
        if item.start.hour < NOON_HOUR and not is_evening(item, thresholds)
    )
    afternoon = len(day_events) - morning - evening

    is_clustered = (
        len(day_events) >= CLUSTER_MIN_APPOINTMENTS
        and span_hours <= settings.working_window_hours * CLUSTER_SPAN_RATIO
    )
    return TimeDistribution(
        first_start=format_clock(first_start),
        last_end=format_clock(last_end),
        span_hours=round_half_up(span_hours, 1),
        morning_count=morning,
        afternoon_count=afternoon,
        evening_count=evening,
        is_clustered=is_clustered,
    )


def compute_daily_score(
    day: date,
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> DailyScore:
    """Score one calendar day from the already filtered appointment list."""
    day_events = appointments_on(appointments, day)
    count = len(day_events)
    minutes = total_work_minutes(day_events)
    hours = minutes / 60.0
    has_evening = any(is_evening(item, thresholds) for item in day_events)
    has_night = any(is_night(item, thresholds) for item in day_events)

    score = 100
    intensity = daily_load_intensity(count, thresholds)
    score -= INTENSITY_PENALTIES[intensity]

    if hours > 10:
        score -= 15
    elif hours > 8:
        score -= 8

    if has_night:
        score -= 20
    elif has_evening:
        score -= 10

    break_score = compute_break_compliance_score(day_events, settings)
    if break_score > 80:
        score += 5
    elif break_score < 50:
        score -= 10

    distribution = analyze_time_distribution(day_events, thresholds, settings)
    if distribution.is_clustered:
        score -= 10

    final_score = int(clamp(score, 0, 100))
    return DailyScore(
        date=day,
        score=final_score,
        level=score_level(final_score, thresholds),
        appointment_count=count,
        total_work_minutes=round_half_up(minutes, 1),
        total_work_hours=round_half_up(hours, 1),
        has_evening_work=has_evening,
        has_night_work=has_night,
        break_compliance=break_score,
        intensity=intensity,
        time_distribution=distribution,
    )
