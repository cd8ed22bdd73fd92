"""The six well-being dimension scorers and their shared gap analysis.

Every scorer maps an already filtered list of appointments to an integer in
[0, 100], starting from 100 and subtracting penalties. An empty list is never
an error: it means no problem was detected and scores 100.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from harmony.domain.models import Appointment, GapAnalysis, RecoveryMetrics
from harmony.domain.thresholds import (
    HarmonyThresholds,
    ProfessionalSettings,
    daily_load_intensity,
)
from harmony.services.stress_model import PredictiveStressModel
from harmony.utils.logger import get_logger
from harmony.utils.stats import average, percentage, round_int, standard_deviation
from harmony.utils.time_utils import (
    consecutive_pairs,
    group_by_day,
    minutes_between,
    sort_by_start,
)


logger = get_logger(__name__)

_MEAN_LOAD_PENALTIES = {
    "optimal": 0,
    "good": 10,
    "warning": 20,
    "danger": 35,
    "critical": 45,
}
_PEAK_LOAD_PENALTIES = {"danger": 15, "critical": 25}
_IRREGULARITY_STDDEV = 3.0
_IRREGULARITY_PENALTY = 10


def select_scored_appointments(events: Iterable[Any]) -> list[Appointment]:
    """Keep valid, non-cancelled ``appointment`` records.

    Records with missing or unparseable timestamps, or with ``end <= start``,
    are dropped here so no scorer ever sees them.
    """
    selected: list[Appointment] = []
    for record in events:
        appointment = Appointment.from_record(record)
        if appointment is None:
            logger.debug(
                "Excluding malformed event | id=%s",
                record.get("id") if isinstance(record, Mapping) else type(record).__name__,
            )
            continue
        if appointment.is_scored:
            selected.append(appointment)
    return selected


def total_work_minutes(appointments: Iterable[Appointment]) -> float:
    return sum(appointment.duration_minutes for appointment in appointments)


def total_work_hours(appointments: Iterable[Appointment]) -> float:
    return total_work_minutes(appointments) / 60.0


def is_evening(appointment: Appointment, thresholds: HarmonyThresholds) -> bool:
    return appointment.start.hour >= thresholds.evening_hour


def is_night(appointment: Appointment, thresholds: HarmonyThresholds) -> bool:
    return appointment.start.hour >= thresholds.night_hour


def analyze_gaps(
    appointments: list[Appointment],
    settings: ProfessionalSettings,
) -> GapAnalysis:
    """Walk same-day consecutive pairs; inter-day idle time is not a gap."""
    total_gaps = 0
    compliant_gaps = 0
    total_gap_minutes = 0.0
    compliant_gap_minutes = 0.0

    for day_events in group_by_day(appointments).values():
        for previous, current in consecutive_pairs(sort_by_start(day_events)):
            gap = minutes_between(previous.end, current.start)
            total_gaps += 1
            total_gap_minutes += gap
            if gap >= settings.break_duration:
                compliant_gaps += 1
                compliant_gap_minutes += gap

    return GapAnalysis(
        total_gaps=total_gaps,
        compliant_gaps=compliant_gaps,
        total_gap_minutes=total_gap_minutes,
        compliant_gap_minutes=compliant_gap_minutes,
    )


def calculate_recovery_metrics(
    appointments: list[Appointment],
    settings: ProfessionalSettings,
) -> RecoveryMetrics:
    gaps = analyze_gaps(appointments, settings)
    return RecoveryMetrics(
        break_quality=gaps.compliance_ratio,
        actual_recovery_hours=gaps.compliant_gap_minutes / 60.0,
    )


def compute_daily_load_score(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
) -> int:
    if not appointments:
        return 100

    counts = [len(day_events) for day_events in group_by_day(appointments).values()]
    mean_count = average(counts)
    peak_count = max(counts)

    score = 100
    score -= _MEAN_LOAD_PENALTIES[daily_load_intensity(mean_count, thresholds)]
    score -= _PEAK_LOAD_PENALTIES.get(daily_load_intensity(peak_count, thresholds), 0)
    if standard_deviation(counts) > _IRREGULARITY_STDDEV:
        score -= _IRREGULARITY_PENALTY
    return max(0, score)


def compute_break_compliance_score(
    appointments: list[Appointment],
    settings: ProfessionalSettings,
) -> int:
    if len(appointments) < 2:
        return 100

    gaps = analyze_gaps(appointments, settings)
    if gaps.total_gaps:
        mean_gap = gaps.total_gap_minutes / gaps.total_gaps
    else:
        mean_gap = float(settings.break_duration)
    bonus = 5 if mean_gap > settings.break_duration * 1.5 else 0
    return min(100, round_int(gaps.compliance_ratio * 100) + bonus)


def compute_evening_work_score(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
) -> int:
    """Night appointments count only in the night bucket."""
    if not appointments:
        return 100

    night_count = sum(1 for item in appointments if is_night(item, thresholds))
    evening_count = sum(
        1
        for item in appointments
        if is_evening(item, thresholds) and not is_night(item, thresholds)
    )
    total = len(appointments)
    penalty = (evening_count / total) * 40 + (night_count / total) * 60
    return max(0, round_int(100 - penalty))


def compute_weekly_balance_score(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
) -> int:
    hours = total_work_hours(appointments)
    if hours <= thresholds.weekly_optimal_hours:
        return 100
    if hours <= thresholds.weekly_good_hours:
        return max(80, 100 - round_int((hours - thresholds.weekly_optimal_hours) * 3))
    if hours <= thresholds.weekly_warning_hours:
        return max(60, 80 - round_int((hours - thresholds.weekly_good_hours) * 2.5))
    if hours <= thresholds.weekly_danger_hours:
        return max(30, 60 - round_int((hours - thresholds.weekly_warning_hours) * 3))
    return max(0, 30 - round_int((hours - thresholds.weekly_danger_hours) * 2))


def compute_recovery_adequacy_score(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> int:
    if not appointments:
        return 100

    ideal_hours = total_work_hours(appointments) * thresholds.ideal_break_ratio
    actual_hours = calculate_recovery_metrics(appointments, settings).actual_recovery_hours
    if ideal_hours <= 0 or actual_hours >= ideal_hours:
        return 100
    return round_int(percentage(actual_hours, ideal_hours))


def compute_predictive_stress_score(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
) -> int:
    # Fresh model per call so indicator tallies never leak between calls.
    return PredictiveStressModel(thresholds).predict_stress_level(appointments)
