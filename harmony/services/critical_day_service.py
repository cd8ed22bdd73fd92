"""Critical day detection from raw per-day load and recovery signals."""

from __future__ import annotations

from datetime import date
from typing import Optional

from harmony.domain.models import Appointment, CriticalDay
from harmony.domain.thresholds import HarmonyThresholds, ProfessionalSettings
from harmony.services.dimension_scoring import (
    compute_break_compliance_score,
    is_night,
    total_work_hours,
)
from harmony.utils.stats import round_half_up
from harmony.utils.time_utils import group_by_day


SEVERITY_RANK = {"critical": 3, "high": 2, "medium": 1}


def classify_severity(
    count: int,
    hours: float,
    break_compliance: int,
    has_night_work: bool,
    thresholds: HarmonyThresholds,
) -> Optional[str]:
    """Highest matching tier, or None when the day is not critical."""
    if count >= thresholds.critical_day_count or hours > thresholds.critical_day_hours:
        return "critical"
    if thresholds.high_day_count <= count < thresholds.critical_day_count or has_night_work:
        return "high"
    if (
        thresholds.medium_day_count <= count < thresholds.high_day_count
        and break_compliance < thresholds.insufficient_break_score
    ):
        return "medium"
    return None


def _describe_factors(
    count: int,
    hours: float,
    break_compliance: int,
    has_night_work: bool,
    thresholds: HarmonyThresholds,
) -> list[str]:
    factors: list[str] = []
    if count >= thresholds.critical_day_count:
        factors.append(f"{count} appointments scheduled")
    elif count >= thresholds.medium_day_count:
        factors.append(f"High appointment count ({count})")
    if hours > thresholds.critical_day_hours:
        factors.append(f"{round_half_up(hours, 1)}h of work exceeds {thresholds.critical_day_hours:g}h")
    if break_compliance < thresholds.insufficient_break_score:
        factors.append(f"Insufficient breaks ({break_compliance}% compliant)")
    if has_night_work:
        factors.append(f"Work after {thresholds.night_hour}:00")
    return factors


def _suggest_actions(
    severity: str,
    break_compliance: int,
    has_night_work: bool,
    thresholds: HarmonyThresholds,
) -> list[str]:
    actions: list[str] = []
    if severity == "critical":
        actions.append("Move at least two appointments to a lighter day")
        actions.append("Block the remaining free slots of this day")
    elif severity == "high":
        actions.append("Avoid adding new appointments on this day")
    if break_compliance < thresholds.insufficient_break_score:
        actions.append("Insert a break between back-to-back appointments")
    if has_night_work:
        actions.append("Move late appointments earlier in the day")
    if severity == "medium" and not actions:
        actions.append("Keep this day under watch")
    return actions


def analyze_day_criticality(
    day: date,
    day_events: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> Optional[CriticalDay]:
    count = len(day_events)
    hours = total_work_hours(day_events)
    break_compliance = compute_break_compliance_score(day_events, settings)
    has_night_work = any(is_night(item, thresholds) for item in day_events)

    severity = classify_severity(count, hours, break_compliance, has_night_work, thresholds)
    if severity is None:
        return None

    return CriticalDay(
        date=day,
        severity=severity,
        factors=_describe_factors(count, hours, break_compliance, has_night_work, thresholds),
        event_count=count,
        total_hours=round_half_up(hours, 1),
        break_compliance=break_compliance,
        has_night_work=has_night_work,
        suggested_actions=_suggest_actions(severity, break_compliance, has_night_work, thresholds),
    )


def detect_critical_days(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> list[CriticalDay]:
    """Critical days, most severe first; equal severities stay chronological."""
    critical_days: list[CriticalDay] = []
    for day, day_events in group_by_day(appointments).items():
        analysis = analyze_day_criticality(day, day_events, thresholds, settings)
        if analysis is not None:
            critical_days.append(analysis)
    return sorted(critical_days, key=lambda item: -SEVERITY_RANK[item.severity])
