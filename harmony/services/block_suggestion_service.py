"""Actionable schedule-blocking suggestions.

Per-day suggestions come from the critical-day analysis and the daily score;
their urgency maps onto the ``immediate`` / ``planned`` / ``preventive``
buckets. Recovery suggestions come from the rest between consecutive
scheduled days and form a separate bucket.
"""

from __future__ import annotations

from datetime import date, time, timedelta
from typing import Optional

from harmony.domain.models import Appointment, BlockSuggestion, BlockSuggestions, CriticalDay
from harmony.domain.thresholds import HarmonyThresholds, ProfessionalSettings
from harmony.services.critical_day_service import analyze_day_criticality
from harmony.services.daily_scoring import compute_daily_score
from harmony.utils.logger import get_logger
from harmony.utils.stats import round_half_up
from harmony.utils.time_utils import (
    at_clock,
    consecutive_pairs,
    format_clock,
    group_by_day,
    has_overlap,
    hours_between,
    minutes_between,
    sort_by_start,
)


logger = get_logger(__name__)

SEVERITY_URGENCY = {"critical": "high", "high": "medium", "medium": "low"}
PREVENTIVE_SCORE_THRESHOLD = 70
MIDDAY = time(12, 0)
SHORT_REST_HOURS = 8.0


def _close_day_suggestion(
    day: date,
    day_events: list[Appointment],
    analysis: CriticalDay,
    settings: ProfessionalSettings,
) -> Optional[BlockSuggestion]:
    """Block what is left of the working window after the last appointment."""
    last_end = max(item.end for item in day_events)
    window_end = at_clock(day, settings.working_hours_end)
    start = max(last_end, at_clock(day, settings.working_hours_start))
    if start >= window_end:
        return None
    return BlockSuggestion(
        date=day,
        start=start,
        end=window_end,
        urgency=SEVERITY_URGENCY[analysis.severity],
        kind="close_day",
        reason=(
            f"{analysis.severity.capitalize()} day: {analysis.event_count} appointments, "
            f"{analysis.total_hours:g}h of work. Stop new bookings after {format_clock(start)}."
        ),
    )


def _insert_break_suggestion(
    day: date,
    day_events: list[Appointment],
    urgency: str,
    settings: ProfessionalSettings,
) -> Optional[BlockSuggestion]:
    """Reserve a break right after the first too-short gap of the day."""
    for previous, current in consecutive_pairs(sort_by_start(day_events)):
        gap = minutes_between(previous.end, current.start)
        if gap < settings.break_duration:
            start = previous.end
            return BlockSuggestion(
                date=day,
                start=start,
                end=start + timedelta(minutes=settings.break_duration),
                urgency=urgency,
                kind="insert_break",
                reason=(
                    f"Only {max(0, int(gap))} min between appointments at "
                    f"{format_clock(start)}; reserve a {settings.break_duration} min break."
                ),
            )
    return None


def _protect_evening_suggestion(
    day: date,
    has_night_work: bool,
    thresholds: HarmonyThresholds,
) -> BlockSuggestion:
    start = at_clock(day, time(thresholds.evening_hour, 0))
    return BlockSuggestion(
        date=day,
        start=start,
        end=at_clock(day, time(23, 59)),
        urgency="medium" if has_night_work else "low",
        kind="protect_evening",
        reason=(
            f"Appointments after {thresholds.night_hour}:00 cut into rest."
            if has_night_work
            else f"Evening appointments after {thresholds.evening_hour}:00; keep evenings free."
        ),
    )


def _midday_break_suggestion(
    day: date,
    day_events: list[Appointment],
    daily_score: int,
    settings: ProfessionalSettings,
) -> Optional[BlockSuggestion]:
    start = at_clock(day, MIDDAY)
    end = start + timedelta(minutes=max(settings.break_duration, 30))
    for item in day_events:
        if has_overlap(item.start, item.end, start, end):
            return None
    return BlockSuggestion(
        date=day,
        start=start,
        end=end,
        urgency="low",
        kind="midday_break",
        reason=f"Day score {daily_score}/100; protect a midday break before it fills up.",
    )


def suggest_day_blocks(
    day: date,
    day_events: list[Appointment],
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> list[BlockSuggestion]:
    analysis = analyze_day_criticality(day, day_events, thresholds, settings)
    daily = compute_daily_score(day, appointments, thresholds, settings)
    suggestions: list[BlockSuggestion] = []

    over_personal_limit = daily.appointment_count >= settings.max_daily_appointments
    if analysis is not None and (analysis.severity != "medium" or over_personal_limit):
        close_day = _close_day_suggestion(day, day_events, analysis, settings)
        if close_day is not None:
            suggestions.append(close_day)

    if daily.break_compliance < thresholds.insufficient_break_score:
        urgency = SEVERITY_URGENCY[analysis.severity] if analysis is not None else "low"
        insert_break = _insert_break_suggestion(day, day_events, urgency, settings)
        if insert_break is not None:
            suggestions.append(insert_break)

    if daily.has_evening_work:
        suggestions.append(
            _protect_evening_suggestion(day, daily.has_night_work, thresholds)
        )

    if not suggestions and daily.score < PREVENTIVE_SCORE_THRESHOLD:
        midday = _midday_break_suggestion(day, day_events, daily.score, settings)
        if midday is not None:
            suggestions.append(midday)
    return suggestions


def suggest_recovery_blocks(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> list[BlockSuggestion]:
    """Rest-gap suggestions around intensive days.

    Two consecutive calendar days get a suggestion when the rest between them
    is shorter than the minimum inter-day rest and either day is intensive.
    A run of intensive days longer than the allowed maximum gets a full
    recovery day suggested on the following day.
    """
    by_day = group_by_day(appointments)
    intensive = {
        day
        for day, day_events in by_day.items()
        if len(day_events) >= thresholds.stress_intensive_day_count
    }
    suggestions: list[BlockSuggestion] = []

    for previous_day, next_day in consecutive_pairs(list(by_day)):
        if (next_day - previous_day).days != 1:
            continue
        if previous_day not in intensive and next_day not in intensive:
            continue
        last_end = max(item.end for item in by_day[previous_day])
        first_start = min(item.start for item in by_day[next_day])
        rest_hours = hours_between(last_end, first_start)
        if rest_hours >= thresholds.min_rest_hours_between_days:
            continue
        suggestions.append(
            BlockSuggestion(
                date=next_day,
                start=last_end,
                end=last_end + timedelta(hours=thresholds.min_rest_hours_between_days),
                urgency="high" if rest_hours < SHORT_REST_HOURS else "medium",
                kind="inter_day_rest",
                reason=(
                    f"Only {round_half_up(rest_hours, 1):g}h of rest between "
                    f"{previous_day.isoformat()} and {next_day.isoformat()}; "
                    f"aim for {thresholds.min_rest_hours_between_days:g}h."
                ),
            )
        )

    streak: list[date] = []
    for day in sorted(intensive):
        if streak and (day - streak[-1]).days != 1:
            suggestions.extend(_streak_recovery(streak, thresholds, settings))
            streak = []
        streak.append(day)
    suggestions.extend(_streak_recovery(streak, thresholds, settings))
    return suggestions


def _streak_recovery(
    streak: list[date],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> list[BlockSuggestion]:
    if len(streak) <= thresholds.max_consecutive_intensive_days:
        return []
    recovery_day = streak[-1] + timedelta(days=1)
    return [
        BlockSuggestion(
            date=recovery_day,
            start=at_clock(recovery_day, settings.working_hours_start),
            end=at_clock(recovery_day, settings.working_hours_end),
            urgency="high",
            kind="recovery_day",
            reason=(
                f"{len(streak)} intensive days in a row since {streak[0].isoformat()}; "
                "keep the next day free to recover."
            ),
        )
    ]


def suggest_optimal_blocks(
    appointments: list[Appointment],
    thresholds: HarmonyThresholds,
    settings: ProfessionalSettings,
) -> BlockSuggestions:
    suggestions: list[BlockSuggestion] = []
    for day, day_events in group_by_day(appointments).items():
        suggestions.extend(suggest_day_blocks(day, day_events, appointments, thresholds, settings))

    result = BlockSuggestions(
        immediate=[item for item in suggestions if item.urgency == "high"],
        planned=[item for item in suggestions if item.urgency == "medium"],
        preventive=[item for item in suggestions if item.urgency == "low"],
        recovery=suggest_recovery_blocks(appointments, thresholds, settings),
    )
    logger.debug(
        "Block suggestions computed | immediate=%s | planned=%s | preventive=%s | recovery=%s",
        len(result.immediate),
        len(result.planned),
        len(result.preventive),
        len(result.recovery),
    )
    return result
