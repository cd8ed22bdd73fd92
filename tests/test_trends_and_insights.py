from __future__ import annotations

from datetime import date, datetime, timedelta

from harmony.domain.models import Appointment, ScoreBreakdown
from harmony.domain.thresholds import DEFAULT_THRESHOLDS, ProfessionalSettings
from harmony.services.insight_service import generate_insights, generate_recommendations
from harmony.services.trend_service import analyze_trends, build_daily_frame, score_change


MONDAY = datetime(2026, 3, 2)


def _appointment(start: datetime, hours: float) -> Appointment:
    return Appointment(
        event_id=start.isoformat(),
        start=start,
        end=start + timedelta(hours=hours),
    )


def _breakdown(**overrides: int) -> ScoreBreakdown:
    values = {
        "daily_load": 100,
        "break_compliance": 100,
        "evening_work": 100,
        "weekly_balance": 100,
        "recovery_adequacy": 100,
        "predictive_stress": 100,
    }
    values.update(overrides)
    return ScoreBreakdown(**values)


def test_daily_frame_fills_idle_days() -> None:
    appointments = [
        _appointment(MONDAY + timedelta(hours=9), 2),
        _appointment(MONDAY + timedelta(hours=13), 1),
        _appointment(MONDAY + timedelta(days=2, hours=9), 4),
    ]
    frame = build_daily_frame(appointments, date(2026, 3, 2), date(2026, 3, 4))

    assert list(frame.index) == [date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4)]
    assert list(frame["appointment_count"]) == [2, 0, 1]
    assert list(frame["work_hours"]) == [3.0, 0.0, 4.0]


def test_workload_direction_peak_and_outliers() -> None:
    appointments = [
        _appointment(MONDAY + timedelta(days=offset, hours=9), hours)
        for offset, hours in enumerate([2, 2, 2, 2, 10])
    ]
    trends = analyze_trends(appointments, date(2026, 3, 2), date(2026, 3, 6), 80, None)

    assert trends.workload_direction == "increasing"
    assert trends.peak_day == date(2026, 3, 6)
    assert trends.outlier_days == [date(2026, 3, 6)]
    assert trends.direction == "stable"
    assert trends.previous_score is None


def test_empty_period_has_no_peak() -> None:
    trends = analyze_trends([], date(2026, 3, 2), date(2026, 3, 8), 100, None)
    assert trends.peak_day is None
    assert trends.outlier_days == []
    assert trends.workload_direction == "steady"
    assert len(trends.daily_load) == 7


def test_score_change_thresholds() -> None:
    assert score_change(80, None) == ("stable", 0)
    assert score_change(84, 80) == ("up", 5)
    assert score_change(78, 80) == ("stable", -2)
    assert score_change(60, 80) == ("down", -25)


def test_balanced_breakdown_yields_positive_insight() -> None:
    insights = generate_insights(
        _breakdown(), None, "excellent", DEFAULT_THRESHOLDS, ProfessionalSettings()
    )
    assert insights == ["Your schedule is well balanced this period."]


def test_neutral_breakdown_yields_default_insight() -> None:
    insights = generate_insights(
        _breakdown(daily_load=80), None, "good", DEFAULT_THRESHOLDS, ProfessionalSettings()
    )
    assert insights == ["No notable imbalance detected."]


def test_insights_use_personal_limits() -> None:
    appointments = [
        _appointment(MONDAY + timedelta(days=offset, hours=8, minutes=40 * slot), 0.5)
        for offset in range(5)
        for slot in range(10)
    ]
    trends = analyze_trends(appointments, date(2026, 3, 2), date(2026, 3, 8), 60, 75)
    settings = ProfessionalSettings(max_daily_appointments=6, max_weekly_hours=20.0)

    insights = generate_insights(
        _breakdown(daily_load=55), trends, "moderate", DEFAULT_THRESHOLDS, settings
    )

    assert any("above your 20h weekly limit" in item for item in insights)
    assert any("5 day(s) exceed your limit of 6 appointments" in item for item in insights)
    assert any("dropped 20%" in item for item in insights)


def test_recommendations_weakest_first_with_priority() -> None:
    recommendations = generate_recommendations(
        _breakdown(evening_work=65, break_compliance=30, weekly_balance=75),
        ProfessionalSettings(break_duration=15),
    )
    assert [item.dimension for item in recommendations] == ["breakCompliance", "eveningWork"]
    assert [item.priority for item in recommendations] == ["high", "medium"]
    assert "15 minutes" in recommendations[0].message
