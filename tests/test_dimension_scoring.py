from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pytest

from harmony.domain.models import Appointment
from harmony.domain.thresholds import DEFAULT_THRESHOLDS, ProfessionalSettings
from harmony.services.dimension_scoring import (
    analyze_gaps,
    calculate_recovery_metrics,
    compute_break_compliance_score,
    compute_daily_load_score,
    compute_evening_work_score,
    compute_predictive_stress_score,
    compute_recovery_adequacy_score,
    compute_weekly_balance_score,
    select_scored_appointments,
)


MONDAY = datetime(2026, 3, 2)
SETTINGS = ProfessionalSettings()


def _appointment(start: datetime, minutes: int = 60, **overrides: Any) -> dict[str, Any]:
    record = {
        "id": f"apt-{start.isoformat()}",
        "start": start.isoformat(),
        "end": (start + timedelta(minutes=minutes)).isoformat(),
        "type": "appointment",
        "status": "confirmed",
    }
    record.update(overrides)
    return record


def _day(day: datetime, count: int, minutes: int = 30, gap: int = 0, hour: int = 8) -> list[dict[str, Any]]:
    cursor = day + timedelta(hours=hour)
    records = []
    for _ in range(count):
        records.append(_appointment(cursor, minutes))
        cursor += timedelta(minutes=minutes + gap)
    return records


def _scored(records: list[dict[str, Any]]) -> list[Appointment]:
    return select_scored_appointments(records)


def test_select_excludes_cancelled_non_appointments_and_malformed() -> None:
    start = MONDAY + timedelta(hours=9)
    records = [
        _appointment(start),
        _appointment(start, status="cancelled"),
        _appointment(start, type="break"),
        _appointment(start, minutes=0),
        {"id": "broken", "start": "not-a-date", "end": start.isoformat()},
        "not-a-record",
    ]
    selected = _scored(records)
    assert [item.event_id for item in selected] == [f"apt-{start.isoformat()}"]


def test_from_record_returns_none_for_unusable_timestamps() -> None:
    start = MONDAY + timedelta(hours=9)
    parsed = Appointment.from_record(_appointment(start, minutes=45))

    assert parsed is not None
    assert parsed.start == start
    assert parsed.duration_minutes == pytest.approx(45.0)
    assert Appointment.from_record(_appointment(start, minutes=0)) is None
    assert Appointment.from_record({"id": "no-end", "start": start.isoformat()}) is None
    assert Appointment.from_record(["not", "a", "mapping"]) is None
    assert Appointment.from_record(Appointment(event_id="reversed", start=start, end=start)) is None


@pytest.mark.parametrize(
    "scorer",
    [
        lambda items: compute_daily_load_score(items, DEFAULT_THRESHOLDS),
        lambda items: compute_break_compliance_score(items, SETTINGS),
        lambda items: compute_evening_work_score(items, DEFAULT_THRESHOLDS),
        lambda items: compute_weekly_balance_score(items, DEFAULT_THRESHOLDS),
        lambda items: compute_recovery_adequacy_score(items, DEFAULT_THRESHOLDS, SETTINGS),
        lambda items: compute_predictive_stress_score(items, DEFAULT_THRESHOLDS),
    ],
)
def test_every_scorer_returns_one_hundred_for_empty_input(scorer) -> None:
    assert scorer([]) == 100


def test_overloaded_day_scores_low_on_load_and_breaks() -> None:
    appointments = _scored(_day(MONDAY, 13))
    assert compute_daily_load_score(appointments, DEFAULT_THRESHOLDS) <= 40
    assert compute_break_compliance_score(appointments, SETTINGS) == 0


def test_daily_load_penalises_mean_peak_and_irregularity() -> None:
    balanced = _scored(_day(MONDAY, 5, gap=30))
    assert compute_daily_load_score(balanced, DEFAULT_THRESHOLDS) == 90

    irregular = _scored(_day(MONDAY, 1) + _day(MONDAY + timedelta(days=1), 11))
    # mean 6 -> good (-10), peak 11 -> critical (-25), stddev 5 -> irregular (-10)
    assert compute_daily_load_score(irregular, DEFAULT_THRESHOLDS) == 55


def test_break_exactly_break_duration_is_compliant() -> None:
    appointments = _scored(_day(MONDAY, 2, gap=SETTINGS.break_duration))
    assert compute_break_compliance_score(appointments, SETTINGS) == 100


def test_break_compliance_bonus_for_long_mean_gap() -> None:
    settings = ProfessionalSettings(break_duration=10)
    # Two compliant gaps of 30 minutes, one short gap of 5 minutes.
    records = [
        _appointment(MONDAY + timedelta(hours=8)),
        _appointment(MONDAY + timedelta(hours=9, minutes=30)),
        _appointment(MONDAY + timedelta(hours=11)),
        _appointment(MONDAY + timedelta(hours=12, minutes=5)),
    ]
    # round(2/3 * 100) = 67, mean gap 21.7 > 15 adds 5
    assert compute_break_compliance_score(_scored(records), settings) == 72


def test_single_appointment_has_perfect_break_compliance() -> None:
    assert compute_break_compliance_score(_scored(_day(MONDAY, 1)), SETTINGS) == 100


def test_inter_day_idle_time_is_not_a_gap() -> None:
    records = _day(MONDAY, 1) + _day(MONDAY + timedelta(days=1), 1)
    gaps = analyze_gaps(_scored(records), SETTINGS)
    assert gaps.total_gaps == 0
    assert calculate_recovery_metrics(_scored(records), SETTINGS).break_quality == 1.0


def test_evening_and_night_work_penalties() -> None:
    records = [
        _appointment(MONDAY + timedelta(hours=10)),
        _appointment(MONDAY + timedelta(hours=19)),
        _appointment(MONDAY + timedelta(hours=21)),
        _appointment(MONDAY + timedelta(hours=14)),
    ]
    # evening ratio 1/4 * 40 + night ratio 1/4 * 60 = 25
    assert compute_evening_work_score(_scored(records), DEFAULT_THRESHOLDS) == 75


def test_adding_night_appointment_never_raises_evening_score() -> None:
    base = _day(MONDAY, 4, gap=30, hour=15)
    before = compute_evening_work_score(_scored(base), DEFAULT_THRESHOLDS)
    after = compute_evening_work_score(
        _scored(base + [_appointment(MONDAY + timedelta(hours=21, minutes=30))]),
        DEFAULT_THRESHOLDS,
    )
    assert after <= before


@pytest.mark.parametrize(
    ("hours", "expected"),
    [
        (20, 100),
        (25, 100),
        (30, 85),
        (32, 80),
        (36, 70),
        (40, 60),
        (45, 45),
        (50, 30),
        (55, 20),
        (70, 0),
    ],
)
def test_weekly_balance_reference_table(hours: int, expected: int) -> None:
    records = [_appointment(MONDAY + timedelta(days=offset), 60) for offset in range(hours)]
    assert compute_weekly_balance_score(_scored(records), DEFAULT_THRESHOLDS) == expected


def test_recovery_adequacy_ratio() -> None:
    # 8h worked -> ideal 2h; one compliant gap of 60 minutes -> 50%
    records = [
        _appointment(MONDAY + timedelta(hours=8), 240),
        _appointment(MONDAY + timedelta(hours=13), 240),
    ]
    assert compute_recovery_adequacy_score(_scored(records), DEFAULT_THRESHOLDS, SETTINGS) == 50


def test_recovery_adequacy_full_when_rest_meets_ideal() -> None:
    records = _day(MONDAY, 5, minutes=60, gap=30)
    assert compute_recovery_adequacy_score(_scored(records), DEFAULT_THRESHOLDS, SETTINGS) == 100
