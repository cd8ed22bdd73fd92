from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import pytest

from harmony.domain.thresholds import DEFAULT_THRESHOLDS
from harmony.services.harmony_service import HarmonyEngine, HarmonyValidationError
from harmony.services.recovery_service import recommend_base_recovery, recovery_priority


MONDAY = datetime(2026, 3, 2)


def _appointment(start: datetime, minutes: int) -> dict[str, Any]:
    return {
        "id": f"apt-{start.isoformat()}",
        "start": start.isoformat(),
        "end": (start + timedelta(minutes=minutes)).isoformat(),
        "type": "appointment",
        "status": "confirmed",
    }


def _long_days(days: int, hours: float) -> list[dict[str, Any]]:
    return [
        _appointment(MONDAY + timedelta(days=offset, hours=7), int(hours * 60))
        for offset in range(days)
    ]


def test_no_work_needs_no_recovery() -> None:
    recommendation = HarmonyEngine().calculate_recovery_recommendation([])
    assert recommendation.recovery_type == "none"
    assert recommendation.recommended_hours == 0.0
    assert recommendation.recovery_debt == 0.0
    assert recommendation.break_quality == 100
    assert recommendation.priority == "low"


def test_moderate_week_with_little_rest() -> None:
    # 5 days of two 4.5h sessions separated by a 24 minute break: 45h worked, 2h rest.
    events = []
    for offset in range(5):
        morning = MONDAY + timedelta(days=offset, hours=8)
        events.append(_appointment(morning, 270))
        events.append(_appointment(morning + timedelta(minutes=294), 270))

    recommendation = HarmonyEngine().calculate_recovery_recommendation(events)

    assert recommendation.recovery_type == "moderate"
    assert recommendation.recommended_hours == pytest.approx(6.5)
    assert recommendation.actual_recovery_hours == pytest.approx(2.0)
    assert recommendation.recovery_debt == pytest.approx(4.5)
    assert recommendation.priority == "medium"
    assert recommendation.break_quality == 100


def test_significant_week() -> None:
    recommendation = HarmonyEngine().calculate_recovery_recommendation(_long_days(5, 11))
    assert recommendation.recovery_type == "significant"
    assert recommendation.recommended_hours == pytest.approx(12.0)
    assert recommendation.recovery_debt == pytest.approx(12.0)
    assert recommendation.priority == "high"


def test_extended_week() -> None:
    recommendation = HarmonyEngine().calculate_recovery_recommendation(_long_days(5, 13))
    assert recommendation.recovery_type == "extended"
    assert recommendation.recommended_hours == pytest.approx(20.0)
    assert any("day off" in item for item in recommendation.suggestions)


def test_light_recovery_for_long_days_in_short_week() -> None:
    recommendation = HarmonyEngine().calculate_recovery_recommendation(_long_days(3, 8))
    assert recommendation.recovery_type == "light"
    assert recommendation.recommended_hours == pytest.approx(4.0)


def test_poor_break_quality_multiplies_recommendation() -> None:
    # 5 days of 10 back-to-back hours: 50h, no compliant break.
    events = []
    for offset in range(5):
        cursor = MONDAY + timedelta(days=offset, hours=8)
        for _ in range(10):
            events.append(_appointment(cursor, 60))
            cursor += timedelta(hours=1)

    recommendation = HarmonyEngine().calculate_recovery_recommendation(events)

    assert recommendation.break_quality == 0
    assert recommendation.recommended_hours == pytest.approx(10.4)
    assert recommendation.priority == "high"


def test_week_range_limits_period() -> None:
    events = _long_days(5, 11)
    recommendation = HarmonyEngine().calculate_recovery_recommendation(
        events,
        week_range={"start": "2026-03-02T00:00:00", "end": "2026-03-03T23:59:59"},
    )
    assert recommendation.recovery_type == "light"


def test_inverted_week_range_raises() -> None:
    with pytest.raises(HarmonyValidationError):
        HarmonyEngine().calculate_recovery_recommendation(
            [], week_range=("2026-03-08T00:00:00", "2026-03-02T00:00:00")
        )


@pytest.mark.parametrize(
    ("debt", "expected"),
    [(0.0, "low"), (4.0, "low"), (4.1, "medium"), (8.0, "medium"), (8.1, "high")],
)
def test_priority_boundaries_are_exclusive(debt: float, expected: str) -> None:
    assert recovery_priority(debt) == expected


def test_base_recovery_tiers() -> None:
    assert recommend_base_recovery(65, 9, DEFAULT_THRESHOLDS) == (20.0, "extended")
    assert recommend_base_recovery(45, 9, DEFAULT_THRESHOLDS) == (6.5, "moderate")
    assert recommend_base_recovery(40, 8, DEFAULT_THRESHOLDS) == (4.0, "light")
    assert recommend_base_recovery(40, 6, DEFAULT_THRESHOLDS) == (0.0, "none")


def _split_days(days: int, session_seconds: int) -> list[dict[str, Any]]:
    """Two long sessions per day separated by a one hour break."""
    events = []
    for offset in range(days):
        morning = MONDAY + timedelta(days=offset, minutes=30)
        afternoon = morning + timedelta(seconds=session_seconds, hours=1)
        for start in (morning, afternoon):
            events.append(
                {
                    "id": f"apt-{start.isoformat()}",
                    "start": start.isoformat(),
                    "end": (start + timedelta(seconds=session_seconds)).isoformat(),
                    "type": "appointment",
                    "status": "confirmed",
                }
            )
    return events


def test_priority_uses_unrounded_debt_just_above_medium_boundary() -> None:
    # 44.08h worked with 2h of rest: 6.04h recommended, 4.04h of debt.
    recommendation = HarmonyEngine().calculate_recovery_recommendation(_split_days(2, 39672))

    assert recommendation.recovery_type == "moderate"
    assert recommendation.recommended_hours == pytest.approx(6.0)
    assert recommendation.recovery_debt == pytest.approx(4.0)
    assert recommendation.priority == "medium"


def test_priority_uses_unrounded_debt_just_above_high_boundary() -> None:
    # 53.4h worked with 3h of rest: 11.04h recommended, 8.04h of debt.
    recommendation = HarmonyEngine().calculate_recovery_recommendation(_split_days(3, 32040))

    assert recommendation.recovery_type == "significant"
    assert recommendation.recovery_debt == pytest.approx(8.0)
    assert recommendation.priority == "high"
