"""Heuristic stress predictor driven by schedule risk indicators.

This is not a trained model. Indicator points accumulate from two patterns
and are normalised against the number of appointments:

* rapid succession: a same-day gap under 10 minutes adds 2 points, a gap
  under 20 minutes adds 1 point;
* intensive streaks: the longest run of consecutive scheduled days with at
  least ``stress_intensive_day_count`` appointments adds 3 points per day.

The tally lives on the instance and is reset at the start of every
prediction, so one instance never carries indicators from a previous call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from harmony.domain.models import Appointment
from harmony.domain.thresholds import DEFAULT_THRESHOLDS, HarmonyThresholds
from harmony.utils.stats import round_int
from harmony.utils.time_utils import (
    consecutive_pairs,
    group_by_day,
    minutes_between,
    sort_by_start,
)


RAPID_GAP_MINUTES = 10
SHORT_GAP_MINUTES = 20
STREAK_POINTS_PER_DAY = 3
INDICATORS_PER_APPOINTMENT = 0.5


@dataclass
class StressIndicators:
    rapid_succession: int = 0
    short_breaks: int = 0
    longest_intensive_streak: int = 0

    @property
    def total(self) -> int:
        return (
            self.rapid_succession * 2
            + self.short_breaks
            + self.longest_intensive_streak * STREAK_POINTS_PER_DAY
        )


class PredictiveStressModel:
    def __init__(self, thresholds: Optional[HarmonyThresholds] = None) -> None:
        self._thresholds = thresholds or DEFAULT_THRESHOLDS
        self._indicators = StressIndicators()

    @property
    def indicators(self) -> StressIndicators:
        return self._indicators

    def predict_stress_level(self, appointments: list[Appointment]) -> int:
        self._indicators = StressIndicators()
        if not appointments:
            return 100

        by_day = group_by_day(appointments)
        for day_events in by_day.values():
            for previous, current in consecutive_pairs(sort_by_start(day_events)):
                gap = minutes_between(previous.end, current.start)
                if gap < RAPID_GAP_MINUTES:
                    self._indicators.rapid_succession += 1
                elif gap < SHORT_GAP_MINUTES:
                    self._indicators.short_breaks += 1

        # Runs follow the order of scheduled days; a day without appointments
        # is simply absent and does not break a run.
        streak = 0
        for day_events in by_day.values():
            if len(day_events) >= self._thresholds.stress_intensive_day_count:
                streak += 1
                self._indicators.longest_intensive_streak = max(
                    self._indicators.longest_intensive_streak, streak
                )
            else:
                streak = 0

        max_indicators = len(appointments) * INDICATORS_PER_APPOINTMENT
        ratio = min(self._indicators.total / max_indicators, 1.0)
        return round_int((1 - ratio) * 100)
