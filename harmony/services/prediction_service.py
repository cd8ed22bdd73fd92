"""Short-horizon overload prediction built on the daily scorer."""

from __future__ import annotations

from datetime import date, timedelta

from harmony.domain.models import Appointment, OverloadForecast, PredictionRecord, RiskFactors
from harmony.domain.thresholds import (
    HarmonyThresholds,
    ProfessionalSettings,
    daily_load_intensity,
)
from harmony.services.daily_scoring import compute_daily_score
from harmony.services.dimension_scoring import calculate_recovery_metrics, total_work_hours
from harmony.utils.logger import get_logger
from harmony.utils.stats import round_half_up
from harmony.utils.time_utils import group_by_day


logger = get_logger(__name__)

RISK_RANK = {"low": 0, "medium": 1, "high": 2}
HIGH_LOAD_INTENSITIES = ("danger", "critical")
RECOVERY_DEBT_WINDOW_DAYS = 7

RECOMMENDATIONS = {
    "high_load": "Lighten this day: move or decline new appointments.",
    "poor_recovery": "Schedule real breaks: your recent rest falls short of your workload.",
    "consecutive_stress": "Break the streak: plan a lighter day after this one.",
    "evening_heavy": "Finish earlier: keep the evening free of appointments.",
    "none": "No specific action needed.",
}


def risk_level_for(score: int) -> str:
    if score >= 3:
        return "high"
    if score >= 2:
        return "medium"
    return "low"


def overall_risk(predictions: list[PredictionRecord]) -> str:
    """Worst single-day risk level across the horizon."""
    if not predictions:
        return "low"
    return max((record.risk_level for record in predictions), key=RISK_RANK.__getitem__)


def _recommendation_for(factors: RiskFactors) -> str:
    if factors.high_load:
        return RECOMMENDATIONS["high_load"]
    if factors.poor_recovery:
        return RECOMMENDATIONS["poor_recovery"]
    if factors.consecutive_stress:
        return RECOMMENDATIONS["consecutive_stress"]
    if factors.evening_heavy:
        return RECOMMENDATIONS["evening_heavy"]
    return RECOMMENDATIONS["none"]


class OverloadPredictor:
    """Projects daily scores and risk factors over the coming days."""

    def __init__(
        self,
        appointments: list[Appointment],
        thresholds: HarmonyThresholds,
        settings: ProfessionalSettings,
    ) -> None:
        self._appointments = appointments
        self._thresholds = thresholds
        self._settings = settings
        self._by_day = group_by_day(appointments)

    def _is_high_load(self, day: date) -> bool:
        count = len(self._by_day.get(day, []))
        return daily_load_intensity(count, self._thresholds) in HIGH_LOAD_INTENSITIES

    def consecutive_intensity(self, day: date) -> int:
        """High-load days among ``day`` and the unbroken run just before it.

        A lighter day right after a run still carries the run's length.
        """
        run = 1 if self._is_high_load(day) else 0
        cursor = day - timedelta(days=1)
        while self._is_high_load(cursor):
            run += 1
            cursor -= timedelta(days=1)
        return run

    def recovery_debt(self, day: date) -> float:
        """Per-day recovery shortfall summed over the trailing week."""
        debt = 0.0
        for offset in range(RECOVERY_DEBT_WINDOW_DAYS):
            day_events = self._by_day.get(day - timedelta(days=offset))
            if not day_events:
                continue
            ideal = total_work_hours(day_events) * self._thresholds.ideal_break_ratio
            actual = calculate_recovery_metrics(day_events, self._settings).actual_recovery_hours
            debt += max(0.0, ideal - actual)
        return debt

    def predict_day(self, day: date) -> PredictionRecord:
        daily = compute_daily_score(day, self._appointments, self._thresholds, self._settings)
        consecutive = self.consecutive_intensity(day)
        debt = self.recovery_debt(day)

        factors = RiskFactors(
            high_load=daily.intensity in HIGH_LOAD_INTENSITIES,
            poor_recovery=debt > self._thresholds.poor_recovery_debt_hours,
            consecutive_stress=consecutive > self._thresholds.consecutive_stress_days,
            evening_heavy=daily.has_night_work
            or (
                daily.has_evening_work
                and daily.appointment_count > self._thresholds.evening_heavy_count
            ),
        )
        return PredictionRecord(
            date=day,
            risk_level=risk_level_for(factors.count),
            risk_score=factors.count,
            risk_factors=factors,
            daily_score=daily.score,
            consecutive_intensity=consecutive,
            recovery_debt=round_half_up(debt, 1),
            recommendation=_recommendation_for(factors),
        )

    def predict(self, start_day: date, horizon_days: int) -> OverloadForecast:
        predictions = [
            self.predict_day(start_day + timedelta(days=offset))
            for offset in range(horizon_days)
        ]
        forecast = OverloadForecast(
            predictions=predictions,
            overall_risk=overall_risk(predictions),
            actionable_insights=self._actionable_insights(predictions, horizon_days),
        )
        logger.info(
            "Overload prediction completed | start=%s | horizon_days=%s | overall_risk=%s",
            start_day.isoformat(),
            horizon_days,
            forecast.overall_risk,
        )
        return forecast

    def _actionable_insights(
        self,
        predictions: list[PredictionRecord],
        horizon_days: int,
    ) -> list[str]:
        high = [record for record in predictions if record.risk_level == "high"]
        medium = [record for record in predictions if record.risk_level == "medium"]
        insights: list[str] = []

        if high:
            first = high[0]
            insights.append(
                f"{len(high)} high-risk day(s) ahead, starting {first.date.isoformat()}: "
                f"{first.recommendation}"
            )
        if medium:
            insights.append(
                f"{len(medium)} day(s) at medium risk; keep new bookings light on "
                + ", ".join(record.date.isoformat() for record in medium)
            )
        streak_days = [
            record for record in predictions if record.risk_factors.consecutive_stress
        ]
        if streak_days:
            insights.append(
                f"{streak_days[0].consecutive_intensity} intensive days in a row by "
                f"{streak_days[0].date.isoformat()}; plan a recovery day."
            )
        if not insights:
            insights.append(f"No overload risk detected over the next {horizon_days} days.")
        return insights
