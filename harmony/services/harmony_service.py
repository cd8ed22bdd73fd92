"""Top-level Harmony Score engine.

``HarmonyEngine`` filters raw event records once per call, runs the six
dimension scorers, re-weights and aggregates them, and exposes the
independent day-level analyses (daily score, overload prediction, critical
days, block suggestions, recovery recommendation) over the same filtered
appointment list.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Union

from harmony.domain.models import (
    Appointment,
    BlockSuggestions,
    CriticalDay,
    DailyScore,
    OverloadForecast,
    RecoveryRecommendation,
    ScoreBreakdown,
    TrendAnalysis,
    WeekRange,
    WeeklyScoreResult,
)
from harmony.domain.thresholds import (
    DEFAULT_THRESHOLDS,
    DIMENSIONS,
    HarmonyThresholds,
    ProfessionalSettings,
    score_level,
    validate_thresholds,
)
from harmony.services import block_suggestion_service, critical_day_service, recovery_service
from harmony.services.daily_scoring import compute_daily_score
from harmony.services.dimension_scoring import (
    compute_break_compliance_score,
    compute_daily_load_score,
    compute_evening_work_score,
    compute_predictive_stress_score,
    compute_recovery_adequacy_score,
    compute_weekly_balance_score,
    select_scored_appointments,
    total_work_hours,
)
from harmony.services.insight_service import generate_insights, generate_recommendations
from harmony.services.prediction_service import OverloadPredictor
from harmony.services.trend_service import analyze_trends
from harmony.utils.config import Settings, get_settings
from harmony.utils.logger import get_logger
from harmony.utils.stats import clamp, round_int
from harmony.utils.time_utils import day_key, group_by_day, parse_day, parse_timestamp


logger = get_logger(__name__)

FALLBACK_SCORE = 50
FALLBACK_LEVEL = "moderate"
FALLBACK_INSIGHT = "Harmony score is temporarily unavailable; a neutral default is shown."
WEIGHT_SHIFT = 5.0

WeekRangeInput = Union[WeekRange, Mapping[str, Any], tuple, None]


class HarmonyError(Exception):
    """Base exception for Harmony engine failures."""


class HarmonyValidationError(HarmonyError):
    """Raised when caller input cannot be analysed at all."""


class HarmonyEngine:
    """Scores and forecasts one professional's schedule."""

    def __init__(
        self,
        thresholds: Optional[HarmonyThresholds] = None,
        settings: Union[ProfessionalSettings, Mapping[str, Any], None] = None,
        app_settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._thresholds = thresholds or DEFAULT_THRESHOLDS
        validate_thresholds(self._thresholds)
        if isinstance(settings, ProfessionalSettings):
            self._settings = settings
        else:
            self._settings = ProfessionalSettings.from_mapping(settings)
        self._app_settings = app_settings or get_settings()
        self._clock = clock or datetime.now

    @property
    def thresholds(self) -> HarmonyThresholds:
        return self._thresholds

    @property
    def settings(self) -> ProfessionalSettings:
        return self._settings

    def with_settings(
        self,
        settings: Union[ProfessionalSettings, Mapping[str, Any], None],
    ) -> "HarmonyEngine":
        """Engine sharing thresholds and clock but scoring with other settings."""
        if settings is None:
            return self
        return HarmonyEngine(
            thresholds=self._thresholds,
            settings=settings,
            app_settings=self._app_settings,
            clock=self._clock,
        )

    # ------------------------------------------------------------------
    # Input adaptation
    # ------------------------------------------------------------------

    def _scored(self, events: Any) -> list[Appointment]:
        if events is None:
            return []
        if isinstance(events, (str, bytes, Mapping)) or not isinstance(events, (list, tuple)):
            raise HarmonyValidationError("events must be a list of event records")
        return select_scored_appointments(events)

    @staticmethod
    def _week_range(week_range: WeekRangeInput) -> Optional[WeekRange]:
        if week_range is None:
            return None
        if isinstance(week_range, WeekRange):
            start, end = week_range.start, week_range.end
        elif isinstance(week_range, Mapping):
            start = parse_timestamp(week_range.get("start"))
            end = parse_timestamp(week_range.get("end"))
        elif isinstance(week_range, tuple) and len(week_range) == 2:
            start, end = parse_timestamp(week_range[0]), parse_timestamp(week_range[1])
        else:
            raise HarmonyValidationError("week range must provide start and end")

        if start is None or end is None:
            raise HarmonyValidationError("week range start and end must be ISO timestamps")
        if start >= end:
            raise HarmonyValidationError("week range start must be before end")
        return WeekRange(start=start, end=end)

    # ------------------------------------------------------------------
    # Weighting and aggregation
    # ------------------------------------------------------------------

    def compute_breakdown(self, appointments: list[Appointment]) -> ScoreBreakdown:
        thresholds = self._thresholds
        return ScoreBreakdown(
            daily_load=compute_daily_load_score(appointments, thresholds),
            break_compliance=compute_break_compliance_score(appointments, self._settings),
            evening_work=compute_evening_work_score(appointments, thresholds),
            weekly_balance=compute_weekly_balance_score(appointments, thresholds),
            recovery_adequacy=compute_recovery_adequacy_score(
                appointments, thresholds, self._settings
            ),
            predictive_stress=compute_predictive_stress_score(appointments, thresholds),
        )

    def compute_adjusted_weights(self, appointments: list[Appointment]) -> dict[str, float]:
        """Base weights shifted for intensive days and long weeks, summing to 100."""
        thresholds = self._thresholds
        weights = thresholds.weights.as_mapping()

        has_intensive_day = any(
            len(day_events) >= thresholds.weighting_intensive_day_count
            for day_events in group_by_day(appointments).values()
        )
        if has_intensive_day:
            weights["breakCompliance"] += WEIGHT_SHIFT
            weights["dailyLoad"] -= WEIGHT_SHIFT
        if total_work_hours(appointments) > thresholds.weighting_long_week_hours:
            weights["weeklyBalance"] += WEIGHT_SHIFT
            weights["eveningWork"] -= WEIGHT_SHIFT

        weights = {dimension: max(0.0, value) for dimension, value in weights.items()}
        total = sum(weights.values())
        return {dimension: value * 100.0 / total for dimension, value in weights.items()}

    def composite_score(self, breakdown: ScoreBreakdown, appointments: list[Appointment]) -> int:
        scores = breakdown.to_dict()
        weights = self.compute_adjusted_weights(appointments)
        total = sum(scores[dimension] / 100.0 * weights[dimension] for dimension in DIMENSIONS)
        return int(clamp(round_int(total), 0, 100))

    # ------------------------------------------------------------------
    # Weekly score
    # ------------------------------------------------------------------

    def compute_weekly_score(
        self,
        events: Any,
        week_range: WeekRangeInput = None,
    ) -> WeeklyScoreResult:
        """Composite score for the period; never raises, degrades to a fallback."""
        computed_at = self._clock().isoformat()
        try:
            appointments = self._scored(events)
            period = self._week_range(week_range)
        except HarmonyValidationError as exc:
            return self._fallback(str(exc), computed_at)

        try:
            result = self._compute_weekly(appointments, period, computed_at)
        except Exception:
            logger.exception("Unexpected weekly score failure")
            return self._fallback("computation_failed", computed_at)

        logger.info(
            "Weekly score computed | score=%s | level=%s | appointments=%s | fallback=%s",
            result.score,
            result.level,
            len(appointments),
            result.is_fallback,
        )
        return result

    def _compute_weekly(
        self,
        appointments: list[Appointment],
        period: Optional[WeekRange],
        computed_at: str,
    ) -> WeeklyScoreResult:
        in_period = self._within(appointments, period)
        breakdown = self.compute_breakdown(in_period)
        score = self.composite_score(breakdown, in_period)
        level = score_level(score, self._thresholds)
        trends = self._trends(appointments, in_period, period, score)

        return WeeklyScoreResult(
            score=score,
            level=level,
            breakdown=breakdown,
            trends=trends,
            insights=generate_insights(breakdown, trends, level, self._thresholds, self._settings),
            recommendations=generate_recommendations(breakdown, self._settings),
            critical_days=critical_day_service.detect_critical_days(
                in_period, self._thresholds, self._settings
            ),
            recovery_recommendation=recovery_service.calculate_recovery_recommendation(
                in_period, self._thresholds, self._settings
            ),
            computed_at=computed_at,
            version=self._app_settings.app_version,
        )

    @staticmethod
    def _within(
        appointments: list[Appointment],
        period: Optional[WeekRange],
    ) -> list[Appointment]:
        if period is None:
            return appointments
        return [item for item in appointments if period.contains(item.start)]

    def _trends(
        self,
        appointments: list[Appointment],
        in_period: list[Appointment],
        period: Optional[WeekRange],
        score: int,
    ) -> Optional[TrendAnalysis]:
        if period is not None:
            first_day, last_day = period.start.date(), period.end.date()
        elif in_period:
            days = [day_key(item.start) for item in in_period]
            first_day, last_day = min(days), max(days)
        else:
            return None

        previous_score: Optional[int] = None
        if period is not None:
            previous = self._within(appointments, previous_period(period))
            if previous:
                previous_score = self.composite_score(self.compute_breakdown(previous), previous)

        return analyze_trends(in_period, first_day, last_day, score, previous_score)

    def _fallback(self, reason: str, computed_at: str) -> WeeklyScoreResult:
        logger.warning("Returning fallback weekly score | reason=%s", reason)
        return WeeklyScoreResult(
            score=FALLBACK_SCORE,
            level=FALLBACK_LEVEL,
            breakdown=None,
            trends=None,
            insights=[FALLBACK_INSIGHT],
            recommendations=[],
            critical_days=[],
            recovery_recommendation=None,
            computed_at=computed_at,
            version=self._app_settings.app_version,
            is_fallback=True,
            fallback_reason=reason,
        )

    # ------------------------------------------------------------------
    # Independent analyses
    # ------------------------------------------------------------------

    def compute_daily_score(self, day: Any, events: Any) -> DailyScore:
        target_day = parse_day(day)
        if target_day is None:
            raise HarmonyValidationError("date must be formatted as YYYY-MM-DD")
        return compute_daily_score(
            target_day, self._scored(events), self._thresholds, self._settings
        )

    def predict_overload_risk(
        self,
        events: Any,
        horizon_days: Optional[int] = None,
        start_date: Any = None,
    ) -> OverloadForecast:
        horizon = self._app_settings.default_horizon_days if horizon_days is None else horizon_days
        if not 1 <= horizon <= self._app_settings.max_horizon_days:
            raise HarmonyValidationError(
                f"horizon_days must be between 1 and {self._app_settings.max_horizon_days}"
            )
        start_day = self._start_day(start_date)
        predictor = OverloadPredictor(self._scored(events), self._thresholds, self._settings)
        return predictor.predict(start_day, horizon)

    def _start_day(self, start_date: Any) -> date:
        if start_date is None:
            return self._clock().date()
        parsed = parse_day(start_date)
        if parsed is None:
            raise HarmonyValidationError("start_date must be formatted as YYYY-MM-DD")
        return parsed

    def detect_critical_days(self, events: Any) -> list[CriticalDay]:
        return critical_day_service.detect_critical_days(
            self._scored(events), self._thresholds, self._settings
        )

    def suggest_optimal_blocks(self, events: Any) -> BlockSuggestions:
        return block_suggestion_service.suggest_optimal_blocks(
            self._scored(events), self._thresholds, self._settings
        )

    def calculate_recovery_recommendation(
        self,
        events: Any,
        week_range: WeekRangeInput = None,
    ) -> RecoveryRecommendation:
        appointments = self._within(self._scored(events), self._week_range(week_range))
        return recovery_service.calculate_recovery_recommendation(
            appointments, self._thresholds, self._settings
        )


def previous_period(period: WeekRange) -> WeekRange:
    """Same number of calendar days, ending just before ``period`` starts."""
    span = timedelta(days=(period.end.date() - period.start.date()).days + 1)
    return WeekRange(start=period.start - span, end=period.start - timedelta(microseconds=1))
