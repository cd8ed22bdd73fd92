"""HTTP controller layer for schedule scoring and overload prediction."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from harmony.controllers.dependencies import get_app_settings, get_engine
from harmony.services.harmony_service import HarmonyEngine, HarmonyValidationError
from harmony.utils.config import Settings
from harmony.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["harmony"])

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request DTOs
# ---------------------------------------------------------------------------


class WorkingHoursPayload(CamelModel):
    start: str = Field(pattern=CLOCK_PATTERN)
    end: str = Field(pattern=CLOCK_PATTERN)


class ProfessionalSettingsPayload(CamelModel):
    """Optional per-request personalisation; omitted fields use defaults."""

    break_duration: Optional[int] = Field(default=None, gt=0)
    max_daily_appointments: Optional[int] = Field(default=None, gt=0)
    max_weekly_hours: Optional[float] = Field(default=None, gt=0.0)
    working_hours: Optional[WorkingHoursPayload] = None


class WeekRangePayload(CamelModel):
    start: datetime
    end: datetime


class EventsRequest(CamelModel):
    """Raw event records; malformed entries are excluded by the engine."""

    events: list[dict[str, Any]] = Field(default_factory=list)
    settings: Optional[ProfessionalSettingsPayload] = None


class WeeklyScoreRequest(EventsRequest):
    week_range: Optional[WeekRangePayload] = None


class DailyScoreRequest(EventsRequest):
    date: str = Field(min_length=10)


class PredictOverloadRequest(EventsRequest):
    horizon_days: Optional[int] = None
    start_date: Optional[str] = None

    @field_validator("horizon_days")
    @classmethod
    def validate_horizon_days(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("horizonDays must be a positive integer")
        return value


class RecoveryRequest(EventsRequest):
    week_range: Optional[WeekRangePayload] = None


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------


class RecommendationResponse(CamelModel):
    dimension: str
    priority: str
    message: str


class CriticalDayResponse(CamelModel):
    date: str
    severity: str
    factors: list[str]
    event_count: int = Field(ge=0)
    total_hours: float = Field(ge=0.0)
    break_compliance: int = Field(ge=0, le=100)
    has_night_work: bool
    suggested_actions: list[str]


class RecoveryRecommendationResponse(CamelModel):
    recommended_hours: float = Field(ge=0.0)
    recovery_type: str
    recovery_debt: float = Field(ge=0.0)
    break_quality: int = Field(ge=0, le=100)
    actual_recovery_hours: float = Field(ge=0.0)
    suggestions: list[str]
    priority: str


class WeeklyScoreResponse(CamelModel):
    score: int = Field(ge=0, le=100)
    level: str
    breakdown: dict[str, int]
    trends: dict[str, Any]
    insights: list[str]
    recommendations: list[RecommendationResponse]
    critical_days: list[CriticalDayResponse]
    recovery_recommendation: Optional[RecoveryRecommendationResponse] = None
    computed_at: str
    version: str
    is_fallback: bool
    fallback_reason: Optional[str] = None


class TimeDistributionResponse(CamelModel):
    first_start: Optional[str] = None
    last_end: Optional[str] = None
    span_hours: float = Field(ge=0.0)
    morning_count: int = Field(ge=0)
    afternoon_count: int = Field(ge=0)
    evening_count: int = Field(ge=0)
    is_clustered: bool


class DailyScoreResponse(CamelModel):
    date: str
    score: int = Field(ge=0, le=100)
    level: str
    appointment_count: int = Field(ge=0)
    total_work_minutes: float = Field(ge=0.0)
    total_work_hours: float = Field(ge=0.0)
    has_evening_work: bool
    has_night_work: bool
    break_compliance: int = Field(ge=0, le=100)
    intensity: str
    time_distribution: TimeDistributionResponse


class RiskFactorsResponse(CamelModel):
    high_load: bool
    poor_recovery: bool
    consecutive_stress: bool
    evening_heavy: bool


class PredictionRow(CamelModel):
    date: str
    risk_level: str
    risk_score: int = Field(ge=0, le=4)
    risk_factors: RiskFactorsResponse
    daily_score: int = Field(ge=0, le=100)
    consecutive_intensity: int = Field(ge=0)
    recovery_debt: float = Field(ge=0.0)
    recommendation: str


class OverloadForecastResponse(CamelModel):
    predictions: list[PredictionRow]
    overall_risk: str
    actionable_insights: list[str]


class BlockSuggestionResponse(CamelModel):
    date: str
    start: str
    end: str
    time_label: str
    urgency: str
    kind: str
    reason: str


class BlockSuggestionsResponse(CamelModel):
    immediate: list[BlockSuggestionResponse]
    planned: list[BlockSuggestionResponse]
    preventive: list[BlockSuggestionResponse]
    recovery: list[BlockSuggestionResponse]


class HealthResponse(CamelModel):
    status: str
    app_name: str
    version: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _engine_for(engine: HarmonyEngine, payload: EventsRequest) -> HarmonyEngine:
    if payload.settings is None:
        return engine
    return engine.with_settings(payload.settings.model_dump(by_alias=True, exclude_none=True))


def _check_payload_size(payload: EventsRequest, app_settings: Settings) -> None:
    if len(payload.events) > app_settings.max_events_per_request:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=(
                f"events must contain at most {app_settings.max_events_per_request} records"
            ),
        )


def _week_range(payload: Optional[WeekRangePayload]) -> Optional[tuple[datetime, datetime]]:
    if payload is None:
        return None
    return payload.start, payload.end


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(app_settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(status="ok", app_name=app_settings.app_name, version=app_settings.app_version)


@router.post("/weekly_score", response_model=WeeklyScoreResponse, status_code=status.HTTP_200_OK)
async def weekly_score(
    payload: WeeklyScoreRequest,
    engine: HarmonyEngine = Depends(get_engine),
    app_settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Composite score; invalid ranges degrade to the fallback result."""
    _check_payload_size(payload, app_settings)
    try:
        result = _engine_for(engine, payload).compute_weekly_score(
            payload.events,
            week_range=_week_range(payload.week_range),
        )
        return result.to_dict()
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected weekly score failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute weekly score",
        ) from exc


@router.post("/daily_score", response_model=DailyScoreResponse, status_code=status.HTTP_200_OK)
async def daily_score(
    payload: DailyScoreRequest,
    engine: HarmonyEngine = Depends(get_engine),
    app_settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    _check_payload_size(payload, app_settings)
    try:
        return _engine_for(engine, payload).compute_daily_score(payload.date, payload.events).to_dict()
    except HarmonyValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected daily score failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute daily score",
        ) from exc


@router.post(
    "/predict_overload",
    response_model=OverloadForecastResponse,
    status_code=status.HTTP_200_OK,
)
async def predict_overload(
    payload: PredictOverloadRequest,
    engine: HarmonyEngine = Depends(get_engine),
    app_settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    _check_payload_size(payload, app_settings)
    try:
        forecast = _engine_for(engine, payload).predict_overload_risk(
            payload.events,
            horizon_days=payload.horizon_days,
            start_date=payload.start_date,
        )
        return forecast.to_dict()
    except HarmonyValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected overload prediction failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to predict overload risk",
        ) from exc


@router.post(
    "/critical_days",
    response_model=list[CriticalDayResponse],
    status_code=status.HTTP_200_OK,
)
async def critical_days(
    payload: EventsRequest,
    engine: HarmonyEngine = Depends(get_engine),
    app_settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    _check_payload_size(payload, app_settings)
    try:
        days = _engine_for(engine, payload).detect_critical_days(payload.events)
        return [day.to_dict() for day in days]
    except HarmonyValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected critical day detection failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to detect critical days",
        ) from exc


@router.post(
    "/block_suggestions",
    response_model=BlockSuggestionsResponse,
    status_code=status.HTTP_200_OK,
)
async def block_suggestions(
    payload: EventsRequest,
    engine: HarmonyEngine = Depends(get_engine),
    app_settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    _check_payload_size(payload, app_settings)
    try:
        return _engine_for(engine, payload).suggest_optimal_blocks(payload.events).to_dict()
    except HarmonyValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected block suggestion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to suggest blocks",
        ) from exc


@router.post(
    "/recovery_recommendation",
    response_model=RecoveryRecommendationResponse,
    status_code=status.HTTP_200_OK,
)
async def recovery_recommendation(
    payload: RecoveryRequest,
    engine: HarmonyEngine = Depends(get_engine),
    app_settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    _check_payload_size(payload, app_settings)
    try:
        recommendation = _engine_for(engine, payload).calculate_recovery_recommendation(
            payload.events,
            week_range=_week_range(payload.week_range),
        )
        return recommendation.to_dict()
    except HarmonyValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected recovery recommendation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute recovery recommendation",
        ) from exc
