"""Domain models for appointment scoring and overload prediction."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional

from harmony.utils.time_utils import format_range, parse_timestamp


EVENT_TYPE_APPOINTMENT = "appointment"

STATUS_CANCELLED = "cancelled"


@dataclass(frozen=True)
class Appointment:
    event_id: str
    start: datetime
    end: datetime
    type: str = EVENT_TYPE_APPOINTMENT
    status: str = "confirmed"

    @classmethod
    def from_record(cls, record: Any) -> Optional["Appointment"]:
        """Build from an event-store mapping.

        Returns None when a timestamp is missing or unparseable, or when the
        event does not end after it starts.
        """
        if isinstance(record, Appointment):
            return record if record.end > record.start else None
        if not isinstance(record, Mapping):
            return None
        start = parse_timestamp(record.get("start"))
        end = parse_timestamp(record.get("end"))
        if start is None or end is None or end <= start:
            return None
        return cls(
            event_id=str(record.get("id", "")),
            start=start,
            end=end,
            type=str(record.get("type") or EVENT_TYPE_APPOINTMENT),
            status=str(record.get("status") or "confirmed"),
        )

    @property
    def is_scored(self) -> bool:
        return self.type == EVENT_TYPE_APPOINTMENT and self.status != STATUS_CANCELLED

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60.0


@dataclass(frozen=True)
class WeekRange:
    start: datetime
    end: datetime

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class GapAnalysis:
    """Consecutive same-day gaps between appointments."""

    total_gaps: int
    compliant_gaps: int
    total_gap_minutes: float
    compliant_gap_minutes: float

    @property
    def compliance_ratio(self) -> float:
        return self.compliant_gaps / self.total_gaps if self.total_gaps else 1.0


@dataclass(frozen=True)
class RecoveryMetrics:
    break_quality: float
    actual_recovery_hours: float


@dataclass(frozen=True)
class ScoreBreakdown:
    daily_load: int
    break_compliance: int
    evening_work: int
    weekly_balance: int
    recovery_adequacy: int
    predictive_stress: int

    def to_dict(self) -> dict[str, int]:
        return {
            "dailyLoad": self.daily_load,
            "breakCompliance": self.break_compliance,
            "eveningWork": self.evening_work,
            "weeklyBalance": self.weekly_balance,
            "recoveryAdequacy": self.recovery_adequacy,
            "predictiveStress": self.predictive_stress,
        }


@dataclass(frozen=True)
class TimeDistribution:
    first_start: Optional[str]
    last_end: Optional[str]
    span_hours: float
    morning_count: int
    afternoon_count: int
    evening_count: int
    is_clustered: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "firstStart": self.first_start,
            "lastEnd": self.last_end,
            "spanHours": self.span_hours,
            "morningCount": self.morning_count,
            "afternoonCount": self.afternoon_count,
            "eveningCount": self.evening_count,
            "isClustered": self.is_clustered,
        }


@dataclass(frozen=True)
class DailyScore:
    date: date
    score: int
    level: str
    appointment_count: int
    total_work_minutes: float
    total_work_hours: float
    has_evening_work: bool
    has_night_work: bool
    break_compliance: int
    intensity: str
    time_distribution: TimeDistribution

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "score": self.score,
            "level": self.level,
            "appointmentCount": self.appointment_count,
            "totalWorkMinutes": self.total_work_minutes,
            "totalWorkHours": self.total_work_hours,
            "hasEveningWork": self.has_evening_work,
            "hasNightWork": self.has_night_work,
            "breakCompliance": self.break_compliance,
            "intensity": self.intensity,
            "timeDistribution": self.time_distribution.to_dict(),
        }


@dataclass(frozen=True)
class RiskFactors:
    high_load: bool
    poor_recovery: bool
    consecutive_stress: bool
    evening_heavy: bool

    @property
    def count(self) -> int:
        return sum(
            (self.high_load, self.poor_recovery, self.consecutive_stress, self.evening_heavy)
        )

    def to_dict(self) -> dict[str, bool]:
        return {
            "highLoad": self.high_load,
            "poorRecovery": self.poor_recovery,
            "consecutiveStress": self.consecutive_stress,
            "eveningHeavy": self.evening_heavy,
        }


@dataclass(frozen=True)
class PredictionRecord:
    date: date
    risk_level: str
    risk_score: int
    risk_factors: RiskFactors
    daily_score: int
    consecutive_intensity: int
    recovery_debt: float
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "riskLevel": self.risk_level,
            "riskScore": self.risk_score,
            "riskFactors": self.risk_factors.to_dict(),
            "dailyScore": self.daily_score,
            "consecutiveIntensity": self.consecutive_intensity,
            "recoveryDebt": self.recovery_debt,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class OverloadForecast:
    predictions: list[PredictionRecord]
    overall_risk: str
    actionable_insights: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "predictions": [record.to_dict() for record in self.predictions],
            "overallRisk": self.overall_risk,
            "actionableInsights": list(self.actionable_insights),
        }


@dataclass(frozen=True)
class CriticalDay:
    date: date
    severity: str
    factors: list[str]
    event_count: int
    total_hours: float
    break_compliance: int
    has_night_work: bool
    suggested_actions: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "severity": self.severity,
            "factors": list(self.factors),
            "eventCount": self.event_count,
            "totalHours": self.total_hours,
            "breakCompliance": self.break_compliance,
            "hasNightWork": self.has_night_work,
            "suggestedActions": list(self.suggested_actions),
        }


@dataclass(frozen=True)
class BlockSuggestion:
    date: date
    start: datetime
    end: datetime
    urgency: str
    kind: str
    reason: str

    @property
    def time_label(self) -> str:
        return format_range(self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "timeLabel": self.time_label,
            "urgency": self.urgency,
            "kind": self.kind,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class BlockSuggestions:
    immediate: list[BlockSuggestion] = field(default_factory=list)
    planned: list[BlockSuggestion] = field(default_factory=list)
    preventive: list[BlockSuggestion] = field(default_factory=list)
    recovery: list[BlockSuggestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "immediate": [item.to_dict() for item in self.immediate],
            "planned": [item.to_dict() for item in self.planned],
            "preventive": [item.to_dict() for item in self.preventive],
            "recovery": [item.to_dict() for item in self.recovery],
        }


@dataclass(frozen=True)
class RecoveryRecommendation:
    recommended_hours: float
    recovery_type: str
    recovery_debt: float
    break_quality: int
    actual_recovery_hours: float
    suggestions: list[str]
    priority: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommendedHours": self.recommended_hours,
            "recoveryType": self.recovery_type,
            "recoveryDebt": self.recovery_debt,
            "breakQuality": self.break_quality,
            "actualRecoveryHours": self.actual_recovery_hours,
            "suggestions": list(self.suggestions),
            "priority": self.priority,
        }


@dataclass(frozen=True)
class Recommendation:
    dimension: str
    priority: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "dimension": self.dimension,
            "priority": self.priority,
            "message": self.message,
        }


@dataclass(frozen=True)
class DailyLoadPoint:
    date: date
    appointment_count: int
    work_hours: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "appointmentCount": self.appointment_count,
            "workHours": self.work_hours,
        }


@dataclass(frozen=True)
class TrendAnalysis:
    direction: str
    change: int
    previous_score: Optional[int]
    workload_direction: str
    workload_slope: float
    peak_day: Optional[date]
    outlier_days: list[date]
    daily_load: list[DailyLoadPoint]

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction,
            "change": self.change,
            "previousScore": self.previous_score,
            "workloadDirection": self.workload_direction,
            "workloadSlope": self.workload_slope,
            "peakDay": self.peak_day.isoformat() if self.peak_day else None,
            "outlierDays": [day.isoformat() for day in self.outlier_days],
            "dailyLoad": [point.to_dict() for point in self.daily_load],
        }


@dataclass(frozen=True)
class WeeklyScoreResult:
    """Either a full analysis or the documented degraded default."""

    score: int
    level: str
    breakdown: Optional[ScoreBreakdown]
    trends: Optional[TrendAnalysis]
    insights: list[str]
    recommendations: list[Recommendation]
    critical_days: list[CriticalDay]
    recovery_recommendation: Optional[RecoveryRecommendation]
    computed_at: str
    version: str
    is_fallback: bool = False
    fallback_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level,
            "breakdown": self.breakdown.to_dict() if self.breakdown else {},
            "trends": self.trends.to_dict() if self.trends else {},
            "insights": list(self.insights),
            "recommendations": [item.to_dict() for item in self.recommendations],
            "criticalDays": [day.to_dict() for day in self.critical_days],
            "recoveryRecommendation": (
                self.recovery_recommendation.to_dict()
                if self.recovery_recommendation
                else None
            ),
            "computedAt": self.computed_at,
            "version": self.version,
            "isFallback": self.is_fallback,
            "fallbackReason": self.fallback_reason,
        }
