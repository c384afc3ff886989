"""Goal health, velocity, and completion-forecast output models.

Created fresh on every engine call and owned by the caller once returned.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from src.models.common import (
    Effort,
    HealthStatus,
    Level,
    Score,
    StratOSBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class DimensionName(StrEnum):
    PROGRESS = "progress"
    VELOCITY = "velocity"
    CONFIDENCE = "confidence"
    DEPENDENCY = "dependency"
    ALIGNMENT = "alignment"


class DimensionTrend(StrEnum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class BlockerType(StrEnum):
    TECHNICAL = "technical"
    RESOURCE = "resource"
    DEPENDENCY = "dependency"
    EXTERNAL = "external"
    STRATEGIC = "strategic"


class AcceleratorType(StrEnum):
    TECHNICAL = "technical"
    RESOURCE = "resource"
    MARKET = "market"
    PARTNERSHIP = "partnership"
    INNOVATION = "innovation"


class RiskType(StrEnum):
    TIMELINE = "timeline"
    SCOPE = "scope"
    RESOURCE = "resource"
    MARKET = "market"
    TECHNICAL = "technical"
    COMPETITIVE = "competitive"


class VelocityTrend(StrEnum):
    ACCELERATING = "accelerating"
    STEADY = "steady"
    DECELERATING = "decelerating"
    STALLED = "stalled"


class DataStatus(StrEnum):
    SUFFICIENT = "sufficient"
    INSUFFICIENT = "insufficient-data"


# ---------------------------------------------------------------------------
# Health assessment
# ---------------------------------------------------------------------------


class GoalDimension(StratOSBase):
    """One scored facet of goal health."""

    name: DimensionName
    score: Score
    status: HealthStatus
    description: str
    trend: DimensionTrend = DimensionTrend.STABLE
    evidence: list[str] = Field(default_factory=list)


class HealthDimensions(StratOSBase):
    progress: GoalDimension
    velocity: GoalDimension
    confidence: GoalDimension
    dependency: GoalDimension
    alignment: GoalDimension

    def as_list(self) -> list[GoalDimension]:
        return [
            self.progress,
            self.velocity,
            self.confidence,
            self.dependency,
            self.alignment,
        ]


class GoalBlocker(StratOSBase):
    id: str
    type: BlockerType
    description: str
    severity: Level
    impact: str
    recommended_action: str
    estimated_resolution_time: str


class GoalAccelerator(StratOSBase):
    id: str
    type: AcceleratorType
    description: str
    potential_impact: str
    implementation_effort: Effort
    time_to_realization: str


class GoalRisk(StratOSBase):
    id: str
    type: RiskType
    description: str
    probability: Score
    impact: Level
    mitigation_strategy: str


class GoalHealthAssessment(StratOSBase, frozen=True):
    """Immutable health snapshot for one goal.

    ``health_score`` is the unweighted mean of the five dimension scores.
    """

    assessment_id: UUIDv7 = Field(default_factory=new_uuid7)
    goal_id: str
    goal_name: str
    overall_health: HealthStatus
    health_score: Score
    dimensions: HealthDimensions
    blockers: list[GoalBlocker] = Field(default_factory=list)
    accelerators: list[GoalAccelerator] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    risk_factors: list[GoalRisk] = Field(default_factory=list)
    assessed_at: UTCTimestamp = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Velocity and completion forecast
# ---------------------------------------------------------------------------


class ConfidenceInterval(StratOSBase):
    """Date band around a projection. All ``None`` when data is insufficient."""

    optimistic: datetime | None = None
    realistic: datetime | None = None
    pessimistic: datetime | None = None


class VelocityMetrics(StratOSBase, frozen=True):
    goal_id: str
    current_velocity: float = 0.0  # milestones per month
    target_velocity: float = 0.0
    velocity_trend: VelocityTrend = VelocityTrend.STALLED
    efficiency: Score = 0.0
    data_status: DataStatus = DataStatus.INSUFFICIENT
    projected_completion: datetime | None = None
    confidence_interval: ConfidenceInterval = Field(default_factory=ConfidenceInterval)

    @property
    def has_projection(self) -> bool:
        return self.projected_completion is not None


class ForecastPoint(StratOSBase):
    date: datetime | None = None
    probability: Score


class ScenarioAnalysis(StratOSBase):
    best: ForecastPoint
    likely: ForecastPoint
    worst: ForecastPoint


class CompletionForecast(StratOSBase, frozen=True):
    goal_id: str
    forecast_method: str = "correlation-weighted"
    projected_completion_date: datetime | None = None
    confidence: Score
    scenario_analysis: ScenarioAnalysis
    critical_path: list[str] = Field(default_factory=list)
    assumptions: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    generated_at: UTCTimestamp = Field(default_factory=utc_now)
