"""Input records consumed by the analytics engines.

Milestones, business goals, and technical-to-business correlations are
supplied by the record store and treated as read-only by every engine.
Conversations are carried along for the pattern corpus.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field, field_validator, model_validator

from src.models.common import StratOSBase, ensure_utc, utc_now


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MilestoneStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class Complexity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class MarketTiming(StrEnum):
    EARLY = "early"
    ON_TIME = "on-time"
    LATE = "late"
    CRITICAL = "critical"


class GoalCategory(StrEnum):
    REVENUE = "revenue"
    PRODUCT = "product"
    MARKET = "market"
    TECHNICAL = "technical"
    OPERATIONAL = "operational"


class GoalStatus(StrEnum):
    PLANNING = "planning"
    ACTIVE = "active"
    BLOCKED = "blocked"
    COMPLETED = "completed"
    PAUSED = "paused"


class MetricType(StrEnum):
    REVENUE = "revenue"
    GROWTH = "growth"
    EFFICIENCY = "efficiency"
    QUALITY = "quality"
    SATISFACTION = "satisfaction"


# ---------------------------------------------------------------------------
# Technical milestones
# ---------------------------------------------------------------------------


class BusinessContext(StratOSBase):
    """Business-impact metadata attached to a technical milestone."""

    strategic_importance: float = Field(ge=0.0, le=100.0)
    revenue_implication: float = 0.0
    market_timing: MarketTiming = MarketTiming.ON_TIME
    competitive_advantage: str = ""


class Milestone(StratOSBase):
    """A unit of technical work with business-impact metadata.

    ``completion_date`` is present exactly when ``status`` is completed.
    ``dependencies`` holds other milestone ids; cycles are allowed and never
    traversed.
    """

    id: str
    name: str
    description: str = ""
    status: MilestoneStatus = MilestoneStatus.PENDING
    complexity: Complexity = Complexity.MEDIUM
    effort: float = Field(default=0.0, ge=0.0)  # person-hours
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    completion_date: datetime | None = None
    dependencies: list[str] = Field(default_factory=list)
    linked_goals: list[str] = Field(default_factory=list)
    business_context: BusinessContext

    @field_validator("created_at", "updated_at", "completion_date")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_completion_date(self) -> Milestone:
        completed = self.status == MilestoneStatus.COMPLETED
        if completed and self.completion_date is None:
            msg = f"Milestone {self.id} is completed but has no completion_date."
            raise ValueError(msg)
        if not completed and self.completion_date is not None:
            msg = f"Milestone {self.id} has a completion_date but status {self.status}."
            raise ValueError(msg)
        return self

    def is_linked_to(self, goal_id: str) -> bool:
        return goal_id in self.linked_goals

    @property
    def search_text(self) -> str:
        """Case-folded name and description used for keyword matching."""
        return f"{self.name} {self.description}".lower()


# ---------------------------------------------------------------------------
# Business goals
# ---------------------------------------------------------------------------


class GoalDependencies(StratOSBase):
    """Free-text dependency labels declared on a business goal."""

    technical_features: list[str] = Field(default_factory=list)
    business_prerequisites: list[str] = Field(default_factory=list)
    external_factors: list[str] = Field(default_factory=list)


class GoalMetric(StratOSBase):
    id: str
    name: str
    type: MetricType
    target: float
    current: float = 0.0
    unit: str = ""
    timeframe: str = ""


class BusinessMilestone(StratOSBase):
    """Business-level milestone tracked on a goal (not a technical Milestone)."""

    id: str
    title: str
    description: str = ""
    target_date: datetime | None = None
    status: MilestoneStatus = MilestoneStatus.PENDING
    completion_date: datetime | None = None


class BusinessGoal(StratOSBase):
    """A measurable business objective.

    ``confidence`` is an externally supplied estimate; ``None`` means absent
    and the engines substitute the configured default.
    """

    id: str
    title: str
    description: str = ""
    category: GoalCategory
    status: GoalStatus = GoalStatus.ACTIVE
    confidence: float | None = Field(default=None, ge=0.0, le=100.0)
    dependencies: GoalDependencies = Field(default_factory=GoalDependencies)
    metrics: list[GoalMetric] = Field(default_factory=list)
    milestones: list[BusinessMilestone] = Field(default_factory=list)
    owner: str = ""
    last_updated: datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Correlations and conversations
# ---------------------------------------------------------------------------


class ProgressCorrelation(StratOSBase):
    """Measured link between one technical milestone and one business goal.

    The sign of ``correlation_strength`` is direction, the magnitude is
    strength. Engines only aggregate it.
    """

    technical_milestone_id: str
    business_goal_id: str
    correlation_strength: float = Field(ge=-100.0, le=100.0)
    impact_delay_days: int = 0
    multiplier_effect: float = 1.0
    last_updated: datetime = Field(default_factory=utc_now)

    @property
    def magnitude(self) -> float:
        return abs(self.correlation_strength)


class StrategyConversation(StratOSBase):
    """A recorded strategy conversation (part of the pattern corpus)."""

    id: str
    type: str
    title: str
    timestamp: datetime = Field(default_factory=utc_now)
    summary: str = ""
    status: str = "active"
    linked_goals: list[str] = Field(default_factory=list)
