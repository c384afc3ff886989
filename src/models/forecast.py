"""Scenario forecast and strategy gap models.

Scenario forecasts are frozen: derived scenarios are produced with
``model_copy(update=...)`` and never mutate the base scenario.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from src.models.common import (
    Effort,
    Level,
    Score,
    Severity,
    StratOSBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class Timeframe(StrEnum):
    """Forecast horizons accepted by the scenario engine."""

    MONTHS_3 = "3-months"
    MONTHS_6 = "6-months"
    MONTHS_12 = "12-months"
    MONTHS_18 = "18-months"
    MONTHS_24 = "24-months"


_TIMEFRAME_MONTHS: dict[Timeframe, int] = {
    Timeframe.MONTHS_3: 3,
    Timeframe.MONTHS_6: 6,
    Timeframe.MONTHS_12: 12,
    Timeframe.MONTHS_18: 18,
    Timeframe.MONTHS_24: 24,
}


def months_for_timeframe(timeframe: Timeframe | str) -> int:
    """Return the month count for a forecast timeframe.

    Raises
    ------
    ValueError
        If ``timeframe`` is not one of the recognised literals.
    """
    return _TIMEFRAME_MONTHS[Timeframe(timeframe)]


class FocusArea(StrEnum):
    REVENUE = "revenue"
    GROWTH = "growth"
    MARKET_SHARE = "market-share"
    TECHNICAL = "technical"
    ALL = "all"


class ScenarioKind(StrEnum):
    BASE = "base"
    CONSERVATIVE = "conservative"
    OPTIMISTIC = "optimistic"
    DISRUPTION = "disruption"


class AssumptionCategory(StrEnum):
    MARKET = "market"
    TECHNICAL = "technical"
    COMPETITIVE = "competitive"
    RESOURCE = "resource"
    EXTERNAL = "external"


class ImpactIfWrong(StrEnum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"
    CRITICAL = "critical"


class GapCategory(StrEnum):
    MARKET_UNDERSTANDING = "market-understanding"
    COMPETITIVE_POSITIONING = "competitive-positioning"
    TECHNICAL_CAPABILITY = "technical-capability"
    BUSINESS_MODEL = "business-model"
    EXECUTION = "execution"
    RESOURCE_ALLOCATION = "resource-allocation"


# ---------------------------------------------------------------------------
# Scenario forecasts
# ---------------------------------------------------------------------------


class MetricRange(StratOSBase, frozen=True):
    """Conservative / realistic / optimistic triple for one metric."""

    conservative: float
    realistic: float
    optimistic: float


class BusinessMetrics(StratOSBase, frozen=True):
    projected_revenue: MetricRange
    customer_acquisition: MetricRange
    market_share: MetricRange


class TechnicalMetrics(StratOSBase, frozen=True):
    milestones_completed: MetricRange
    development_velocity: MetricRange
    quality_metrics: MetricRange


class ForecastAssumption(StratOSBase, frozen=True):
    id: str
    category: AssumptionCategory
    description: str
    confidence: Score
    impact_if_wrong: ImpactIfWrong
    evidence: list[str] = Field(default_factory=list)
    alternative_scenarios: list[str] = Field(default_factory=list)


class ScenarioRisk(StratOSBase, frozen=True):
    id: str
    description: str
    probability: Score
    impact: Level
    mitigation_strategies: list[str] = Field(default_factory=list)
    time_to_materialize: str


class ScenarioOpportunity(StratOSBase, frozen=True):
    id: str
    description: str
    probability: Score
    impact: Level
    capture_strategies: list[str] = Field(default_factory=list)
    time_to_realize: str


class ScenarioForecast(StratOSBase, frozen=True):
    """One of four linked projections for a timeframe."""

    scenario_id: UUIDv7 = Field(default_factory=new_uuid7)
    key: str
    kind: ScenarioKind
    name: str
    description: str
    timeframe: Timeframe
    focus_area: FocusArea = FocusArea.ALL
    confidence: Score
    assumptions: tuple[ForecastAssumption, ...] = ()
    business_metrics: BusinessMetrics
    technical_metrics: TechnicalMetrics
    risk_factors: tuple[ScenarioRisk, ...] = ()
    opportunity_factors: tuple[ScenarioOpportunity, ...] = ()
    uncertainty_range: float  # expected +/- variance, percent
    generated_at: UTCTimestamp = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Strategy gaps
# ---------------------------------------------------------------------------


SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.SIGNIFICANT: 3,
    Severity.MODERATE: 2,
    Severity.MINOR: 1,
}

URGENCY_WEIGHTS: dict[Level, int] = {
    Level.CRITICAL: 4,
    Level.HIGH: 3,
    Level.MEDIUM: 2,
    Level.LOW: 1,
}


class GapRemediation(StratOSBase):
    action: str
    timeframe: str
    effort: Effort
    cost: float
    expected_outcome: str
    success_probability: Score


class GapImpact(StratOSBase):
    revenue_at_risk: float
    opportunity_cost: float
    competitive_disadvantage: str


class StrategyGap(StratOSBase):
    """A ranked strategic deficiency with remediation actions."""

    id: str
    category: GapCategory
    severity: Severity
    description: str
    evidence_of_gap: list[str] = Field(default_factory=list)
    competitor_advantages: list[str] = Field(default_factory=list)
    recommended_actions: list[GapRemediation] = Field(default_factory=list)
    urgency: Level
    estimated_impact: GapImpact

    @property
    def rank_score(self) -> int:
        """Severity weight plus urgency weight; higher ranks first."""
        return SEVERITY_WEIGHTS[self.severity] + URGENCY_WEIGHTS[self.urgency]
