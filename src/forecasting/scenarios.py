"""Multi-scenario forecasting -- one base estimate, three derived variants.

The base scenario is computed from the record collections with a built-in
conservative bias:

- completion rate = min(0.7, historical rate x 0.8)
- revenue multiplier = min(0.8, mean |correlation| / 100)
- confidence capped at 85

Conservative, optimistic, and disruption scenarios are pure transforms of
the base (``derive_*``). Conservative shifts each triple one tier down
(base conservative x 0.6 becomes the new floor), optimistic shifts one
tier up (base optimistic x 1.67 becomes the new ceiling). The base object
is never mutated.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
import math

from src.analytics.config import AnalyticsConfig, ForecastConfig
from src.models.common import Level, new_uuid7
from src.models.forecast import (
    AssumptionCategory,
    BusinessMetrics,
    FocusArea,
    ForecastAssumption,
    ImpactIfWrong,
    MetricRange,
    ScenarioForecast,
    ScenarioKind,
    ScenarioOpportunity,
    ScenarioRisk,
    TechnicalMetrics,
    Timeframe,
    months_for_timeframe,
)
from src.models.records import (
    BusinessGoal,
    Milestone,
    MilestoneStatus,
    ProgressCorrelation,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf (2.5 -> 3)."""
    return math.floor(value + 0.5)


def _tiers(base: float, factors: tuple[float, float, float], *, rounded: bool) -> MetricRange:
    values = [base * f for f in factors]
    if rounded:
        values = [round_half_up(v) for v in values]
    return MetricRange(conservative=values[0], realistic=values[1], optimistic=values[2])


def _fixed(values: tuple[float, float, float]) -> MetricRange:
    return MetricRange(conservative=values[0], realistic=values[1], optimistic=values[2])


def shift_down(metric: MetricRange, multiplier: float, *, rounded: bool = False) -> MetricRange:
    """Relabel one tier down: new floor is the old floor scaled down."""
    floor = metric.conservative * multiplier
    return MetricRange(
        conservative=round_half_up(floor) if rounded else floor,
        realistic=metric.conservative,
        optimistic=metric.realistic,
    )


def shift_up(
    metric: MetricRange,
    multiplier: float,
    *,
    rounded: bool = False,
    ceiling: float | None = None,
) -> MetricRange:
    """Relabel one tier up: new ceiling is the old ceiling scaled up."""
    top = metric.optimistic * multiplier
    if rounded:
        top = round_half_up(top)
    if ceiling is not None:
        top = min(ceiling, top)
    return MetricRange(
        conservative=metric.realistic,
        realistic=metric.optimistic,
        optimistic=top,
    )


# ---------------------------------------------------------------------------
# Base scenario
# ---------------------------------------------------------------------------


def build_base_scenario(
    milestones: list[Milestone],
    goals: list[BusinessGoal],
    correlations: list[ProgressCorrelation],
    timeframe: Timeframe | str,
    focus_area: FocusArea | str | None = None,
    config: ForecastConfig | None = None,
) -> ScenarioForecast:
    """Compute the realistic base case with its conservative adjustments.

    Raises
    ------
    ValueError
        If ``timeframe`` is not a recognised forecast horizon.
    """
    cfg = config or ForecastConfig()
    timeframe = Timeframe(timeframe)
    months = months_for_timeframe(timeframe)
    focus = FocusArea(focus_area) if focus_area is not None else FocusArea.ALL

    total = len(milestones)
    completed = sum(1 for m in milestones if m.status == MilestoneStatus.COMPLETED)
    in_progress = sum(1 for m in milestones if m.status == MilestoneStatus.IN_PROGRESS)

    historical_rate = completed / total if total else cfg.default_completion_rate
    adjusted_rate = min(cfg.max_completion_rate, historical_rate * cfg.completion_haircut)

    total_revenue = sum(m.business_context.revenue_implication for m in milestones)
    avg_corr = (
        sum(c.magnitude for c in correlations) / len(correlations)
        if correlations
        else cfg.default_correlation
    )
    revenue_multiplier = min(cfg.max_revenue_multiplier, avg_corr / 100.0)

    assumptions = (
        ForecastAssumption(
            id="completion-rate",
            category=AssumptionCategory.TECHNICAL,
            description=(
                f"Milestone completion rate of {adjusted_rate * 100:.1f}% "
                "based on historical performance"
            ),
            confidence=min(70.0, (completed + in_progress) * 15.0),
            impact_if_wrong=ImpactIfWrong.SIGNIFICANT,
            evidence=[
                f"{completed} completed, {in_progress} in progress out of {total} total"
            ],
            alternative_scenarios=[
                "Faster completion due to learning curve",
                "Slower completion due to complexity creep",
            ],
        ),
        ForecastAssumption(
            id="revenue-realization",
            category=AssumptionCategory.MARKET,
            description=(
                f"Revenue realization rate of {revenue_multiplier * 100:.1f}% "
                "based on technical-business correlations"
            ),
            confidence=min(60.0, avg_corr),
            impact_if_wrong=ImpactIfWrong.CRITICAL,
            evidence=[
                f"Average correlation strength: {avg_corr:.1f}%",
                f"{len(correlations)} data points",
            ],
            alternative_scenarios=[
                "Higher realization if market adoption accelerates",
                "Lower realization if competitive pressure increases",
            ],
        ),
        ForecastAssumption(
            id="market-conditions",
            category=AssumptionCategory.MARKET,
            description=(
                "Stable market conditions with gradual growth in educational "
                "technology sector"
            ),
            confidence=50.0,
            impact_if_wrong=ImpactIfWrong.SIGNIFICANT,
            evidence=["Historical EdTech growth patterns", "Current market indicators"],
            alternative_scenarios=[
                "Rapid AI adoption accelerates market",
                "Economic downturn slows EdTech spending",
            ],
        ),
    )

    risks = (
        ScenarioRisk(
            id="technical-complexity",
            description="Technical complexity may slow development more than expected",
            probability=50.0,
            impact=Level.MEDIUM,
            mitigation_strategies=[
                "Break down complex features",
                "Add buffer time to estimates",
                "Invest in developer tools",
            ],
            time_to_materialize="1-3 months",
        ),
        ScenarioRisk(
            id="competitive-pressure",
            description=(
                "Competitors may launch similar features, reducing our advantage window"
            ),
            probability=40.0,
            impact=Level.HIGH,
            mitigation_strategies=[
                "Accelerate development",
                "Focus on unique differentiators",
                "Build switching costs",
            ],
            time_to_materialize="3-6 months",
        ),
    )

    opportunities = (
        ScenarioOpportunity(
            id="privacy-momentum",
            description=(
                "Growing privacy concerns may accelerate demand for "
                "privacy-by-design solutions"
            ),
            probability=45.0,
            impact=Level.HIGH,
            capture_strategies=[
                "Amplify privacy messaging",
                "Target privacy-conscious institutions",
                "Thought leadership",
            ],
            time_to_realize="2-6 months",
        ),
    )

    return ScenarioForecast(
        key=f"base-scenario-{timeframe}",
        kind=ScenarioKind.BASE,
        name="Base Case (Realistic)",
        description="Most likely scenario based on current data with conservative adjustments",
        timeframe=timeframe,
        focus_area=focus,
        confidence=min(cfg.max_confidence, cfg.base_confidence),
        assumptions=assumptions,
        business_metrics=BusinessMetrics(
            projected_revenue=_tiers(
                total_revenue * revenue_multiplier, cfg.revenue_tiers, rounded=True
            ),
            customer_acquisition=_tiers(months, cfg.customers_per_month, rounded=True),
            market_share=_fixed(cfg.market_share),
        ),
        technical_metrics=TechnicalMetrics(
            milestones_completed=_tiers(total * adjusted_rate, cfg.milestone_tiers, rounded=True),
            development_velocity=_fixed(cfg.development_velocity),
            quality_metrics=_fixed(cfg.base_quality),
        ),
        risk_factors=risks,
        opportunity_factors=opportunities,
        uncertainty_range=cfg.base_uncertainty,
    )


# ---------------------------------------------------------------------------
# Derived scenarios
# ---------------------------------------------------------------------------


def derive_conservative(
    base: ScenarioForecast, config: ForecastConfig | None = None
) -> ScenarioForecast:
    """Shift every triple one tier down and claim more certainty."""
    cfg = config or ForecastConfig()
    k = cfg.conservative_multiplier
    bm = base.business_metrics
    tm = base.technical_metrics
    return base.model_copy(
        update={
            "scenario_id": new_uuid7(),
            "key": f"conservative-scenario-{base.timeframe}",
            "kind": ScenarioKind.CONSERVATIVE,
            "name": "Conservative (Defensive Planning)",
            "description": "Scenario accounting for likely setbacks and challenges",
            "confidence": min(base.confidence + cfg.conservative_confidence_step, cfg.max_confidence),
            "business_metrics": BusinessMetrics(
                projected_revenue=shift_down(bm.projected_revenue, k, rounded=True),
                customer_acquisition=shift_down(bm.customer_acquisition, k, rounded=True),
                market_share=shift_down(bm.market_share, k),
            ),
            "technical_metrics": TechnicalMetrics(
                milestones_completed=shift_down(tm.milestones_completed, k, rounded=True),
                development_velocity=shift_down(tm.development_velocity, k),
                quality_metrics=_fixed(cfg.conservative_quality),
            ),
            "risk_factors": (
                *base.risk_factors,
                ScenarioRisk(
                    id="resource-constraints",
                    description=(
                        "Development resources become constrained due to competing priorities"
                    ),
                    probability=70.0,
                    impact=Level.HIGH,
                    mitigation_strategies=[
                        "Strict prioritization",
                        "Resource planning",
                        "Scope reduction",
                    ],
                    time_to_materialize="1-2 months",
                ),
            ),
            "uncertainty_range": cfg.conservative_uncertainty,
        }
    )


def derive_optimistic(
    base: ScenarioForecast,
    total_milestones: int,
    config: ForecastConfig | None = None,
) -> ScenarioForecast:
    """Shift every triple one tier up and claim less certainty.

    The optimistic milestone count never exceeds ``total_milestones``.
    """
    cfg = config or ForecastConfig()
    k = cfg.optimistic_multiplier
    bm = base.business_metrics
    tm = base.technical_metrics
    return base.model_copy(
        update={
            "scenario_id": new_uuid7(),
            "key": f"optimistic-scenario-{base.timeframe}",
            "kind": ScenarioKind.OPTIMISTIC,
            "name": "Optimistic (Upside Case)",
            "description": "Scenario where things go better than expected, but within reason",
            "confidence": min(
                base.confidence - cfg.optimistic_confidence_step,
                cfg.optimistic_confidence_cap,
                cfg.max_confidence,
            ),
            "business_metrics": BusinessMetrics(
                projected_revenue=shift_up(bm.projected_revenue, k, rounded=True),
                customer_acquisition=shift_up(bm.customer_acquisition, k, rounded=True),
                market_share=shift_up(bm.market_share, k),
            ),
            "technical_metrics": TechnicalMetrics(
                milestones_completed=shift_up(
                    tm.milestones_completed, k, rounded=True, ceiling=total_milestones
                ),
                development_velocity=shift_up(tm.development_velocity, k),
                quality_metrics=_fixed(cfg.optimistic_quality),
            ),
            "opportunity_factors": (
                *base.opportunity_factors,
                ScenarioOpportunity(
                    id="market-acceleration",
                    description=(
                        "Educational AI market grows faster than expected due to policy changes"
                    ),
                    probability=40.0,
                    impact=Level.CRITICAL,
                    capture_strategies=[
                        "Rapid scaling",
                        "Strategic partnerships",
                        "Thought leadership",
                    ],
                    time_to_realize="3-9 months",
                ),
            ),
            "uncertainty_range": cfg.optimistic_uncertainty,
        }
    )


def derive_disruption(
    base: ScenarioForecast, config: ForecastConfig | None = None
) -> ScenarioForecast:
    """Keep the base numbers, drop confidence, add external shocks."""
    cfg = config or ForecastConfig()
    return base.model_copy(
        update={
            "scenario_id": new_uuid7(),
            "key": f"disruption-scenario-{base.timeframe}",
            "kind": ScenarioKind.DISRUPTION,
            "name": "Market Disruption (External Factors)",
            "description": "Scenario accounting for significant external market changes",
            "confidence": min(cfg.disruption_confidence, cfg.max_confidence),
            "assumptions": (
                *base.assumptions,
                ForecastAssumption(
                    id="market-disruption",
                    category=AssumptionCategory.EXTERNAL,
                    description=(
                        "Significant change in educational technology landscape "
                        "(AI regulation, new platforms, etc.)"
                    ),
                    confidence=20.0,
                    impact_if_wrong=ImpactIfWrong.CRITICAL,
                    evidence=[
                        "Historical disruption patterns",
                        "Regulatory signals",
                        "Technology trends",
                    ],
                    alternative_scenarios=[
                        "Gradual change",
                        "No major disruption",
                        "Multiple smaller disruptions",
                    ],
                ),
            ),
            "risk_factors": (
                *base.risk_factors,
                ScenarioRisk(
                    id="platform-disruption",
                    description="Major education platform launches competing solution",
                    probability=40.0,
                    impact=Level.CRITICAL,
                    mitigation_strategies=[
                        "Differentiation focus",
                        "Partnership strategy",
                        "Rapid innovation",
                    ],
                    time_to_materialize="3-12 months",
                ),
                ScenarioRisk(
                    id="regulatory-change",
                    description="New AI regulations significantly impact educational AI tools",
                    probability=30.0,
                    impact=Level.HIGH,
                    mitigation_strategies=[
                        "Compliance preparation",
                        "Policy engagement",
                        "Regulatory arbitrage",
                    ],
                    time_to_materialize="6-18 months",
                ),
            ),
            "uncertainty_range": cfg.disruption_uncertainty,
        }
    )


# ---------------------------------------------------------------------------
# Forecaster
# ---------------------------------------------------------------------------


class ScenarioForecaster:
    """Produces the four linked scenarios for a forecast horizon."""

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config: ForecastConfig = (config or AnalyticsConfig()).forecast

    def generate_multi_scenario_forecast(
        self,
        milestones: list[Milestone],
        goals: list[BusinessGoal],
        correlations: list[ProgressCorrelation],
        timeframe: Timeframe | str,
        focus_area: FocusArea | str | None = None,
    ) -> list[ScenarioForecast]:
        """Return ``[base, conservative, optimistic, disruption]``.

        ``focus_area`` is recorded on every scenario; it does not change
        the figures.
        """
        base = build_base_scenario(
            milestones, goals, correlations, timeframe, focus_area, self._config
        )
        scenarios = [
            base,
            derive_conservative(base, self._config),
            derive_optimistic(base, len(milestones), self._config),
            derive_disruption(base, self._config),
        ]
        logger.debug(
            "Forecast %s over %d milestones: confidences %s",
            base.timeframe, len(milestones), [s.confidence for s in scenarios],
        )
        return scenarios
