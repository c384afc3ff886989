"""Strategy gap identification -- five independent rule checks, ranked.

Each check returns at most one ``StrategyGap`` with fixed severity,
urgency, cost, and impact constants. The combined list is ordered by
severity weight + urgency weight, highest first; ``sorted`` is stable so
ties keep detection order:

1. no-market-goals               market-understanding
2. unsupported-goals             technical-capability
3. delayed-critical-timing       competitive-positioning
4. weak-tech-business-alignment  business-model
5. low-execution-rate            execution
"""

from __future__ import annotations

import logging

from src.analytics.config import AnalyticsConfig, GapConfig
from src.models.common import Effort, Level, Severity
from src.models.forecast import GapCategory, GapImpact, GapRemediation, StrategyGap
from src.models.records import (
    BusinessGoal,
    GoalCategory,
    MarketTiming,
    Milestone,
    MilestoneStatus,
    ProgressCorrelation,
)

logger = logging.getLogger(__name__)


def check_market_understanding(
    goals: list[BusinessGoal], market_context: list[str] | None = None
) -> list[StrategyGap]:
    if any(g.category == GoalCategory.MARKET for g in goals):
        return []

    evidence = [
        "Zero goals categorized as market-focused",
        "All goals are internal/technical",
    ]
    if market_context:
        evidence.append(f"Market context: {', '.join(market_context)}")

    return [
        StrategyGap(
            id="no-market-goals",
            category=GapCategory.MARKET_UNDERSTANDING,
            severity=Severity.SIGNIFICANT,
            description="No explicit market-focused business goals defined",
            evidence_of_gap=evidence,
            competitor_advantages=[
                "Competitors may have clearer market strategy",
                "Market opportunities may be missed",
            ],
            recommended_actions=[
                GapRemediation(
                    action=(
                        "Define 2-3 market-focused goals "
                        "(customer acquisition, market share, positioning)"
                    ),
                    timeframe="2-4 weeks",
                    effort=Effort.MEDIUM,
                    cost=5000,
                    expected_outcome="Clear market strategy with measurable objectives",
                    success_probability=80,
                )
            ],
            urgency=Level.HIGH,
            estimated_impact=GapImpact(
                revenue_at_risk=50000,
                opportunity_cost=100000,
                competitive_disadvantage="Unclear value proposition and target market",
            ),
        )
    ]


def check_technical_capability(
    milestones: list[Milestone], goals: list[BusinessGoal]
) -> list[StrategyGap]:
    unsupported = [g for g in goals if not any(m.is_linked_to(g.id) for m in milestones)]
    if not unsupported:
        return []

    return [
        StrategyGap(
            id="unsupported-goals",
            category=GapCategory.TECHNICAL_CAPABILITY,
            severity=Severity.MODERATE,
            description=(
                f"{len(unsupported)} business goals lack technical implementation plans"
            ),
            evidence_of_gap=[
                f'Goal "{g.title}" has no linked technical milestones' for g in unsupported
            ],
            competitor_advantages=["May deliver faster due to aligned technical work"],
            recommended_actions=[
                GapRemediation(
                    action="Create technical roadmaps for each unsupported business goal",
                    timeframe="3-6 weeks",
                    effort=Effort.MEDIUM,
                    cost=15000,
                    expected_outcome="Clear technical path to business objectives",
                    success_probability=75,
                )
            ],
            urgency=Level.MEDIUM,
            estimated_impact=GapImpact(
                revenue_at_risk=25000,
                opportunity_cost=50000,
                competitive_disadvantage=(
                    "Goals without execution plans are unlikely to be achieved"
                ),
            ),
        )
    ]


def check_competitive_positioning(milestones: list[Milestone]) -> list[StrategyGap]:
    delayed = [
        m
        for m in milestones
        if m.business_context.market_timing == MarketTiming.CRITICAL
        and m.status == MilestoneStatus.DELAYED
    ]
    if not delayed:
        return []

    return [
        StrategyGap(
            id="delayed-critical-timing",
            category=GapCategory.COMPETITIVE_POSITIONING,
            severity=Severity.CRITICAL,
            description=(
                f"{len(delayed)} critical timing milestones are delayed, "
                "risking competitive position"
            ),
            evidence_of_gap=[
                f'"{m.name}" delayed ({m.business_context.strategic_importance:g}% importance)'
                for m in delayed
            ],
            competitor_advantages=[
                "May capture first-mover advantage",
                "Could establish market position before us",
            ],
            recommended_actions=[
                GapRemediation(
                    action="Emergency sprint to complete critical timing milestones",
                    timeframe="2-4 weeks",
                    effort=Effort.HIGH,
                    cost=30000,
                    expected_outcome="Competitive timing preserved",
                    success_probability=60,
                )
            ],
            urgency=Level.CRITICAL,
            estimated_impact=GapImpact(
                revenue_at_risk=150000,
                opportunity_cost=300000,
                competitive_disadvantage="Loss of first-mover advantage in key areas",
            ),
        )
    ]


def check_business_model(
    correlations: list[ProgressCorrelation], cfg: GapConfig
) -> list[StrategyGap]:
    weak = [c for c in correlations if c.magnitude < cfg.weak_correlation_threshold]
    if not len(weak) > len(correlations) * cfg.weak_correlation_share:
        return []

    return [
        StrategyGap(
            id="weak-tech-business-alignment",
            category=GapCategory.BUSINESS_MODEL,
            severity=Severity.MODERATE,
            description=(
                "Weak correlations between technical work and business outcomes "
                "suggest unclear value creation"
            ),
            evidence_of_gap=[
                f"{len(weak)}/{len(correlations)} correlations below "
                f"{cfg.weak_correlation_threshold:g}% strength"
            ],
            competitor_advantages=[
                "More focused technical work may deliver better business results"
            ],
            recommended_actions=[
                GapRemediation(
                    action="Strategic review to align technical roadmap with business model",
                    timeframe="4-6 weeks",
                    effort=Effort.MEDIUM,
                    cost=20000,
                    expected_outcome="Stronger technical-business alignment",
                    success_probability=70,
                )
            ],
            urgency=Level.MEDIUM,
            estimated_impact=GapImpact(
                revenue_at_risk=40000,
                opportunity_cost=80000,
                competitive_disadvantage="Inefficient resource allocation",
            ),
        )
    ]


def check_execution(milestones: list[Milestone], cfg: GapConfig) -> list[StrategyGap]:
    if len(milestones) < cfg.low_completion_min_milestones:
        return []
    completed = sum(1 for m in milestones if m.status == MilestoneStatus.COMPLETED)
    rate = completed / len(milestones)
    if rate >= cfg.low_completion_rate:
        return []

    return [
        StrategyGap(
            id="low-execution-rate",
            category=GapCategory.EXECUTION,
            severity=Severity.SIGNIFICANT,
            description=(
                f"Low milestone completion rate ({rate * 100:.1f}%) "
                "indicates execution challenges"
            ),
            evidence_of_gap=[f"{completed}/{len(milestones)} milestones completed"],
            competitor_advantages=[
                "Faster execution may capture market opportunities first"
            ],
            recommended_actions=[
                GapRemediation(
                    action=(
                        "Execution improvement program: process analysis, "
                        "resource allocation, milestone scope review"
                    ),
                    timeframe="6-8 weeks",
                    effort=Effort.HIGH,
                    cost=25000,
                    expected_outcome="Improved milestone completion rate",
                    success_probability=65,
                )
            ],
            urgency=Level.HIGH,
            estimated_impact=GapImpact(
                revenue_at_risk=75000,
                opportunity_cost=150000,
                competitive_disadvantage="Slow execution reduces competitive responsiveness",
            ),
        )
    ]


def rank_gaps(gaps: list[StrategyGap]) -> list[StrategyGap]:
    """Stable descending sort by severity weight + urgency weight."""
    return sorted(gaps, key=lambda g: g.rank_score, reverse=True)


class StrategyGapAnalyzer:
    """Runs the five gap checks and ranks the findings."""

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config: GapConfig = (config or AnalyticsConfig()).gaps

    def identify_strategy_gaps(
        self,
        milestones: list[Milestone],
        goals: list[BusinessGoal],
        correlations: list[ProgressCorrelation],
        market_context: list[str] | None = None,
    ) -> list[StrategyGap]:
        gaps = [
            *check_market_understanding(goals, market_context),
            *check_technical_capability(milestones, goals),
            *check_competitive_positioning(milestones),
            *check_business_model(correlations, self._config),
            *check_execution(milestones, self._config),
        ]
        logger.debug("Identified %d strategy gaps: %s", len(gaps), [g.id for g in gaps])
        return rank_gaps(gaps)
