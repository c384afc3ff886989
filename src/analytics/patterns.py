"""Pattern recognition engine -- six detectors, trends, cross-milestone analysis.

Each detector is an independent pure function over the record collections
returning zero or more ``StrategicPattern`` objects. ``analyze_patterns``
concatenates them in a fixed order:

1. efficiency      high-value milestones completed
2. velocity        latest completion faster than the historical mean
3. correlation     milestones strongly correlated with several goals
4. risk            delayed high-importance milestones
5. opportunity     completed early-market milestones
6. domain          keyword templates (see ``src.analytics.templates``)

The engine owns append-only logs of everything it detects; every call adds
to them and nothing is ever replaced.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from src.analytics.config import AnalyticsConfig, PatternConfig
from src.analytics.pattern_log import AppendOnlyLog, PatternLog
from src.analytics.templates import DOMAIN_PATTERN_TEMPLATES, DomainPatternTemplate
from src.models.common import Level, utc_now
from src.models.patterns import (
    BusinessImpact,
    CrossMilestoneAnalysis,
    CrossPatternType,
    EvidenceType,
    PatternEvidence,
    PatternType,
    StrategicPattern,
    TrendAnalysis,
    TrendDirection,
    TrendPoint,
    TrendProjection,
    TrendWindow,
    window_start,
)
from src.models.records import (
    BusinessGoal,
    Complexity,
    MarketTiming,
    Milestone,
    MilestoneStatus,
    ProgressCorrelation,
    StrategyConversation,
)

logger = logging.getLogger(__name__)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def _money(value: float) -> str:
    return f"${value:,.0f}"


def _settled_at(m: Milestone) -> datetime:
    return m.completion_date or m.updated_at


# ---------------------------------------------------------------------------
# Detectors
# ---------------------------------------------------------------------------


def detect_efficiency_patterns(
    milestones: list[Milestone], cfg: PatternConfig
) -> list[StrategicPattern]:
    completed = [m for m in milestones if m.status == MilestoneStatus.COMPLETED]
    if len(completed) < cfg.efficiency_min_completed:
        return []

    avg_importance = _mean([m.business_context.strategic_importance for m in completed])
    avg_revenue = _mean([m.business_context.revenue_implication for m in completed])
    if avg_importance < cfg.efficiency_min_importance or avg_revenue < cfg.efficiency_min_revenue:
        return []

    return [
        StrategicPattern(
            key="efficiency-high-value-completion",
            type=PatternType.EFFICIENCY,
            name="High-Value Milestone Completion Efficiency",
            description=(
                "Strong pattern of completing high-strategic-importance milestones "
                f"(avg {avg_importance:.1f}%) with significant revenue impact "
                f"(avg {_money(avg_revenue)})"
            ),
            confidence=min(
                cfg.efficiency_confidence_cap,
                cfg.efficiency_confidence_base + cfg.efficiency_confidence_step * len(completed),
            ),
            evidence=[
                PatternEvidence(
                    type=EvidenceType.MILESTONE,
                    id=m.id,
                    description=(
                        f"Completed: {m.name} "
                        f"({m.business_context.strategic_importance:g}% importance, "
                        f"{_money(m.business_context.revenue_implication)} revenue)"
                    ),
                    value=m.business_context.strategic_importance,
                    timestamp=_settled_at(m),
                )
                for m in completed
            ],
            implications=[
                "Team demonstrates consistent ability to deliver high-value technical work",
                "Strategic prioritization is working effectively",
                "Business impact correlation is strong and reliable",
            ],
            recommendations=[
                "Continue prioritizing high-strategic-importance milestones",
                "Use this efficiency pattern as template for future milestone planning",
                "Consider increasing scope of similar high-value initiatives",
            ],
            timeframe="current-ongoing",
            business_impact=BusinessImpact(
                revenue=avg_revenue * len(completed),
                risk=Level.LOW,
                opportunity=Level.HIGH,
                urgency=Level.MEDIUM,
            ),
            frequency=len(completed),
        )
    ]


def detect_velocity_patterns(
    milestones: list[Milestone], cfg: PatternConfig
) -> list[StrategicPattern]:
    """Compare the most recent completion's duration with the mean duration."""
    dated = sorted(
        (
            m
            for m in milestones
            if m.status == MilestoneStatus.COMPLETED and m.completion_date is not None
        ),
        key=lambda m: m.completion_date,
    )
    if len(dated) < cfg.velocity_min_completed:
        return []

    durations = [(m.completion_date - m.created_at).total_seconds() / 86400.0 for m in dated]
    avg = _mean(durations)
    recent = durations[-1]
    if not recent < avg * cfg.velocity_acceleration_ratio:
        return []

    improvement = (avg - recent) / avg * 100.0 if avg else 0.0
    return [
        StrategicPattern(
            key="velocity-acceleration",
            type=PatternType.VELOCITY,
            name="Milestone Completion Acceleration",
            description=(
                "Development velocity is increasing. Recent milestone completed in "
                f"{recent:.1f} days vs {avg:.1f} day average"
            ),
            confidence=cfg.velocity_confidence,
            evidence=[
                PatternEvidence(
                    type=EvidenceType.MILESTONE,
                    id=dated[-1].id,
                    description=f"Completion time improvement: {improvement:.1f}% faster",
                    value=recent,
                    timestamp=dated[-1].completion_date,
                )
            ],
            implications=[
                "Team efficiency is improving over time",
                "Learning from previous milestones is accelerating delivery",
                "Current architecture and processes support faster development",
            ],
            recommendations=[
                "Document what factors are driving this acceleration",
                "Consider taking on more ambitious milestones",
                "Share acceleration insights with broader team",
            ],
            timeframe="short-term-trend",
            business_impact=BusinessImpact(
                revenue=0.0,
                risk=Level.LOW,
                opportunity=Level.HIGH,
                urgency=Level.MEDIUM,
            ),
        )
    ]


def detect_correlation_patterns(
    correlations: list[ProgressCorrelation],
    milestones: list[Milestone],
    cfg: PatternConfig,
) -> list[StrategicPattern]:
    """One pattern per milestone with several strong goal correlations."""
    by_milestone: dict[str, list[ProgressCorrelation]] = {}
    for c in correlations:
        if c.magnitude >= cfg.strong_correlation_threshold:
            by_milestone.setdefault(c.technical_milestone_id, []).append(c)

    milestones_by_id = {m.id: m for m in milestones}
    patterns: list[StrategicPattern] = []
    for milestone_id, corrs in by_milestone.items():
        milestone = milestones_by_id.get(milestone_id)
        if len(corrs) < cfg.correlation_cluster_min or milestone is None:
            continue
        avg = _mean([c.magnitude for c in corrs])
        patterns.append(
            StrategicPattern(
                key=f"correlation-cluster-{milestone_id}",
                type=PatternType.CORRELATION,
                name="Multiple Strong Business Correlations",
                description=(
                    f"{milestone.name} shows strong correlations (avg {avg:.1f}%) with "
                    f"{len(corrs)} business goals, indicating high strategic value"
                ),
                confidence=min(
                    cfg.correlation_confidence_cap,
                    cfg.correlation_confidence_base + avg * cfg.correlation_confidence_weight,
                ),
                evidence=[
                    PatternEvidence(
                        type=EvidenceType.CORRELATION,
                        id=c.business_goal_id,
                        description=(
                            f"{c.correlation_strength:g}% correlation with business goal"
                        ),
                        value=c.correlation_strength,
                        timestamp=c.last_updated,
                    )
                    for c in corrs
                ],
                implications=[
                    "This milestone has exceptionally broad business impact",
                    "Success here will advance multiple strategic objectives simultaneously",
                    "Failure or delay would have cascading business effects",
                ],
                recommendations=[
                    "Prioritize completion of this high-correlation milestone",
                    "Ensure adequate resources and attention to prevent delays",
                    "Use this as template for future high-impact milestone design",
                ],
                timeframe="immediate-focus",
                business_impact=BusinessImpact(
                    revenue=milestone.business_context.revenue_implication,
                    risk=Level.MEDIUM,
                    opportunity=Level.CRITICAL,
                    urgency=Level.HIGH,
                ),
                frequency=len(corrs),
            )
        )
    return patterns


def detect_risk_patterns(
    milestones: list[Milestone], cfg: PatternConfig
) -> list[StrategicPattern]:
    delayed = [
        m
        for m in milestones
        if m.status == MilestoneStatus.DELAYED
        and m.business_context.strategic_importance >= cfg.risk_min_importance
    ]
    if not delayed:
        return []

    at_risk = sum(m.business_context.revenue_implication for m in delayed)
    return [
        StrategicPattern(
            key="risk-delayed-high-value",
            type=PatternType.RISK,
            name="High-Value Milestone Delay Risk",
            description=(
                f"{len(delayed)} high-strategic-importance milestones "
                f"({cfg.risk_min_importance:g}%+ importance) are delayed, risking "
                f"{_money(at_risk)} in revenue impact"
            ),
            confidence=cfg.risk_confidence,
            evidence=[
                PatternEvidence(
                    type=EvidenceType.MILESTONE,
                    id=m.id,
                    description=(
                        f"Delayed: {m.name} "
                        f"({m.business_context.strategic_importance:g}% importance, "
                        f"{_money(m.business_context.revenue_implication)} at risk)"
                    ),
                    value=m.business_context.strategic_importance,
                    timestamp=m.updated_at,
                )
                for m in delayed
            ],
            implications=[
                "Strategic business objectives are at risk due to technical delays",
                "Revenue projections may need to be revised downward",
                "Competitive positioning could be compromised",
            ],
            recommendations=[
                "Immediately assess blockers for delayed high-value milestones",
                "Consider reallocating resources to unblock critical work",
                "Communicate potential business impact to stakeholders",
                "Develop contingency plans for continued delays",
            ],
            timeframe="immediate-action-required",
            business_impact=BusinessImpact(
                revenue=-at_risk,
                risk=Level.CRITICAL,
                opportunity=Level.LOW,
                urgency=Level.CRITICAL,
            ),
            frequency=len(delayed),
        )
    ]


def detect_opportunity_patterns(
    milestones: list[Milestone], cfg: PatternConfig
) -> list[StrategicPattern]:
    early = [
        m
        for m in milestones
        if m.status == MilestoneStatus.COMPLETED
        and m.business_context.market_timing == MarketTiming.EARLY
    ]
    if not early:
        return []

    realized = sum(m.business_context.revenue_implication for m in early)
    return [
        StrategicPattern(
            key="opportunity-early-market",
            type=PatternType.OPPORTUNITY,
            name="Early Market Advantage Realization",
            description=(
                f"{len(early)} early-market milestones completed, creating first-mover "
                f"advantages worth {_money(realized)}"
            ),
            confidence=cfg.opportunity_confidence,
            evidence=[
                PatternEvidence(
                    type=EvidenceType.MILESTONE,
                    id=m.id,
                    description=(
                        f"Early market advantage: {m.business_context.competitive_advantage}"
                    ),
                    value=m.business_context.revenue_implication,
                    timestamp=_settled_at(m),
                )
                for m in early
            ],
            implications=[
                "Platform has achieved early market positioning advantages",
                "Competitive moats are being established through technical execution",
                "Market education and customer acquisition can be accelerated",
            ],
            recommendations=[
                "Amplify marketing messaging around early market advantages",
                "Accelerate customer acquisition while advantages are strongest",
                "Document and protect competitive moats created",
                "Plan next wave of early market opportunities",
            ],
            timeframe="market-window-active",
            business_impact=BusinessImpact(
                revenue=realized,
                risk=Level.LOW,
                opportunity=Level.CRITICAL,
                urgency=Level.HIGH,
            ),
            frequency=len(early),
        )
    ]


def detect_domain_patterns(
    milestones: list[Milestone],
    templates: Sequence[DomainPatternTemplate],
    cfg: PatternConfig,
) -> list[StrategicPattern]:
    """Fire one pattern per keyword template with enough important matches."""
    patterns: list[StrategicPattern] = []
    for template in templates:
        matching = [
            m
            for m in milestones
            if any(indicator in m.search_text for indicator in template.indicators)
        ]
        if len(matching) < cfg.domain_min_matches:
            continue
        avg_importance = _mean([m.business_context.strategic_importance for m in matching])
        if avg_importance < cfg.domain_min_importance:
            continue

        completed = sum(1 for m in matching if m.status == MilestoneStatus.COMPLETED)
        label = template.name.lower()
        patterns.append(
            StrategicPattern(
                key=f"domain-{template.key}",
                type=PatternType.DOMAIN,
                name=template.name,
                description=(
                    f"Strong execution pattern in {label} with {len(matching)} related "
                    f"milestones ({completed} completed, avg {avg_importance:.1f}% importance)"
                ),
                confidence=min(
                    cfg.domain_confidence_cap,
                    cfg.domain_confidence_base
                    + cfg.domain_confidence_per_completed * completed
                    + cfg.domain_confidence_importance_weight * avg_importance,
                ),
                evidence=[
                    PatternEvidence(
                        type=EvidenceType.MILESTONE,
                        id=m.id,
                        description=(
                            f"{m.name} ({m.status}, "
                            f"{m.business_context.strategic_importance:g}% importance)"
                        ),
                        value=m.business_context.strategic_importance,
                        timestamp=m.updated_at,
                    )
                    for m in matching
                ],
                implications=[
                    f"Strong institutional knowledge and execution capability in {label}",
                    "This domain represents a core competitive strength",
                    "Future opportunities in this area likely to have high success probability",
                ],
                recommendations=[
                    f"Continue investing in {label} capabilities",
                    "Use this domain strength for market positioning",
                    "Consider expanding scope of initiatives in this area",
                    "Document best practices for replication",
                ],
                timeframe="strategic-strength",
                business_impact=BusinessImpact(
                    revenue=template.base_revenue * len(matching),
                    risk=Level.LOW,
                    opportunity=Level.HIGH,
                    urgency=Level.MEDIUM,
                ),
                frequency=len(matching),
            )
        )
    return patterns


# ---------------------------------------------------------------------------
# Cross-milestone helpers
# ---------------------------------------------------------------------------


def _cross_recommendations(
    pattern_type: CrossPatternType,
    efficiency: float,
    related: list[Milestone],
    cfg: PatternConfig,
) -> list[str]:
    recs: list[str] = []
    if pattern_type == CrossPatternType.SEQUENTIAL:
        recs.append(
            "Ensure sequential dependencies are well-planned to avoid cascading delays"
        )
        if efficiency < cfg.cross_sequential_efficiency_floor:
            recs.append("Consider parallelizing some work to improve overall efficiency")
    else:
        recs.append("Coordinate parallel efforts to maximize synergies")
        if efficiency > cfg.cross_parallel_efficiency_high:
            recs.append(
                "This parallel approach is highly effective, consider replicating "
                "for other goals"
            )

    delayed = sum(1 for m in related if m.status == MilestoneStatus.DELAYED)
    if delayed:
        recs.append(f"Address {delayed} delayed milestone(s) to prevent goal impact")
    return recs


def _cross_risks(
    pattern_type: CrossPatternType, related: list[Milestone], cfg: PatternConfig
) -> list[str]:
    risks: list[str] = []
    if pattern_type == CrossPatternType.SEQUENTIAL:
        risks.append("Single point of failure could delay entire sequence")
        if any(m.complexity == Complexity.CRITICAL for m in related):
            risks.append("Critical complexity milestones could create bottlenecks")

    if related and all(
        m.business_context.strategic_importance >= cfg.high_value_importance for m in related
    ):
        risks.append(
            "All milestones are high-value, failure would have significant business impact"
        )
    return risks


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class PatternRecognitionEngine:
    """Runs the detectors and keeps an append-only history of their output.

    Parameters
    ----------
    config:
        Calibration constants; defaults when omitted.
    templates:
        Domain keyword templates, in detection order.
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        templates: Sequence[DomainPatternTemplate] = DOMAIN_PATTERN_TEMPLATES,
    ) -> None:
        self._config: PatternConfig = (config or AnalyticsConfig()).patterns
        self._templates = tuple(templates)
        self._patterns = PatternLog()
        self._trends: AppendOnlyLog[TrendAnalysis] = AppendOnlyLog()
        self._cross: AppendOnlyLog[CrossMilestoneAnalysis] = AppendOnlyLog()

    @property
    def pattern_log(self) -> PatternLog:
        return self._patterns

    # ------------------------------------------------------------------
    # Pattern detection
    # ------------------------------------------------------------------

    def analyze_patterns(
        self,
        milestones: list[Milestone],
        correlations: list[ProgressCorrelation],
        goals: list[BusinessGoal],
        conversations: list[StrategyConversation],
    ) -> list[StrategicPattern]:
        """Run every detector and append the results to the pattern log.

        ``goals`` and ``conversations`` complete the corpus signature; no
        current detector reads them.
        """
        cfg = self._config
        patterns = [
            *detect_efficiency_patterns(milestones, cfg),
            *detect_velocity_patterns(milestones, cfg),
            *detect_correlation_patterns(correlations, milestones, cfg),
            *detect_risk_patterns(milestones, cfg),
            *detect_opportunity_patterns(milestones, cfg),
            *detect_domain_patterns(milestones, self._templates, cfg),
        ]
        self._patterns.record(patterns)

        logger.debug(
            "Pattern analysis over %d milestones, %d correlations, %d goals, "
            "%d conversations fired %d patterns (log size %d)",
            len(milestones), len(correlations), len(goals), len(conversations),
            len(patterns), len(self._patterns),
        )
        return patterns

    # ------------------------------------------------------------------
    # Trend analysis
    # ------------------------------------------------------------------

    def generate_trend_analysis(
        self,
        milestones: list[Milestone],
        window: TrendWindow | str,
        *,
        now: datetime | None = None,
    ) -> list[TrendAnalysis]:
        """Strategic-importance trend over milestones created inside ``window``.

        Raises
        ------
        ValueError
            If ``window`` is not a recognised trend window.
        """
        cfg = self._config
        window = TrendWindow(window)
        cutoff = window_start(window, now or utc_now())

        points = sorted(
            (
                TrendPoint(timestamp=m.created_at, value=m.business_context.strategic_importance)
                for m in milestones
                if m.created_at >= cutoff
            ),
            key=lambda p: p.timestamp,
        )
        if len(points) < cfg.trend_min_points:
            return []

        avg = _mean([p.value for p in points])
        recent_avg = _mean([p.value for p in points[-cfg.trend_recent_points :]])
        if recent_avg > avg:
            direction = TrendDirection.INCREASING
        elif recent_avg < avg:
            direction = TrendDirection.DECREASING
        else:
            direction = TrendDirection.STABLE

        delta = recent_avg - avg
        short, medium, long = cfg.trend_projection_factors
        analysis = TrendAnalysis(
            metric="Strategic Importance",
            window=window,
            direction=direction,
            velocity=abs(delta) / avg if avg else 0.0,
            confidence=min(
                cfg.trend_confidence_cap,
                cfg.trend_confidence_base + cfg.trend_confidence_step * len(points),
            ),
            data_points=points,
            projection=TrendProjection(
                short_term=recent_avg + delta * short,
                medium_term=recent_avg + delta * medium,
                long_term=recent_avg + delta * long,
            ),
        )
        self._trends.append(f"trend-{window}", analysis)
        return [analysis]

    # ------------------------------------------------------------------
    # Cross-milestone analysis
    # ------------------------------------------------------------------

    def analyze_correlations_across_milestones(
        self,
        milestones: list[Milestone],
        correlations: list[ProgressCorrelation],
    ) -> list[CrossMilestoneAnalysis]:
        """Classify how milestones sharing a business goal relate to each other."""
        cfg = self._config
        by_goal: dict[str, list[ProgressCorrelation]] = {}
        for c in correlations:
            by_goal.setdefault(c.business_goal_id, []).append(c)

        analyses: list[CrossMilestoneAnalysis] = []
        for goal_id, corrs in by_goal.items():
            if len(corrs) < cfg.correlation_cluster_min:
                continue

            milestone_ids = [c.technical_milestone_id for c in corrs]
            related = [m for m in milestones if m.id in milestone_ids]
            related_ids = {m.id for m in related}
            sequential = any(dep in related_ids for m in related for dep in m.dependencies)
            pattern_type = (
                CrossPatternType.SEQUENTIAL if sequential else CrossPatternType.PARALLEL
            )

            avg = _mean([c.magnitude for c in corrs])
            completed = sum(1 for m in related if m.status == MilestoneStatus.COMPLETED)
            completed_fraction = completed / len(related) if related else 0.0
            efficiency = (
                avg * cfg.cross_correlation_weight
                + completed_fraction * 100.0 * cfg.cross_completion_weight
            )

            manner = "sequentially" if sequential else "in parallel"
            analyses.append(
                CrossMilestoneAnalysis(
                    id=f"cross-analysis-{goal_id}",
                    goal_id=goal_id,
                    milestone_ids=milestone_ids,
                    pattern_type=pattern_type,
                    description=(
                        f"{len(related)} milestones {manner} affecting same business goal "
                        f"with {avg:.1f}% avg correlation"
                    ),
                    efficiency=efficiency,
                    recommendations=_cross_recommendations(
                        pattern_type, efficiency, related, cfg
                    ),
                    risk_factors=_cross_risks(pattern_type, related, cfg),
                )
            )

        self._cross.extend([(a.id, a) for a in analyses])
        return analyses

    # ------------------------------------------------------------------
    # History accessors
    # ------------------------------------------------------------------

    def get_all_patterns(self) -> list[StrategicPattern]:
        return self._patterns.patterns()

    def get_patterns_by_type(self, pattern_type: PatternType | str) -> list[StrategicPattern]:
        return self._patterns.by_type(pattern_type)

    def get_trend_analyses(self) -> list[TrendAnalysis]:
        return self._trends.items()

    def get_cross_analyses(self) -> list[CrossMilestoneAnalysis]:
        return self._cross.items()
