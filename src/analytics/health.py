"""Goal health assessment engine -- five dimensions plus velocity forecasting.

Scores one business goal against the technical milestones linked to it and
the correlations measured for it:

- progress:    share of linked milestones completed (+ in-progress bonus)
- velocity:    completions per month projected onto the remaining work
- confidence:  the goal's own externally supplied confidence
- dependency:  penalties for dependency load and delayed milestones
- alignment:   mean correlation magnitude (+ strong-cluster bonus)

Insufficient data never raises: each dimension falls back to a fixed,
weakly-informative score with evidence explaining why.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from src.analytics.config import AnalyticsConfig, HealthConfig
from src.models.common import Effort, HealthStatus, Level, utc_now
from src.models.health import (
    AcceleratorType,
    BlockerType,
    CompletionForecast,
    ConfidenceInterval,
    DataStatus,
    DimensionName,
    DimensionTrend,
    ForecastPoint,
    GoalAccelerator,
    GoalBlocker,
    GoalDimension,
    GoalHealthAssessment,
    GoalRisk,
    HealthDimensions,
    RiskType,
    ScenarioAnalysis,
    VelocityMetrics,
    VelocityTrend,
)
from src.models.records import (
    BusinessGoal,
    Complexity,
    MarketTiming,
    Milestone,
    MilestoneStatus,
    ProgressCorrelation,
)

logger = logging.getLogger(__name__)


def linked_milestones(goal: BusinessGoal, milestones: list[Milestone]) -> list[Milestone]:
    """Milestones whose ``linked_goals`` contain the goal id."""
    return [m for m in milestones if m.is_linked_to(goal.id)]


def goal_correlations(
    goal: BusinessGoal, correlations: list[ProgressCorrelation]
) -> list[ProgressCorrelation]:
    """Correlations measured against the goal."""
    return [c for c in correlations if c.business_goal_id == goal.id]


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


class GoalHealthAnalyzer:
    """Scores goal health, velocity, and completion forecasts.

    Every public method is a pure function of its arguments and the
    configuration; the analyzer holds no per-call state and may be shared
    across threads.
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config: HealthConfig = (config or AnalyticsConfig()).health

    # ---------------------------------------------------------------
    # Status labels
    # ---------------------------------------------------------------

    def status_for_score(self, score: float) -> HealthStatus:
        """Map a 0-100 score onto the five-tier label (>=80/65/45/25)."""
        for minimum, status in self._config.status_thresholds:
            if score >= minimum:
                return status
        return HealthStatus.CRITICAL

    def _dimension(
        self,
        name: DimensionName,
        score: float,
        description: str,
        evidence: list[str],
        trend: DimensionTrend = DimensionTrend.STABLE,
        status: HealthStatus | None = None,
    ) -> GoalDimension:
        score = max(0.0, min(100.0, score))
        return GoalDimension(
            name=name,
            score=score,
            status=status or self.status_for_score(score),
            description=description,
            trend=trend,
            evidence=evidence,
        )

    # ---------------------------------------------------------------
    # Full assessment
    # ---------------------------------------------------------------

    def assess_goal_health(
        self,
        goal: BusinessGoal,
        milestones: list[Milestone],
        correlations: list[ProgressCorrelation],
    ) -> GoalHealthAssessment:
        """Score all five dimensions and aggregate them into one assessment.

        ``milestones`` and ``correlations`` may be the full collections;
        they are filtered to the goal here.
        """
        linked = linked_milestones(goal, milestones)
        goal_corrs = goal_correlations(goal, correlations)

        dimensions = HealthDimensions(
            progress=self.score_progress(linked),
            velocity=self.score_velocity(linked),
            confidence=self.score_confidence(goal),
            dependency=self.score_dependency(goal, linked),
            alignment=self.score_alignment(goal_corrs),
        )
        scores = [d.score for d in dimensions.as_list()]
        health_score = _mean(scores)
        overall = self.status_for_score(health_score)

        blockers = self.identify_blockers(goal, linked)
        accelerators = self.identify_accelerators(goal, linked)
        risks = self.assess_risk_factors(goal, linked)

        logger.debug(
            "Assessed goal %s: %d milestones, %d correlations, score %.1f (%s)",
            goal.id, len(linked), len(goal_corrs), health_score, overall,
        )

        return GoalHealthAssessment(
            goal_id=goal.id,
            goal_name=goal.title,
            overall_health=overall,
            health_score=health_score,
            dimensions=dimensions,
            blockers=blockers,
            accelerators=accelerators,
            recommendations=self.recommend(overall, dimensions, blockers),
            risk_factors=risks,
        )

    # ---------------------------------------------------------------
    # Dimension 1: Progress
    # ---------------------------------------------------------------

    def score_progress(self, linked: list[Milestone]) -> GoalDimension:
        """Completed share of linked milestones, +bonus when work is active."""
        if not linked:
            return self._dimension(
                DimensionName.PROGRESS,
                self._config.no_milestones_progress_score,
                "No technical milestones linked to this goal",
                ["Goal has no technical implementation plan"],
                status=self._config.no_milestones_progress_status,
            )

        completed = sum(1 for m in linked if m.status == MilestoneStatus.COMPLETED)
        in_progress = sum(1 for m in linked if m.status == MilestoneStatus.IN_PROGRESS)
        pct = completed / len(linked) * 100.0

        score = pct
        if in_progress > 0:
            score += self._config.in_progress_bonus

        return self._dimension(
            DimensionName.PROGRESS,
            score,
            f"{pct:.1f}% of linked technical milestones completed",
            [
                f"{completed}/{len(linked)} milestones completed ({pct:.1f}%)",
                f"{in_progress} milestones currently in progress",
            ],
            DimensionTrend.IMPROVING if in_progress > 0 else DimensionTrend.STABLE,
        )

    # ---------------------------------------------------------------
    # Dimension 2: Velocity
    # ---------------------------------------------------------------

    def _completion_dates(self, linked: list[Milestone]) -> list[datetime]:
        return sorted(
            m.completion_date
            for m in linked
            if m.status == MilestoneStatus.COMPLETED and m.completion_date is not None
        )

    def _months_between(self, start: datetime, end: datetime) -> float:
        return (end - start).total_seconds() / 86400.0 / self._config.days_per_month

    def score_velocity(self, linked: list[Milestone]) -> GoalDimension:
        """Project months-to-finish from the observed completion rate."""
        dates = self._completion_dates(linked)
        if len(dates) < self._config.min_completed_for_velocity:
            return self._dimension(
                DimensionName.VELOCITY,
                self._config.insufficient_velocity_score,
                "Insufficient completion history to assess velocity",
                [
                    f"Need at least {self._config.min_completed_for_velocity} "
                    "completed milestones for velocity analysis"
                ],
                status=self._config.insufficient_velocity_status,
            )

        span = self._months_between(dates[0], dates[-1])
        velocity = len(dates) / max(span, self._config.min_elapsed_months)
        remaining = len(linked) - len(dates)
        months_left = remaining / velocity

        score = self._config.velocity_fallback_score
        for max_months, bucket_score in self._config.velocity_buckets:
            if months_left <= max_months:
                score = bucket_score
                break

        return self._dimension(
            DimensionName.VELOCITY,
            score,
            f"Current velocity: {velocity:.1f} milestones/month, "
            f"{months_left:.1f} months to completion",
            [
                f"{len(dates)} milestones completed over {span:.1f} months",
                f"{remaining} milestones remaining",
            ],
        )

    # ---------------------------------------------------------------
    # Dimension 3: Confidence
    # ---------------------------------------------------------------

    def score_confidence(self, goal: BusinessGoal) -> GoalDimension:
        confidence = (
            goal.confidence
            if goal.confidence is not None
            else self._config.default_goal_confidence
        )
        return self._dimension(
            DimensionName.CONFIDENCE,
            confidence,
            f"Goal confidence level at {confidence:g}%",
            [f"Confidence score: {confidence:g}%"],
        )

    # ---------------------------------------------------------------
    # Dimension 4: Dependency
    # ---------------------------------------------------------------

    def score_dependency(self, goal: BusinessGoal, linked: list[Milestone]) -> GoalDimension:
        """Start from the base score and subtract dependency-load penalties."""
        cfg = self._config
        if not linked:
            return self._dimension(
                DimensionName.DEPENDENCY,
                cfg.no_milestones_dependency_score,
                "No technical dependencies mapped",
                ["Goal lacks technical implementation plan"],
                status=cfg.no_milestones_dependency_status,
            )

        total_deps = sum(len(m.dependencies) for m in linked)
        avg_deps = total_deps / len(linked)
        external = len(goal.dependencies.external_factors) + len(
            goal.dependencies.business_prerequisites
        )
        delayed = sum(1 for m in linked if m.status == MilestoneStatus.DELAYED)

        score = cfg.dependency_base_score
        if avg_deps > cfg.avg_dependencies_high:
            score -= cfg.avg_dependencies_high_penalty
        elif avg_deps > cfg.avg_dependencies_medium:
            score -= cfg.avg_dependencies_medium_penalty

        if external > cfg.external_dependencies_high:
            score -= cfg.external_dependencies_high_penalty
        elif external > cfg.external_dependencies_medium:
            score -= cfg.external_dependencies_medium_penalty

        score -= delayed * cfg.delayed_milestone_penalty

        return self._dimension(
            DimensionName.DEPENDENCY,
            max(0.0, score),
            f"{avg_deps:.1f} avg technical dependencies, {external} external dependencies",
            [
                f"{total_deps} total technical dependencies across {len(linked)} milestones",
                f"{external} external business dependencies",
                f"{delayed} milestones currently blocked",
            ],
            DimensionTrend.DECLINING if delayed > 0 else DimensionTrend.STABLE,
        )

    # ---------------------------------------------------------------
    # Dimension 5: Alignment
    # ---------------------------------------------------------------

    def score_alignment(self, goal_corrs: list[ProgressCorrelation]) -> GoalDimension:
        cfg = self._config
        if not goal_corrs:
            return self._dimension(
                DimensionName.ALIGNMENT,
                cfg.no_correlations_alignment_score,
                "No technical-business correlations detected",
                ["Goal needs stronger technical work alignment"],
                status=cfg.no_correlations_alignment_status,
            )

        avg = _mean([c.magnitude for c in goal_corrs])
        strong = sum(1 for c in goal_corrs if c.magnitude >= cfg.strong_correlation_threshold)

        score = avg
        if strong >= cfg.strong_correlation_min_count:
            score += cfg.strong_correlation_bonus

        return self._dimension(
            DimensionName.ALIGNMENT,
            score,
            f"{avg:.1f}% average correlation strength with "
            f"{len(goal_corrs)} technical milestones",
            [
                f"{len(goal_corrs)} technical correlations detected",
                f"{strong} strong correlations ({cfg.strong_correlation_threshold:g}%+)",
                f"Average correlation strength: {avg:.1f}%",
            ],
        )

    # ---------------------------------------------------------------
    # Blockers, accelerators, risks, recommendations
    # ---------------------------------------------------------------

    def identify_blockers(self, goal: BusinessGoal, linked: list[Milestone]) -> list[GoalBlocker]:
        cfg = self._config
        blockers: list[GoalBlocker] = []

        for m in linked:
            if m.status != MilestoneStatus.DELAYED:
                continue
            importance = m.business_context.strategic_importance
            if importance >= cfg.critical_importance:
                severity = Level.CRITICAL
            elif importance >= cfg.high_importance:
                severity = Level.HIGH
            else:
                severity = Level.MEDIUM
            blockers.append(
                GoalBlocker(
                    id=f"technical-delay-{m.id}",
                    type=BlockerType.TECHNICAL,
                    description=f'Milestone "{m.name}" is delayed',
                    severity=severity,
                    impact=(
                        f"Blocks {m.business_context.revenue_implication:,.0f} "
                        "in projected revenue"
                    ),
                    recommended_action=(
                        "Assess blockers and reallocate resources to critical path"
                    ),
                    estimated_resolution_time="1-2 weeks",
                )
            )

        external = goal.dependencies.external_factors
        if external:
            blockers.append(
                GoalBlocker(
                    id=f"external-deps-{goal.id}",
                    type=BlockerType.EXTERNAL,
                    description=(
                        f"{len(external)} external dependencies may impact progress"
                    ),
                    severity=Level.MEDIUM,
                    impact="May cause delays or require scope adjustments",
                    recommended_action=(
                        "Develop contingency plans for external dependencies"
                    ),
                    estimated_resolution_time="ongoing monitoring",
                )
            )

        return blockers

    def identify_accelerators(
        self, goal: BusinessGoal, linked: list[Milestone]
    ) -> list[GoalAccelerator]:
        accelerators: list[GoalAccelerator] = []

        high_impact_done = [
            m
            for m in linked
            if m.status == MilestoneStatus.COMPLETED
            and m.business_context.strategic_importance >= self._config.critical_importance
        ]
        if high_impact_done:
            accelerators.append(
                GoalAccelerator(
                    id=f"momentum-{goal.id}",
                    type=AcceleratorType.TECHNICAL,
                    description=(
                        "Strong execution momentum with "
                        f"{len(high_impact_done)} high-impact milestones completed"
                    ),
                    potential_impact=(
                        "Can leverage lessons learned to accelerate remaining work"
                    ),
                    implementation_effort=Effort.LOW,
                    time_to_realization="immediate",
                )
            )

        if any(m.business_context.market_timing == MarketTiming.EARLY for m in linked):
            accelerators.append(
                GoalAccelerator(
                    id=f"market-timing-{goal.id}",
                    type=AcceleratorType.MARKET,
                    description="Early market timing advantage available",
                    potential_impact=(
                        "First-mover advantage can accelerate goal achievement"
                    ),
                    implementation_effort=Effort.MEDIUM,
                    time_to_realization="3-6 months",
                )
            )

        return accelerators

    def assess_risk_factors(self, goal: BusinessGoal, linked: list[Milestone]) -> list[GoalRisk]:
        cfg = self._config
        risks: list[GoalRisk] = []

        complex_count = sum(
            1 for m in linked if m.complexity in (Complexity.HIGH, Complexity.CRITICAL)
        )
        if complex_count > len(linked) * cfg.high_complexity_share:
            risks.append(
                GoalRisk(
                    id=f"timeline-risk-{goal.id}",
                    type=RiskType.TIMELINE,
                    description=(
                        f"{complex_count} high/critical complexity milestones "
                        "may cause delays"
                    ),
                    probability=cfg.timeline_risk_probability,
                    impact=Level.HIGH,
                    mitigation_strategy=(
                        "Break down complex milestones, add buffer time, "
                        "ensure expert resources"
                    ),
                )
            )

        total_effort = sum(m.effort for m in linked)
        if total_effort > cfg.resource_effort_threshold:
            risks.append(
                GoalRisk(
                    id=f"resource-risk-{goal.id}",
                    type=RiskType.RESOURCE,
                    description=f"High resource requirement ({total_effort:g} person-hours)",
                    probability=cfg.resource_risk_probability,
                    impact=Level.MEDIUM,
                    mitigation_strategy=(
                        "Ensure adequate team capacity, consider prioritization or phasing"
                    ),
                )
            )

        return risks

    def recommend(
        self,
        overall: HealthStatus,
        dimensions: HealthDimensions,
        blockers: list[GoalBlocker],
    ) -> list[str]:
        """Prose recommendations from dimension thresholds; not a scoring input."""
        recs: list[str] = []

        if overall in (HealthStatus.CRITICAL, HealthStatus.POOR):
            recs.append("URGENT: This goal requires immediate attention and intervention")
        if dimensions.progress.score < 50:
            recs.append("Accelerate technical milestone completion to improve progress")
        if dimensions.velocity.score < 60:
            recs.append("Review and optimize development velocity to meet timeline")
        if dimensions.confidence.score < 50:
            recs.append("Address uncertainty factors to improve goal confidence")
        if dimensions.dependency.score < 60:
            recs.append("Actively manage dependencies to prevent cascade delays")
        if dimensions.alignment.score < 60:
            recs.append("Strengthen alignment between technical work and business objectives")

        critical = sum(1 for b in blockers if b.severity == Level.CRITICAL)
        if critical:
            recs.append(f"Address {critical} critical blocker(s) immediately")

        return recs

    # ---------------------------------------------------------------
    # Velocity metrics
    # ---------------------------------------------------------------

    def calculate_velocity_metrics(
        self,
        goal: BusinessGoal,
        milestones: list[Milestone],
        *,
        now: datetime | None = None,
    ) -> VelocityMetrics:
        """Current vs target velocity and a dated completion projection.

        Returns the all-zero ``stalled`` / ``insufficient-data`` sentinel when
        fewer than two linked milestones are completed with a date.
        """
        cfg = self._config
        now = now or utc_now()
        linked = linked_milestones(goal, milestones)
        dates = self._completion_dates(linked)

        if len(dates) < cfg.min_completed_for_velocity:
            return VelocityMetrics(goal_id=goal.id)

        span = self._months_between(dates[0], dates[-1])
        current = len(dates) / max(span, cfg.min_elapsed_months)
        remaining = len(linked) - len(dates)
        target = remaining / cfg.planning_horizon_months

        trend = VelocityTrend.STEADY
        if len(dates) >= 3:
            recent_span = self._months_between(dates[-3], dates[-1])
            recent = 2 / max(recent_span, cfg.min_elapsed_months)
            if recent > current * (1 + cfg.velocity_trend_tolerance):
                trend = VelocityTrend.ACCELERATING
            elif recent < current * (1 - cfg.velocity_trend_tolerance):
                trend = VelocityTrend.DECELERATING

        efficiency = min(100.0, current / max(target, cfg.min_target_velocity) * 100.0)
        months_left = remaining / max(current, cfg.min_current_velocity)
        projected = now + timedelta(days=months_left * cfg.days_per_month)

        return VelocityMetrics(
            goal_id=goal.id,
            current_velocity=current,
            target_velocity=target,
            velocity_trend=trend,
            efficiency=efficiency,
            data_status=DataStatus.SUFFICIENT,
            projected_completion=projected,
            confidence_interval=ConfidenceInterval(
                optimistic=projected - timedelta(days=cfg.interval_optimistic_days),
                realistic=projected,
                pessimistic=projected + timedelta(days=cfg.interval_pessimistic_days),
            ),
        )

    # ---------------------------------------------------------------
    # Completion forecast
    # ---------------------------------------------------------------

    def generate_completion_forecast(
        self,
        goal: BusinessGoal,
        milestones: list[Milestone],
        correlations: list[ProgressCorrelation],
        *,
        now: datetime | None = None,
    ) -> CompletionForecast:
        """Correlation-weighted completion forecast with a fixed 3-point spread.

        Without a velocity projection every date in the forecast is ``None``
        while confidence and the critical path are still reported.
        """
        cfg = self._config
        linked = linked_milestones(goal, milestones)
        velocity = self.calculate_velocity_metrics(goal, milestones, now=now)

        goal_corrs = goal_correlations(goal, correlations)
        avg_corr = (
            _mean([c.magnitude for c in goal_corrs])
            if goal_corrs
            else cfg.default_forecast_correlation
        )

        projected = velocity.projected_completion
        if projected is not None and avg_corr < cfg.weak_alignment_threshold:
            projected += timedelta(days=cfg.weak_alignment_delay_months * cfg.days_per_month)

        confidence = min(
            cfg.forecast_confidence_cap,
            cfg.forecast_confidence_base
            + avg_corr * cfg.forecast_correlation_weight
            + velocity.efficiency * cfg.forecast_efficiency_weight,
        )

        def _offset(days: int) -> datetime | None:
            return projected + timedelta(days=days) if projected is not None else None

        return CompletionForecast(
            goal_id=goal.id,
            projected_completion_date=projected,
            confidence=confidence,
            scenario_analysis=ScenarioAnalysis(
                best=ForecastPoint(date=_offset(cfg.best_case_offset_days), probability=20),
                likely=ForecastPoint(date=projected, probability=60),
                worst=ForecastPoint(date=_offset(cfg.worst_case_offset_days), probability=20),
            ),
            critical_path=[
                m.name
                for m in linked
                if m.business_context.strategic_importance >= cfg.critical_importance
            ],
            assumptions=[
                "Current development velocity continues",
                f"Correlation strength ({avg_corr:.1f}%) remains stable",
                "No major external blockers emerge",
            ],
            risk_factors=[
                "High complexity milestones may take longer than estimated",
                "External dependencies could introduce delays",
                "Resource allocation changes could impact velocity",
            ],
        )
