"""Analytics calibration configuration.

Every threshold, multiplier, and fixed constant used by the health,
pattern, and forecasting engines. Defaults are calibrated for an
educational-technology product portfolio and can be overridden per
deployment; engines read them only through these models.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

from pydantic import Field

from src.models.common import HealthStatus, StratOSBase


class HealthConfig(StratOSBase):
    """Constants for goal health assessment and velocity metrics."""

    # (minimum score, label), walked top-down; below the last -> CRITICAL.
    status_thresholds: list[tuple[float, HealthStatus]] = Field(
        default_factory=lambda: [
            (80.0, HealthStatus.EXCELLENT),
            (65.0, HealthStatus.GOOD),
            (45.0, HealthStatus.FAIR),
            (25.0, HealthStatus.POOR),
        ],
    )

    # Sentinel scores carry fixed labels rather than tier-derived ones.
    no_milestones_progress_score: float = 20.0
    no_milestones_progress_status: HealthStatus = HealthStatus.POOR
    in_progress_bonus: float = 10.0

    insufficient_velocity_score: float = 50.0
    insufficient_velocity_status: HealthStatus = HealthStatus.FAIR
    min_completed_for_velocity: int = 2
    min_elapsed_months: float = 0.5
    days_per_month: float = 30.0
    # (maximum months to finish, score), walked top-down.
    velocity_buckets: list[tuple[float, float]] = Field(
        default_factory=lambda: [
            (2.0, 90.0),
            (4.0, 75.0),
            (6.0, 60.0),
        ],
    )
    velocity_fallback_score: float = 40.0

    default_goal_confidence: float = 50.0

    dependency_base_score: float = 70.0
    no_milestones_dependency_score: float = 30.0
    no_milestones_dependency_status: HealthStatus = HealthStatus.POOR
    avg_dependencies_high: float = 3.0
    avg_dependencies_high_penalty: float = 20.0
    avg_dependencies_medium: float = 1.5
    avg_dependencies_medium_penalty: float = 10.0
    external_dependencies_high: int = 3
    external_dependencies_high_penalty: float = 15.0
    external_dependencies_medium: int = 1
    external_dependencies_medium_penalty: float = 5.0
    delayed_milestone_penalty: float = 10.0

    no_correlations_alignment_score: float = 40.0
    no_correlations_alignment_status: HealthStatus = HealthStatus.FAIR
    strong_correlation_threshold: float = 70.0
    strong_correlation_min_count: int = 2
    strong_correlation_bonus: float = 10.0

    critical_importance: float = 80.0
    high_importance: float = 60.0
    high_complexity_share: float = 0.5
    resource_effort_threshold: float = 1000.0  # person-hours
    timeline_risk_probability: float = 70.0
    resource_risk_probability: float = 60.0

    planning_horizon_months: float = 6.0
    velocity_trend_tolerance: float = 0.2
    min_target_velocity: float = 0.1
    min_current_velocity: float = 0.1
    interval_optimistic_days: int = 30
    interval_pessimistic_days: int = 60

    weak_alignment_threshold: float = 50.0
    weak_alignment_delay_months: float = 2.0
    default_forecast_correlation: float = 50.0
    forecast_confidence_cap: float = 90.0
    forecast_confidence_base: float = 40.0
    forecast_correlation_weight: float = 0.5
    forecast_efficiency_weight: float = 0.3
    best_case_offset_days: int = -45
    worst_case_offset_days: int = 90


class PatternConfig(StratOSBase):
    """Constants for the six pattern detectors and trend analysis."""

    efficiency_min_completed: int = 2
    efficiency_min_importance: float = 75.0
    efficiency_min_revenue: float = 30000.0
    efficiency_confidence_base: float = 70.0
    efficiency_confidence_step: float = 5.0
    efficiency_confidence_cap: float = 95.0

    velocity_min_completed: int = 2
    velocity_acceleration_ratio: float = 0.8
    velocity_confidence: float = 85.0

    strong_correlation_threshold: float = 70.0
    correlation_cluster_min: int = 2
    correlation_confidence_base: float = 60.0
    correlation_confidence_weight: float = 0.3
    correlation_confidence_cap: float = 95.0

    risk_min_importance: float = 80.0
    risk_confidence: float = 90.0

    opportunity_confidence: float = 85.0

    domain_min_matches: int = 2
    domain_min_importance: float = 70.0
    domain_confidence_base: float = 60.0
    domain_confidence_per_completed: float = 10.0
    domain_confidence_importance_weight: float = 0.3
    domain_confidence_cap: float = 90.0

    trend_min_points: int = 3
    trend_recent_points: int = 3
    trend_confidence_base: float = 50.0
    trend_confidence_step: float = 5.0
    trend_confidence_cap: float = 90.0
    # Multipliers applied to (recent mean - window mean) for 3/6/12 months.
    trend_projection_factors: tuple[float, float, float] = (0.5, 1.0, 1.5)

    cross_correlation_weight: float = 0.7
    cross_completion_weight: float = 0.3
    cross_sequential_efficiency_floor: float = 70.0
    cross_parallel_efficiency_high: float = 80.0
    high_value_importance: float = 80.0


class ForecastConfig(StratOSBase):
    """Scenario multiplier chain and confidence caps."""

    max_confidence: float = 85.0
    base_confidence: float = 65.0
    completion_haircut: float = 0.8
    max_completion_rate: float = 0.7
    default_completion_rate: float = 0.3
    max_revenue_multiplier: float = 0.8
    default_correlation: float = 40.0

    revenue_tiers: tuple[float, float, float] = (0.6, 0.8, 1.0)
    customers_per_month: tuple[float, float, float] = (2.0, 3.0, 5.0)
    market_share: tuple[float, float, float] = (0.5, 1.0, 2.0)
    milestone_tiers: tuple[float, float, float] = (0.7, 1.0, 1.2)
    development_velocity: tuple[float, float, float] = (0.8, 1.0, 1.3)
    base_quality: tuple[float, float, float] = (85.0, 90.0, 95.0)
    base_uncertainty: float = 25.0

    conservative_multiplier: float = 0.6
    conservative_confidence_step: float = 10.0
    conservative_quality: tuple[float, float, float] = (75.0, 80.0, 85.0)
    conservative_uncertainty: float = 35.0

    optimistic_multiplier: float = 1.67
    optimistic_confidence_step: float = 5.0
    optimistic_confidence_cap: float = 60.0
    optimistic_quality: tuple[float, float, float] = (90.0, 95.0, 98.0)
    optimistic_uncertainty: float = 40.0

    disruption_confidence: float = 30.0
    disruption_uncertainty: float = 60.0


class GapConfig(StratOSBase):
    """Thresholds for the five strategy gap checks."""

    weak_correlation_threshold: float = 40.0
    weak_correlation_share: float = 0.5
    low_completion_rate: float = 0.4
    low_completion_min_milestones: int = 3


class AnalyticsConfig(StratOSBase):
    """Top-level configuration handed to every engine."""

    health: HealthConfig = Field(default_factory=HealthConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    gaps: GapConfig = Field(default_factory=GapConfig)
