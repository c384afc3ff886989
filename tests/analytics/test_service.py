"""Tests for StrategicAnalyticsService over the seeded demo dataset."""

from __future__ import annotations

import pytest

from src.analytics.service import GoalNotFoundError, StrategicAnalyticsService
from src.models.common import HealthStatus, Severity
from src.models.forecast import ScenarioKind
from src.models.health import DataStatus, VelocityTrend
from src.models.patterns import CrossPatternType, PatternType, TrendDirection
from src.storage.store import InMemoryRecordStore, StrategicDatabase


class TestGoalHealth:
    def test_assess_known_goal(self, demo_service: StrategicAnalyticsService) -> None:
        result = demo_service.assess_goal_health("goal-revenue")
        assert result.goal_id == "goal-revenue"
        assert result.goal_name == "Reach $250k ARR"
        # 3/3 linked milestones completed
        assert result.dimensions.progress.score == 100.0
        assert 0.0 <= result.health_score <= 100.0

    def test_unknown_goal(self, demo_service: StrategicAnalyticsService) -> None:
        with pytest.raises(GoalNotFoundError) as excinfo:
            demo_service.assess_goal_health("goal-missing")
        assert excinfo.value.goal_id == "goal-missing"
        assert str(excinfo.value) == "Goal goal-missing not found."

    def test_portfolio_worst_first(self, demo_service: StrategicAnalyticsService) -> None:
        assessments = demo_service.assess_portfolio_health()
        assert len(assessments) == 4
        scores = [a.health_score for a in assessments]
        assert scores == sorted(scores)

    def test_velocity_for_completed_goal(
        self, demo_service: StrategicAnalyticsService, demo_now
    ) -> None:
        metrics = demo_service.velocity_metrics("goal-revenue", now=demo_now)
        assert metrics.data_status == DataStatus.SUFFICIENT
        assert metrics.target_velocity == 0.0
        assert metrics.velocity_trend == VelocityTrend.DECELERATING
        assert metrics.projected_completion == demo_now

    def test_velocity_without_history(
        self, demo_service: StrategicAnalyticsService, demo_now
    ) -> None:
        metrics = demo_service.velocity_metrics("goal-technical", now=demo_now)
        assert metrics.data_status == DataStatus.INSUFFICIENT
        assert metrics.velocity_trend == VelocityTrend.STALLED

    def test_completion_forecast(self, demo_service: StrategicAnalyticsService, demo_now) -> None:
        forecast = demo_service.completion_forecast("goal-technical", now=demo_now)
        assert forecast.projected_completion_date is None
        # mean |correlation| 32.5, efficiency 0
        assert forecast.confidence == pytest.approx(40 + 32.5 * 0.5)


class TestPatterns:
    def test_demo_patterns(self, demo_service: StrategicAnalyticsService) -> None:
        patterns = demo_service.analyze_patterns()
        types = {p.type for p in patterns}
        assert {
            PatternType.EFFICIENCY,
            PatternType.CORRELATION,
            PatternType.RISK,
            PatternType.OPPORTUNITY,
            PatternType.DOMAIN,
        } <= types
        assert PatternType.VELOCITY not in types
        keys = {p.key for p in patterns}
        assert "correlation-cluster-ms-privacy-audit" in keys
        assert "correlation-cluster-ms-bounded-ai" in keys

    def test_history_accumulates_in_memory_only(
        self, demo_service: StrategicAnalyticsService, demo_store
    ) -> None:
        first = demo_service.analyze_patterns()
        demo_service.analyze_patterns()
        assert len(demo_service.pattern_history()) == 2 * len(first)
        assert demo_store.load().patterns == []

    def test_persist_appends_to_store(
        self, demo_service: StrategicAnalyticsService, demo_store
    ) -> None:
        patterns = demo_service.analyze_patterns(persist=True)
        db = demo_store.load()
        assert len(db.patterns) == len(patterns)
        assert db.metadata.total_patterns == len(patterns)

    def test_failed_persist_leaves_stored_patterns_untouched(self, demo_store) -> None:
        class FailingStore(InMemoryRecordStore):
            def save(self, db: StrategicDatabase) -> None:
                raise OSError("disk full")

        store = FailingStore(demo_store.load())
        service = StrategicAnalyticsService(store)
        with pytest.raises(OSError):
            service.analyze_patterns(persist=True)
        assert store.load().patterns == []

    def test_history_by_type(self, demo_service: StrategicAnalyticsService) -> None:
        demo_service.analyze_patterns()
        risks = demo_service.pattern_history("risk")
        assert [p.key for p in risks] == ["risk-delayed-high-value"]

    def test_trend_analysis(self, demo_service: StrategicAnalyticsService, demo_now) -> None:
        (trend,) = demo_service.trend_analysis("90-days", now=demo_now)
        assert trend.direction == TrendDirection.DECREASING
        assert len(trend.data_points) >= 4

    def test_cross_milestone(self, demo_service: StrategicAnalyticsService) -> None:
        analyses = {a.goal_id: a for a in demo_service.cross_milestone_analysis()}
        assert set(analyses) == {"goal-revenue", "goal-market", "goal-product", "goal-technical"}
        assert analyses["goal-revenue"].pattern_type == CrossPatternType.SEQUENTIAL
        assert analyses["goal-market"].pattern_type == CrossPatternType.PARALLEL


class TestForecastAndGaps:
    def test_four_scenarios(self, demo_service: StrategicAnalyticsService) -> None:
        scenarios = demo_service.multi_scenario_forecast("6-months")
        assert [s.kind for s in scenarios] == list(ScenarioKind)
        assert all(s.timeframe == "6-months" for s in scenarios)

    def test_invalid_timeframe(self, demo_service: StrategicAnalyticsService) -> None:
        with pytest.raises(ValueError):
            demo_service.multi_scenario_forecast("7-months")

    def test_demo_gaps(self, demo_service: StrategicAnalyticsService) -> None:
        gaps = demo_service.strategy_gaps()
        assert [g.id for g in gaps] == ["delayed-critical-timing", "low-execution-rate"]

    def test_summary(self, demo_service: StrategicAnalyticsService) -> None:
        summary = demo_service.strategic_summary()
        assert summary.goal_count == 4
        assert summary.milestone_count == 8
        assert summary.critical_gap_count == 1
        assert len(summary.scenarios) == 4
        assert sum(summary.status_counts.values()) == 4
        assert all(isinstance(k, HealthStatus) for k in summary.status_counts)
        assert summary.average_health_score == pytest.approx(
            sum(a.health_score for a in summary.health) / 4
        )
        assert summary.gaps[0].severity == Severity.CRITICAL
