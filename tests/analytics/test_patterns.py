"""Tests for the pattern recognition engine: detectors, trends, cross-milestone."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import pytest

from src.analytics.config import PatternConfig
from src.analytics.patterns import (
    PatternRecognitionEngine,
    detect_correlation_patterns,
    detect_domain_patterns,
    detect_efficiency_patterns,
    detect_opportunity_patterns,
    detect_risk_patterns,
    detect_velocity_patterns,
)
from src.analytics.templates import DOMAIN_PATTERN_TEMPLATES, DomainPatternTemplate
from src.models.common import Level
from src.models.patterns import (
    CrossPatternType,
    EvidenceType,
    PatternType,
    TrendDirection,
    TrendWindow,
)
from src.models.records import (
    BusinessContext,
    Complexity,
    MarketTiming,
    Milestone,
    MilestoneStatus,
    ProgressCorrelation,
)

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)
CFG = PatternConfig()

DETECTOR_ORDER = [
    PatternType.EFFICIENCY,
    PatternType.VELOCITY,
    PatternType.CORRELATION,
    PatternType.RISK,
    PatternType.OPPORTUNITY,
    PatternType.DOMAIN,
]


def _make_milestone(
    mid: str,
    status: MilestoneStatus = MilestoneStatus.PENDING,
    importance: float = 50.0,
    revenue: float = 0.0,
    created_days_ago: int = 200,
    completed_days_ago: int | None = None,
    timing: MarketTiming = MarketTiming.ON_TIME,
    name: str | None = None,
    dependencies: list[str] | None = None,
    complexity: Complexity = Complexity.MEDIUM,
) -> Milestone:
    if status == MilestoneStatus.COMPLETED and completed_days_ago is None:
        completed_days_ago = 5
    return Milestone(
        id=mid,
        name=name or f"Milestone {mid}",
        status=status,
        complexity=complexity,
        created_at=NOW - timedelta(days=created_days_ago),
        updated_at=NOW - timedelta(days=1),
        completion_date=(
            NOW - timedelta(days=completed_days_ago) if completed_days_ago is not None else None
        ),
        dependencies=dependencies or [],
        linked_goals=["g1"],
        business_context=BusinessContext(
            strategic_importance=importance,
            revenue_implication=revenue,
            market_timing=timing,
            competitive_advantage="first to market",
        ),
    )


def _make_corr(mid: str, gid: str, strength: float) -> ProgressCorrelation:
    return ProgressCorrelation(
        technical_milestone_id=mid,
        business_goal_id=gid,
        correlation_strength=strength,
        last_updated=NOW,
    )


# ===================================================================
# Efficiency
# ===================================================================


class TestEfficiencyDetector:
    def test_fires_on_high_value_completions(self) -> None:
        milestones = [
            _make_milestone("a", MilestoneStatus.COMPLETED, importance=80.0, revenue=40000.0),
            _make_milestone("b", MilestoneStatus.COMPLETED, importance=90.0, revenue=60000.0),
            _make_milestone("c", importance=10.0),
        ]
        (pattern,) = detect_efficiency_patterns(milestones, CFG)
        assert pattern.key == "efficiency-high-value-completion"
        assert pattern.type == PatternType.EFFICIENCY
        assert pattern.confidence == pytest.approx(80.0)
        assert pattern.business_impact.revenue == pytest.approx(100000.0)
        assert [e.id for e in pattern.evidence] == ["a", "b"]
        assert pattern.frequency == 2

    def test_confidence_capped(self) -> None:
        milestones = [
            _make_milestone(str(i), MilestoneStatus.COMPLETED, importance=90.0, revenue=50000.0)
            for i in range(10)
        ]
        (pattern,) = detect_efficiency_patterns(milestones, CFG)
        assert pattern.confidence == 95.0

    def test_low_revenue_does_not_fire(self) -> None:
        milestones = [
            _make_milestone("a", MilestoneStatus.COMPLETED, importance=90.0, revenue=1000.0),
            _make_milestone("b", MilestoneStatus.COMPLETED, importance=90.0, revenue=1000.0),
        ]
        assert detect_efficiency_patterns(milestones, CFG) == []

    def test_single_completion_does_not_fire(self) -> None:
        milestones = [
            _make_milestone("a", MilestoneStatus.COMPLETED, importance=90.0, revenue=90000.0)
        ]
        assert detect_efficiency_patterns(milestones, CFG) == []


# ===================================================================
# Velocity
# ===================================================================


class TestVelocityDetector:
    def test_latest_completion_faster_than_average(self) -> None:
        milestones = [
            # 100 days to complete, finished long ago
            _make_milestone("old", MilestoneStatus.COMPLETED,
                            created_days_ago=200, completed_days_ago=100),
            # 10 days to complete, finished most recently
            _make_milestone("new", MilestoneStatus.COMPLETED,
                            created_days_ago=30, completed_days_ago=20),
        ]
        (pattern,) = detect_velocity_patterns(milestones, CFG)
        assert pattern.key == "velocity-acceleration"
        assert pattern.confidence == 85.0
        assert pattern.evidence[0].id == "new"
        assert pattern.evidence[0].value == pytest.approx(10.0)
        assert "81.8% faster" in pattern.evidence[0].description

    def test_ordering_is_by_completion_date(self) -> None:
        # the fast milestone finished first, so the latest one is slow
        milestones = [
            _make_milestone("slow", MilestoneStatus.COMPLETED,
                            created_days_ago=110, completed_days_ago=10),
            _make_milestone("fast", MilestoneStatus.COMPLETED,
                            created_days_ago=60, completed_days_ago=50),
        ]
        assert detect_velocity_patterns(milestones, CFG) == []


# ===================================================================
# Correlation clusters
# ===================================================================


class TestCorrelationDetector:
    def test_one_pattern_per_strongly_correlated_milestone(self) -> None:
        milestones = [_make_milestone("m1", revenue=20000.0)]
        corrs = [
            _make_corr("m1", "g1", 80.0),
            _make_corr("m1", "g2", -75.0),
            _make_corr("m1", "g3", 50.0),
        ]
        (pattern,) = detect_correlation_patterns(corrs, milestones, CFG)
        assert pattern.key == "correlation-cluster-m1"
        assert pattern.frequency == 2
        assert pattern.confidence == pytest.approx(60.0 + 77.5 * 0.3)
        assert {e.id for e in pattern.evidence} == {"g1", "g2"}
        assert all(e.type == EvidenceType.CORRELATION for e in pattern.evidence)
        assert pattern.business_impact.opportunity == Level.CRITICAL

    def test_unknown_milestone_skipped(self) -> None:
        corrs = [_make_corr("ghost", "g1", 90.0), _make_corr("ghost", "g2", 90.0)]
        assert detect_correlation_patterns(corrs, [], CFG) == []


# ===================================================================
# Risk and opportunity
# ===================================================================


class TestRiskAndOpportunity:
    def test_risk_revenue_is_negative_total(self) -> None:
        milestones = [
            _make_milestone("a", MilestoneStatus.DELAYED, importance=85.0, revenue=100000.0),
            _make_milestone("b", MilestoneStatus.DELAYED, importance=90.0, revenue=50000.0),
            _make_milestone("c", MilestoneStatus.DELAYED, importance=50.0, revenue=99999.0),
        ]
        (pattern,) = detect_risk_patterns(milestones, CFG)
        assert pattern.key == "risk-delayed-high-value"
        assert pattern.business_impact.revenue == pytest.approx(-150000.0)
        assert pattern.business_impact.risk == Level.CRITICAL
        assert pattern.frequency == 2
        assert "$150,000" in pattern.description

    def test_no_delays_no_risk(self) -> None:
        assert detect_risk_patterns([_make_milestone("a", importance=95.0)], CFG) == []

    def test_opportunity_from_early_completions(self) -> None:
        milestones = [
            _make_milestone("a", MilestoneStatus.COMPLETED, revenue=40000.0,
                            timing=MarketTiming.EARLY),
            _make_milestone("b", revenue=90000.0, timing=MarketTiming.EARLY),
        ]
        (pattern,) = detect_opportunity_patterns(milestones, CFG)
        assert pattern.key == "opportunity-early-market"
        assert pattern.confidence == 85.0
        assert pattern.business_impact.revenue == pytest.approx(40000.0)
        assert pattern.evidence[0].description.endswith("first to market")


# ===================================================================
# Domain templates
# ===================================================================


class TestDomainDetector:
    def test_privacy_template_fires(self) -> None:
        milestones = [
            _make_milestone("a", importance=80.0, name="GDPR export tooling",
                            status=MilestoneStatus.COMPLETED),
            _make_milestone("b", importance=70.0, name="Privacy dashboard"),
        ]
        patterns = detect_domain_patterns(milestones, DOMAIN_PATTERN_TEMPLATES, CFG)
        keys = [p.key for p in patterns]
        assert "domain-privacy-momentum" in keys
        pattern = patterns[keys.index("domain-privacy-momentum")]
        assert pattern.type == PatternType.DOMAIN
        assert pattern.business_impact.revenue == pytest.approx(100000.0)
        # 60 + 10*1 + 0.3*75 = 92.5, capped
        assert pattern.confidence == pytest.approx(90.0)

    def test_low_importance_does_not_fire(self) -> None:
        milestones = [
            _make_milestone("a", importance=40.0, name="GDPR export tooling"),
            _make_milestone("b", importance=40.0, name="Privacy dashboard"),
        ]
        assert detect_domain_patterns(milestones, DOMAIN_PATTERN_TEMPLATES, CFG) == []

    def test_custom_templates(self) -> None:
        templates = (
            DomainPatternTemplate(
                key="billing", name="Billing Platform", indicators=("invoice",),
                base_revenue=1000.0,
            ),
        )
        milestones = [
            _make_milestone("a", importance=90.0, name="Invoice PDF"),
            _make_milestone("b", importance=90.0, name="Invoice reminders"),
        ]
        (pattern,) = detect_domain_patterns(milestones, templates, CFG)
        assert pattern.key == "domain-billing"
        assert pattern.name == "Billing Platform"


# ===================================================================
# Engine: analyze_patterns and history
# ===================================================================


def _rich_corpus() -> tuple[list[Milestone], list[ProgressCorrelation]]:
    milestones = [
        _make_milestone("a", MilestoneStatus.COMPLETED, importance=90.0, revenue=60000.0,
                        created_days_ago=200, completed_days_ago=100,
                        timing=MarketTiming.EARLY, name="Encryption at rest"),
        _make_milestone("b", MilestoneStatus.COMPLETED, importance=85.0, revenue=50000.0,
                        created_days_ago=30, completed_days_ago=20, name="Audit trail"),
        _make_milestone("c", MilestoneStatus.DELAYED, importance=88.0, revenue=70000.0),
    ]
    corrs = [_make_corr("a", "g1", 90.0), _make_corr("a", "g2", 85.0)]
    return milestones, corrs


class TestPatternEngine:
    def test_detector_order(self) -> None:
        engine = PatternRecognitionEngine()
        milestones, corrs = _rich_corpus()
        patterns = engine.analyze_patterns(milestones, corrs, [], [])
        types = [p.type for p in patterns]
        assert types == [
            PatternType.EFFICIENCY,
            PatternType.VELOCITY,
            PatternType.CORRELATION,
            PatternType.RISK,
            PatternType.OPPORTUNITY,
            PatternType.DOMAIN,
        ]
        ranks = [DETECTOR_ORDER.index(t) for t in types]
        assert ranks == sorted(ranks)

    def test_history_accumulates(self) -> None:
        engine = PatternRecognitionEngine()
        milestones, corrs = _rich_corpus()
        first = engine.analyze_patterns(milestones, corrs, [], [])
        snapshot = engine.get_all_patterns()
        time.sleep(0.02)
        second = engine.analyze_patterns(milestones, corrs, [], [])

        history = engine.get_all_patterns()
        assert len(history) == len(first) + len(second)
        assert history[: len(snapshot)] == snapshot
        assert {p.pattern_id for p in first}.isdisjoint({p.pattern_id for p in second})
        assert min(p.detected_at for p in second) > max(p.detected_at for p in first)

    def test_empty_corpus_returns_nothing(self) -> None:
        engine = PatternRecognitionEngine()
        assert engine.analyze_patterns([], [], [], []) == []
        assert engine.get_all_patterns() == []

    def test_patterns_by_type_accepts_string(self) -> None:
        engine = PatternRecognitionEngine()
        milestones, corrs = _rich_corpus()
        engine.analyze_patterns(milestones, corrs, [], [])
        risks = engine.get_patterns_by_type("risk")
        assert [p.key for p in risks] == ["risk-delayed-high-value"]
        with pytest.raises(ValueError):
            engine.get_patterns_by_type("not-a-type")


# ===================================================================
# Trend analysis
# ===================================================================


class TestTrendAnalysis:
    def _milestones(self) -> list[Milestone]:
        return [
            _make_milestone("t1", importance=40.0, created_days_ago=80),
            _make_milestone("t2", importance=50.0, created_days_ago=60),
            _make_milestone("t3", importance=70.0, created_days_ago=40),
            _make_milestone("t4", importance=80.0, created_days_ago=20),
            _make_milestone("old", importance=0.0, created_days_ago=200),
        ]

    def test_increasing_trend(self) -> None:
        engine = PatternRecognitionEngine()
        (trend,) = engine.generate_trend_analysis(self._milestones(), "90-days", now=NOW)
        assert trend.window == TrendWindow.DAYS_90
        assert trend.metric == "Strategic Importance"
        assert trend.direction == TrendDirection.INCREASING
        assert len(trend.data_points) == 4
        assert [p.value for p in trend.data_points] == [40.0, 50.0, 70.0, 80.0]
        # avg 60, recent 200/3
        assert trend.velocity == pytest.approx((200 / 3 - 60) / 60)
        assert trend.confidence == pytest.approx(70.0)
        assert trend.projection.short_term == pytest.approx(200 / 3 + (200 / 3 - 60) * 0.5)
        assert trend.projection.long_term == pytest.approx(200 / 3 + (200 / 3 - 60) * 1.5)
        assert engine.get_trend_analyses() == [trend]

    def test_twelve_month_window_includes_older(self) -> None:
        engine = PatternRecognitionEngine()
        (trend,) = engine.generate_trend_analysis(self._milestones(), TrendWindow.MONTHS_12,
                                                  now=NOW)
        assert len(trend.data_points) == 5

    def test_insufficient_points(self) -> None:
        engine = PatternRecognitionEngine()
        result = engine.generate_trend_analysis(self._milestones(), "30-days", now=NOW)
        assert result == []
        assert engine.get_trend_analyses() == []

    def test_invalid_window_raises(self) -> None:
        engine = PatternRecognitionEngine()
        with pytest.raises(ValueError):
            engine.generate_trend_analysis(self._milestones(), "fortnight", now=NOW)


# ===================================================================
# Cross-milestone analysis
# ===================================================================


class TestCrossMilestoneAnalysis:
    def test_sequential_when_related_dependency(self) -> None:
        engine = PatternRecognitionEngine()
        milestones = [
            _make_milestone("m1", MilestoneStatus.COMPLETED),
            _make_milestone("m2", dependencies=["m1"]),
        ]
        corrs = [_make_corr("m1", "g1", 80.0), _make_corr("m2", "g1", 60.0)]
        (analysis,) = engine.analyze_correlations_across_milestones(milestones, corrs)
        assert analysis.id == "cross-analysis-g1"
        assert analysis.pattern_type == CrossPatternType.SEQUENTIAL
        # 70*0.7 + 50*0.3
        assert analysis.efficiency == pytest.approx(64.0)
        assert any("parallelizing" in r for r in analysis.recommendations)
        assert analysis.risk_factors[0] == "Single point of failure could delay entire sequence"

    def test_parallel_high_efficiency(self) -> None:
        engine = PatternRecognitionEngine()
        milestones = [
            _make_milestone("m1", MilestoneStatus.COMPLETED, importance=85.0),
            _make_milestone("m2", MilestoneStatus.COMPLETED, importance=90.0),
        ]
        corrs = [_make_corr("m1", "g1", 90.0), _make_corr("m2", "g1", -90.0)]
        (analysis,) = engine.analyze_correlations_across_milestones(milestones, corrs)
        assert analysis.pattern_type == CrossPatternType.PARALLEL
        assert analysis.efficiency == pytest.approx(93.0)
        assert any("replicating" in r for r in analysis.recommendations)
        assert any("high-value" in r for r in analysis.risk_factors)

    def test_dependency_outside_group_is_parallel(self) -> None:
        engine = PatternRecognitionEngine()
        milestones = [
            _make_milestone("m1", dependencies=["elsewhere"]),
            _make_milestone("m2"),
        ]
        corrs = [_make_corr("m1", "g1", 50.0), _make_corr("m2", "g1", 50.0)]
        (analysis,) = engine.analyze_correlations_across_milestones(milestones, corrs)
        assert analysis.pattern_type == CrossPatternType.PARALLEL

    def test_single_correlation_goal_skipped(self) -> None:
        engine = PatternRecognitionEngine()
        result = engine.analyze_correlations_across_milestones(
            [_make_milestone("m1")], [_make_corr("m1", "g1", 90.0)]
        )
        assert result == []

    def test_unresolvable_milestones_use_zero_completion(self) -> None:
        engine = PatternRecognitionEngine()
        corrs = [_make_corr("x", "g1", 60.0), _make_corr("y", "g1", 80.0)]
        (analysis,) = engine.analyze_correlations_across_milestones([], corrs)
        assert analysis.efficiency == pytest.approx(49.0)
        assert analysis.milestone_ids == ["x", "y"]
        assert engine.get_cross_analyses() == [analysis]
