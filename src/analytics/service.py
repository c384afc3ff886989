"""Strategic analytics orchestrator service.

Loads record collections from a ``RecordStore``, delegates to the health,
pattern, scenario, and gap engines, and bundles their results. The
service owns exactly one ``PatternRecognitionEngine`` so the accumulating
pattern history has a single owner.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import Field

from src.analytics.config import AnalyticsConfig
from src.analytics.health import GoalHealthAnalyzer
from src.analytics.patterns import PatternRecognitionEngine
from src.forecasting.gaps import StrategyGapAnalyzer
from src.forecasting.scenarios import ScenarioForecaster
from src.models.common import HealthStatus, Severity, StratOSBase, UTCTimestamp, utc_now
from src.models.forecast import FocusArea, ScenarioForecast, StrategyGap, Timeframe
from src.models.health import CompletionForecast, GoalHealthAssessment, VelocityMetrics
from src.models.patterns import (
    CrossMilestoneAnalysis,
    PatternType,
    StrategicPattern,
    TrendAnalysis,
    TrendWindow,
)
from src.models.records import BusinessGoal
from src.storage.store import RecordStore

logger = logging.getLogger(__name__)


class GoalNotFoundError(KeyError):
    """Raised when a goal id is not present in the record store."""

    def __init__(self, goal_id: str) -> None:
        super().__init__(goal_id)
        self.goal_id = goal_id

    def __str__(self) -> str:
        return f"Goal {self.goal_id} not found."


class StrategicSummary(StratOSBase):
    """Portfolio-wide snapshot: health, patterns, scenarios, and gaps."""

    timeframe: Timeframe
    goal_count: int
    milestone_count: int
    average_health_score: float
    status_counts: dict[HealthStatus, int] = Field(default_factory=dict)
    critical_gap_count: int
    health: list[GoalHealthAssessment] = Field(default_factory=list)
    patterns: list[StrategicPattern] = Field(default_factory=list)
    scenarios: list[ScenarioForecast] = Field(default_factory=list)
    gaps: list[StrategyGap] = Field(default_factory=list)
    generated_at: UTCTimestamp = Field(default_factory=utc_now)


class StrategicAnalyticsService:
    """Reads records through a store and runs the analytics engines on them.

    Parameters
    ----------
    store:
        Source of milestones, goals, correlations, and conversations.
    config:
        Calibration shared by every engine; defaults when omitted.
    """

    def __init__(self, store: RecordStore, config: AnalyticsConfig | None = None) -> None:
        self._store = store
        self._config = config or AnalyticsConfig()
        self._health = GoalHealthAnalyzer(config=self._config)
        self._patterns = PatternRecognitionEngine(config=self._config)
        self._forecaster = ScenarioForecaster(config=self._config)
        self._gaps = StrategyGapAnalyzer(config=self._config)

    @property
    def pattern_engine(self) -> PatternRecognitionEngine:
        return self._patterns

    def _require_goal(self, goal_id: str) -> BusinessGoal:
        goal = self._store.get_goal(goal_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)
        return goal

    # ------------------------------------------------------------------
    # Goal health
    # ------------------------------------------------------------------

    def assess_goal_health(self, goal_id: str) -> GoalHealthAssessment:
        goal = self._require_goal(goal_id)
        return self._health.assess_goal_health(
            goal, self._store.list_milestones(), self._store.list_correlations()
        )

    def assess_portfolio_health(self) -> list[GoalHealthAssessment]:
        """One assessment per goal, worst health score first."""
        milestones = self._store.list_milestones()
        correlations = self._store.list_correlations()
        assessments = [
            self._health.assess_goal_health(goal, milestones, correlations)
            for goal in self._store.list_goals()
        ]
        return sorted(assessments, key=lambda a: a.health_score)

    def velocity_metrics(self, goal_id: str, *, now: datetime | None = None) -> VelocityMetrics:
        goal = self._require_goal(goal_id)
        return self._health.calculate_velocity_metrics(
            goal, self._store.list_milestones(), now=now
        )

    def completion_forecast(
        self, goal_id: str, *, now: datetime | None = None
    ) -> CompletionForecast:
        goal = self._require_goal(goal_id)
        return self._health.generate_completion_forecast(
            goal, self._store.list_milestones(), self._store.list_correlations(), now=now
        )

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    def analyze_patterns(self, *, persist: bool = False) -> list[StrategicPattern]:
        """Detect patterns over the full corpus.

        With ``persist=True`` the detections are also appended to the
        stored pattern history.
        """
        patterns = self._patterns.analyze_patterns(
            self._store.list_milestones(),
            self._store.list_correlations(),
            self._store.list_goals(),
            self._store.list_conversations(),
        )
        if persist and patterns:
            db = self._store.load()
            self._store.save(db.model_copy(update={"patterns": [*db.patterns, *patterns]}))
        return patterns

    def pattern_history(
        self, pattern_type: PatternType | str | None = None
    ) -> list[StrategicPattern]:
        if pattern_type is None:
            return self._patterns.get_all_patterns()
        return self._patterns.get_patterns_by_type(pattern_type)

    def trend_analysis(
        self, window: TrendWindow | str, *, now: datetime | None = None
    ) -> list[TrendAnalysis]:
        return self._patterns.generate_trend_analysis(
            self._store.list_milestones(), window, now=now
        )

    def cross_milestone_analysis(self) -> list[CrossMilestoneAnalysis]:
        return self._patterns.analyze_correlations_across_milestones(
            self._store.list_milestones(), self._store.list_correlations()
        )

    # ------------------------------------------------------------------
    # Forecasting and gaps
    # ------------------------------------------------------------------

    def multi_scenario_forecast(
        self,
        timeframe: Timeframe | str,
        focus_area: FocusArea | str | None = None,
    ) -> list[ScenarioForecast]:
        return self._forecaster.generate_multi_scenario_forecast(
            self._store.list_milestones(),
            self._store.list_goals(),
            self._store.list_correlations(),
            timeframe,
            focus_area,
        )

    def strategy_gaps(self, market_context: list[str] | None = None) -> list[StrategyGap]:
        return self._gaps.identify_strategy_gaps(
            self._store.list_milestones(),
            self._store.list_goals(),
            self._store.list_correlations(),
            market_context,
        )

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def strategic_summary(
        self, timeframe: Timeframe | str = Timeframe.MONTHS_12
    ) -> StrategicSummary:
        """Run every engine once and bundle the results with headline counts."""
        timeframe = Timeframe(timeframe)
        health = self.assess_portfolio_health()
        patterns = self.analyze_patterns()
        scenarios = self.multi_scenario_forecast(timeframe)
        gaps = self.strategy_gaps()

        status_counts: dict[HealthStatus, int] = {}
        for assessment in health:
            status_counts[assessment.overall_health] = (
                status_counts.get(assessment.overall_health, 0) + 1
            )
        average = sum(a.health_score for a in health) / len(health) if health else 0.0

        summary = StrategicSummary(
            timeframe=timeframe,
            goal_count=len(health),
            milestone_count=len(self._store.list_milestones()),
            average_health_score=average,
            status_counts=status_counts,
            critical_gap_count=sum(1 for g in gaps if g.severity == Severity.CRITICAL),
            health=health,
            patterns=patterns,
            scenarios=scenarios,
            gaps=gaps,
        )
        logger.debug(
            "Strategic summary: %d goals (avg %.1f), %d patterns, %d gaps",
            summary.goal_count, average, len(patterns), len(gaps),
        )
        return summary
