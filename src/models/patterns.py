"""Strategic pattern, trend, and cross-milestone analysis models."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import Field

from src.models.common import (
    Level,
    Score,
    StratOSBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)


class PatternType(StrEnum):
    EFFICIENCY = "efficiency"
    VELOCITY = "velocity"
    CORRELATION = "correlation"
    RISK = "risk"
    OPPORTUNITY = "opportunity"
    DOMAIN = "domain-specific"


class EvidenceType(StrEnum):
    MILESTONE = "milestone"
    CORRELATION = "correlation"
    GOAL = "goal"
    CONVERSATION = "conversation"


class TrendDirection(StrEnum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    VOLATILE = "volatile"


class CrossPatternType(StrEnum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    DEPENDENT = "dependent"
    CONFLICTING = "conflicting"


class TrendWindow(StrEnum):
    """Look-back windows accepted by trend analysis."""

    DAYS_30 = "30-days"
    DAYS_90 = "90-days"
    MONTHS_6 = "6-months"
    MONTHS_12 = "12-months"


def shift_months(value: datetime, months: int) -> datetime:
    """Move ``value`` by whole calendar months, clamping the day of month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def window_start(window: TrendWindow | str, now: datetime) -> datetime:
    """Return the earliest creation timestamp inside ``window``.

    Raises
    ------
    ValueError
        If ``window`` is not one of the recognised literals.
    """
    window = TrendWindow(window)
    if window == TrendWindow.DAYS_30:
        return now - timedelta(days=30)
    if window == TrendWindow.DAYS_90:
        return now - timedelta(days=90)
    if window == TrendWindow.MONTHS_6:
        return shift_months(now, -6)
    return shift_months(now, -12)


# ---------------------------------------------------------------------------
# Strategic patterns
# ---------------------------------------------------------------------------


class PatternEvidence(StratOSBase):
    """One contributing record behind a detected pattern."""

    type: EvidenceType
    id: str
    description: str
    value: float
    timestamp: datetime


class BusinessImpact(StratOSBase):
    revenue: float = 0.0
    risk: Level
    opportunity: Level
    urgency: Level


class StrategicPattern(StratOSBase, frozen=True):
    """A detected cross-cutting observation over the milestone corpus.

    ``key`` identifies the detector (and subject, where the detector fires
    per milestone); ``pattern_id`` is unique per detection.
    """

    pattern_id: UUIDv7 = Field(default_factory=new_uuid7)
    key: str
    type: PatternType
    name: str
    description: str
    confidence: Score
    evidence: list[PatternEvidence] = Field(default_factory=list)
    implications: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    timeframe: str
    business_impact: BusinessImpact
    detected_at: UTCTimestamp = Field(default_factory=utc_now)
    frequency: int = 1


# ---------------------------------------------------------------------------
# Trend and cross-milestone analyses
# ---------------------------------------------------------------------------


class TrendPoint(StratOSBase):
    timestamp: datetime
    value: float


class TrendProjection(StratOSBase):
    short_term: float  # 3 months
    medium_term: float  # 6 months
    long_term: float  # 12 months


class TrendAnalysis(StratOSBase, frozen=True):
    analysis_id: UUIDv7 = Field(default_factory=new_uuid7)
    metric: str
    window: TrendWindow
    direction: TrendDirection
    velocity: float  # relative rate of change
    confidence: Score
    data_points: list[TrendPoint] = Field(default_factory=list)
    projection: TrendProjection
    analyzed_at: UTCTimestamp = Field(default_factory=utc_now)


class CrossMilestoneAnalysis(StratOSBase, frozen=True):
    id: str
    goal_id: str
    milestone_ids: list[str]
    pattern_type: CrossPatternType
    description: str
    efficiency: float
    recommendations: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    analyzed_at: UTCTimestamp = Field(default_factory=utc_now)
