"""FastAPI pattern recognition endpoints.

POST /v1/patterns/analyze               -- run detectors, append to history
GET  /v1/patterns                       -- accumulated pattern history
GET  /v1/patterns/trends                -- strategic-importance trend for a window
GET  /v1/patterns/trends/history        -- every trend analysis recorded so far
GET  /v1/patterns/cross-milestone       -- milestones sharing a business goal

Deterministic engine code only (no LLM).
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.analytics.service import StrategicAnalyticsService
from src.api.dependencies import get_analytics_service
from src.models.patterns import (
    CrossMilestoneAnalysis,
    PatternType,
    StrategicPattern,
    TrendAnalysis,
    TrendWindow,
)

router = APIRouter(prefix="/v1/patterns", tags=["patterns"])


class PatternAnalysisResponse(BaseModel):
    """Patterns detected by one call plus the size of the history."""

    patterns: list[StrategicPattern] = Field(default_factory=list)
    detected: int
    history_size: int


@router.post("/analyze", response_model=PatternAnalysisResponse)
async def analyze_patterns(
    persist: bool = Query(default=False, description="Also append to the stored history"),
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> PatternAnalysisResponse:
    patterns = service.analyze_patterns(persist=persist)
    return PatternAnalysisResponse(
        patterns=patterns,
        detected=len(patterns),
        history_size=len(service.pattern_engine.pattern_log),
    )


@router.get("", response_model=list[StrategicPattern])
async def list_patterns(
    type: PatternType | None = Query(default=None, description="Filter by pattern type"),
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[StrategicPattern]:
    return service.pattern_history(type)


@router.get("/trends", response_model=list[TrendAnalysis])
async def get_trends(
    window: TrendWindow = Query(default=TrendWindow.DAYS_90),
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[TrendAnalysis]:
    """Empty when fewer than three milestones were created inside the window."""
    return service.trend_analysis(window)


@router.get("/trends/history", response_model=list[TrendAnalysis])
async def get_trend_history(
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[TrendAnalysis]:
    return service.pattern_engine.get_trend_analyses()


@router.get("/cross-milestone", response_model=list[CrossMilestoneAnalysis])
async def get_cross_milestone_analysis(
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[CrossMilestoneAnalysis]:
    return service.cross_milestone_analysis()
