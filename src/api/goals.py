"""FastAPI goal health endpoints.

GET /v1/goals/health                    -- portfolio health, worst first
GET /v1/goals/{goal_id}/health          -- five-dimension health assessment
GET /v1/goals/{goal_id}/velocity        -- velocity metrics
GET /v1/goals/{goal_id}/forecast        -- completion forecast

Deterministic engine code only (no LLM).
"""

from fastapi import APIRouter, Depends, HTTPException

from src.analytics.service import GoalNotFoundError, StrategicAnalyticsService
from src.api.dependencies import get_analytics_service
from src.models.health import CompletionForecast, GoalHealthAssessment, VelocityMetrics

router = APIRouter(prefix="/v1/goals", tags=["goals"])


def _not_found(exc: GoalNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


@router.get("/health", response_model=list[GoalHealthAssessment])
async def get_portfolio_health(
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[GoalHealthAssessment]:
    return service.assess_portfolio_health()


@router.get("/{goal_id}/health", response_model=GoalHealthAssessment)
async def get_goal_health(
    goal_id: str,
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> GoalHealthAssessment:
    try:
        return service.assess_goal_health(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/{goal_id}/velocity", response_model=VelocityMetrics)
async def get_goal_velocity(
    goal_id: str,
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> VelocityMetrics:
    try:
        return service.velocity_metrics(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc) from exc


@router.get("/{goal_id}/forecast", response_model=CompletionForecast)
async def get_goal_forecast(
    goal_id: str,
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> CompletionForecast:
    """Correlation-weighted completion forecast; dates are null without velocity data."""
    try:
        return service.completion_forecast(goal_id)
    except GoalNotFoundError as exc:
        raise _not_found(exc) from exc
