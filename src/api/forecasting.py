"""FastAPI scenario forecasting and strategy gap endpoints.

GET  /v1/forecasts/scenarios            -- base/conservative/optimistic/disruption
POST /v1/forecasts/gaps                 -- ranked strategy gaps
GET  /v1/forecasts/summary              -- portfolio summary across all engines

Timeframes outside {3,6,12,18,24}-months are rejected with 422.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.analytics.service import StrategicAnalyticsService, StrategicSummary
from src.api.dependencies import get_analytics_service
from src.models.forecast import FocusArea, ScenarioForecast, StrategyGap, Timeframe

router = APIRouter(prefix="/v1/forecasts", tags=["forecasting"])


class GapRequest(BaseModel):
    """Optional free-form market hints (competitor names, market size)."""

    market_context: list[str] | None = Field(default=None)


@router.get("/scenarios", response_model=list[ScenarioForecast])
async def get_scenarios(
    timeframe: Timeframe = Query(default=Timeframe.MONTHS_12),
    focus_area: FocusArea | None = Query(default=None),
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[ScenarioForecast]:
    return service.multi_scenario_forecast(timeframe, focus_area)


@router.post("/gaps", response_model=list[StrategyGap])
async def identify_gaps(
    body: GapRequest | None = None,
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> list[StrategyGap]:
    market_context = body.market_context if body is not None else None
    return service.strategy_gaps(market_context)


@router.get("/summary", response_model=StrategicSummary)
async def get_summary(
    timeframe: Timeframe = Query(default=Timeframe.MONTHS_12),
    service: StrategicAnalyticsService = Depends(get_analytics_service),
) -> StrategicSummary:
    return service.strategic_summary(timeframe)
