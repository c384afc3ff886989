"""FastAPI application entry point for StratOS.

Goal health, pattern recognition, and scenario forecasting routers over a
single JSON record store.
"""

import logging

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_record_store
from src.api.forecasting import router as forecasting_router
from src.api.goals import router as goals_router
from src.api.patterns import router as patterns_router
from src.config.settings import get_settings
from src.storage.store import RecordStore, StoreError

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == "dev"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(level=_LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value])

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

# --- FastAPI app ---
app = FastAPI(
    title="StratOS API",
    description="Strategic analytics and forecasting over technical milestones and business goals.",
    version=APP_VERSION,
)

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Routers ---
app.include_router(goals_router)
app.include_router(patterns_router)
app.include_router(forecasting_router)


# --- Infrastructure Endpoints (global) ---


@app.get("/health")
async def health_check(store: RecordStore = Depends(get_record_store)) -> dict:
    """Liveness probe with record store check.

    Returns 200 always (degraded status if the data file is missing or cannot
    be decoded). Never creates the data file.
    """
    checks: dict[str, bool] = {"api": True}

    try:
        store.check()
        checks["store"] = True
    except StoreError:
        logger.warning("health_check_store_unreadable", data_path=settings.DATA_PATH)
        checks["store"] = False

    all_ok = all(checks.values())

    return {
        "status": "ok" if all_ok else "degraded",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": checks,
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    """Return application name, version, and environment."""
    return {
        "name": "StratOS",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
    }
