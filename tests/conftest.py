"""Shared pytest fixtures for the StratOS test suite.

Provides:
- anyio_backend: run async API tests on asyncio only
- demo_now: the fixed clock the demo dataset is dated against
- demo_service: analytics service over the seeded in-memory store
- client: AsyncClient with the service and store dependencies overridden
"""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from scripts.seed import build_demo_database
from src.analytics.service import StrategicAnalyticsService
from src.api.dependencies import get_analytics_service, get_record_store
from src.storage.store import InMemoryRecordStore

DEMO_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def demo_now() -> datetime:
    return DEMO_NOW


@pytest.fixture
def demo_store() -> InMemoryRecordStore:
    """In-memory store holding the seed dataset, dated relative to DEMO_NOW."""
    return InMemoryRecordStore(build_demo_database(DEMO_NOW))


@pytest.fixture
def demo_service(demo_store: InMemoryRecordStore) -> StrategicAnalyticsService:
    return StrategicAnalyticsService(demo_store)


@pytest.fixture
async def client(demo_store, demo_service):
    """AsyncClient with store and service overridden to the in-memory demo data."""
    from src.api.main import app

    app.dependency_overrides[get_record_store] = lambda: demo_store
    app.dependency_overrides[get_analytics_service] = lambda: demo_service

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
