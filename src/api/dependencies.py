"""FastAPI dependency injection factories for the record store and service.

One ``StrategicAnalyticsService`` is kept per data path so the pattern
history accumulates across requests. Tests replace ``get_analytics_service``
through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from src.analytics.service import StrategicAnalyticsService
from src.config.settings import Settings, get_settings
from src.storage.store import JsonFileRecordStore, RecordStore


@lru_cache(maxsize=8)
def _service_for_path(data_path: str) -> StrategicAnalyticsService:
    return StrategicAnalyticsService(JsonFileRecordStore(data_path))


def get_record_store(settings: Settings = Depends(get_settings)) -> RecordStore:
    return JsonFileRecordStore(settings.DATA_PATH)


def get_analytics_service(
    settings: Settings = Depends(get_settings),
) -> StrategicAnalyticsService:
    return _service_for_path(settings.DATA_PATH)
