"""Tests for the record stores: in-memory and single-document JSON file."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from scripts.seed import build_demo_database
from src.models.records import GoalCategory, GoalStatus
from src.storage.store import (
    SCHEMA_VERSION,
    InMemoryRecordStore,
    JsonFileRecordStore,
    StoreError,
    StrategicDatabase,
    correlation_key,
)

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


class TestStrategicDatabase:
    def test_from_records_keys_and_metadata(self) -> None:
        db = build_demo_database(NOW)
        assert "ms-privacy-audit" in db.milestones
        assert "ms-privacy-audit:goal-market" in db.correlations
        assert db.metadata.version == SCHEMA_VERSION
        assert db.metadata.total_milestones == 8
        assert db.metadata.total_goals == 4
        assert db.metadata.total_correlations == 9
        assert db.metadata.total_conversations == 1

    def test_correlation_key(self) -> None:
        db = build_demo_database(NOW)
        for key, corr in db.correlations.items():
            assert correlation_key(corr) == key


class TestInMemoryRecordStore:
    def test_list_and_get(self) -> None:
        store = InMemoryRecordStore(build_demo_database(NOW))
        assert len(store.list_milestones()) == 8
        assert len(store.list_correlations()) == 9
        assert store.get_goal("goal-market").category == GoalCategory.MARKET
        assert store.get_goal("missing") is None

    def test_goal_filters(self) -> None:
        store = InMemoryRecordStore(build_demo_database(NOW))
        assert [g.id for g in store.goals_by_category("revenue")] == ["goal-revenue"]
        assert len(store.goals_by_status(GoalStatus.ACTIVE)) == 4
        with pytest.raises(ValueError):
            store.goals_by_category("marketing")

    def test_empty_store(self) -> None:
        store = InMemoryRecordStore()
        assert store.list_goals() == []
        assert store.list_milestones() == []


class TestJsonFileRecordStore:
    def test_missing_file_created_empty(self, tmp_path) -> None:
        path = tmp_path / "nested" / "data.json"
        store = JsonFileRecordStore(path)
        db = store.load()
        assert db.goals == {}
        assert path.exists()
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["metadata"]["version"] == SCHEMA_VERSION

    def test_round_trip_through_disk(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        JsonFileRecordStore(path).save(build_demo_database(NOW))

        reloaded = JsonFileRecordStore(path).load()
        assert set(reloaded.milestones) == set(build_demo_database(NOW).milestones)
        audit = reloaded.milestones["ms-privacy-audit"]
        assert audit.completion_date == NOW - timedelta(days=110)
        assert reloaded.metadata.total_correlations == 9

    def test_corrupt_file_raises_store_error(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JsonFileRecordStore(path).load()

    def test_non_utf8_file_raises_store_error(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        path.write_bytes(b'{"milestones": {"\xff\xfe": 1}}')
        with pytest.raises(StoreError):
            JsonFileRecordStore(path).load()

    def test_directory_path_raises_store_error(self, tmp_path) -> None:
        with pytest.raises(StoreError):
            JsonFileRecordStore(tmp_path).load()

    def test_invalid_record_raises_store_error(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        path.write_text(
            json.dumps({"goals": {"g1": {"id": "g1", "title": "x", "category": "bogus"}}}),
            encoding="utf-8",
        )
        with pytest.raises(StoreError):
            JsonFileRecordStore(path).load()

    def test_load_is_cached_until_invalidated(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        store = JsonFileRecordStore(path)
        store.save(build_demo_database(NOW))
        assert len(store.list_goals()) == 4

        path.write_text(StrategicDatabase().model_dump_json(), encoding="utf-8")
        assert len(store.list_goals()) == 4
        store.invalidate()
        assert store.list_goals() == []

    def test_save_refreshes_metadata(self, tmp_path) -> None:
        store = JsonFileRecordStore(tmp_path / "data.json")
        db = StrategicDatabase()
        db.milestones.update(build_demo_database(NOW).milestones)
        store.save(db)
        assert store.load().metadata.total_milestones == 8
        assert store.path == tmp_path / "data.json"

    def test_check_does_not_create_missing_file(self, tmp_path) -> None:
        path = tmp_path / "sub" / "data.json"
        store = JsonFileRecordStore(path)
        with pytest.raises(StoreError):
            store.check()
        assert not path.exists()
        assert not path.parent.exists()

    def test_check_passes_on_valid_file(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        JsonFileRecordStore(path).save(build_demo_database(NOW))
        JsonFileRecordStore(path).check()

    def test_check_rejects_corrupt_file(self, tmp_path) -> None:
        path = tmp_path / "data.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(StoreError):
            JsonFileRecordStore(path).check()
