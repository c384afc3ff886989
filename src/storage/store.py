"""Record store ABC and implementations.

``RecordStore`` is the boundary the analytics service reads through. Two
implementations are provided:

- ``InMemoryRecordStore`` for tests and seeding.
- ``JsonFileRecordStore`` persisting the whole ``StrategicDatabase`` as one
  JSON document (whole-document overwrite, cached after first load).

Engines never write records; only ``save`` mutates the backing store.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from pydantic import Field, ValidationError

from src.models.common import StratOSBase, utc_now
from src.models.patterns import StrategicPattern
from src.models.records import (
    BusinessGoal,
    GoalCategory,
    GoalStatus,
    Milestone,
    ProgressCorrelation,
    StrategyConversation,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"


class StoreError(Exception):
    """The backing document could not be read or decoded."""


def correlation_key(correlation: ProgressCorrelation) -> str:
    return f"{correlation.technical_milestone_id}:{correlation.business_goal_id}"


class DatabaseMetadata(StratOSBase):
    version: str = SCHEMA_VERSION
    last_updated: datetime = Field(default_factory=utc_now)
    total_milestones: int = 0
    total_goals: int = 0
    total_correlations: int = 0
    total_conversations: int = 0
    total_patterns: int = 0


class StrategicDatabase(StratOSBase):
    """Whole-document snapshot of every record the service reads."""

    milestones: dict[str, Milestone] = Field(default_factory=dict)
    goals: dict[str, BusinessGoal] = Field(default_factory=dict)
    correlations: dict[str, ProgressCorrelation] = Field(default_factory=dict)
    conversations: dict[str, StrategyConversation] = Field(default_factory=dict)
    patterns: list[StrategicPattern] = Field(default_factory=list)
    metadata: DatabaseMetadata = Field(default_factory=DatabaseMetadata)

    @classmethod
    def from_records(
        cls,
        milestones: list[Milestone] | None = None,
        goals: list[BusinessGoal] | None = None,
        correlations: list[ProgressCorrelation] | None = None,
        conversations: list[StrategyConversation] | None = None,
    ) -> StrategicDatabase:
        db = cls(
            milestones={m.id: m for m in milestones or []},
            goals={g.id: g for g in goals or []},
            correlations={correlation_key(c): c for c in correlations or []},
            conversations={c.id: c for c in conversations or []},
        )
        db.refresh_metadata()
        return db

    def refresh_metadata(self) -> None:
        self.metadata = DatabaseMetadata(
            version=self.metadata.version,
            last_updated=utc_now(),
            total_milestones=len(self.milestones),
            total_goals=len(self.goals),
            total_correlations=len(self.correlations),
            total_conversations=len(self.conversations),
            total_patterns=len(self.patterns),
        )


# ---------------------------------------------------------------------------
# Store contract
# ---------------------------------------------------------------------------


class RecordStore(ABC):
    """ABC for the record collections consumed by the analytics engines."""

    @abstractmethod
    def load(self) -> StrategicDatabase: ...

    @abstractmethod
    def save(self, db: StrategicDatabase) -> None: ...

    def list_milestones(self) -> list[Milestone]:
        return list(self.load().milestones.values())

    def list_goals(self) -> list[BusinessGoal]:
        return list(self.load().goals.values())

    def list_correlations(self) -> list[ProgressCorrelation]:
        return list(self.load().correlations.values())

    def list_conversations(self) -> list[StrategyConversation]:
        return list(self.load().conversations.values())

    def get_goal(self, goal_id: str) -> BusinessGoal | None:
        return self.load().goals.get(goal_id)

    def goals_by_category(self, category: GoalCategory | str) -> list[BusinessGoal]:
        category = GoalCategory(category)
        return [g for g in self.list_goals() if g.category == category]

    def goals_by_status(self, status: GoalStatus | str) -> list[BusinessGoal]:
        status = GoalStatus(status)
        return [g for g in self.list_goals() if g.status == status]

    def check(self) -> None:
        """Raise ``StoreError`` when the records cannot be read. Never writes."""
        self.load()


class InMemoryRecordStore(RecordStore):
    """In-memory implementation for tests."""

    def __init__(self, db: StrategicDatabase | None = None) -> None:
        self._db = db or StrategicDatabase()

    def load(self) -> StrategicDatabase:
        return self._db

    def save(self, db: StrategicDatabase) -> None:
        db.refresh_metadata()
        self._db = db


class JsonFileRecordStore(RecordStore):
    """Single JSON document on disk, cached after the first load.

    ``load`` creates a missing file as an empty database. A file that cannot
    be read or decoded raises ``StoreError``. ``check`` never writes.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._cache: StrategicDatabase | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> StrategicDatabase:
        if self._cache is not None:
            return self._cache

        if not self._path.exists():
            logger.warning("Data file %s not found; creating empty database", self._path)
            empty = StrategicDatabase()
            self.save(empty)
            return empty

        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise StoreError(f"Cannot read data file {self._path}: {exc}") from exc
        try:
            db = StrategicDatabase.model_validate_json(raw)
        except ValidationError as exc:
            msg = f"Cannot decode data file {self._path}: {exc.error_count()} error(s)"
            raise StoreError(msg) from exc

        logger.info(
            "Loaded %s: %d milestones, %d goals, %d correlations",
            self._path, len(db.milestones), len(db.goals), len(db.correlations),
        )
        self._cache = db
        return db

    def save(self, db: StrategicDatabase) -> None:
        db.refresh_metadata()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(db.model_dump_json(indent=2), encoding="utf-8")
        self._cache = db
        logger.info("Saved %s", self._path)

    def check(self) -> None:
        if self._cache is None and not self._path.is_file():
            raise StoreError(f"Data file {self._path} is missing or not a file")
        self.load()

    def invalidate(self) -> None:
        """Drop the cached document so the next load re-reads the file."""
        self._cache = None
