"""Seed script -- write a demo strategic dataset to the JSON record store.

Creates:
1. Eight technical milestones for an educational writing platform
   (privacy, AI-assistance, and architecture work)
2. Four business goals (revenue, product, market, technical)
3. Milestone-to-goal progress correlations
4. One strategy conversation

Idempotent: safe to run multiple times -- skips if the store already has goals.

Usage:
    python -m scripts.seed          # against DATA_PATH from .env
    pytest tests/scripts/test_seed.py  # against an in-memory store
"""

import sys
from datetime import datetime, timedelta

from src.models.common import utc_now
from src.models.records import (
    BusinessContext,
    BusinessGoal,
    Complexity,
    GoalCategory,
    GoalDependencies,
    MarketTiming,
    Milestone,
    MilestoneStatus,
    ProgressCorrelation,
    StrategyConversation,
)
from src.storage.store import RecordStore, StrategicDatabase

# ---------------------------------------------------------------------------
# Demo records
# (id, name, status, complexity, effort, importance, revenue, timing,
#  days since created, days since completed, dependencies, linked goals)
# ---------------------------------------------------------------------------

DEMO_MILESTONES: list[tuple] = [
    ("ms-privacy-audit", "GDPR audit logging", MilestoneStatus.COMPLETED,
     Complexity.MEDIUM, 120, 85, 45000, MarketTiming.EARLY, 150, 110, [], ["goal-revenue", "goal-market"]),
    ("ms-ferpa-encryption", "FERPA encryption at rest", MilestoneStatus.COMPLETED,
     Complexity.HIGH, 200, 90, 60000, MarketTiming.ON_TIME, 140, 80, ["ms-privacy-audit"], ["goal-revenue"]),
    ("ms-bounded-ai", "Bounded AI writing enhancement", MilestoneStatus.COMPLETED,
     Complexity.HIGH, 240, 88, 75000, MarketTiming.EARLY, 120, 40, [], ["goal-product", "goal-revenue"]),
    ("ms-reflection", "Reflection prompts for student independence", MilestoneStatus.IN_PROGRESS,
     Complexity.MEDIUM, 160, 78, 30000, MarketTiming.ON_TIME, 60, None, ["ms-bounded-ai"], ["goal-product"]),
    ("ms-event-bus", "Event bus decoupling", MilestoneStatus.IN_PROGRESS,
     Complexity.HIGH, 180, 65, 10000, MarketTiming.ON_TIME, 45, None, [], ["goal-technical"]),
    ("ms-repository", "Repository pattern for microservices", MilestoneStatus.PENDING,
     Complexity.MEDIUM, 90, 60, 5000, MarketTiming.LATE, 30, None, ["ms-event-bus"], ["goal-technical"]),
    ("ms-educator-dashboard", "Educator transparency dashboard", MilestoneStatus.DELAYED,
     Complexity.CRITICAL, 300, 82, 50000, MarketTiming.CRITICAL, 90, None, [], ["goal-market", "goal-product"]),
    ("ms-trust-report", "Trust and transparency report", MilestoneStatus.PENDING,
     Complexity.LOW, 40, 55, 8000, MarketTiming.ON_TIME, 20, None, [], []),
]

DEMO_GOALS: list[tuple] = [
    ("goal-revenue", "Reach $250k ARR", GoalCategory.REVENUE, 70.0, ["Institutional budget cycle"]),
    ("goal-product", "Launch AI-assisted writing suite", GoalCategory.PRODUCT, 65.0, []),
    ("goal-market", "Win 20 privacy-conscious districts", GoalCategory.MARKET, None,
     ["District procurement approval", "State privacy review"]),
    ("goal-technical", "Scale platform to 50k students", GoalCategory.TECHNICAL, 55.0, []),
]

# (milestone id, goal id, strength)
DEMO_CORRELATIONS: list[tuple[str, str, float]] = [
    ("ms-privacy-audit", "goal-revenue", 75.0),
    ("ms-privacy-audit", "goal-market", 82.0),
    ("ms-ferpa-encryption", "goal-revenue", 70.0),
    ("ms-bounded-ai", "goal-product", 88.0),
    ("ms-bounded-ai", "goal-revenue", 72.0),
    ("ms-reflection", "goal-product", 64.0),
    ("ms-event-bus", "goal-technical", 35.0),
    ("ms-repository", "goal-technical", 30.0),
    ("ms-educator-dashboard", "goal-market", 58.0),
]


def build_demo_database(now: datetime | None = None) -> StrategicDatabase:
    """Build the demo dataset with dates relative to ``now``."""
    now = now or utc_now()

    milestones = []
    for (
        mid, name, status, complexity, effort, importance, revenue, timing,
        created_days, completed_days, deps, goals,
    ) in DEMO_MILESTONES:
        completion = now - timedelta(days=completed_days) if completed_days is not None else None
        milestones.append(
            Milestone(
                id=mid,
                name=name,
                description=f"{name} for the student writing platform",
                status=status,
                complexity=complexity,
                effort=effort,
                created_at=now - timedelta(days=created_days),
                updated_at=completion or now,
                completion_date=completion,
                dependencies=deps,
                linked_goals=goals,
                business_context=BusinessContext(
                    strategic_importance=importance,
                    revenue_implication=revenue,
                    market_timing=timing,
                    competitive_advantage=f"{name} ahead of incumbent platforms",
                ),
            )
        )

    goals = [
        BusinessGoal(
            id=gid,
            title=title,
            category=category,
            confidence=confidence,
            dependencies=GoalDependencies(external_factors=external),
            owner="strategy-team",
            last_updated=now,
        )
        for gid, title, category, confidence, external in DEMO_GOALS
    ]

    correlations = [
        ProgressCorrelation(
            technical_milestone_id=mid,
            business_goal_id=gid,
            correlation_strength=strength,
            last_updated=now,
        )
        for mid, gid, strength in DEMO_CORRELATIONS
    ]

    conversations = [
        StrategyConversation(
            id="conv-privacy-positioning",
            type="competitive-strategy",
            title="Privacy positioning against incumbent platforms",
            timestamp=now - timedelta(days=14),
            summary="Lead district sales with FERPA and GDPR readiness.",
            linked_goals=["goal-market", "goal-revenue"],
        )
    ]

    return StrategicDatabase.from_records(milestones, goals, correlations, conversations)


def seed_demo(store: RecordStore, now: datetime | None = None) -> dict:
    """Write the demo dataset unless the store already holds goals."""
    existing = store.load()
    if existing.goals:
        return {"created": False, "goal_count": len(existing.goals)}

    db = build_demo_database(now)
    store.save(db)
    return {
        "created": True,
        "milestone_count": len(db.milestones),
        "goal_count": len(db.goals),
        "correlation_count": len(db.correlations),
    }


# ---------------------------------------------------------------------------
# CLI entry point: python -m scripts.seed
# ---------------------------------------------------------------------------


def _run_seed() -> None:
    """Seed the JSON data file named by DATA_PATH."""
    from src.config.settings import get_settings
    from src.storage.store import JsonFileRecordStore

    settings = get_settings()
    result = seed_demo(JsonFileRecordStore(settings.DATA_PATH))

    if not result["created"]:
        print(f"Store {settings.DATA_PATH} already has {result['goal_count']} goals. Skipping.")
        return

    print("Seed complete.")
    print(f"  Data file:    {settings.DATA_PATH}")
    print(f"  Milestones:   {result['milestone_count']}")
    print(f"  Goals:        {result['goal_count']}")
    print(f"  Correlations: {result['correlation_count']}")


if __name__ == "__main__":
    _run_seed()
    sys.exit(0)
