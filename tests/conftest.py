"""Shared test fixtures for streak engine tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from streak_engine.cache import StreakCaches
from streak_engine.config import CacheConfig, StreakConfig
from streak_engine.service import StreakService

NOW = datetime(2024, 3, 15, 18, 30)
TODAY = NOW.date()
YESTERDAY = TODAY - timedelta(days=1)


class FakeTimer:
    """Monotonic timer the tests move forward by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStreakStore:
    """In-memory store that records every call made to it.

    Set ``errors[method_name]`` to an exception to make that method raise.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.errors: Dict[str, Exception] = {}
        self.summaries: Dict[str, dict] = {}
        self.counters: Dict[str, dict] = {}
        self.activity: Dict[str, Dict[date, dict]] = {}
        self.achievement_rows: Dict[str, List[dict]] = {}
        self.unlocks: Dict[str, Dict[str, datetime]] = {}
        self.progress: Dict[str, Dict[str, int]] = {}
        self.goals: Dict[str, int] = {}
        self.summary_days: List[date] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    def count(self, name: Optional[str] = None) -> int:
        if name is None:
            return len(self.calls)
        return self.calls.count(name)

    def add_activity(self, user_id: str, day: date, tasks: int, reached: bool) -> None:
        self.activity.setdefault(user_id, {})[day] = {
            "activity_date": day,
            "tasks_completed": tasks,
            "goal_reached": reached,
        }

    async def fetch_streak_summary(self, user_id: str, today: date) -> Optional[dict]:
        self._record("fetch_streak_summary")
        self.summary_days.append(today)
        return self.summaries.get(user_id)

    async def fetch_user_counters(self, user_id: str) -> Optional[dict]:
        self._record("fetch_user_counters")
        return self.counters.get(user_id)

    async def fetch_daily_activity(self, user_id: str, day: date) -> Optional[dict]:
        self._record("fetch_daily_activity")
        return self.activity.get(user_id, {}).get(day)

    async def fetch_goal_reached_dates(self, user_id: str, since: date, until: date) -> List[date]:
        self._record("fetch_goal_reached_dates")
        return sorted(
            day for day, row in self.activity.get(user_id, {}).items()
            if row["goal_reached"] and since <= day <= until
        )

    async def update_daily_goal(self, user_id: str, goal: int) -> None:
        self._record("update_daily_goal")
        self.goals[user_id] = goal
        if user_id in self.counters:
            self.counters[user_id]["daily_goal"] = goal

    async def fetch_activity_range(self, user_id: str, start: date, end: date) -> List[dict]:
        self._record("fetch_activity_range")
        rows = self.activity.get(user_id, {})
        return [rows[day] for day in sorted(rows) if start <= day <= end]

    async def fetch_achievements_page(self, user_id, category, limit, offset) -> List[dict]:
        self._record("fetch_achievements_page")
        rows = self.achievement_rows.get(user_id, [])
        if category is not None:
            rows = [r for r in rows if r["category"] == category]
        return rows[offset:offset + limit]

    async def fetch_unlocked_achievements(self, user_id: str) -> Dict[str, datetime]:
        self._record("fetch_unlocked_achievements")
        return dict(self.unlocks.get(user_id, {}))

    async def fetch_achievement_progress(self, user_id: str) -> Dict[str, int]:
        self._record("fetch_achievement_progress")
        return self.progress.get(user_id, {"tasks": 0, "streaks": 0, "goals": 0})

    async def achievement_unlocked(self, user_id: str, achievement_id: str) -> bool:
        self._record("achievement_unlocked")
        return achievement_id in self.unlocks.get(user_id, {})

    async def insert_achievement_unlock(self, user_id: str, achievement_id: str, unlocked_at: datetime) -> None:
        self._record("insert_achievement_unlock")
        self.unlocks.setdefault(user_id, {}).setdefault(achievement_id, unlocked_at)

    async def ping(self) -> bool:
        self._record("ping")
        return True


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def store() -> FakeStreakStore:
    return FakeStreakStore()


@pytest.fixture
def cache_config() -> CacheConfig:
    return CacheConfig(
        streak_ttl_seconds=300,
        activity_ttl_seconds=1800,
        achievements_ttl_seconds=600,
    )


@pytest.fixture
def streak_config() -> StreakConfig:
    return StreakConfig(
        enable_optimized_queries=True,
        history_window_days=30,
        default_daily_goal=1,
        achievements_fetch_limit=200,
        default_page_size=20,
    )


@pytest.fixture
def service(store, timer, cache_config, streak_config) -> StreakService:
    return StreakService(
        store,
        caches=StreakCaches.from_config(cache_config, timer=timer),
        config=streak_config,
        clock=lambda: NOW,
    )


def summary_row(
    current_streak: int = 7,
    max_streak: int = 15,
    last_active_date: Any = TODAY,
    daily_goal: int = 2,
    is_goal_reached: bool = True,
    tasks_completed_today: int = 3,
) -> dict:
    return {
        "current_streak": current_streak,
        "max_streak": max_streak,
        "last_active_date": last_active_date,
        "daily_goal": daily_goal,
        "is_goal_reached": is_goal_reached,
        "tasks_completed_today": tasks_completed_today,
    }


def counters_row(
    streak_count: int = 3,
    max_streak: int = 8,
    last_active_date: Any = TODAY,
    daily_goal: int = 1,
) -> dict:
    return {
        "streak_count": streak_count,
        "max_streak": max_streak,
        "last_active_date": last_active_date,
        "daily_goal": daily_goal,
    }
