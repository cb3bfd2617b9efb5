"""
Streak Engine - Streak Service
Cache-backed reads of streaks, activity calendars and achievements.

Reads try the cache first, then a single aggregate call, then the discrete
fallback reads. Failures are logged and reported as "no data" (None, False
or an empty list) instead of being raised to the caller.
"""

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Any, Callable, List, Optional

from .achievements import (
    AchievementCatalog,
    DefaultAchievementCatalog,
    achievement_from_row,
    filter_and_paginate,
)
from .cache import StreakCaches, achievements_key, activity_key, streak_key
from .config import StreakConfig, get_streak_config
from .database import PostgresStreakStore, db
from .logger import logger
from .models import (
    Achievement,
    AchievementCategory,
    DailyActivityRecord,
    Lookup,
    LookupSource,
    StreakRisk,
    StreakSnapshot,
)
from .streaks import (
    as_date,
    build_snapshot,
    get_motivational_message,
    hours_until_midnight,
    streak_risk_message,
    zeroed_snapshot,
)


class StreakService:
    """Streak, calendar and achievement reads for one backing store."""

    def __init__(
        self,
        store: Any,
        caches: Optional[StreakCaches] = None,
        catalog: Optional[AchievementCatalog] = None,
        config: Optional[StreakConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.caches = caches or StreakCaches.from_config()
        self.catalog = catalog or DefaultAchievementCatalog()
        self.config = config or get_streak_config()
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    # ============================================
    # STREAKS
    # ============================================

    async def lookup_user_streak(self, user_id: str) -> Lookup[StreakSnapshot]:
        """Fetch a user's streak snapshot and report which path served it."""
        if not user_id:
            return Lookup(LookupSource.SKIPPED)

        key = streak_key(user_id)
        cached = self.caches.streak.get(key)
        if cached is not None:
            return Lookup(LookupSource.CACHE, cached)

        today = self._today()
        snapshot = await self._fetch_optimized_streak(user_id, today)
        source = LookupSource.OPTIMIZED

        if snapshot is None:
            source = LookupSource.FALLBACK
            try:
                snapshot = await self._fetch_fallback_streak(user_id, today)
            except Exception as e:
                logger.error(f"Error getting user streak for {user_id}: {e}")
                return Lookup(LookupSource.FAILED)

        self.caches.streak.set(key, snapshot)
        return Lookup(source, snapshot)

    async def get_user_streak(self, user_id: str) -> Optional[StreakSnapshot]:
        """Current streak snapshot, or None when there is no user or no data."""
        return (await self.lookup_user_streak(user_id)).value

    async def _fetch_optimized_streak(self, user_id: str, today: date) -> Optional[StreakSnapshot]:
        if not self.config.enable_optimized_queries:
            return None

        try:
            row = await self.store.fetch_streak_summary(user_id, today)
            if not row:
                return None
            return build_snapshot(row, today, self.config.default_daily_goal)
        except Exception as e:
            logger.warning(f"Optimized streak query unavailable, falling back: {e}")
            return None

    async def _fetch_fallback_streak(self, user_id: str, today: date) -> StreakSnapshot:
        counters = await self.store.fetch_user_counters(user_id)
        if not counters:
            return zeroed_snapshot(self.config.default_daily_goal)

        activity = await self.store.fetch_daily_activity(user_id, today) or {}
        since = today - timedelta(days=self.config.history_window_days)
        completed_days = await self.store.fetch_goal_reached_dates(user_id, since, today)

        return build_snapshot({
            "current_streak": counters.get("streak_count"),
            "max_streak": counters.get("max_streak"),
            "last_active_date": counters.get("last_active_date"),
            "daily_goal": counters.get("daily_goal"),
            "is_goal_reached": activity.get("goal_reached"),
            "tasks_completed_today": activity.get("tasks_completed"),
            "completed_days": completed_days,
        }, today, self.config.default_daily_goal)

    async def check_streak_risk(self, user_id: str) -> StreakRisk:
        """Whether the user's active streak breaks at midnight unless they act."""
        snapshot = await self.get_user_streak(user_id)
        if snapshot is None or not (snapshot.current_streak > 0 and snapshot.streak_at_risk):
            return StreakRisk()

        hours_remaining = hours_until_midnight(self._clock())
        return StreakRisk(
            at_risk=True,
            hours_remaining=hours_remaining,
            message=streak_risk_message(snapshot.current_streak, hours_remaining),
        )

    @staticmethod
    def get_motivational_message(snapshot: Optional[StreakSnapshot]) -> str:
        return get_motivational_message(snapshot)

    async def update_daily_goal(self, user_id: str, new_goal: int) -> bool:
        """Persist a new daily goal and drop the user's cached streak."""
        if not user_id or not isinstance(new_goal, int) or isinstance(new_goal, bool) or new_goal < 1:
            return False

        try:
            await self.store.update_daily_goal(user_id, new_goal)
        except Exception as e:
            logger.error(f"Error updating daily goal for {user_id}: {e}")
            return False

        self.caches.streak.invalidate(streak_key(user_id))
        return True

    # ============================================
    # ACTIVITY CALENDAR
    # ============================================

    async def get_user_activity_calendar(
        self,
        user_id: str,
        year: Optional[int] = None,
        month: Optional[int] = None
    ) -> List[DailyActivityRecord]:
        """Daily activity records for one calendar month (month is 1-12)."""
        if not user_id:
            return []

        today = self._today()
        year = year if year is not None else today.year
        month = month if month is not None else today.month
        if not 1 <= month <= 12 or not MINYEAR <= year <= MAXYEAR:
            logger.warning(f"Invalid calendar month {year}-{month} requested for {user_id}")
            return []

        key = activity_key(user_id, year, month)
        cached = self.caches.activity.get(key)
        if cached is not None:
            return cached

        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])

        try:
            rows = await self.store.fetch_activity_range(user_id, start, end)
            records = [
                DailyActivityRecord(
                    date=as_date(row["activity_date"]),
                    tasks_completed=row.get("tasks_completed") or 0,
                    goal_reached=bool(row.get("goal_reached")),
                )
                for row in rows
            ]
        except Exception as e:
            logger.error(f"Error getting activity calendar for {user_id}: {e}")
            return []

        self.caches.activity.set(key, records)
        return records

    # ============================================
    # ACHIEVEMENTS
    # ============================================

    async def get_user_achievements(
        self,
        user_id: str,
        category: Optional[AchievementCategory] = None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> List[Achievement]:
        """One page of the user's achievements, optionally for one category."""
        page_size = page_size if page_size is not None else self.config.default_page_size
        if not user_id or page < 1 or page_size < 1:
            return []
        if category is not None:
            try:
                category = AchievementCategory(category)
            except ValueError:
                logger.warning(f"Unknown achievement category {category!r}")
                return []

        achievements = await self._load_achievements(user_id)
        if achievements is None:
            return []
        return filter_and_paginate(achievements, category, page, page_size)

    async def _load_achievements(self, user_id: str) -> Optional[List[Achievement]]:
        key = achievements_key(user_id)
        cached = self.caches.achievements.get(key)
        if cached is not None:
            return cached

        achievements = await self._fetch_optimized_achievements(user_id)
        if achievements is None:
            try:
                achievements = await self.catalog.list_achievements(user_id, self.store)
            except Exception as e:
                logger.error(f"Error getting user achievements for {user_id}: {e}")
                return None

        self.caches.achievements.set(key, achievements)
        return achievements

    async def _fetch_optimized_achievements(self, user_id: str) -> Optional[List[Achievement]]:
        if not self.config.enable_optimized_queries:
            return None

        try:
            rows = await self.store.fetch_achievements_page(
                user_id, None, self.config.achievements_fetch_limit, 0
            )
            return [achievement_from_row(row) for row in rows]
        except Exception as e:
            logger.warning(f"Optimized achievements query unavailable, using catalog: {e}")
            return None

    async def has_achievement(self, user_id: str, achievement_id: str) -> bool:
        """Whether the user has unlocked the achievement."""
        if not user_id or not achievement_id:
            return False

        cached = self.caches.achievements.get(achievements_key(user_id)) or []
        for achievement in cached:
            if achievement.id == achievement_id:
                return achievement.is_unlocked

        try:
            return await self.store.achievement_unlocked(user_id, achievement_id)
        except Exception as e:
            logger.error(f"Error checking achievement {achievement_id} for {user_id}: {e}")
            return False

    async def unlock_achievement(self, user_id: str, achievement_id: str) -> bool:
        """Record an unlock once; repeated calls succeed without writing."""
        if not user_id or not achievement_id:
            return False

        try:
            if await self.has_achievement(user_id, achievement_id):
                return True

            await self.store.insert_achievement_unlock(user_id, achievement_id, self._clock())
        except Exception as e:
            logger.error(f"Error unlocking achievement {achievement_id} for {user_id}: {e}")
            return False

        self.caches.achievements.invalidate(achievements_key(user_id))
        logger.info(f"Achievement {achievement_id} unlocked for {user_id}")
        return True

    # ============================================
    # CACHE CONTROL
    # ============================================

    def clear_all_caches(self) -> None:
        self.caches.invalidate_all()


# ============================================
# SINGLETON INSTANCE
# ============================================

_service: Optional[StreakService] = None


def get_streak_service() -> StreakService:
    """Get or create the process-wide streak service backed by the global database."""
    global _service
    if _service is None:
        _service = StreakService(PostgresStreakStore(db))
    return _service


def reset_streak_service():
    """Reset the streak service singleton."""
    global _service
    _service = None


def clear_all_caches() -> None:
    """Drop every cached entry of the process-wide service."""
    if _service is not None:
        _service.clear_all_caches()
