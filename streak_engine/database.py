"""
Streak Engine - Database Connection
Async PostgreSQL with asyncpg
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import asyncpg

from .config import DatabaseConfig, get_database_config

logger = logging.getLogger(__name__)


class Database:
    """Async database connection manager."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self._config = config
        self._pool = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self):
        """Create connection pool."""
        config = self._config or get_database_config()
        self._pool = await asyncpg.create_pool(
            config.url,
            min_size=config.pool_min_size,
            max_size=config.pool_max_size
        )
        logger.info("Database connected")

    async def disconnect(self):
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database disconnected")

    async def fetch(self, query: str, *args) -> List[dict]:
        """Fetch multiple rows."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    async def fetch_one(self, query: str, *args) -> Optional[dict]:
        """Fetch single row."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            return dict(row) if row else None

    async def fetch_value(self, query: str, *args) -> Any:
        """Fetch the first column of the first row."""
        async with self._pool.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def execute(self, query: str, *args) -> str:
        """Execute query (INSERT, UPDATE, DELETE)."""
        async with self._pool.acquire() as conn:
            return await conn.execute(query, *args)


# Global database instance
db = Database()


class PostgresStreakStore:
    """
    Backing-store reads and writes used by the streak service.

    Rows come back as plain dicts keyed by column name. Errors from asyncpg
    propagate; deciding whether to fall back or fail soft is the service's job.
    """

    def __init__(self, database: Database = db):
        self.db = database

    # ============================================
    # STREAK QUERIES
    # ============================================

    async def fetch_streak_summary(self, user_id: str, today: date) -> Optional[dict]:
        """Single-call aggregate of the six base streak fields, with "today"
        taken from the caller so both read paths agree on the day."""
        return await self.db.fetch_one(
            """SELECT current_streak, max_streak, last_active_date, daily_goal,
                      is_goal_reached, tasks_completed_today
               FROM get_user_streak_data($1, $2)""",
            user_id, today
        )

    async def fetch_user_counters(self, user_id: str) -> Optional[dict]:
        return await self.db.fetch_one(
            """SELECT streak_count, max_streak, last_active_date, daily_goal
               FROM user_reputation WHERE id = $1""",
            user_id
        )

    async def fetch_daily_activity(self, user_id: str, day: date) -> Optional[dict]:
        return await self.db.fetch_one(
            """SELECT tasks_completed, goal_reached
               FROM daily_activity
               WHERE user_id = $1 AND activity_date = $2""",
            user_id, day
        )

    async def fetch_goal_reached_dates(self, user_id: str, since: date, until: date) -> List[date]:
        rows = await self.db.fetch(
            """SELECT activity_date FROM daily_activity
               WHERE user_id = $1 AND goal_reached = true
                 AND activity_date BETWEEN $2 AND $3
               ORDER BY activity_date""",
            user_id, since, until
        )
        return [row["activity_date"] for row in rows]

    async def update_daily_goal(self, user_id: str, goal: int) -> None:
        await self.db.execute(
            """INSERT INTO user_reputation (id, daily_goal)
               VALUES ($1, $2)
               ON CONFLICT (id) DO UPDATE SET
                   daily_goal = EXCLUDED.daily_goal,
                   updated_at = NOW()""",
            user_id, goal
        )

    # ============================================
    # ACTIVITY QUERIES
    # ============================================

    async def fetch_activity_range(self, user_id: str, start: date, end: date) -> List[dict]:
        return await self.db.fetch(
            """SELECT activity_date, tasks_completed, goal_reached
               FROM daily_activity
               WHERE user_id = $1 AND activity_date BETWEEN $2 AND $3
               ORDER BY activity_date""",
            user_id, start, end
        )

    # ============================================
    # ACHIEVEMENT QUERIES
    # ============================================

    async def fetch_achievements_page(
        self,
        user_id: str,
        category: Optional[str],
        limit: int,
        offset: int
    ) -> List[dict]:
        """Single-call aggregate of achievement definitions with unlock state."""
        return await self.db.fetch(
            """SELECT id, name, description, category, icon_name, is_unlocked,
                      unlocked_at, required_value, current_value, reward
               FROM get_user_achievements($1, $2, $3, $4)""",
            user_id, category, limit, offset
        )

    async def fetch_unlocked_achievements(self, user_id: str) -> Dict[str, datetime]:
        rows = await self.db.fetch(
            """SELECT achievement_id, unlocked_at FROM user_achievements
               WHERE user_id = $1""",
            user_id
        )
        return {row["achievement_id"]: row["unlocked_at"] for row in rows}

    async def fetch_achievement_progress(self, user_id: str) -> Dict[str, int]:
        """Counters the default catalog uses as current_value per category."""
        row = await self.db.fetch_one(
            """SELECT
                   COALESCE((SELECT SUM(tasks_completed) FROM daily_activity
                             WHERE user_id = $1), 0) AS tasks,
                   COALESCE((SELECT GREATEST(streak_count, max_streak) FROM user_reputation
                             WHERE id = $1), 0) AS streaks,
                   (SELECT COUNT(*) FROM daily_activity
                    WHERE user_id = $1 AND goal_reached = true) AS goals""",
            user_id
        )
        row = row or {}
        return {key: int(row.get(key) or 0) for key in ("tasks", "streaks", "goals")}

    async def achievement_unlocked(self, user_id: str, achievement_id: str) -> bool:
        found = await self.db.fetch_value(
            """SELECT EXISTS(
                   SELECT 1 FROM user_achievements
                   WHERE user_id = $1 AND achievement_id = $2
               )""",
            user_id, achievement_id
        )
        return bool(found)

    async def insert_achievement_unlock(self, user_id: str, achievement_id: str, unlocked_at: datetime) -> None:
        await self.db.execute(
            """INSERT INTO user_achievements (user_id, achievement_id, unlocked_at)
               VALUES ($1, $2, $3)
               ON CONFLICT (user_id, achievement_id) DO NOTHING""",
            user_id, achievement_id, unlocked_at
        )

    # ============================================
    # SYSTEM QUERIES
    # ============================================

    async def ping(self) -> bool:
        return await self.db.fetch_value("SELECT 1") == 1
