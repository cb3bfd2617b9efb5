"""
Streak Engine - Database Schema
Tables, aggregate functions and seed data the engine reads from
"""

from typing import Any, Dict

from .achievements import seed_achievement_definitions
from .database import Database
from .logger import logger


# ============================================
# TABLES
# ============================================

TABLES = [
    # Counters maintained by the task-completion procedures
    """
    CREATE TABLE IF NOT EXISTS user_reputation (
        id TEXT PRIMARY KEY,
        streak_count INTEGER NOT NULL DEFAULT 0,
        max_streak INTEGER NOT NULL DEFAULT 0,
        last_active_date DATE,
        daily_goal INTEGER NOT NULL DEFAULT 1 CHECK (daily_goal >= 1),
        updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS daily_activity (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        activity_date DATE NOT NULL,
        tasks_completed INTEGER NOT NULL DEFAULT 0,
        goal_reached BOOLEAN NOT NULL DEFAULT FALSE,
        UNIQUE(user_id, activity_date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS achievement_definitions (
        id TEXT PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        description TEXT,
        category VARCHAR(20) NOT NULL,
        icon_name VARCHAR(50),
        required_value INTEGER,
        reward TEXT,
        sort_order INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_achievements (
        id SERIAL PRIMARY KEY,
        user_id TEXT NOT NULL,
        achievement_id TEXT NOT NULL,
        unlocked_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
        UNIQUE(user_id, achievement_id)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_daily_activity_user_date
    ON daily_activity(user_id, activity_date DESC)
    """,
]


# ============================================
# AGGREGATE FUNCTIONS
# ============================================

STREAK_FUNCTION = """
CREATE OR REPLACE FUNCTION get_user_streak_data(p_user_id TEXT, p_today DATE)
RETURNS TABLE (
    current_streak INTEGER,
    max_streak INTEGER,
    last_active_date DATE,
    daily_goal INTEGER,
    is_goal_reached BOOLEAN,
    tasks_completed_today INTEGER
)
LANGUAGE sql STABLE AS $fn$
    SELECT ur.streak_count,
           ur.max_streak,
           ur.last_active_date,
           ur.daily_goal,
           COALESCE(da.goal_reached, false),
           COALESCE(da.tasks_completed, 0)
    FROM user_reputation ur
    LEFT JOIN daily_activity da
        ON da.user_id = ur.id AND da.activity_date = p_today
    WHERE ur.id = p_user_id
$fn$
"""

ACHIEVEMENTS_FUNCTION = """
CREATE OR REPLACE FUNCTION get_user_achievements(
    p_user_id TEXT,
    p_category TEXT,
    p_limit INTEGER,
    p_offset INTEGER
)
RETURNS TABLE (
    id TEXT,
    name VARCHAR,
    description TEXT,
    category VARCHAR,
    icon_name VARCHAR,
    is_unlocked BOOLEAN,
    unlocked_at TIMESTAMP WITH TIME ZONE,
    required_value INTEGER,
    current_value INTEGER,
    reward TEXT
)
LANGUAGE sql STABLE AS $fn$
    WITH progress AS (
        SELECT
            COALESCE((SELECT SUM(d.tasks_completed) FROM daily_activity d
                      WHERE d.user_id = p_user_id), 0)::INTEGER AS tasks,
            COALESCE((SELECT GREATEST(r.streak_count, r.max_streak) FROM user_reputation r
                      WHERE r.id = p_user_id), 0)::INTEGER AS streaks,
            (SELECT COUNT(*) FROM daily_activity d
             WHERE d.user_id = p_user_id AND d.goal_reached)::INTEGER AS goals
    )
    SELECT ad.id,
           ad.name,
           ad.description,
           ad.category,
           ad.icon_name,
           ua.unlocked_at IS NOT NULL,
           ua.unlocked_at,
           ad.required_value,
           CASE
               WHEN ad.required_value IS NULL THEN NULL
               WHEN ad.category = 'tasks' THEN p.tasks
               WHEN ad.category = 'streaks' THEN p.streaks
               WHEN ad.category = 'goals' THEN p.goals
           END,
           ad.reward
    FROM achievement_definitions ad
    CROSS JOIN progress p
    LEFT JOIN user_achievements ua
        ON ua.achievement_id = ad.id AND ua.user_id = p_user_id
    WHERE p_category IS NULL OR ad.category = p_category
    ORDER BY ad.sort_order, ad.id
    LIMIT p_limit OFFSET p_offset
$fn$
"""


# ============================================
# INITIALIZATION
# ============================================

async def ensure_streak_tables(database: Database) -> None:
    """Create engine tables if they don't exist."""
    for statement in TABLES:
        await database.execute(statement)


async def ensure_aggregate_functions(database: Database) -> None:
    """Install the single-call functions used by the optimized paths."""
    await database.execute(STREAK_FUNCTION)
    await database.execute(ACHIEVEMENTS_FUNCTION)


async def initialize_schema(database: Database) -> Dict[str, Any]:
    """
    Initialize the engine's storage.
    Call this on server startup, after the database is connected.
    """
    await ensure_streak_tables(database)
    await ensure_aggregate_functions(database)
    inserted = await seed_achievement_definitions(database)
    logger.info(f"Schema ready, {inserted} achievement definitions seeded")

    return {
        "tables_created": True,
        "functions_installed": True,
        "definitions_seeded": inserted,
        "message": f"Streak engine initialized. {inserted} new definitions added."
    }
