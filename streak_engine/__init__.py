"""
Streak Engine
Cache-backed streak, activity calendar and achievement reads
"""

from .models import (
    # Models
    StreakSnapshot,
    StreakRisk,
    DailyActivityRecord,
    Achievement,
    # Enums
    AchievementCategory,
    LookupSource,
    # Result type
    Lookup,
)

from .cache import (
    TTLCache,
    CacheEntry,
    StreakCaches,
)

from .achievements import (
    AchievementCatalog,
    DefaultAchievementCatalog,
    ACHIEVEMENT_DEFINITIONS,
)

from .database import (
    Database,
    PostgresStreakStore,
    db,
)

from .schema import initialize_schema

from .streaks import get_motivational_message

from .service import (
    StreakService,
    get_streak_service,
    reset_streak_service,
    clear_all_caches,
)

from .diagnostics import run_health_checks

__all__ = [
    "StreakSnapshot",
    "StreakRisk",
    "DailyActivityRecord",
    "Achievement",
    "AchievementCategory",
    "LookupSource",
    "Lookup",
    "TTLCache",
    "CacheEntry",
    "StreakCaches",
    "AchievementCatalog",
    "DefaultAchievementCatalog",
    "ACHIEVEMENT_DEFINITIONS",
    "Database",
    "PostgresStreakStore",
    "db",
    "initialize_schema",
    "get_motivational_message",
    "StreakService",
    "get_streak_service",
    "reset_streak_service",
    "clear_all_caches",
    "run_health_checks",
]

__version__ = "1.0.0"
