"""
Streak Engine - Diagnostics
Health probes for the store and the streak/achievement reads.
Each probe times itself and reports a status instead of raising.
"""

import time
from typing import Any, Dict

from .logger import logger
from .service import StreakService

PROBE_USER_ID = "test-user-id"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


async def check_database(service: StreakService) -> Dict[str, Any]:
    start = time.perf_counter()
    try:
        connected = await service.store.ping()
    except Exception as e:
        logger.error(f"Database check failed: {e}")
        return {"status": "disconnected", "error": str(e), "latency_ms": _elapsed_ms(start)}

    return {
        "status": "connected" if connected else "error",
        "latency_ms": _elapsed_ms(start),
    }


async def check_streak_calculation(service: StreakService, user_id: str = PROBE_USER_ID) -> Dict[str, Any]:
    start = time.perf_counter()
    lookup = await service.lookup_user_streak(user_id)

    if not lookup.found:
        return {
            "status": "error",
            "message": "Streak calculation failed",
            "source": lookup.source.value,
            "latency_ms": _elapsed_ms(start),
        }

    snapshot = lookup.value
    return {
        "status": "calculated",
        "message": "Streak calculation successful",
        "source": lookup.source.value,
        "latency_ms": _elapsed_ms(start),
        "streak": {
            "current_streak": snapshot.current_streak,
            "max_streak": snapshot.max_streak,
            "is_goal_reached": snapshot.is_goal_reached,
            "streak_at_risk": snapshot.streak_at_risk,
        },
    }


async def check_achievements(service: StreakService, user_id: str = PROBE_USER_ID) -> Dict[str, Any]:
    start = time.perf_counter()
    achievements = await service.get_user_achievements(
        user_id, page_size=service.config.achievements_fetch_limit
    )

    categories = sorted({a.category.value for a in achievements})
    return {
        "status": "achievement" if achievements else "empty",
        "message": "Achievement service checked successfully",
        "latency_ms": _elapsed_ms(start),
        "achievements": {
            "total": len(achievements),
            "unlocked": sum(1 for a in achievements if a.is_unlocked),
            "categories": categories,
        },
    }


async def run_health_checks(service: StreakService, user_id: str = PROBE_USER_ID) -> Dict[str, Any]:
    """Run every probe; overall status is healthy only if all of them pass."""
    database = await check_database(service)
    streak = await check_streak_calculation(service, user_id)
    achievements = await check_achievements(service, user_id)

    healthy = (
        database["status"] == "connected"
        and streak["status"] == "calculated"
        and achievements["status"] == "achievement"
    )
    return {
        "status": "healthy" if healthy else "degraded",
        "database": database,
        "streak": streak,
        "achievements": achievements,
    }
