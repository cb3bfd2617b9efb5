"""
Streak Engine - Achievement Catalog
Milestone definitions and the fallback source of a user's achievement set
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .database import Database
from .models import Achievement, AchievementCategory


# ============================================
# ACHIEVEMENT DEFINITIONS
# ============================================

# These match the rows seeded into achievement_definitions
ACHIEVEMENT_DEFINITIONS = {
    "1": {
        "name": "First Task",
        "description": "Complete your first task",
        "category": "tasks",
        "icon_name": "check",
        "required_value": 1,
    },
    "2": {
        "name": "Task Master",
        "description": "Complete 10 tasks",
        "category": "tasks",
        "icon_name": "checkbox",
        "required_value": 10,
    },
    "3": {
        "name": "Productivity Pro",
        "description": "Complete 100 tasks",
        "category": "tasks",
        "icon_name": "list-checks",
        "required_value": 100,
    },
    "4": {
        "name": "Streak Starter",
        "description": "Achieve a 3-day streak",
        "category": "streaks",
        "icon_name": "flame",
        "required_value": 3,
    },
    "5": {
        "name": "Week Warrior",
        "description": "Maintain a 7-day streak",
        "category": "streaks",
        "icon_name": "zap",
        "required_value": 7,
    },
    "6": {
        "name": "Month Master",
        "description": "Maintain a 30-day streak",
        "category": "streaks",
        "icon_name": "calendar",
        "required_value": 30,
    },
    "7": {
        "name": "Goal Getter",
        "description": "Complete your first goal",
        "category": "goals",
        "icon_name": "target",
        "required_value": 1,
    },
    "8": {
        "name": "Goal Guru",
        "description": "Complete 5 goals",
        "category": "goals",
        "icon_name": "trophy",
        "required_value": 5,
    },
    "9": {
        "name": "Early Bird",
        "description": "Complete a task before 9am",
        "category": "dedication",
        "icon_name": "sunrise",
    },
    "10": {
        "name": "Night Owl",
        "description": "Complete a task after 10pm",
        "category": "dedication",
        "icon_name": "moon",
    },
    "11": {
        "name": "Weekend Warrior",
        "description": "Complete tasks on both Saturday and Sunday",
        "category": "dedication",
        "icon_name": "calendar-days",
    },
    "12": {
        "name": "Perfect Week",
        "description": "Complete at least one task every day for a week",
        "category": "dedication",
        "icon_name": "calendar-check",
        "required_value": 7,
        "reward": "50 bonus reputation points",
    },
}

# Progress counter reported as current_value for each category
PROGRESS_KEYS = {
    AchievementCategory.TASKS: "tasks",
    AchievementCategory.STREAKS: "streaks",
    AchievementCategory.GOALS: "goals",
}


# ============================================
# CATALOG STRATEGY
# ============================================

class AchievementCatalog(ABC):
    """Source of a user's full achievement set when the aggregate call is unavailable."""

    @abstractmethod
    async def list_achievements(self, user_id: str, store: Any) -> List[Achievement]:
        """Return every achievement, annotated with the user's unlock state."""


class DefaultAchievementCatalog(AchievementCatalog):
    """Fixed list of definitions annotated from unlock records and progress counters."""

    def __init__(self, definitions: Optional[Dict[str, Dict[str, Any]]] = None):
        self.definitions = definitions if definitions is not None else ACHIEVEMENT_DEFINITIONS

    async def list_achievements(self, user_id: str, store: Any) -> List[Achievement]:
        unlocked = await store.fetch_unlocked_achievements(user_id)
        progress = await store.fetch_achievement_progress(user_id)

        achievements = []
        for achievement_id, data in self.definitions.items():
            category = AchievementCategory(data["category"])
            required = data.get("required_value")
            current = None
            if required is not None and category in PROGRESS_KEYS:
                current = progress.get(PROGRESS_KEYS[category], 0)

            achievements.append(Achievement(
                id=achievement_id,
                name=data["name"],
                description=data["description"],
                category=category,
                icon_name=data.get("icon_name"),
                is_unlocked=achievement_id in unlocked,
                unlocked_at=unlocked.get(achievement_id),
                required_value=required,
                current_value=current,
                reward=data.get("reward"),
            ))

        return achievements


def achievement_from_row(row: Dict[str, Any]) -> Achievement:
    """Map a get_user_achievements() row to the model."""
    return Achievement(
        id=str(row["id"]),
        name=row["name"],
        description=row.get("description") or "",
        category=AchievementCategory(row["category"]),
        icon_name=row.get("icon_name"),
        is_unlocked=bool(row.get("is_unlocked")),
        unlocked_at=row.get("unlocked_at"),
        required_value=row.get("required_value"),
        current_value=row.get("current_value"),
        reward=row.get("reward"),
    )


def filter_and_paginate(
    achievements: List[Achievement],
    category: Optional[AchievementCategory],
    page: int,
    page_size: int
) -> List[Achievement]:
    """Apply a category filter and a 1-based page to a full achievement set."""
    if category is not None:
        category = AchievementCategory(category)
        achievements = [a for a in achievements if a.category == category]
    start = (page - 1) * page_size
    return achievements[start:start + page_size]


# ============================================
# DATABASE SEEDING
# ============================================

async def seed_achievement_definitions(database: Database) -> int:
    """Seed achievement definitions into database. Returns count of inserted."""
    inserted = 0

    for achievement_id, data in ACHIEVEMENT_DEFINITIONS.items():
        existing = await database.fetch_one(
            "SELECT id FROM achievement_definitions WHERE id = $1",
            achievement_id
        )

        if not existing:
            await database.execute("""
                INSERT INTO achievement_definitions
                (id, name, description, category, icon_name, required_value, reward, sort_order)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            """, achievement_id, data["name"], data["description"], data["category"],
                data.get("icon_name"), data.get("required_value"), data.get("reward"),
                int(achievement_id))
            inserted += 1

    return inserted
