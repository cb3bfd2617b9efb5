"""
Streak Engine - Pydantic Models (v2 syntax)
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

# Alias so the "date" field below does not shadow its own type
_Date = date


# ============================================
# ENUMS
# ============================================

class AchievementCategory(str, Enum):
    TASKS = "tasks"
    STREAKS = "streaks"
    GOALS = "goals"
    DEDICATION = "dedication"


class LookupSource(str, Enum):
    """Where a looked-up value came from, or why there is none."""
    CACHE = "cache"
    OPTIMIZED = "optimized"
    FALLBACK = "fallback"
    SKIPPED = "skipped"   # invalid input, no I/O performed
    FAILED = "failed"     # store error, logged


# ============================================
# STREAK MODELS
# ============================================

class StreakSnapshot(BaseModel):
    current_streak: int = Field(default=0, ge=0)
    max_streak: int = Field(default=0, ge=0)
    last_active_date: Optional[date] = None
    daily_goal: int = Field(default=1, ge=1)
    is_goal_reached: bool = False
    tasks_completed_today: int = Field(default=0, ge=0)
    streak_at_risk: bool = False
    days_missed: int = Field(default=0, ge=0)
    # Only filled by the fallback path
    completed_days: List[date] = Field(default_factory=list)

    @property
    def longest_streak(self) -> int:
        return self.max_streak

    @property
    def last_activity(self) -> Optional[date]:
        return self.last_active_date


class StreakRisk(BaseModel):
    at_risk: bool = False
    hours_remaining: int = Field(default=0, ge=0)
    message: str = ""


# ============================================
# ACTIVITY MODELS
# ============================================

class DailyActivityRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: _Date
    tasks_completed: int = Field(default=0, ge=0)
    goal_reached: bool = False


# ============================================
# ACHIEVEMENT MODELS
# ============================================

class Achievement(BaseModel):
    id: str
    name: str
    description: str
    category: AchievementCategory
    icon_name: Optional[str] = None
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    required_value: Optional[int] = Field(default=None, ge=0)
    current_value: Optional[int] = Field(default=None, ge=0)
    reward: Optional[str] = None


# ============================================
# RESULT TYPE
# ============================================

@dataclass
class Lookup(Generic[T]):
    """Outcome of a fail-soft read.

    ``value`` is None both when nothing was attempted and when the store
    failed; ``source`` tells the two apart.
    """
    source: LookupSource
    value: Optional[T] = None

    @property
    def found(self) -> bool:
        return self.value is not None

    @property
    def attempted(self) -> bool:
        return self.source is not LookupSource.SKIPPED
