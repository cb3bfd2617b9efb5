"""
Streak Engine - Streak Derivation
Risk/continuity fields and messages computed from a streak snapshot.

Everything here is pure: the same base fields give the same derived fields
whichever retrieval path produced them.
"""

import math
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from .models import StreakSnapshot


def as_date(value: Any) -> Optional[date]:
    """Normalize a stored date/datetime/ISO string to a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def days_between(today: date, earlier: date) -> int:
    """Whole calendar days from ``earlier`` to ``today``."""
    return (today - earlier).days


def derive_risk_fields(
    last_active_date: Optional[date],
    is_goal_reached: bool,
    today: date
) -> Tuple[bool, int]:
    """
    Compute (streak_at_risk, days_missed).

    At risk means the user was last active yesterday and has not reached
    today's goal yet. A user who was never active is never at risk.
    """
    if last_active_date is None:
        return False, 0

    days_since_active = days_between(today, last_active_date)
    streak_at_risk = not is_goal_reached and days_since_active == 1
    if streak_at_risk:
        return True, 0
    return False, max(0, days_since_active - 1)


def build_snapshot(base: Dict[str, Any], today: date, default_daily_goal: int = 1) -> StreakSnapshot:
    """
    Turn the six base fields (plus optional completed_days) into a snapshot.

    ``base`` uses snapshot field names: current_streak, max_streak,
    last_active_date, daily_goal, is_goal_reached, tasks_completed_today.
    """
    last_active = as_date(base.get("last_active_date"))
    is_goal_reached = bool(base.get("is_goal_reached") or False)
    streak_at_risk, days_missed = derive_risk_fields(last_active, is_goal_reached, today)

    return StreakSnapshot(
        current_streak=base.get("current_streak") or 0,
        max_streak=base.get("max_streak") or 0,
        last_active_date=last_active,
        daily_goal=base.get("daily_goal") or default_daily_goal,
        is_goal_reached=is_goal_reached,
        tasks_completed_today=base.get("tasks_completed_today") or 0,
        streak_at_risk=streak_at_risk,
        days_missed=days_missed,
        completed_days=[as_date(d) for d in base.get("completed_days") or []],
    )


def zeroed_snapshot(default_daily_goal: int = 1) -> StreakSnapshot:
    """Snapshot for a user with no counters record."""
    return StreakSnapshot(daily_goal=default_daily_goal)


def hours_until_midnight(now: datetime) -> int:
    """Hours left before the next local midnight, rounded up."""
    midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time(), tzinfo=now.tzinfo)
    return math.ceil((midnight - now).total_seconds() / 3600)


# ============================================
# MESSAGES
# ============================================

def streak_risk_message(current_streak: int, hours_remaining: int) -> str:
    return (
        f"Don't break your {current_streak} day streak! "
        f"Complete a task in the next {hours_remaining} hours."
    )


def get_motivational_message(snapshot: Optional[StreakSnapshot]) -> str:
    """Pick the message that fits the snapshot, highest priority first."""
    if snapshot is None:
        return "Complete tasks to build your streak!"

    streak = snapshot.current_streak

    if snapshot.streak_at_risk:
        return f"Don't break your {streak} day streak! Complete a task today to keep it going."

    if streak == 0:
        return "Start your streak today by completing a task!"

    if snapshot.is_goal_reached:
        return f"Great job! You've reached your daily goal and maintained a {streak} day streak!"

    if snapshot.tasks_completed_today > 0:
        return (
            f"You've completed {snapshot.tasks_completed_today} of "
            f"{snapshot.daily_goal} tasks today. Keep going!"
        )

    if streak >= 30:
        return f"Amazing! Your {streak} day streak shows incredible dedication."

    if streak >= 7:
        return f"You're on fire with a {streak} day streak! Keep up the momentum."

    return f"You're on a {streak} day streak! Complete a task today to keep it going."
