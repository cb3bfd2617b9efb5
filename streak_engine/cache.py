"""
Streak Engine - TTL Cache
In-memory key/value caches with per-instance expiry.

Entries are checked lazily: a read of an entry whose age has reached the TTL
evicts it and reports a miss. There is no background sweeper and no size
bound, so expired entries that are never read again stay in the map until
their key is written or invalidated.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

from .config import CacheConfig, get_cache_config

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    value: T
    stored_at: float


class TTLCache(Generic[T]):
    """Key/value store whose entries expire ``ttl`` seconds after being set."""

    def __init__(self, ttl: float, timer: Callable[[], float] = time.monotonic, name: str = "cache"):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self.name = name
        self._timer = timer
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._timer() - entry.stored_at >= self.ttl:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._timer())

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        # Counts expired-but-unread entries too
        with self._lock:
            return len(self._entries)


# ============================================
# CACHE KEYS
# ============================================

def streak_key(user_id: str) -> str:
    return f"streak_{user_id}"


def activity_key(user_id: str, year: int, month: int) -> str:
    return f"activity_{user_id}_{year}_{month}"


def achievements_key(user_id: str) -> str:
    return f"achievements_{user_id}"


# ============================================
# ENGINE CACHES
# ============================================

class StreakCaches:
    """The three caches used by the engine, one per data kind."""

    def __init__(self, streak: TTLCache, activity: TTLCache, achievements: TTLCache):
        self.streak = streak
        self.activity = activity
        self.achievements = achievements

    @classmethod
    def from_config(
        cls,
        config: Optional[CacheConfig] = None,
        timer: Callable[[], float] = time.monotonic
    ) -> "StreakCaches":
        """Build fresh caches using the TTLs from configuration."""
        config = config or get_cache_config()
        return cls(
            streak=TTLCache(config.streak_ttl_seconds, timer=timer, name="streak"),
            activity=TTLCache(config.activity_ttl_seconds, timer=timer, name="activity"),
            achievements=TTLCache(config.achievements_ttl_seconds, timer=timer, name="achievements"),
        )

    def invalidate_all(self) -> None:
        """Drop every entry of every cache."""
        for cache in (self.streak, self.activity, self.achievements):
            cache.invalidate_all()
