"""
Per-counter TTL cache behind GET /api/stats.

Each counter is cached on its own, so a write only drops the counters it can
change: a new printer does not force a recount of computers.
"""
import time
from threading import RLock
from typing import Callable, Dict, Optional, Tuple

from equipment_tracker.core.config import settings
from equipment_tracker.helpers.entity_types import EntityKind, ensure_exhaustive

STAT_KEYS = ("computers", "network", "other", "assigned", "imported")

# Counter that changes when a row of the kind is written
KIND_STAT_KEYS: Dict[EntityKind, str] = {
    EntityKind.computers: "computers",
    EntityKind.network_devices: "network",
    EntityKind.other_devices: "other",
    EntityKind.assigned_devices: "assigned",
}

ensure_exhaustive(KIND_STAT_KEYS, "KIND_STAT_KEYS")


class _CounterCache:
    def __init__(self) -> None:
        self._lock = RLock()
        # key -> (count, expires at on the monotonic clock)
        self._entries: Dict[str, Tuple[int, float]] = {}

    def get(self, key: str) -> Optional[int]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            count, expires_at = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return count

    def put(self, key: str, count: int, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (count, time.monotonic() + ttl)

    def drop(self, *keys: str) -> None:
        with self._lock:
            if not keys:
                self._entries.clear()
            for key in keys:
                self._entries.pop(key, None)


_stats_cache = _CounterCache()


def cached_count(key: str, compute: Callable[[], int]) -> int:
    """Cached value of one counter, computed and stored on a miss."""
    ttl = settings.STATS_CACHE_TTL_SECONDS
    if ttl <= 0:
        return compute()

    count = _stats_cache.get(key)
    if count is None:
        count = compute()
        _stats_cache.put(key, count, ttl)
    return count


def invalidate_stats_cache(*keys: str) -> None:
    """Drop the given counters, or all of them when none are named."""
    _stats_cache.drop(*keys)


def invalidate_kind_stats(kind: EntityKind) -> None:
    invalidate_stats_cache(KIND_STAT_KEYS[kind])
