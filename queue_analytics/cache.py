"""
Analytics Cache

In-memory key -> snapshot store with per-entry TTL. Entries are replaced as
a whole. Expired entries are dropped on read and swept on every write, so
keys for past periods do not accumulate. An optional per-key single-flight
guard makes concurrent misses for the same key compute only once.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .constants import AnalyticsDefaults
from .datetime_utils import normalize_iso

logger = logging.getLogger(__name__)


def cache_key(shop_id: str, date_from, date_to) -> str:
    """
    Build the cache key for a shop and date range.

    Dates are normalized first, so two spellings of the same range map to
    the same key.
    """
    return f"{shop_id}_{normalize_iso(date_from)}_{normalize_iso(date_to)}"


@dataclass
class CacheEntry:
    """One cached value with its expiry (monotonic clock seconds)"""
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    # Threads holding or waiting for the lock
    users: int = 0


class AnalyticsCache:
    """
    Thread-safe TTL cache for analytics snapshots.

    Implements the cache store interface used by the orchestrator:
    get(key) -> value or None, set(key, value, ttl_seconds).
    """

    def __init__(
        self,
        default_ttl: float = AnalyticsDefaults.CACHE_TTL_SECONDS,
        single_flight: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            default_ttl: TTL in seconds used when set() gets none
            single_flight: Serialize concurrent computations per key
            clock: Monotonic time source (injectable for tests)
        """
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl}")
        self.default_ttl = default_ttl
        self.single_flight = single_flight
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._key_locks: Dict[str, _KeyLock] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                logger.debug("Cache entry expired: %s", key)
                return None
            self.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store a value, replacing any existing entry for the key"""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl}")
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=now + ttl)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _acquire_key_lock(self, key: str) -> _KeyLock:
        with self._lock:
            slot = self._key_locks.get(key)
            if slot is None:
                slot = _KeyLock()
                self._key_locks[key] = slot
            slot.users += 1
        slot.lock.acquire()
        return slot

    def _release_key_lock(self, key: str, slot: _KeyLock) -> None:
        slot.lock.release()
        with self._lock:
            slot.users -= 1
            if slot.users == 0:
                del self._key_locks[key]

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Any],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value or compute, store and return it.

        The read happens before the computation and the write only after the
        computation completed. Exceptions from compute propagate and nothing
        is stored.

        Args:
            key: Cache key
            compute: Zero-argument callable producing the value
            ttl_seconds: TTL for a freshly computed value

        Returns:
            Cached or freshly computed value
        """
        value = self.get(key)
        if value is not None:
            return value

        if not self.single_flight:
            value = compute()
            self.set(key, value, ttl_seconds)
            return value

        slot = self._acquire_key_lock(key)
        try:
            # Another thread may have filled the entry while we waited
            value = self.get(key)
            if value is not None:
                return value
            value = compute()
            self.set(key, value, ttl_seconds)
            return value
        finally:
            self._release_key_lock(key, slot)

    def stats(self) -> Dict[str, Any]:
        """Hit/miss counters, entry count and keys currently being computed"""
        with self._lock:
            total = self.hits + self.misses
            return {
                "entries": len(self._entries),
                "in_flight": len(self._key_locks),
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": self.hits / total if total else 0.0,
            }
