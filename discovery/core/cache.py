"""
Generic in-memory cache with TTL support.
Thread-safe, process-local and rebuildable: nothing here is persisted.

Expiry is lazy - an entry is only checked (and evicted) when it is read.
There is no background sweep, so an entry that is still within its TTL is
served even if the underlying data changed after it was inserted.
"""
import time
from abc import ABC, abstractmethod
from threading import Lock
from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class CacheInterface(ABC, Generic[T]):
    """Abstract interface for cache implementations."""

    @abstractmethod
    def get(self, key: str) -> Optional[T]:
        """Get value by key, returns None if not found or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        """Set value with optional TTL."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key, returns True if existed."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all entries."""
        pass

    @abstractmethod
    async def get_or_compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        ttl_seconds: Optional[float] = None,
    ) -> T:
        """Get value or await the factory and cache its result if missing."""
        pass


class CacheEntry(Generic[T]):
    """Single cache entry with insertion time and TTL."""

    def __init__(self, value: T, inserted_at: float, ttl: Optional[float]) -> None:
        self.value = value
        self.inserted_at = inserted_at
        self.ttl = ttl

    def is_fresh(self, now: float) -> bool:
        """An entry is fresh while strictly less than TTL seconds old."""
        if self.ttl is None:
            return True
        return now - self.inserted_at < self.ttl


class InMemoryCache(CacheInterface[T]):
    """
    Thread-safe in-memory cache with TTL support.

    Usage:
        cache: CacheInterface[List[SearchResult]] = InMemoryCache(default_ttl_seconds=600)
        results = await cache.get_or_compute(search_filter.cache_key(), run_search)

    Concurrent misses on the same key are not de-duplicated: each caller runs
    the factory and the last writer wins. Every write replaces the entry
    atomically, so readers never observe a half-written value.
    """

    def __init__(
        self,
        default_ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: Dict[str, CacheEntry[T]] = {}
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[T]:
        """Get value by key, returns None if not found or expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if not entry.is_fresh(self._clock()):
                del self._store[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        """Set value with optional TTL."""
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        with self._lock:
            self._store[key] = CacheEntry(value, self._clock(), ttl)

    def delete(self, key: str) -> bool:
        """Delete key, returns True if existed."""
        with self._lock:
            if key in self._store:
                del self._store[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all entries unconditionally."""
        with self._lock:
            self._store.clear()

    async def get_or_compute(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        ttl_seconds: Optional[float] = None,
    ) -> T:
        """Get value or await the factory and cache its result if missing."""
        value = self.get(key)
        if value is not None:
            return value

        # Compute outside lock to avoid blocking other keys
        computed_value = await factory()
        self.set(key, computed_value, ttl_seconds)
        return computed_value

    def size(self) -> int:
        """Return number of entries (including possibly expired)."""
        with self._lock:
            return len(self._store)

    def stats(self) -> Dict[str, float]:
        """Entry count, hit/miss counters and hit rate (percent)."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total) * 100 if total else 0.0
            return {
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
            }
