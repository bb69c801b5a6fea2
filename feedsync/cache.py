"""
Cache - in-memory caching with per-entry expiry.

Provides:
- CacheBackend: the interface cache consumers depend on
- MemoryCache: thread-safe in-memory cache with TTL and LRU eviction
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    key: str
    value: Any
    created_at: datetime
    expires_at: datetime | None


class CacheBackend(ABC):
    """Abstract base class for cache backends."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Get a value from cache."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value in cache with optional TTL in seconds."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a value from cache."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Clear all values from cache."""
        pass


class MemoryCache(CacheBackend):
    """Fast in-memory cache with expiry and LRU eviction."""

    def __init__(
        self,
        max_size: int = 256,
        default_ttl: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._cache: dict[str, CacheEntry] = {}
        self._access_order: list[str] = []  # Track access order for LRU
        self._lock = threading.RLock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            # Check expiration
            if entry.expires_at and entry.expires_at <= self._clock():
                self._remove(key)
                return None

            # Update access order (move to end for LRU)
            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

            return entry.value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ttl = ttl if ttl is not None else self.default_ttl
        with self._lock:
            # Evict if at capacity
            while len(self._cache) >= self.max_size and key not in self._cache:
                self._evict_oldest()

            now = self._clock()
            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                expires_at=now + timedelta(seconds=ttl) if ttl else None
            )

            # Update access order
            if key in self._access_order:
                self._access_order.remove(key)
            self._access_order.append(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(key)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._access_order.clear()

    def _remove(self, key: str):
        self._cache.pop(key, None)
        if key in self._access_order:
            self._access_order.remove(key)

    def _evict_oldest(self):
        """Evict least recently used entry."""
        if self._access_order:
            oldest_key = self._access_order.pop(0)
            self._cache.pop(oldest_key, None)

    @property
    def size(self) -> int:
        return len(self._cache)
