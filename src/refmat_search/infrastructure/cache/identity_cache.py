"""
Identity Cache

In-memory cache with TTL for identity resolution results.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Features:
- Time-based expiration (TTL) via cachetools
- LRU eviction when max size reached
- Per-key async locks: concurrent lookups of one name share a single fetch,
  lookups of different names still run in parallel
- Only successful results are cached; failures propagate to the caller
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from cachetools import TTLCache

from refmat_search.domain.matching import name_key

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    fetches: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        """Total cache requests."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        """Reset statistics."""
        self.hits = 0
        self.misses = 0
        self.fetches = 0
        self.expirations = 0


class IdentityCache(Generic[T]):
    """
    In-memory cache keyed by compound name (case-insensitive).

    Example:
        cache = IdentityCache(max_size=1000, ttl=3600)

        identity = await cache.get_or_fetch(
            "Aspirin",
            lambda: resolver.resolve("Aspirin"),
        )
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 3600.0,  # 1 hour default
    ) -> None:
        self._cache: TTLCache[str, T] = TTLCache(maxsize=max_size, ttl=ttl)
        # Only keys with a lookup in flight hold a lock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    def _normalize_key(self, key: str) -> str:
        return name_key(key)

    def get(self, key: str) -> T | None:
        """Cached value or None if not found/expired."""
        try:
            value = self._cache[self._normalize_key(key)]
        except KeyError:
            self._stats.misses += 1
            return None
        self._stats.hits += 1
        return value

    def set(self, key: str, value: T) -> None:
        self._cache[self._normalize_key(key)] = value

    async def get_or_fetch(self, key: str, fetch_func: Callable[[], Awaitable[T]]) -> T:
        """
        Get from cache or fetch and cache the result.

        Exceptions raised by ``fetch_func`` propagate and nothing is cached.
        """
        value = self.get(key)
        if value is not None:
            logger.debug(f"Cache hit: {key}")
            return value

        nkey = self._normalize_key(key)
        lock = self._locks.get(nkey)
        if lock is None:
            lock = self._locks[nkey] = asyncio.Lock()
        self._lock_users[nkey] = self._lock_users.get(nkey, 0) + 1
        try:
            async with lock:
                # Another task may have fetched while we waited
                cached = self._cache.get(nkey)
                if cached is not None:
                    return cached

                self._stats.fetches += 1
                value = await fetch_func()
                if value is not None:
                    self._cache[nkey] = value
                return value
        finally:
            self._release_lock(nkey)

    def _release_lock(self, nkey: str) -> None:
        """Drop the key's lock once its last user is done."""
        remaining = self._lock_users.get(nkey, 1) - 1
        if remaining > 0:
            self._lock_users[nkey] = remaining
        else:
            self._lock_users.pop(nkey, None)
            self._locks.pop(nkey, None)

    def invalidate(self, key: str) -> bool:
        """Invalidate cache entry. Returns True if an entry was removed."""
        try:
            del self._cache[self._normalize_key(key)]
            return True
        except KeyError:
            return False

    def clear(self) -> int:
        """Clear all cache entries. Returns the number of entries cleared."""
        count = len(self._cache)
        self._cache.clear()
        return count

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        cachetools.TTLCache handles expiration lazily on access; this
        triggers an explicit cleanup via expire().
        """
        expired = self._cache.expire()
        removed = len(expired)
        self._stats.expirations += removed
        return removed

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return self._normalize_key(key) in self._cache
