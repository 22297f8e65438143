"""
In-memory result cache for fused search results.

Keys are raw query strings. Entries expire after a TTL and the cache
holds a soft maximum number of entries.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from retrieval.types import InvalidConfigurationError, SearchResult

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached results plus the time they were stored."""

    results: List[SearchResult]
    inserted_at: float


def _copy_results(results: List[SearchResult]) -> List[SearchResult]:
    return [replace(r) for r in results]


class ResultCache:
    """
    Simple in-memory cache with TTL.

    Eviction at capacity removes the oldest inserted entry, not the least
    recently read one. Every operation holds a lock, so concurrent
    inserts and evictions never interleave.

    Usage:
        cache = ResultCache(ttl_seconds=300)
        cache.put(query, results)
        cached = cache.get(query)  # None on miss
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttl_seconds: Age after which an entry is treated as missing
            max_entries: Soft capacity; oldest entry is evicted on overflow
            clock: Time source in seconds
        """
        if ttl_seconds < 0:
            raise InvalidConfigurationError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        if max_entries < 1:
            raise InvalidConfigurationError(f"max_entries must be >= 1, got {max_entries}")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return (now - entry.inserted_at) > self.ttl_seconds

    def get(self, query: str) -> Optional[List[SearchResult]]:
        """Get cached results, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(query)

            if entry is None:
                self._misses += 1
                return None

            if self._is_expired(entry, self._clock()):
                del self._entries[query]
                self._misses += 1
                return None

            self._hits += 1
            logger.debug(f"Cache hit: {query[:50]}...")
            return _copy_results(entry.results)

    def put(self, query: str, results: List[SearchResult]) -> None:
        """Store a copy of results for query."""
        entry = CacheEntry(results=_copy_results(results), inserted_at=self._clock())

        with self._lock:
            if query not in self._entries and len(self._entries) >= self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug(f"Cache full, evicted: {oldest[:50]}...")

            # Re-inserting moves the key to the end of the eviction order
            self._entries.pop(query, None)
            self._entries[query] = entry

    def delete(self, query: str) -> None:
        """Delete a single entry."""
        with self._lock:
            self._entries.pop(query, None)

    def clear(self) -> None:
        """Clear all entries and counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    @property
    def hit_rate(self) -> float:
        lookups = self._hits + self._misses
        return self._hits / lookups if lookups else 0.0

    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            now = self._clock()
            valid_count = sum(
                1 for entry in self._entries.values() if not self._is_expired(entry, now)
            )
            return {
                "total_keys": len(self._entries),
                "valid_keys": valid_count,
                "expired_keys": len(self._entries) - valid_count,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self.hit_rate,
            }

    def __len__(self) -> int:
        return len(self._entries)
