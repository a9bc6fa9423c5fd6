"""
Analysis cache.

In-memory LRU store for TrackAnalysis results, keyed by feature
fingerprint, resolved genre and production stage.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from trackgrade.core.models import FeatureVector, ProductionStage, TrackAnalysis


def make_cache_key(features: FeatureVector, genre: str, stage: ProductionStage) -> str:
    """
    Build the cache key for one analysis request.

    Track names are not part of the key, so two uploads of the same
    recording under different names share an entry.
    """
    return f"{features.fingerprint()}:{genre}:{stage.value}"


class CacheManager:
    """
    Thread-safe LRU cache of analyses with time-to-live expiry.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of cached analyses
            ttl: Time to live in seconds
            clock: Monotonic time source
        """
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")

        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[TrackAnalysis, float]]" = OrderedDict()
        self._lock = threading.RLock()
        self.logger = logging.getLogger("cache")

        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[TrackAnalysis]:
        """
        Look up a cached analysis.

        Args:
            key: Key from :func:`make_cache_key`

        Returns:
            The analysis if present and fresh, None otherwise
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            analysis, stored_at = entry
            if self._clock() - stored_at > self.ttl:
                del self._entries[key]
                self._misses += 1
                self.logger.debug(f"Cache expired: {key[:12]}...")
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            self.logger.debug(f"Cache hit: {key[:12]}...")
            return analysis

    def put(self, key: str, analysis: TrackAnalysis) -> None:
        """Store an analysis, evicting the least recently used if full."""
        with self._lock:
            self._entries.pop(key, None)

            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                self.logger.debug(f"Evicted: {evicted[:12]}...")

            self._entries[key] = (analysis, self._clock())

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it existed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.logger.info("Cache cleared")

    def purge_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            stale = [
                key for key, (_, stored_at) in self._entries.items()
                if now - stored_at > self.ttl
            ]
            for key in stale:
                del self._entries[key]

        if stale:
            self.logger.info(f"Purged {len(stale)} expired analyses")
        return len(stale)

    def stats(self) -> Dict[str, Any]:
        """Hit/miss counters and occupancy."""
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "size": len(self._entries),
                "max_size": self.max_size,
                "hit_ratio": self._hits / lookups if lookups else 0.0,
                "ttl": self.ttl,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Freshness check that leaves LRU order alone."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() - entry[1] <= self.ttl


def create_cache_manager(config: Optional[Dict[str, Any]] = None) -> Optional[CacheManager]:
    """
    Factory function to create the cache from the "cache" config section.

    Args:
        config: Cache section dict (enabled, max_size, ttl)

    Returns:
        CacheManager, or None when caching is disabled
    """
    if config is None:
        config = {}

    if not config.get("enabled", True):
        return None

    return CacheManager(
        max_size=config.get("max_size", 1000),
        ttl=config.get("ttl", 3600),
    )
