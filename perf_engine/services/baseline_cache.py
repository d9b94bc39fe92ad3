"""
Store-Level Cache.

Source weights and store baselines depend only on the rep population, not on
the rep being viewed, so a dashboard that renders one rep at a time would
otherwise re-estimate them on every request. BaselineCache holds them per
snapshot, keyed by (period, data_version).

Callers bump data_version whenever the underlying rows change, or call
invalidate(). Entries also record the estimator settings they were computed
with; a lookup with different settings is a miss.

The cache is bounded (least recently used entry evicted first) and guarded by
a lock so concurrent requests can share one instance.

Usage:
    cache = BaselineCache(max_entries=64)
    results = analyze_performance(reps, params, cache=cache,
                                  cache_key=CacheKey('2026-02', 'v17'))
    cache.invalidate(period='2026-02')
"""

import logging
import threading
from collections import OrderedDict
from typing import Hashable, NamedTuple, Optional

from perf_engine.models.schemas import StoreBaselines
from perf_engine.models.source_map import SourceWeights

logger = logging.getLogger(__name__)


DEFAULT_MAX_ENTRIES: int = 64


class CacheKey(NamedTuple):
    """Identity of a rep population snapshot."""
    period: str
    data_version: str


class StoreLevelState(NamedTuple):
    """Shared pass output reused across reps of the same snapshot."""
    weights: SourceWeights
    baselines: StoreBaselines


class BaselineCache:
    """Thread-safe LRU cache of StoreLevelState per snapshot."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._entries: "OrderedDict[CacheKey, tuple]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey, fingerprint: Hashable = None) -> Optional[StoreLevelState]:
        """
        Return the cached state for key, or None.

        Args:
            key: Snapshot identity.
            fingerprint: Estimator settings the caller expects; a stored entry
                computed with different settings is treated as missing.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry[0] != fingerprint:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry[1]

    def put(self, key: CacheKey, state: StoreLevelState, fingerprint: Hashable = None) -> None:
        """Store state for key, evicting the least recently used entry if full."""
        with self._lock:
            self._entries[key] = (fingerprint, state)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted store-level cache entry {evicted}")

    def invalidate(self, period: Optional[str] = None) -> int:
        """
        Drop cached entries.

        Args:
            period: Drop only entries for this period; None drops everything.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            if period is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                stale = [key for key in self._entries if key.period == period]
                for key in stale:
                    del self._entries[key]
                removed = len(stale)

        if removed:
            logger.info(f"Invalidated {removed} store-level cache entries (period={period})")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
