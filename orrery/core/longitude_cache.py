# orrery/core/longitude_cache.py
"""
Day-bucketed memoization in front of the ephemeris adapter.

Key = (body, UTC calendar day). Many animation sub-steps inside one day hit
one entry. At capacity the oldest `evict_batch` insertions are dropped before
the new entry goes in. Invalid instants are answered with 0 and never stored.

The instance is owned by a simulation context (see engine.PositionEngine);
there is no module-level cache.
"""
from __future__ import annotations

from typing import Any, Optional, Tuple
import logging

from orrery.core.ephemeris_adapter import EphemerisAdapter, canonical_name
from orrery.core.timescales import InvalidInstant, day_bucket
from orrery.utils.cache import InsertionOrderedCache
from orrery.utils.metrics import CACHE_EVICTIONS, CACHE_HITS, CACHE_MISSES, CACHE_SIZE

__all__ = ["LongitudeCache", "DEFAULT_CAPACITY", "DEFAULT_EVICT_BATCH"]

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000
DEFAULT_EVICT_BATCH = 100


class LongitudeCache:
    def __init__(
        self,
        adapter: EphemerisAdapter,
        capacity: int = DEFAULT_CAPACITY,
        evict_batch: int = DEFAULT_EVICT_BATCH,
    ):
        self.adapter = adapter
        self._store = InsertionOrderedCache(capacity=capacity, evict_batch=evict_batch)

    @property
    def capacity(self) -> int:
        return self._store.capacity

    @staticmethod
    def _key(body: str, instant: Any) -> Tuple[str, str]:
        bucket = day_bucket(instant)
        return canonical_name(body) or str(body), bucket

    def get(self, body: str, instant: Any) -> float:
        try:
            key = self._key(body, instant)
        except InvalidInstant as e:
            log.error("Invalid date provided to cached longitude for %s: %s", body, e)
            return 0.0

        hit: Optional[float] = self._store.get(key)
        if hit is not None:
            CACHE_HITS.inc()
            return hit

        CACHE_MISSES.inc()
        lon = self.adapter.ecliptic_longitude(body, instant)
        before = len(self._store)
        evicted = self._store.set(key, lon)
        if evicted:
            CACHE_EVICTIONS.inc(evicted)
            log.debug("longitude cache evicted %d entries", evicted)
        CACHE_SIZE.inc(len(self._store) - before)
        return lon

    def clear(self) -> None:
        before = len(self._store)
        self._store.clear()
        CACHE_SIZE.dec(before)

    def size(self) -> int:
        return len(self._store)

    def stats(self) -> dict:
        return {"size": self.size(), "capacity": self.capacity, "evict_batch": self._store.evict_batch}
