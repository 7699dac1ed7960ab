# orrery/utils/metrics.py
"""Prometheus metrics shared by the engine and the HTTP app (keep names stable!)."""
from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram

CACHE_HITS: Final = Counter("orrery_longitude_cache_hits_total", "Longitude cache hits")
CACHE_MISSES: Final = Counter("orrery_longitude_cache_misses_total", "Longitude cache misses")
CACHE_EVICTIONS: Final = Counter("orrery_longitude_cache_evictions_total", "Entries dropped by cache eviction")
# summed over every LongitudeCache in the process; each cache adds its own size changes
CACHE_SIZE: Final = Gauge("orrery_longitude_cache_entries", "Entries held across all longitude caches")

EPHEMERIS_FALLBACKS: Final = Counter(
    "orrery_ephemeris_fallback_total", "Ephemeris queries answered with the zero fallback", ["reason"]
)
FACADE_FALLBACKS: Final = Counter(
    "orrery_position_fallback_total", "Position queries answered with the default position", ["mode"]
)

MET_REQUESTS: Final = Counter("orrery_api_requests_total", "API requests", ["route"])
REQ_LATENCY: Final = Histogram("orrery_request_seconds", "API request latency", ["route"])
GAUGE_APP_UP: Final = Gauge("orrery_app_up", "1 if app is running")
