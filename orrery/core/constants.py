# orrery/core/constants.py
# -*- coding: utf-8 -*-
"""
Orrery: Core constants

Purpose
-------
Single source of truth for:
- the fixed planet set served by the position engine
- time constants (seconds/milliseconds per day, J2000 reference epoch)
- the full-circle constant shared by the angle helpers
- the calendar span where the ephemeris is trusted

Design
------
- Pure-Python, no external dependencies.
- Safe to import from any core module.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Tuple
import math

__all__ = [
    # bodies
    "PLANETS",
    # time
    "SECONDS_PER_DAY", "MILLISECONDS_PER_DAY", "J2000_EPOCH", "J2000_JD",
    # angles
    "FULL_CIRCLE_RADIANS", "FULL_CIRCLE_DEGREES",
    # accuracy window
    "MIN_ACCURATE_YEAR", "MAX_ACCURATE_YEAR",
    # scene scaling
    "AU_TO_UNITS",
]

# ── canonical bodies ─────────────────────────────────────────────────────────
# Order is the catalog order used by every "all planets" query.
PLANETS: Tuple[str, ...] = (
    "Mercury", "Venus", "Earth", "Mars",
    "Jupiter", "Saturn", "Uranus", "Neptune",
)

# ── time constants ────────────────────────────────────────────────────────────
SECONDS_PER_DAY: float = 86400.0
MILLISECONDS_PER_DAY: float = SECONDS_PER_DAY * 1000.0

# J2000 reference epoch taken as civil UTC noon (not TT); day counts are plain
# millisecond differences against it.
J2000_EPOCH: datetime = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
J2000_JD: float = 2451545.0

# ── angles ────────────────────────────────────────────────────────────────────
FULL_CIRCLE_RADIANS: float = 2.0 * math.pi
FULL_CIRCLE_DEGREES: float = 360.0

# ── ephemeris accuracy window (inclusive, soft) ───────────────────────────────
MIN_ACCURATE_YEAR: int = 1700
MAX_ACCURATE_YEAR: int = 2300

# ── scene scaling ─────────────────────────────────────────────────────────────
# 1 AU = 1000 scene units (compressed but proportional)
AU_TO_UNITS: float = 1000.0
