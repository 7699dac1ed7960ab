# orrery/core/angles.py
from __future__ import annotations

import logging
import math

from orrery.core.constants import FULL_CIRCLE_DEGREES, FULL_CIRCLE_RADIANS

__all__ = [
    "longitude_to_radians",
    "degrees_to_radians_clamped",
    "clamp_degrees",
    "wrap360",
    "wrap_two_pi",
]

log = logging.getLogger(__name__)


def wrap360(x: float) -> float:
    """Wrap degrees into [0, 360)."""
    v = math.fmod(float(x), FULL_CIRCLE_DEGREES)
    if v < 0.0:
        v += FULL_CIRCLE_DEGREES
    # fmod of a tiny negative can round back up to exactly 360
    return 0.0 if v >= FULL_CIRCLE_DEGREES else v


def wrap_two_pi(x: float) -> float:
    """Wrap radians into [0, 2π)."""
    v = math.fmod(float(x), FULL_CIRCLE_RADIANS)
    if v < 0.0:
        v += FULL_CIRCLE_RADIANS
    return 0.0 if v >= FULL_CIRCLE_RADIANS else v


def longitude_to_radians(degrees: float) -> float:
    """
    Ecliptic longitude (degrees) → rotation (radians): (deg / 360) × 2π.
    Non-finite input is rejected with a logged error and 0.
    """
    try:
        d = float(degrees)
    except (TypeError, ValueError):
        log.error("Invalid longitude provided to longitude_to_radians: %r", degrees)
        return 0.0
    if not math.isfinite(d):
        log.error("Invalid longitude provided to longitude_to_radians: %r", degrees)
        return 0.0
    return (d / FULL_CIRCLE_DEGREES) * FULL_CIRCLE_RADIANS


def clamp_degrees(degrees: float) -> float:
    """Clamp to [-180, 180]; non-finite input becomes 0 with a warning."""
    try:
        d = float(degrees)
    except (TypeError, ValueError):
        d = float("nan")
    if not math.isfinite(d):
        log.warning("Invalid inclination: %r, using 0", degrees)
        return 0.0
    return max(-180.0, min(180.0, d))


def degrees_to_radians_clamped(degrees: float) -> float:
    return math.radians(clamp_degrees(degrees))
