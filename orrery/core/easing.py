# orrery/core/easing.py
"""
Easing curves for date transitions.

Each curve maps [0, 1] → [0, 1] with f(0) = 0, f(1) = 1 and is monotonic
non-decreasing; input outside [0, 1] is clamped first.
"""
from __future__ import annotations

from typing import Callable, Dict

__all__ = [
    "EasingFunction",
    "linear",
    "ease_in_out_quad",
    "ease_in_out_cubic",
    "ease_out_quart",
    "EASINGS",
    "DEFAULT_EASING",
    "get_easing",
]

EasingFunction = Callable[[float], float]


def _clamp01(t: float) -> float:
    t = float(t)
    if t != t:  # NaN
        return 0.0
    return 0.0 if t < 0.0 else 1.0 if t > 1.0 else t


def linear(t: float) -> float:
    return _clamp01(t)


def ease_in_out_quad(t: float) -> float:
    """Gentler than cubic."""
    t = _clamp01(t)
    return 2.0 * t * t if t < 0.5 else 1.0 - ((-2.0 * t + 2.0) ** 2) / 2.0


def ease_in_out_cubic(t: float) -> float:
    """Slow start, fast middle, slow end."""
    t = _clamp01(t)
    return 4.0 * t * t * t if t < 0.5 else 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0


def ease_out_quart(t: float) -> float:
    """Fast start, slow end."""
    t = _clamp01(t)
    return 1.0 - (1.0 - t) ** 4


EASINGS: Dict[str, EasingFunction] = {
    "linear": linear,
    "ease_in_out_quad": ease_in_out_quad,
    "ease_in_out_cubic": ease_in_out_cubic,
    "ease_out_quart": ease_out_quart,
}

DEFAULT_EASING = "ease_in_out_cubic"


def get_easing(name: str | None) -> EasingFunction:
    """Look up a curve by name; raises KeyError for unknown names."""
    key = (name or DEFAULT_EASING).strip().lower()
    return EASINGS[key]
