# orrery/core/transitions.py
# -----------------------------------------------------------------------------
# Date-mode transitions
#
# Pure helpers:
#   interpolate_instant(start, target, progress)  linear on the ms timeline
#   determine_direction(start, target)            FORWARD iff target > start
#   calculate_duration(start, target, speed)      log-scaled animation length
#   is_same_instant(a, b)                         |a − b| < 1 s
#
# Controller:
#   DateTransition  frame-driven state holder (start / advance / skip_to_target)
#
# All instants are aware UTC datetimes at millisecond resolution
# (see timescales.parse_instant).
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, List, Optional
import logging
import math
import time

from orrery.core.constants import MILLISECONDS_PER_DAY
from orrery.core.easing import DEFAULT_EASING, EasingFunction, get_easing
from orrery.core.timescales import InvalidInstant, epoch_ms, parse_instant

__all__ = [
    "Direction",
    "DurationConfig",
    "TransitionState",
    "DateTransition",
    "interpolate_instant",
    "determine_direction",
    "calculate_duration",
    "is_same_instant",
    "is_valid_animation_instant",
    "sample_instants",
    "DEFAULT_ANIMATION_SPEED",
]

log = logging.getLogger(__name__)

DEFAULT_ANIMATION_SPEED = 0.5
SAME_INSTANT_TOLERANCE_MS = 1000


class Direction(str, Enum):
    FORWARD = "forward"      # planets sweep counter-clockwise
    BACKWARD = "backward"


@dataclass(frozen=True)
class DurationConfig:
    min_ms: float = 300.0
    max_ms: float = 3000.0

    def __post_init__(self):
        if not (0.0 <= self.min_ms <= self.max_ms):
            raise ValueError(f"need 0 <= min_ms <= max_ms, got {self.min_ms}, {self.max_ms}")


# ─────────────────────────────────────────────────────────────────────────────
# Pure helpers
# ─────────────────────────────────────────────────────────────────────────────
def _clamp_progress(progress: float) -> float:
    p = float(progress)
    if math.isnan(p):
        return 0.0
    return max(0.0, min(1.0, p))


def interpolate_instant(start: Any, target: Any, progress: float) -> datetime:
    """start + (target − start) × progress, progress clamped to [0, 1]."""
    s = parse_instant(start)
    t = parse_instant(target)
    p = _clamp_progress(progress)
    if p == 0.0:
        return s
    if p == 1.0:
        return t
    span_ms = epoch_ms(t) - epoch_ms(s)
    return s + timedelta(milliseconds=round(span_ms * p))


def determine_direction(start: Any, target: Any) -> Direction:
    """Equal instants count as BACKWARD."""
    return Direction.FORWARD if epoch_ms(target) > epoch_ms(start) else Direction.BACKWARD


def calculate_duration(
    start: Any,
    target: Any,
    speed: float,
    config: Optional[DurationConfig] = None,
) -> float:
    """
    Animation length in ms.

    0 for identical instants or speed >= 1 (instant mode). Otherwise
    clamp(log10(days + 1) × 1000, min, max) × (1 − 0.9 × speed), floored at
    0.1 × min. Monotonic increasing in the day span, decreasing in speed.
    """
    cfg = config or DurationConfig()
    span_ms = abs(epoch_ms(target) - epoch_ms(start))
    if span_ms == 0:
        return 0.0

    sp = float(speed)
    if math.isnan(sp):
        log.warning("Invalid animation speed %r, using 0", speed)
        sp = 0.0
    if sp >= 1.0:
        return 0.0
    sp = max(0.0, sp)

    days = span_ms / MILLISECONDS_PER_DAY
    base = min(cfg.max_ms, max(cfg.min_ms, math.log10(days + 1.0) * 1000.0))
    return max(cfg.min_ms * 0.1, base * (1.0 - sp * 0.9))


def is_same_instant(a: Any, b: Any) -> bool:
    return abs(epoch_ms(a) - epoch_ms(b)) < SAME_INSTANT_TOLERANCE_MS


def is_valid_animation_instant(value: Any) -> bool:
    try:
        parse_instant(value)
    except InvalidInstant:
        return False
    return True


def sample_instants(
    start: Any,
    target: Any,
    frames: int,
    easing: EasingFunction,
) -> List[datetime]:
    """`frames` eased instants from start to target inclusive (frames >= 2)."""
    n = max(2, int(frames))
    return [interpolate_instant(start, target, easing(i / (n - 1))) for i in range(n)]


# ─────────────────────────────────────────────────────────────────────────────
# Controller
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class TransitionState:
    start_date: datetime
    target_date: datetime
    current_date: datetime
    direction: Direction
    duration_ms: float
    started_at_ms: float
    progress: float = 0.0        # raw (un-eased) progress in [0, 1]
    is_animating: bool = True


DateCallback = Callable[[datetime], None]


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class DateTransition:
    """
    Drives the displayed date toward a target over several frames.

    The owner calls `advance(now_ms)` once per frame; every date change is
    pushed to `on_date_change`. A new `start` replaces any running transition.
    """

    def __init__(
        self,
        current_date: Any,
        on_date_change: Optional[DateCallback] = None,
        *,
        animation_speed: float = DEFAULT_ANIMATION_SPEED,
        config: Optional[DurationConfig] = None,
        easing: Optional[EasingFunction] = None,
    ):
        self._current = parse_instant(current_date)
        self._on_date_change = on_date_change
        self.config = config or DurationConfig()
        self.easing: EasingFunction = easing or get_easing(DEFAULT_EASING)
        self._speed = DEFAULT_ANIMATION_SPEED
        self.animation_speed = animation_speed
        self.state: Optional[TransitionState] = None

    # -- properties -----------------------------------------------------------
    @property
    def current_date(self) -> datetime:
        return self._current

    @property
    def animation_speed(self) -> float:
        return self._speed

    @animation_speed.setter
    def animation_speed(self, value: float) -> None:
        v = float(value)
        if math.isnan(v):
            log.warning("Ignoring invalid animation speed %r", value)
            return
        self._speed = max(0.0, min(1.0, v))

    @property
    def is_instant_mode(self) -> bool:
        return self._speed >= 1.0

    @property
    def is_animating(self) -> bool:
        return self.state is not None and self.state.is_animating

    # -- internals ------------------------------------------------------------
    def _emit(self, instant: datetime, *, swallow: bool = False) -> None:
        self._current = instant
        if self._on_date_change is None:
            return
        if not swallow:
            self._on_date_change(instant)
            return
        try:
            self._on_date_change(instant)
        except Exception:
            log.exception("on_date_change failed for %s", instant)

    def _finish(self, target: datetime, *, swallow: bool = False) -> None:
        if self.state is not None:
            self.state.current_date = target
            self.state.progress = 1.0
            self.state.is_animating = False
        self._emit(target, swallow=swallow)

    # -- public API -----------------------------------------------------------
    def start(self, target: Any, now_ms: Optional[float] = None) -> Optional[TransitionState]:
        """
        Begin moving toward `target`. Returns the new state, or None when the
        change was applied immediately or ignored.
        """
        try:
            target_dt = parse_instant(target)
        except InvalidInstant as e:
            log.error("Invalid target date for animation: %s", e)
            return None

        # replaces whatever was running
        self.state = None

        if self.is_instant_mode:
            self._emit(target_dt)
            return None

        start_dt = self._current
        if is_same_instant(start_dt, target_dt):
            return None

        duration = calculate_duration(start_dt, target_dt, self._speed, self.config)
        if duration == 0:
            self._emit(target_dt)
            return None

        self.state = TransitionState(
            start_date=start_dt,
            target_date=target_dt,
            current_date=start_dt,
            direction=determine_direction(start_dt, target_dt),
            duration_ms=duration,
            started_at_ms=_now_ms() if now_ms is None else float(now_ms),
        )
        log.debug("transition %s -> %s over %.0f ms", start_dt, target_dt, duration)
        return self.state

    def advance(self, now_ms: Optional[float] = None) -> datetime:
        """One frame. Returns the date now being displayed."""
        st = self.state
        if st is None or not st.is_animating:
            return self._current
        try:
            now = _now_ms() if now_ms is None else float(now_ms)
            raw = min(max((now - st.started_at_ms) / st.duration_ms, 0.0), 1.0)
            if raw < 1.0:
                current = interpolate_instant(st.start_date, st.target_date, self.easing(raw))
                st.progress = raw
                st.current_date = current
                self._emit(current)
                return self._current
        except Exception as e:
            log.error("Animation frame error: %s", e)
        # last frame, or a failed one: land on the target exactly once
        self._finish(st.target_date, swallow=True)
        return self._current

    def skip_to_target(self) -> datetime:
        """Overwrite the running transition with its end state."""
        st = self.state
        if st is not None and st.is_animating:
            self._finish(st.target_date)
        return self._current
