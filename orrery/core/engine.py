# orrery/core/engine.py
# -----------------------------------------------------------------------------
# Position facade
#
# PositionEngine is one simulation context: it owns the longitude cache, the
# ephemeris adapter, one OrbitIntegrator per body and the date-transition
# controller. Two mutually exclusive modes:
#   • speed: positions come from the continuous integrators, advanced by tick()
#   • date : positions come from cache → longitude → radians → ellipse →
#            inclination, at an explicit instant or the selected date
#
# Every query is fail-soft: any failure is logged and answered with the
# zeroed default position for that body.
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import logging
import math

from orrery.core.angles import longitude_to_radians, wrap_two_pi
from orrery.core.catalog import CATALOG, OrbitalParameters
from orrery.core.constants import MAX_ACCURATE_YEAR, MIN_ACCURATE_YEAR, SECONDS_PER_DAY
from orrery.core.easing import DEFAULT_EASING, get_easing
from orrery.core.ephemeris_adapter import EPHEMERIS_NAME_DEFAULT, Config, EphemerisAdapter
from orrery.core.integrator import OrbitIntegrator, orbit_point, spin_speed
from orrery.core.longitude_cache import DEFAULT_CAPACITY, DEFAULT_EVICT_BATCH, LongitudeCache
from orrery.core.models import PlanetPosition, default_position
from orrery.core.timescales import InvalidInstant, days_since_epoch, parse_instant
from orrery.core.transitions import DEFAULT_ANIMATION_SPEED, DateTransition, DurationConfig
from orrery.utils.metrics import FACADE_FALLBACKS

__all__ = ["SimulationMode", "EngineSettings", "PositionEngine", "PlanetPosition"]

log = logging.getLogger(__name__)


class SimulationMode(str, Enum):
    SPEED = "speed"
    DATE = "date"

    @classmethod
    def parse(cls, value: Any) -> "SimulationMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"Invalid simulation mode: {value!r}")


@dataclass(frozen=True)
class EngineSettings:
    mode: SimulationMode = SimulationMode.SPEED
    cache_capacity: int = DEFAULT_CAPACITY
    evict_batch: int = DEFAULT_EVICT_BATCH
    min_duration_ms: float = 300.0
    max_duration_ms: float = 3000.0
    animation_speed: float = DEFAULT_ANIMATION_SPEED
    easing: str = DEFAULT_EASING
    ephemeris_name: str = EPHEMERIS_NAME_DEFAULT
    min_year: int = MIN_ACCURATE_YEAR
    max_year: int = MAX_ACCURATE_YEAR

    @classmethod
    def from_config(cls, cfg: Optional[Mapping[str, Any]]) -> "EngineSettings":
        """Map a loaded config (see utils.config.load_config) onto settings."""
        cfg = cfg or {}
        cache = cfg.get("cache") or {}
        trans = cfg.get("transition") or {}
        eph = cfg.get("ephemeris") or {}
        d = cls()
        return cls(
            mode=SimulationMode.parse(cfg.get("mode", d.mode)),
            cache_capacity=int(cache.get("capacity", d.cache_capacity)),
            evict_batch=int(cache.get("evict_batch", d.evict_batch)),
            min_duration_ms=float(trans.get("min_duration_ms", d.min_duration_ms)),
            max_duration_ms=float(trans.get("max_duration_ms", d.max_duration_ms)),
            animation_speed=float(trans.get("animation_speed", d.animation_speed)),
            easing=str(trans.get("easing", d.easing)),
            ephemeris_name=str(eph.get("name", d.ephemeris_name)),
            min_year=int(eph.get("min_year", d.min_year)),
            max_year=int(eph.get("max_year", d.max_year)),
        )

    def duration_config(self) -> DurationConfig:
        return DurationConfig(min_ms=self.min_duration_ms, max_ms=self.max_duration_ms)

    def adapter_config(self) -> Config:
        return Config(ephemeris_name=self.ephemeris_name, min_year=self.min_year, max_year=self.max_year)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "cache": {"capacity": self.cache_capacity, "evict_batch": self.evict_batch},
            "transition": {
                "min_duration_ms": self.min_duration_ms,
                "max_duration_ms": self.max_duration_ms,
                "animation_speed": self.animation_speed,
                "easing": self.easing,
            },
            "ephemeris": {"name": self.ephemeris_name, "min_year": self.min_year, "max_year": self.max_year},
        }


class PositionEngine:
    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        adapter: Optional[EphemerisAdapter] = None,
        model: Any = None,
        catalog: Optional[Mapping[str, OrbitalParameters]] = None,
        selected_date: Any = None,
    ):
        self.settings = settings or EngineSettings()
        self.adapter = adapter or EphemerisAdapter(self.settings.adapter_config(), model=model)
        self.cache = LongitudeCache(
            self.adapter,
            capacity=self.settings.cache_capacity,
            evict_batch=self.settings.evict_batch,
        )
        self.catalog: Dict[str, OrbitalParameters] = dict(catalog or CATALOG)
        self._by_key = {name.lower(): name for name in self.catalog}
        self.integrators: Dict[str, OrbitIntegrator] = {
            name: OrbitIntegrator(params) for name, params in self.catalog.items()
        }
        self._mode = self.settings.mode
        self._selected_date = parse_instant(
            selected_date if selected_date is not None else datetime.now(timezone.utc)
        )
        self.transition = DateTransition(
            self._selected_date,
            on_date_change=self._on_transition_date,
            animation_speed=self.settings.animation_speed,
            config=self.settings.duration_config(),
            easing=get_easing(self.settings.easing),
        )

    # ───────────────────────────── mode & date ─────────────────────────────
    @property
    def mode(self) -> SimulationMode:
        return self._mode

    def set_mode(self, mode: Any) -> bool:
        try:
            self._mode = SimulationMode.parse(mode)
        except ValueError:
            log.warning("Ignoring invalid simulation mode %r", mode)
            return False
        return True

    def toggle_mode(self) -> SimulationMode:
        self._mode = SimulationMode.DATE if self._mode is SimulationMode.SPEED else SimulationMode.SPEED
        return self._mode

    @property
    def selected_date(self) -> datetime:
        return self._selected_date

    def set_selected_date(self, value: Any) -> bool:
        """Jump straight to a date, dropping any running transition."""
        try:
            dt = parse_instant(value)
        except InvalidInstant as e:
            log.warning("Ignoring invalid selected date %r: %s", value, e)
            return False
        self._selected_date = dt
        self.transition = DateTransition(
            dt,
            on_date_change=self._on_transition_date,
            animation_speed=self.transition.animation_speed,
            config=self.transition.config,
            easing=self.transition.easing,
        )
        return True

    def _on_transition_date(self, instant: datetime) -> None:
        self._selected_date = instant

    def go_to_date(self, target: Any, now_ms: Optional[float] = None):
        """Start an animated move of the selected date toward `target`."""
        return self.transition.start(target, now_ms)

    def advance_transition(self, now_ms: Optional[float] = None) -> datetime:
        return self.transition.advance(now_ms)

    # ───────────────────────────── queries ─────────────────────────────
    def parameters(self, body: Any) -> Optional[OrbitalParameters]:
        if not isinstance(body, str):
            return None
        name = self._by_key.get(body.strip().lower())
        return self.catalog[name] if name else None

    def _fallback(self, body: Any) -> PlanetPosition:
        FACADE_FALLBACKS.labels(mode=self._mode.value).inc()
        return default_position(str(body))

    def _date_position(self, params: OrbitalParameters, instant: Any) -> PlanetPosition:
        dt = parse_instant(instant)
        lon = self.cache.get(params.name, dt)
        angle = wrap_two_pi(longitude_to_radians(lon))
        spin = wrap_two_pi(days_since_epoch(dt) * SECONDS_PER_DAY * spin_speed(params))
        return PlanetPosition(
            body=params.name,
            longitude_degrees=lon,
            rotation_radians=angle,
            instant=dt,
            position=orbit_point(params, angle),
            spin_radians=spin,
        )

    def position(self, body: Any, instant: Any = None) -> PlanetPosition:
        """
        Placement of one body. With an explicit instant, or in date mode, the
        ephemeris path is used; otherwise the continuous integrator state.
        """
        try:
            params = self.parameters(body)
            if params is None:
                log.warning("Unknown planet: %s", body)
                return self._fallback(body)
            if instant is None and self._mode is SimulationMode.SPEED:
                return self.integrators[params.name].position()
            when = self._selected_date if instant is None else instant
            return self._date_position(params, when)
        except InvalidInstant as e:
            log.error("Invalid date provided for %s: %s", body, e)
            return self._fallback(body)
        except Exception as e:
            log.exception("Position query failed for %s: %s", body, e)
            return self._fallback(body)

    def positions(self, instant: Any = None) -> List[PlanetPosition]:
        return [self.position(name, instant) for name in self.catalog]

    # ───────────────────────────── frame loop ─────────────────────────────
    def tick(self, delta_seconds: float, speed: float) -> List[PlanetPosition]:
        """
        One render frame in speed mode: advance every integrator and return
        the new positions. In date mode the integrators hold still.
        """
        if self._mode is SimulationMode.SPEED:
            try:
                dt = float(delta_seconds)
                sp = float(speed)
            except (TypeError, ValueError):
                log.warning("Ignoring tick with dt=%r speed=%r", delta_seconds, speed)
            else:
                if math.isfinite(sp) and sp < 0.0:
                    log.warning("Negative simulation speed %r treated as 0", speed)
                for integ in self.integrators.values():
                    try:
                        integ.tick(dt, sp)
                    except Exception as e:
                        log.exception("Integrator tick failed for %s: %s", integ.body, e)
        return self.positions()

    def reset(self) -> None:
        for integ in self.integrators.values():
            integ.reset()

    # ───────────────────────────── cache ─────────────────────────────
    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()
