# orrery/core/ephemeris_adapter.py
# -----------------------------------------------------------------------------
# Ephemeris Adapter (Skyfield + JPL kernel)
#
# Highlights
# • Heliocentric ecliptic-J2000 longitude of the eight planets at an instant
# • Injectable model: anything with heliocentric_longitude(name, jd_tt)
# • Fail-soft boundary: unknown bodies, invalid instants and backend failures
#   all yield 0.0 plus a log record; nothing is raised to frame-loop callers
# • Thread-safe lazy kernel/timescale bootstrap
# • Soft accuracy window (1700–2300): outside it we only warn
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
import logging
import math
import os
import threading

from orrery.core.angles import longitude_to_radians
from orrery.core.constants import MAX_ACCURATE_YEAR, MIN_ACCURATE_YEAR, PLANETS
from orrery.core.models import PlanetPosition, default_position
from orrery.core.timescales import InvalidInstant, jd_tt_from_instant, parse_instant
from orrery.utils.metrics import EPHEMERIS_FALLBACKS

log = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Constants / environment (converted into Config defaults)
# ─────────────────────────────────────────────────────────────────────────────
EPHEMERIS_NAME_DEFAULT = os.getenv("ORRERY_EPHEMERIS_NAME", "de440s")
_MIN_YEAR_ENV = int(os.getenv("ORRERY_MIN_YEAR", str(MIN_ACCURATE_YEAR)))
_MAX_YEAR_ENV = int(os.getenv("ORRERY_MAX_YEAR", str(MAX_ACCURATE_YEAR)))
_ABS_ZERO_TOL_DEG_ENV = float(os.getenv("ORRERY_ABS_ZERO_TOL_DEG", "1e-13"))

# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisError(RuntimeError):
    """Categorized error raised inside the adapter; never crosses its boundary."""
    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context

# ─────────────────────────────────────────────────────────────────────────────
# Adapter configuration
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Config:
    ephemeris_name: str = EPHEMERIS_NAME_DEFAULT
    kernel_path: Optional[str] = None      # None → ORRERY_EPHEMERIS / orrery/data/<name>.bsp
    min_year: int = _MIN_YEAR_ENV
    max_year: int = _MAX_YEAR_ENV
    abs_zero_tol_deg: float = _ABS_ZERO_TOL_DEG_ENV

# ─────────────────────────────────────────────────────────────────────────────
# Catalogs & canonicalization
# ─────────────────────────────────────────────────────────────────────────────
_PLANET_KEYS: Dict[str, str] = {
    "Mercury": "mercury",
    "Venus": "venus",
    "Earth": "earth",
    "Mars": "mars barycenter",
    "Jupiter": "jupiter barycenter",
    "Saturn": "saturn barycenter",
    "Uranus": "uranus barycenter",
    "Neptune": "neptune barycenter",
}
_MAJOR_CANON = {k.lower(): k for k in _PLANET_KEYS.keys()}


def supported_planets() -> List[str]:
    return list(PLANETS)


def canonical_name(nm: Any) -> Optional[str]:
    if not isinstance(nm, str):
        return None
    return _MAJOR_CANON.get(nm.strip().lower())

# ─────────────────────────────────────────────────────────────────────────────
# Math helpers
# ─────────────────────────────────────────────────────────────────────────────
def _wrap360(x: float, *, abs_zero_tol_deg: float) -> float:
    v = float(x) % 360.0
    # treat near-zero and near-360 as zero; keeps results inside [0, 360)
    if math.isclose(v, 0.0, abs_tol=abs_zero_tol_deg) or math.isclose(v, 360.0, abs_tol=abs_zero_tol_deg):
        return 0.0
    return v

# ─────────────────────────────────────────────────────────────────────────────
# Kernel I/O
# ─────────────────────────────────────────────────────────────────────────────
def _skyfield_available() -> bool:
    try:
        import skyfield  # noqa: F401
        return True
    except ImportError:
        return False


def _resolve_kernel_path(cfg: Config) -> Optional[str]:
    if cfg.kernel_path:
        return cfg.kernel_path if os.path.isfile(cfg.kernel_path) else None
    path = os.getenv("ORRERY_EPHEMERIS")
    if path and os.path.isfile(path):
        return path
    fallback = os.path.join(os.getcwd(), "orrery", "data", f"{cfg.ephemeris_name}.bsp")
    return fallback if os.path.isfile(fallback) else None


def _looks_like_lfs_pointer(path: str) -> bool:
    try:
        if os.path.getsize(path) <= 512:
            with open(path, "rb") as f:
                head = f.read(128)
            return head.startswith(b"version https://git-lfs.github.com/spec/v1")
    except OSError:
        pass
    return False


class SkyfieldModel:
    """
    Heliocentric ecliptic-J2000 longitude from a local JPL kernel.

    Geometric Sun→body vector (no light time), rotated into the J2000 mean
    ecliptic by Skyfield's frame library. Kernel and timescale are loaded on
    first use.
    """

    def __init__(self, cfg: Optional[Config] = None):
        self.cfg = cfg or Config()
        self._ts = None
        self._kernel = None
        self._kernel_path: Optional[str] = None
        self._vectors: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def _get_timescale(self):
        if self._ts is not None:
            return self._ts
        if not _skyfield_available():
            raise EphemerisError("dependency", "Skyfield not installed")
        from skyfield.api import load
        with self._lock:
            if self._ts is None:
                self._ts = load.timescale()
        return self._ts

    def _get_kernel(self):
        if self._kernel is not None:
            return self._kernel
        if not _skyfield_available():
            raise EphemerisError("dependency", "Skyfield not installed")
        from skyfield.api import load
        with self._lock:
            if self._kernel is not None:
                return self._kernel
            path = _resolve_kernel_path(self.cfg)
            if not path:
                raise EphemerisError(
                    "kernel",
                    f"No local {self.cfg.ephemeris_name} found "
                    f"(set ORRERY_EPHEMERIS or place orrery/data/{self.cfg.ephemeris_name}.bsp)",
                )
            if _looks_like_lfs_pointer(path):
                raise EphemerisError("kernel", f"Kernel looks like a Git LFS pointer: {path}")
            try:
                self._kernel = load(path)
            except Exception as e:
                raise EphemerisError("kernel", f"Skyfield failed to load kernel: {path}", error=str(e))
            self._kernel_path = path
            log.info("Loaded ephemeris kernel %s", path)
        return self._kernel

    def _vector(self, name: str):
        vec = self._vectors.get(name)
        if vec is None:
            kernel = self._get_kernel()
            try:
                vec = kernel[_PLANET_KEYS[name]] - kernel["sun"]
            except KeyError as e:
                raise EphemerisError("body", f"Kernel has no segment for {name}", error=str(e))
            self._vectors[name] = vec
        return vec

    def heliocentric_longitude(self, name: str, jd_tt: float) -> float:
        from skyfield.framelib import ecliptic_J2000_frame
        ts = self._get_timescale()
        t = ts.tt_jd(jd_tt)
        try:
            _lat, lon, _dist = self._vector(name).at(t).frame_latlon(ecliptic_J2000_frame)
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("compute", f"Skyfield failed for {name}", jd_tt=jd_tt, error=str(e))
        return float(lon.degrees)

    def kernel_name(self) -> str:
        if self._kernel_path:
            return os.path.basename(self._kernel_path)
        return self.cfg.ephemeris_name

# ─────────────────────────────────────────────────────────────────────────────
# Adapter class
# ─────────────────────────────────────────────────────────────────────────────
class EphemerisAdapter:
    """
    ecliptic_longitude(body, instant) -> degrees in [0, 360), never raising.

    `model` is the astronomical backend; pass a deterministic stub in tests.
    """

    def __init__(self, cfg: Optional[Config] = None, model: Any = None):
        self.cfg = cfg or Config()
        self.model = model if model is not None else SkyfieldModel(self.cfg)
        self._warned_years: Set[int] = set()

    def _fallback(self, reason: str) -> float:
        EPHEMERIS_FALLBACKS.labels(reason=reason).inc()
        return 0.0

    def _warn_if_outside_range(self, dt: datetime) -> None:
        if self.cfg.min_year <= dt.year <= self.cfg.max_year:
            return
        if dt.year not in self._warned_years:
            self._warned_years.add(dt.year)
            log.warning(
                "Date %s is outside the accurate ephemeris range %d-%d",
                dt.date().isoformat(), self.cfg.min_year, self.cfg.max_year,
            )

    def ecliptic_longitude(self, body: str, instant: Any) -> float:
        name = canonical_name(body)
        if name is None:
            log.error("Unknown planet: %s", body)
            return self._fallback("unknown_body")

        try:
            dt = parse_instant(instant)
        except InvalidInstant as e:
            log.error("Invalid date provided for %s: %s", name, e)
            return self._fallback("invalid_instant")

        self._warn_if_outside_range(dt)

        try:
            lon = float(self.model.heliocentric_longitude(name, jd_tt_from_instant(dt)))
        except EphemerisError as e:
            log.error("Failed to calculate longitude for %s: %s", name, e)
            return self._fallback(e.stage)
        except Exception as e:
            log.exception("Ephemeris backend raised for %s: %s", name, e)
            return self._fallback("backend")

        if not math.isfinite(lon):
            log.error("Invalid longitude calculated for %s", name)
            return self._fallback("non_finite")

        return _wrap360(lon, abs_zero_tol_deg=self.cfg.abs_zero_tol_deg)

    def planet_position(self, body: str, instant: Any) -> PlanetPosition:
        """Uncached longitude/rotation for one body (no 3D placement)."""
        try:
            dt = parse_instant(instant)
        except InvalidInstant as e:
            log.error("Invalid date provided to planet_position for %s: %s", body, e)
            return default_position(str(body))
        lon = self.ecliptic_longitude(body, dt)
        return PlanetPosition(
            body=canonical_name(body) or str(body),
            longitude_degrees=lon,
            rotation_radians=longitude_to_radians(lon),
            instant=dt,
        )

    def all_planet_positions(self, instant: Any) -> List[PlanetPosition]:
        return [self.planet_position(name, instant) for name in PLANETS]

    def diagnostics(self) -> Dict[str, Any]:
        kernel_name = getattr(self.model, "kernel_name", None)
        return {
            "model": type(self.model).__name__,
            "kernel": kernel_name() if callable(kernel_name) else None,
            "skyfield_importable": _skyfield_available(),
            "accurate_years": [self.cfg.min_year, self.cfg.max_year],
            "bodies": supported_planets(),
        }
