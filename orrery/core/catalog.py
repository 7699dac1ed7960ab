# orrery/core/catalog.py
"""
Reference orbital data for the eight planets (NASA JPL Horizons values,
https://ssd.jpl.nasa.gov/planets/phys_par.html).

The engine treats this as immutable input. `validate_parameters` reports
problems for tooling and tests; it is never called per frame.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import math

from orrery.core.constants import AU_TO_UNITS, PLANETS

__all__ = [
    "SpinDirection",
    "OrbitalParameters",
    "CATALOG",
    "PLANETS",
    "get_parameters",
    "validate_parameters",
    "validate_catalog",
]


class SpinDirection(str, Enum):
    PROGRADE = "prograde"
    RETROGRADE = "retrograde"

    @property
    def sign(self) -> float:
        return -1.0 if self is SpinDirection.RETROGRADE else 1.0


@dataclass(frozen=True)
class OrbitalParameters:
    name: str
    distance_scale: float          # semi-major axis in scene units
    eccentricity: float            # [0, 1)
    inclination_degrees: float     # [-180, 180]
    axial_tilt_degrees: float      # [0, 180]
    orbital_period_days: float     # > 0
    rotation_period_days: float    # magnitude
    spin_direction: SpinDirection = SpinDirection.PROGRADE

    @classmethod
    def from_signed_rotation(
        cls,
        name: str,
        *,
        distance_scale: float,
        eccentricity: float,
        inclination_degrees: float,
        axial_tilt_degrees: float,
        orbital_period_days: float,
        rotation_period_days: float,
    ) -> "OrbitalParameters":
        """Build from a catalog row where a negative rotation period means retrograde."""
        direction = SpinDirection.RETROGRADE if rotation_period_days < 0 else SpinDirection.PROGRADE
        return cls(
            name=name,
            distance_scale=distance_scale,
            eccentricity=eccentricity,
            inclination_degrees=inclination_degrees,
            axial_tilt_degrees=axial_tilt_degrees,
            orbital_period_days=orbital_period_days,
            rotation_period_days=abs(rotation_period_days),
            spin_direction=direction,
        )

    @property
    def semi_major(self) -> float:
        return self.distance_scale

    @property
    def semi_minor(self) -> float:
        return self.distance_scale * (1.0 - self.eccentricity)

    @property
    def signed_rotation_period_days(self) -> float:
        return self.spin_direction.sign * self.rotation_period_days

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["spin_direction"] = self.spin_direction.value
        return d


def _planet(name: str, au: float, period: float, rotation: float,
            ecc: float, tilt: float, incl: float) -> OrbitalParameters:
    return OrbitalParameters.from_signed_rotation(
        name,
        distance_scale=au * AU_TO_UNITS,
        eccentricity=ecc,
        inclination_degrees=incl,
        axial_tilt_degrees=tilt,
        orbital_period_days=period,
        rotation_period_days=rotation,
    )


#                 name       AU     period     rotation  ecc     tilt   incl
_ROWS: Tuple[OrbitalParameters, ...] = (
    _planet("Mercury",  0.39,    87.969,    58.646, 0.2056,  0.034, 7.005),
    _planet("Venus",    0.72,   224.701,  -243.025, 0.0068, 177.4,  3.395),
    _planet("Earth",    1.0,    365.256,     1.0,   0.0167,  23.5,  0.0),
    _planet("Mars",     1.52,   686.98,      1.03,  0.0934,  25.2,  1.85),
    _planet("Jupiter",  5.2,   4332.59,      0.41,  0.0484,   3.13, 1.303),
    _planet("Saturn",   9.55, 10759.22,      0.44,  0.0539,  26.7,  2.485),
    _planet("Uranus",  19.19, 30688.5,      -0.72,  0.0463,  97.8,  0.773),
    _planet("Neptune", 30.07, 60182.0,       0.67,  0.0086,  28.3,  1.77),
)

_BY_NAME = {p.name: p for p in _ROWS}
CATALOG: Dict[str, OrbitalParameters] = {name: _BY_NAME[name] for name in PLANETS}


def get_parameters(name: str) -> Optional[OrbitalParameters]:
    """Case-insensitive lookup; None for unknown bodies."""
    key = (name or "").strip().lower()
    for p in _ROWS:
        if p.name.lower() == key:
            return p
    return None


# ───────────────────────── validation ─────────────────────────

def _issue(planet: str, field: str, value: Any, expected: str) -> Dict[str, Any]:
    return {"planet": planet, "field": field, "value": value, "expected": expected}


def _finite(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def validate_parameters(p: OrbitalParameters) -> List[Dict[str, Any]]:
    """Return a list of issues (empty when the row is usable)."""
    issues: List[Dict[str, Any]] = []
    if not (_finite(p.distance_scale) and p.distance_scale > 0):
        issues.append(_issue(p.name, "distance_scale", p.distance_scale, "positive number"))
    if not (_finite(p.orbital_period_days) and p.orbital_period_days > 0):
        issues.append(_issue(p.name, "orbital_period_days", p.orbital_period_days, "positive number"))
    if not (_finite(p.eccentricity) and 0.0 <= p.eccentricity < 1.0):
        issues.append(_issue(p.name, "eccentricity", p.eccentricity, "number between 0 and 1"))
    if not _finite(p.rotation_period_days):
        issues.append(_issue(p.name, "rotation_period_days", p.rotation_period_days, "finite number"))
    if not (_finite(p.inclination_degrees) and -180.0 <= p.inclination_degrees <= 180.0):
        issues.append(_issue(p.name, "inclination_degrees", p.inclination_degrees, "number between -180 and 180 degrees"))
    if not (_finite(p.axial_tilt_degrees) and 0.0 <= p.axial_tilt_degrees <= 180.0):
        issues.append(_issue(p.name, "axial_tilt_degrees", p.axial_tilt_degrees, "number between 0 and 180 degrees"))
    return issues


def validate_catalog(rows: Optional[List[OrbitalParameters]] = None) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for p in (rows if rows is not None else list(_ROWS)):
        out.extend(validate_parameters(p))
    return out
