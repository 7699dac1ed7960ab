# orrery/core/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from orrery.core.constants import J2000_EPOCH
from orrery.core.inclination import ORIGIN, Position3D
from orrery.core.timescales import to_iso

__all__ = ["PlanetPosition", "default_position"]


@dataclass(frozen=True)
class PlanetPosition:
    """
    One body's placement at one instant, produced fresh per query.

    longitude_degrees ∈ [0, 360) and rotation_radians ∈ [0, 2π) describe the
    orbital angle; spin_radians ∈ [0, 2π) is the axial spin; position is the
    renderable 3D point after inclination.
    """
    body: str
    longitude_degrees: float
    rotation_radians: float
    instant: datetime
    position: Position3D = ORIGIN
    spin_radians: float = 0.0
    meta: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "body": self.body,
            "longitude_degrees": self.longitude_degrees,
            "rotation_radians": self.rotation_radians,
            "spin_radians": self.spin_radians,
            "position": {"x": self.position.x, "y": self.position.y, "z": self.position.z},
            "instant": to_iso(self.instant),
            **({"meta": dict(self.meta)} if self.meta else {}),
        }


def default_position(body: str) -> PlanetPosition:
    """Zeroed placement at J2000 used whenever a query cannot be answered."""
    return PlanetPosition(
        body=body,
        longitude_degrees=0.0,
        rotation_radians=0.0,
        instant=J2000_EPOCH,
        meta={"fallback": True},
    )
