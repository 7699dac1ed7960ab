# orrery/core/inclination.py
"""
Orbital inclination as a rotation of the flat orbit plane.

A point on the flat orbit (x, 0, z) is rotated by θ about the X axis:

    x' = x
    y' = -z · sin(θ)
    z' =  z · cos(θ)

θ is the inclination clamped to [-180°, 180°]; non-finite inclinations are
treated as 0 (flat orbit). The rotation preserves |(x, z)|.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple
import math

from orrery.core.angles import degrees_to_radians_clamped

__all__ = ["Position3D", "ORIGIN", "apply_inclination", "inclination_rotation"]


@dataclass(frozen=True)
class Position3D:
    x: float
    y: float
    z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)


ORIGIN = Position3D(0.0, 0.0, 0.0)


def inclination_rotation(inclination_degrees: float) -> float:
    """
    Rotation (radians) about the X axis for an inclination; the same angle
    an orbit-path outline uses so it lines up with the body's own position.
    """
    return degrees_to_radians_clamped(inclination_degrees)


def apply_inclination(x: float, z_flat: float, inclination_degrees: float) -> Position3D:
    theta = inclination_rotation(inclination_degrees)
    # negative sin: counter-clockwise looking down +X
    return Position3D(
        x=float(x),
        y=-float(z_flat) * math.sin(theta),
        z=float(z_flat) * math.cos(theta),
    )
