# orrery/core/integrator.py
"""
Continuous (speed-mode) orbit integrator.

Per body, each frame tick advances an orbital angle at the constant base
angular speed ω = 2π / (orbital_period_days × 86400) rad per simulated second,
scaled by the simulation speed multiplier. The renderable point is the
uniform-angle ellipse x = a·cos θ, z = b·sin θ (b = a·(1 − e)) rotated by the
orbit inclination. Spin advances on the same time base from the rotation
period magnitude, signed by the spin direction.

Uniform angular speed is deliberate: there is no equal-area (Kepler) speed
variation near perihelion.

The integrator is driven explicitly by its owner (`tick` / `tick_at`); it
never registers callbacks of its own.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import math

from orrery.core.angles import wrap360, wrap_two_pi
from orrery.core.catalog import OrbitalParameters
from orrery.core.constants import FULL_CIRCLE_RADIANS, SECONDS_PER_DAY
from orrery.core.inclination import Position3D, apply_inclination
from orrery.core.models import PlanetPosition
from orrery.core.timescales import InvalidInstant, epoch_to_instant

__all__ = [
    "SimulationState",
    "OrbitIntegrator",
    "base_angular_speed",
    "spin_speed",
    "orbit_point",
]

log = logging.getLogger(__name__)

_LATEST_INSTANT = datetime.max.replace(microsecond=999000, tzinfo=timezone.utc)


def base_angular_speed(orbital_period_days: float) -> float:
    """Radians per simulated second; 0 for unusable periods."""
    p = float(orbital_period_days)
    if not math.isfinite(p) or p <= 0.0:
        return 0.0
    return FULL_CIRCLE_RADIANS / (p * SECONDS_PER_DAY)


def spin_speed(params: OrbitalParameters) -> float:
    """Signed spin rate (rad per simulated second); negative is retrograde."""
    period = abs(float(params.rotation_period_days))
    if period == 0.0 or not math.isfinite(period):
        return 0.0
    return params.spin_direction.sign * FULL_CIRCLE_RADIANS / (period * SECONDS_PER_DAY)


def orbit_point(params: OrbitalParameters, angle_radians: float) -> Position3D:
    x = params.semi_major * math.cos(angle_radians)
    z_flat = params.semi_minor * math.sin(angle_radians)
    return apply_inclination(x, z_flat, params.inclination_degrees)


@dataclass
class SimulationState:
    angle_radians: float = 0.0            # wrapped into [0, 2π)
    revolutions: int = 0                  # completed full orbits
    spin_radians: float = 0.0             # wrapped into [0, 2π)
    simulated_seconds: float = 0.0
    last_sample_time_seconds: float = 0.0

    @property
    def total_angle_radians(self) -> float:
        return self.revolutions * FULL_CIRCLE_RADIANS + self.angle_radians


class OrbitIntegrator:
    def __init__(self, params: OrbitalParameters):
        self.params = params
        self.state = SimulationState()
        self._omega = base_angular_speed(params.orbital_period_days)
        self._spin = spin_speed(params)

    @property
    def body(self) -> str:
        return self.params.name

    def reset(self) -> None:
        self.state = SimulationState()

    def set_body(self, params: OrbitalParameters) -> None:
        """Switch the integrated body; state restarts from zero on a change."""
        if params.name == self.params.name and params == self.params:
            return
        self.params = params
        self._omega = base_angular_speed(params.orbital_period_days)
        self._spin = spin_speed(params)
        self.reset()

    def _advance_angle(self, increment: float) -> None:
        s = self.state
        total = s.angle_radians + increment
        if total >= FULL_CIRCLE_RADIANS:
            turns = math.floor(total / FULL_CIRCLE_RADIANS)
            s.revolutions += int(turns)
            total -= turns * FULL_CIRCLE_RADIANS
        s.angle_radians = wrap_two_pi(total)

    def tick(self, delta_seconds: float, speed: float) -> PlanetPosition:
        """
        Advance by one frame of `delta_seconds` real time at `speed` simulated
        seconds per real second. speed == 0 holds the current position.
        """
        dt = float(delta_seconds)
        mult = float(speed)
        if not (math.isfinite(dt) and math.isfinite(mult)):
            log.warning("Ignoring non-finite tick for %s: dt=%r speed=%r", self.body, delta_seconds, speed)
            return self.position()
        if dt <= 0.0 or mult <= 0.0:
            return self.position()

        sim_dt = dt * mult
        angle_step = sim_dt * self._omega
        spin_step = sim_dt * self._spin
        elapsed = self.state.simulated_seconds + sim_dt
        if not all(math.isfinite(v) for v in (sim_dt, angle_step, spin_step, elapsed)):
            log.warning("Ignoring overflowing tick for %s: dt=%r speed=%r", self.body, delta_seconds, speed)
            return self.position()

        self.state.simulated_seconds = elapsed
        self._advance_angle(angle_step)
        self.state.spin_radians = wrap_two_pi(self.state.spin_radians + spin_step)
        return self.position()

    def tick_at(self, elapsed_seconds: float, speed: float) -> PlanetPosition:
        """Tick from a monotonically increasing host clock reading."""
        t = float(elapsed_seconds)
        if not math.isfinite(t):
            log.warning("Ignoring non-finite clock reading for %s: %r", self.body, elapsed_seconds)
            return self.position()
        delta = t - self.state.last_sample_time_seconds
        self.state.last_sample_time_seconds = t
        return self.tick(delta, speed)

    def point(self) -> Position3D:
        return orbit_point(self.params, self.state.angle_radians)

    def simulated_instant(self) -> datetime:
        """Continuous-mode clock: J2000 plus the simulated time elapsed so far."""
        try:
            return epoch_to_instant(self.state.simulated_seconds / SECONDS_PER_DAY)
        except InvalidInstant:
            # past year 9999 after very long fast-forwards
            return _LATEST_INSTANT

    def position(self) -> PlanetPosition:
        angle = self.state.angle_radians
        return PlanetPosition(
            body=self.body,
            longitude_degrees=wrap360(math.degrees(angle)),
            rotation_radians=angle,
            instant=self.simulated_instant(),
            position=self.point(),
            spin_radians=self.state.spin_radians,
        )
