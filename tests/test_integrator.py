# tests/test_integrator.py
from __future__ import annotations

import dataclasses
import math

import pytest
from hypothesis import given, strategies as st

from orrery.core.catalog import CATALOG, SpinDirection
from orrery.core.constants import PLANETS, SECONDS_PER_DAY
from orrery.core.integrator import (
    OrbitIntegrator,
    SimulationState,
    base_angular_speed,
    orbit_point,
    spin_speed,
)

TWO_PI = 2.0 * math.pi


def _run_periods(integ: OrbitIntegrator, periods: int, *, speed: float, steps_per_period: int) -> None:
    real_seconds = integ.params.orbital_period_days * SECONDS_PER_DAY / speed
    dt = real_seconds / steps_per_period
    for _ in range(periods * steps_per_period):
        integ.tick(dt, speed)


def _circular_distance(a: float, b: float) -> float:
    d = math.fmod(abs(a - b), TWO_PI)
    return min(d, TWO_PI - d)


# ─────────────────────────────────────────────────────────────────────────────
# Rates
# ─────────────────────────────────────────────────────────────────────────────

def test_base_angular_speed() -> None:
    assert base_angular_speed(365.256) == pytest.approx(TWO_PI / (365.256 * 86400.0))
    assert base_angular_speed(0.0) == 0.0
    assert base_angular_speed(float("nan")) == 0.0


def test_spin_speed_signs() -> None:
    assert spin_speed(CATALOG["Earth"]) == pytest.approx(TWO_PI / 86400.0)
    assert spin_speed(CATALOG["Venus"]) < 0.0
    assert spin_speed(CATALOG["Uranus"]) < 0.0
    still = dataclasses.replace(CATALOG["Earth"], rotation_period_days=0.0)
    assert spin_speed(still) == 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Period closure
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("body", PLANETS)
def test_one_period_is_one_revolution(body) -> None:
    integ = OrbitIntegrator(CATALOG[body])
    _run_periods(integ, 1, speed=100000.0, steps_per_period=360)
    assert integ.state.total_angle_radians == pytest.approx(TWO_PI, abs=1e-4)
    assert _circular_distance(integ.state.angle_radians, 0.0) < 1e-4


@pytest.mark.slow
@pytest.mark.parametrize("body", ["Mercury", "Earth", "Neptune"])
def test_hundred_periods_do_not_drift(body) -> None:
    integ = OrbitIntegrator(CATALOG[body])
    _run_periods(integ, 100, speed=5000.0, steps_per_period=100)
    assert integ.state.total_angle_radians == pytest.approx(100 * TWO_PI, abs=1e-4)
    assert integ.state.revolutions in (99, 100)
    assert _circular_distance(integ.state.angle_radians, 0.0) < 1e-4


@given(
    periods=st.integers(min_value=1, max_value=20),
    speed=st.floats(min_value=1.0, max_value=1e7, allow_nan=False),
)
def test_closure_independent_of_speed(periods, speed) -> None:
    integ = OrbitIntegrator(CATALOG["Mars"])
    _run_periods(integ, periods, speed=speed, steps_per_period=16)
    assert integ.state.total_angle_radians == pytest.approx(periods * TWO_PI, abs=1e-4)


# ─────────────────────────────────────────────────────────────────────────────
# Tick semantics
# ─────────────────────────────────────────────────────────────────────────────

def test_zero_speed_holds_position() -> None:
    integ = OrbitIntegrator(CATALOG["Earth"])
    integ.tick(10.0, 1e6)
    before = integ.position()
    for _ in range(50):
        integ.tick(1 / 60, 0.0)
    assert integ.position() == before


@pytest.mark.parametrize("dt,speed", [(float("nan"), 1.0), (1.0, float("inf")), (-1.0, 10.0)])
def test_bad_ticks_are_ignored(dt, speed) -> None:
    integ = OrbitIntegrator(CATALOG["Earth"])
    integ.tick(dt, speed)
    assert integ.state == SimulationState()


@pytest.mark.parametrize("dt,speed", [(1e200, 1e200), (1e308, 10.0)])
def test_overflowing_tick_leaves_state_untouched(dt, speed, caplog) -> None:
    integ = OrbitIntegrator(CATALOG["Earth"])
    integ.tick(1.0, 1e5)
    before = dataclasses.replace(integ.state)
    with caplog.at_level("WARNING", logger="orrery.core.integrator"):
        pos = integ.tick(dt, speed)
    assert integ.state == before
    assert pos == integ.position()
    assert "overflowing tick" in caplog.text


def test_angle_and_rotation_stay_in_range() -> None:
    integ = OrbitIntegrator(CATALOG["Mercury"])
    for _ in range(1000):
        pos = integ.tick(0.5, 3e5)
        assert 0.0 <= pos.rotation_radians < TWO_PI
        assert 0.0 <= pos.longitude_degrees < 360.0
        assert 0.0 <= pos.spin_radians < TWO_PI


def test_retrograde_spin_runs_backwards() -> None:
    venus = OrbitIntegrator(CATALOG["Venus"])
    venus.tick(1.0, 3600.0)   # one simulated hour
    # a small negative step wraps to just below 2π
    assert venus.state.spin_radians > math.pi
    earth = OrbitIntegrator(CATALOG["Earth"])
    earth.tick(1.0, 3600.0)
    assert earth.state.spin_radians == pytest.approx(TWO_PI / 24.0)


def test_tick_at_uses_clock_delta() -> None:
    a = OrbitIntegrator(CATALOG["Earth"])
    b = OrbitIntegrator(CATALOG["Earth"])
    for t in (0.5, 1.0, 1.5, 2.0):
        a.tick_at(t, 1000.0)
    b.tick(2.0, 1000.0)
    assert a.state.angle_radians == pytest.approx(b.state.angle_radians, abs=1e-12)
    assert a.state.last_sample_time_seconds == 2.0


def test_set_body_resets_state() -> None:
    integ = OrbitIntegrator(CATALOG["Earth"])
    integ.tick(100.0, 1e5)
    integ.set_body(CATALOG["Earth"])        # same body keeps state
    assert integ.state.angle_radians > 0.0
    integ.set_body(CATALOG["Mars"])
    assert integ.body == "Mars"
    assert integ.state == SimulationState()


def test_reset() -> None:
    integ = OrbitIntegrator(CATALOG["Jupiter"])
    integ.tick(100.0, 1e6)
    integ.reset()
    assert integ.state == SimulationState()


def test_simulated_instant_advances_from_j2000() -> None:
    integ = OrbitIntegrator(CATALOG["Earth"])
    integ.tick(1.0, SECONDS_PER_DAY)          # one simulated day
    assert integ.position().instant.isoformat().startswith("2000-01-02T12:00:00")


# ─────────────────────────────────────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────────────────────────────────────

def test_orbit_point_ellipse_axes() -> None:
    flat = dataclasses.replace(CATALOG["Mars"], inclination_degrees=0.0)
    a, b = flat.semi_major, flat.semi_minor
    p0 = orbit_point(flat, 0.0)
    p90 = orbit_point(flat, math.pi / 2)
    assert (p0.x, p0.y, p0.z) == pytest.approx((a, 0.0, 0.0))
    assert (p90.x, p90.y, p90.z) == pytest.approx((0.0, 0.0, b), abs=1e-9)


def test_orbit_point_is_inclined() -> None:
    mercury = CATALOG["Mercury"]
    p = orbit_point(mercury, math.pi / 2)
    theta = math.radians(mercury.inclination_degrees)
    assert p.y == pytest.approx(-mercury.semi_minor * math.sin(theta))
    assert p.z == pytest.approx(mercury.semi_minor * math.cos(theta))


def test_position_uses_integrator_point() -> None:
    integ = OrbitIntegrator(CATALOG["Saturn"])
    integ.tick(3.0, 1e7)
    pos = integ.position()
    assert pos.position == orbit_point(CATALOG["Saturn"], integ.state.angle_radians)
    assert pos.body == "Saturn"
    assert CATALOG["Saturn"].spin_direction is SpinDirection.PROGRADE
