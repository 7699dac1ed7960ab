# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the orrery position-engine suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC.
- Provides a deterministic stub ephemeris model so no kernel file is needed.
- Provides engine / Flask-client fixtures wired to that stub.
"""

import os
from typing import Dict, List, Tuple

import pytest
from hypothesis import settings, HealthCheck


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,           # avoid flaky timeouts on slower runners
        max_examples=60,         # fast local runs
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=120,        # a bit more coverage in CI
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")
    config.addinivalue_line("markers", "kernel: needs a local JPL kernel file")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    """Ensure the process TZ is UTC so nothing depends on the runner's zone."""
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture(scope="session")
def ensure_erfa():
    """Fail early if pyERFA isn't importable or missing the UTC→TT chain."""
    import erfa
    assert hasattr(erfa, "dtf2d"), "ERFA.dtf2d not available"
    assert hasattr(erfa, "utctai"), "ERFA.utctai not available"
    assert hasattr(erfa, "taitt"), "ERFA.taitt not available"
    return erfa


# ──────────────────────────────────────────────────────────────────────────────
# Stub ephemeris
# ──────────────────────────────────────────────────────────────────────────────
J2000_JD = 2451545.0

BASE_LON = {  # arbitrary deterministic angles at J2000
    "Mercury": 10.0, "Venus": 40.0, "Earth": 100.0, "Mars": 150.0,
    "Jupiter": 200.0, "Saturn": 250.0, "Uranus": 300.0, "Neptune": 330.0,
}
PERIOD_DAYS = {
    "Mercury": 87.969, "Venus": 224.701, "Earth": 365.256, "Mars": 686.98,
    "Jupiter": 4332.59, "Saturn": 10759.22, "Uranus": 30688.5, "Neptune": 60182.0,
}


class StubModel:
    """heliocentric_longitude(name, jd_tt): uniform motion from BASE_LON; records calls."""

    def __init__(self):
        self.calls: List[Tuple[str, float]] = []

    def heliocentric_longitude(self, name: str, jd_tt: float) -> float:
        self.calls.append((name, jd_tt))
        # deliberately unwrapped; the adapter normalizes
        return BASE_LON[name] + (jd_tt - J2000_JD) * 360.0 / PERIOD_DAYS[name]

    def kernel_name(self) -> str:
        return "stub"


class RaisingModel:
    def __init__(self, exc: Exception):
        self.exc = exc

    def heliocentric_longitude(self, name: str, jd_tt: float) -> float:
        raise self.exc


class ConstantModel:
    def __init__(self, values: Dict[str, float]):
        self.values = values

    def heliocentric_longitude(self, name: str, jd_tt: float) -> float:
        return self.values[name]


@pytest.fixture
def stub_model() -> StubModel:
    return StubModel()


@pytest.fixture
def adapter(stub_model):
    from orrery.core.ephemeris_adapter import EphemerisAdapter
    return EphemerisAdapter(model=stub_model)


@pytest.fixture
def engine(stub_model):
    from orrery.core.engine import PositionEngine
    return PositionEngine(model=stub_model, selected_date="2024-06-15T00:00:00Z")


@pytest.fixture
def client(engine):
    from orrery.main import create_app
    app = create_app(engine)
    app.testing = True
    return app.test_client()


@pytest.fixture(scope="session")
def kernel_path():
    """Path to a real JPL kernel, or skip the test."""
    from orrery.core.ephemeris_adapter import Config, _resolve_kernel_path
    path = _resolve_kernel_path(Config())
    if not path:
        pytest.skip("no local JPL kernel (set ORRERY_EPHEMERIS)")
    return path
