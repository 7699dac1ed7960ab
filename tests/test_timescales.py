# tests/test_timescales.py
from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from orrery.core.constants import J2000_EPOCH, J2000_JD
from orrery.core.timescales import (
    InvalidInstant,
    day_bucket,
    days_since_epoch,
    epoch_ms,
    epoch_to_instant,
    is_date_in_accurate_range,
    jd_tt_from_instant,
    parse_instant,
    to_iso,
    validate_date,
)

UTC = timezone.utc

# instants inside the datetime range with ms resolution
instants = st.datetimes(
    min_value=datetime(1600, 1, 1),
    max_value=datetime(2400, 12, 31),
).map(lambda d: d.replace(microsecond=(d.microsecond // 1000) * 1000, tzinfo=UTC))


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def test_parse_accepts_common_forms() -> None:
    want = datetime(2024, 6, 15, 0, 0, tzinfo=UTC)
    assert parse_instant("2024-06-15") == want
    assert parse_instant("2024-06-15T00:00:00Z") == want
    assert parse_instant("2024-06-15T02:00:00+02:00") == want
    assert parse_instant(date(2024, 6, 15)) == want
    assert parse_instant(datetime(2024, 6, 15)) == want          # naive → UTC
    assert parse_instant(epoch_ms(want)) == want                 # ms since Unix epoch


def test_parse_truncates_to_milliseconds() -> None:
    dt = parse_instant(datetime(2024, 1, 1, 0, 0, 0, 123987, tzinfo=UTC))
    assert dt.microsecond == 123000


@pytest.mark.parametrize("bad", ["", "not a date", "2024-13-01", None, float("nan"), float("inf"), True, [2024]])
def test_parse_rejects_garbage(bad) -> None:
    with pytest.raises(InvalidInstant):
        parse_instant(bad)


def test_invalid_instant_is_value_error() -> None:
    assert issubclass(InvalidInstant, ValueError)


def test_to_iso_has_ms_and_z() -> None:
    assert to_iso(parse_instant("2024-06-15T12:34:56.789Z")) == "2024-06-15T12:34:56.789Z"


# ─────────────────────────────────────────────────────────────────────────────
# Day arithmetic
# ─────────────────────────────────────────────────────────────────────────────

def test_epoch_is_day_zero() -> None:
    assert days_since_epoch(J2000_EPOCH) == 0.0
    assert days_since_epoch("2000-01-01T12:00:00Z") == 0.0


def test_one_leap_year_after_epoch() -> None:
    # 2000 is a leap year, so noon-to-noon spans 366 days
    assert days_since_epoch("2001-01-01T12:00:00Z") == pytest.approx(366.0)


def test_negative_before_epoch() -> None:
    assert days_since_epoch("2000-01-01T00:00:00Z") == pytest.approx(-0.5)
    assert days_since_epoch("1999-01-01T12:00:00Z") < 0.0


def test_epoch_to_instant_rejects_non_finite() -> None:
    with pytest.raises(InvalidInstant):
        epoch_to_instant(float("nan"))
    with pytest.raises(InvalidInstant):
        epoch_to_instant(1e12)


@given(a=instants, b=instants)
def test_days_since_epoch_strictly_increasing(a, b) -> None:
    if a < b:
        assert days_since_epoch(a) < days_since_epoch(b)
    elif a > b:
        assert days_since_epoch(a) > days_since_epoch(b)
    else:
        assert days_since_epoch(a) == days_since_epoch(b)


@given(x=instants)
def test_round_trip_within_one_second(x) -> None:
    back = epoch_to_instant(days_since_epoch(x))
    assert abs((back - x).total_seconds()) < 1.0


def test_day_bucket_discards_time_of_day() -> None:
    assert day_bucket("2024-06-15T00:00:00Z") == "2024-06-15"
    assert day_bucket("2024-06-15T23:59:59.999Z") == "2024-06-15"
    assert day_bucket("2024-06-15T23:30:00-01:00") == "2024-06-16"


# ─────────────────────────────────────────────────────────────────────────────
# ERFA chain
# ─────────────────────────────────────────────────────────────────────────────

def test_jd_tt_at_j2000(ensure_erfa) -> None:
    # TT − UTC at 2000 is 32.184 s + 32 leap seconds = 64.184 s
    jd_tt = jd_tt_from_instant(J2000_EPOCH)
    assert (jd_tt - J2000_JD) * 86400.0 == pytest.approx(64.184, abs=1e-3)


def test_jd_tt_tolerates_dubious_years(ensure_erfa) -> None:
    for text in ("1700-01-01", "2300-12-31"):
        assert math.isfinite(jd_tt_from_instant(text))


def test_jd_tt_monotonic_daily(ensure_erfa) -> None:
    d0 = parse_instant("2020-06-01")
    d1 = d0 + timedelta(days=1)
    assert jd_tt_from_instant(d1) - jd_tt_from_instant(d0) == pytest.approx(1.0, abs=1e-6)


# ─────────────────────────────────────────────────────────────────────────────
# Range policy
# ─────────────────────────────────────────────────────────────────────────────

def test_accurate_range_is_inclusive() -> None:
    assert is_date_in_accurate_range("1700-01-01")
    assert is_date_in_accurate_range("2300-12-31T23:59:59Z")
    assert not is_date_in_accurate_range("1699-12-31")
    assert not is_date_in_accurate_range("2301-01-01")
    assert not is_date_in_accurate_range("garbage")


def test_validate_date_messages() -> None:
    assert validate_date("2024-06-15") == (True, None)
    assert validate_date("nope") == (False, "Invalid date format")
    assert validate_date("1600-01-01") == (False, "Date must be after 1700")
    assert validate_date("2400-01-01") == (False, "Date must be before 2300")
