# orrery/core/timescales.py
# -----------------------------------------------------------------------------
# Epoch arithmetic for the position engine
#
# Public API:
#   parse_instant(value)          -> aware UTC datetime (ms resolution)
#   days_since_epoch(instant)     -> float days since J2000 (civil UTC noon)
#   epoch_to_instant(days)        -> aware UTC datetime
#   jd_tt_from_instant(instant)   -> float JD(TT) for the ephemeris backend
#   day_bucket(instant)           -> "YYYY-MM-DD" (UTC calendar day)
#   is_date_in_accurate_range / validate_date
#
# Guarantees:
#   • Day counts are exact millisecond differences (integer timedelta math).
#   • epoch_to_instant(days_since_epoch(x)) == x at millisecond resolution.
#   • UTC → TAI → TT via ERFA (erfa.dtf2d → utctai → taitt); ERFA's
#     "dubious year" warnings outside its leap-second table are tolerated.
# -----------------------------------------------------------------------------
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Tuple
import math
import warnings

import erfa  # pyERFA

from orrery.core.constants import (
    J2000_EPOCH,
    MAX_ACCURATE_YEAR,
    MILLISECONDS_PER_DAY,
    MIN_ACCURATE_YEAR,
)

__all__ = [
    "InvalidInstant",
    "parse_instant",
    "days_since_epoch",
    "epoch_to_instant",
    "jd_tt_from_instant",
    "day_bucket",
    "is_date_in_accurate_range",
    "validate_date",
    "to_iso",
    "epoch_ms",
]

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class InvalidInstant(ValueError):
    """Raised when a calendar value cannot be turned into an instant."""


# ───────────────────────────── Parsing helpers ─────────────────────────────

def _truncate_ms(dt: datetime) -> datetime:
    return dt.replace(microsecond=(dt.microsecond // 1000) * 1000)


def _from_iso(text: str) -> datetime:
    s = text.strip()
    if not s:
        raise InvalidInstant("empty instant string")
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError as e:
        raise InvalidInstant(f"Invalid instant '{text}': expected ISO-8601") from e


def parse_instant(value: Any) -> datetime:
    """
    Normalize a calendar value into an aware UTC datetime truncated to ms.

    Accepted: datetime (naive → UTC), date (midnight UTC), ISO-8601 string,
    or finite milliseconds since the Unix epoch.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        dt = _from_iso(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        ms = float(value)
        if not math.isfinite(ms):
            raise InvalidInstant(f"non-finite timestamp: {value!r}")
        try:
            dt = _UNIX_EPOCH + timedelta(milliseconds=ms)
        except OverflowError as e:
            raise InvalidInstant(f"timestamp out of range: {value!r}") from e
    else:
        raise InvalidInstant(f"unsupported instant type: {type(value).__name__}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        try:
            dt = dt.astimezone(timezone.utc)
        except OverflowError as e:
            raise InvalidInstant(f"instant out of range: {value!r}") from e
    return _truncate_ms(dt)


def to_iso(instant: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z."""
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"


# ───────────────────────────── Day arithmetic ─────────────────────────────

def _delta_ms(delta: timedelta) -> int:
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def epoch_ms(instant: Any) -> int:
    """Integer milliseconds since the Unix epoch."""
    return _delta_ms(parse_instant(instant) - _UNIX_EPOCH)


def days_since_epoch(instant: Any) -> float:
    """Days since J2000 (negative before it). Raises InvalidInstant."""
    dt = parse_instant(instant)
    return _delta_ms(dt - J2000_EPOCH) / MILLISECONDS_PER_DAY


def epoch_to_instant(days: float) -> datetime:
    """Inverse of days_since_epoch, rounded to the millisecond."""
    d = float(days)
    if not math.isfinite(d):
        raise InvalidInstant(f"non-finite day count: {days!r}")
    try:
        return J2000_EPOCH + timedelta(milliseconds=round(d * MILLISECONDS_PER_DAY))
    except OverflowError as e:
        raise InvalidInstant(f"day count out of range: {days!r}") from e


def day_bucket(instant: Any) -> str:
    """UTC calendar day of an instant; sub-day variation is discarded."""
    return parse_instant(instant).date().isoformat()


# ───────────────────────────── ERFA chain ─────────────────────────────

def jd_tt_from_instant(instant: Any) -> float:
    """
    Convert a UTC instant to a single-float JD(TT):
      UTC (calendar → JD) → TAI → TT      (erfa.dtf2d → utctai → taitt)
    """
    dt = parse_instant(instant)
    sec = dt.second + dt.microsecond / 1e6
    with warnings.catch_warnings():
        # pre-1960 and far-future years are outside ERFA's leap-second table
        warnings.simplefilter("ignore", erfa.ErfaWarning)
        utc1, utc2 = erfa.dtf2d("UTC", dt.year, dt.month, dt.day, dt.hour, dt.minute, sec)
        tai1, tai2 = erfa.utctai(utc1, utc2)
        tt1, tt2 = erfa.taitt(tai1, tai2)
    return math.fsum((float(tt1), float(tt2)))


# ───────────────────────────── Range policy ─────────────────────────────

def is_date_in_accurate_range(instant: Any) -> bool:
    try:
        year = parse_instant(instant).year
    except InvalidInstant:
        return False
    return MIN_ACCURATE_YEAR <= year <= MAX_ACCURATE_YEAR


def validate_date(instant: Any) -> Tuple[bool, Optional[str]]:
    """Return (ok, error_message) for a date-mode instant."""
    try:
        year = parse_instant(instant).year
    except InvalidInstant:
        return False, "Invalid date format"
    if year < MIN_ACCURATE_YEAR:
        return False, f"Date must be after {MIN_ACCURATE_YEAR}"
    if year > MAX_ACCURATE_YEAR:
        return False, f"Date must be before {MAX_ACCURATE_YEAR}"
    return True, None
