# orrery/api/helpers.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
import math

from flask import request
from werkzeug.exceptions import BadRequest

from orrery.core.timescales import InvalidInstant, parse_instant


def body_json() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data


def to_instant(value: Any, field: str) -> datetime:
    try:
        return parse_instant(value)
    except InvalidInstant as e:
        raise BadRequest(f"{field}: {e}")


def query_instant(name: str = "date") -> Optional[datetime]:
    """Optional ?date=ISO query parameter; None when absent."""
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None
    return to_instant(raw, name)


def get_float(
    data: Dict[str, Any],
    key: str,
    default: Optional[float] = None,
    *,
    min_value: Optional[float] = None,
) -> float:
    if key not in data or data[key] is None:
        if default is None:
            raise BadRequest(f"'{key}' is required")
        return float(default)
    v = data[key]
    if isinstance(v, bool) or not isinstance(v, (int, float, str)):
        raise BadRequest(f"'{key}' must be a number")
    try:
        f = float(v)
    except ValueError:
        raise BadRequest(f"'{key}' must be parseable as float")
    if not math.isfinite(f):
        raise BadRequest(f"'{key}' must be finite")
    if min_value is not None and f < min_value:
        raise BadRequest(f"'{key}' must be >= {min_value}")
    return f


def get_int(data: Dict[str, Any], key: str, default: int, *, lo: int, hi: int) -> int:
    v = data.get(key, default)
    if isinstance(v, bool):
        raise BadRequest(f"'{key}' must be an integer")
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise BadRequest(f"'{key}' must be an integer")
    if not (lo <= n <= hi):
        raise BadRequest(f"'{key}' must be between {lo} and {hi}")
    return n
