# orrery/api/routes.py
"""
Orrery: API Routes
- Planets (catalog)
- Positions (speed mode from the integrators, date mode from the ephemeris)
- Simulation control (tick, mode)
- Date transitions (duration, direction, eased frames)
- Ops: /api/cache, /api/config

The engine is per app (app.extensions["orrery_engine"]); the app's lock
(app.extensions["orrery_lock"]) serializes calls that touch simulation state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from flask import Blueprint, abort, current_app, jsonify
from werkzeug.exceptions import BadRequest

from orrery.api.helpers import body_json, get_float, get_int, query_instant, to_instant
from orrery.core.easing import DEFAULT_EASING, EASINGS, get_easing
from orrery.core.engine import PositionEngine, SimulationMode
from orrery.core.models import PlanetPosition
from orrery.core.timescales import to_iso, validate_date
from orrery.core.transitions import (
    DEFAULT_ANIMATION_SPEED,
    calculate_duration,
    determine_direction,
    is_same_instant,
    sample_instants,
)
from orrery.version import VERSION

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)

MAX_FRAMES = 240
DEFAULT_FRAMES = 10


# ───────────────────────── helpers ─────────────────────────
def _engine() -> PositionEngine:
    return current_app.extensions["orrery_engine"]


def _engine_lock():
    return current_app.extensions["orrery_lock"]


def _dump(rows: List[PlanetPosition]) -> List[Dict[str, Any]]:
    return [p.to_dict() for p in rows]


def _range_warning(when) -> Dict[str, Any]:
    ok, msg = validate_date(when)
    return {} if ok else {"warning": msg}


# ───────────────────────── catalog ─────────────────────────
@api.get("/api/planets")
def planets():
    eng = _engine()
    return jsonify({
        "ok": True,
        "planets": [p.to_dict() for p in eng.catalog.values()],
    }), 200


# ───────────────────────── positions ─────────────────────────
@api.get("/api/positions")
def positions():
    eng = _engine()
    when = query_instant("date")
    with _engine_lock():
        rows = eng.positions(when)
        out: Dict[str, Any] = {"ok": True, "mode": eng.mode.value, "positions": _dump(rows)}
        if when is not None or eng.mode is SimulationMode.DATE:
            effective = when or eng.selected_date
            out["date"] = to_iso(effective)
            out.update(_range_warning(effective))
    return jsonify(out), 200


@api.get("/api/positions/<name>")
def position_one(name: str):
    eng = _engine()
    params = eng.parameters(name)
    if params is None:
        abort(404, description=f"Unknown planet: {name}")
    when = query_instant("date")
    with _engine_lock():
        pos = eng.position(params.name, when)
        mode = eng.mode.value
    return jsonify({"ok": True, "mode": mode, "position": pos.to_dict()}), 200


# ───────────────────────── simulation control ─────────────────────────
@api.post("/api/simulation/tick")
def simulation_tick():
    data = body_json()
    dt = get_float(data, "delta_seconds", min_value=0.0)
    speed = get_float(data, "speed", min_value=0.0)
    eng = _engine()
    with _engine_lock():
        rows = eng.tick(dt, speed)
        mode = eng.mode.value
    return jsonify({"ok": True, "mode": mode, "positions": _dump(rows)}), 200


@api.post("/api/simulation/mode")
def simulation_mode():
    data = body_json()
    eng = _engine()
    mode = data.get("mode")
    date = data.get("date")
    with _engine_lock():
        if mode is not None and not eng.set_mode(mode):
            raise BadRequest(f"mode must be one of {[m.value for m in SimulationMode]}")
        if date is not None:
            eng.set_selected_date(to_instant(date, "date"))
        out = {
            "ok": True,
            "mode": eng.mode.value,
            "selected_date": to_iso(eng.selected_date),
            **_range_warning(eng.selected_date),
        }
    return jsonify(out), 200


# ───────────────────────── transitions ─────────────────────────
@api.post("/api/transition")
def transition():
    data = body_json()
    if "start" not in data or "target" not in data:
        raise BadRequest("Provide 'start' and 'target'")
    start = to_instant(data["start"], "start")
    target = to_instant(data["target"], "target")
    speed = get_float(data, "speed", DEFAULT_ANIMATION_SPEED, min_value=0.0)
    frames = get_int(data, "frames", DEFAULT_FRAMES, lo=2, hi=MAX_FRAMES)
    easing_name = data.get("easing") or DEFAULT_EASING
    try:
        easing = get_easing(str(easing_name))
    except KeyError:
        raise BadRequest(f"easing must be one of {sorted(EASINGS)}")

    eng = _engine()
    same = is_same_instant(start, target)
    duration = 0.0 if same else calculate_duration(start, target, speed, eng.settings.duration_config())
    samples = [target] if duration == 0 else sample_instants(start, target, frames, easing)
    return jsonify({
        "ok": True,
        "start": to_iso(start),
        "target": to_iso(target),
        "direction": determine_direction(start, target).value,
        "duration_ms": duration,
        "same_instant": same,
        "instant_mode": speed >= 1.0,
        "easing": str(easing_name).strip().lower(),
        "frames": [to_iso(t) for t in samples],
    }), 200


# ───────────────────────── ops ─────────────────────────
@api.get("/api/cache")
def cache_info():
    return jsonify({"ok": True, "cache": _engine().cache_stats()}), 200


@api.delete("/api/cache")
def cache_clear():
    eng = _engine()
    with _engine_lock():
        eng.clear_cache()
    log.info("longitude cache cleared via API")
    return jsonify({"ok": True, "cache": eng.cache_stats()}), 200


@api.get("/api/config")
def config_info():
    eng = _engine()
    return jsonify({
        "ok": True,
        "version": VERSION,
        "settings": eng.settings.to_dict(),
        "ephemeris": eng.adapter.diagnostics(),
        "easings": sorted(EASINGS),
    }), 200
