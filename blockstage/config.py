"""Runtime configuration — timing constants with environment overrides."""

import os
from typing import Any, Dict


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _load() -> Dict[str, Any]:
    return {
        # Execution engine (milliseconds)
        "block_pacing_ms": _env_float("BLOCKSTAGE_BLOCK_PACING_MS", 50.0),
        "move_duration_ms": _env_float("BLOCKSTAGE_MOVE_DURATION_MS", 500.0),
        "turn_duration_ms": _env_float("BLOCKSTAGE_TURN_DURATION_MS", 300.0),
        "goto_duration_ms": _env_float("BLOCKSTAGE_GOTO_DURATION_MS", 500.0),
        "frame_interval_ms": _env_float("BLOCKSTAGE_FRAME_INTERVAL_MS", 1000.0 / 60),
        # Collision detector
        "collision_tick_ms": _env_float("BLOCKSTAGE_COLLISION_TICK_MS", 100.0),
        "collision_distance": _env_float("BLOCKSTAGE_COLLISION_DISTANCE", 50.0),
        "collision_cooldown_ms": _env_float("BLOCKSTAGE_COLLISION_COOLDOWN_MS", 1000.0),
        # New sprites spawn uniformly in [-range, range] on both axes
        "spawn_range": _env_float("BLOCKSTAGE_SPAWN_RANGE", 100.0),
    }


CONFIG: Dict[str, Any] = _load()


def reload_config() -> Dict[str, Any]:
    """Re-read the environment into CONFIG in place and return it."""
    CONFIG.clear()
    CONFIG.update(_load())
    return CONFIG
