# utils/settings.py
import json
import logging
from datetime import timedelta
from pathlib import Path

from mensa.config import SETTINGS_PATH, DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

def _read_json(path: str):
    p = Path(path)
    if not p.exists():
        return None
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        logger.error(f"Failed to read JSON from {path}: {e}", exc_info=True)
        return None

def _write_json(path: str, obj):
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Path(path).write_text(json.dumps(obj, indent=2), encoding="utf-8")

def load_settings(path: str = SETTINGS_PATH) -> dict:
    data = _read_json(path)
    if not isinstance(data, dict) or not data:
        data = DEFAULT_SETTINGS.copy()
        _write_json(path, data)
    # backfill any new keys
    changed = False
    for k, v in DEFAULT_SETTINGS.items():
        if k not in data:
            data[k] = v
            changed = True
    if changed:
        _write_json(path, data)
    return data

def save_settings(updates: dict, path: str = SETTINGS_PATH) -> dict:
    data = load_settings(path)
    data.update(updates)
    _write_json(path, data)
    return data

def max_duration(settings: dict) -> timedelta | None:
    """Longest marker lifetime allowed; None/0 in settings means unlimited."""
    hours = settings.get("max_duration_hours")
    try:
        hours = float(hours) if hours is not None else 0.0
    except (TypeError, ValueError):
        logger.warning(f"Ignoring bad max_duration_hours setting: {hours!r}")
        hours = 0.0
    if hours <= 0:
        return None
    try:
        return timedelta(hours=hours)
    except OverflowError:
        logger.warning(f"max_duration_hours={hours:g} is out of range; not capping durations")
        return None
