"""
Shared utility functions for the CNC Insight Navigator backend.

  - sanitize_for_json: numpy/pandas/enum/date -> native Python conversion
  - to_dict: dataclass -> JSON-ready dict
  - sse_event: Server-Sent Events framing
  - anomaly_to_dict / sensor_to_dict / record_to_dict: domain objects -> API dicts
"""

import dataclasses
import enum
import json
import math
from datetime import date, datetime
from typing import Any, Dict

import numpy as np

from .services.sensor_engine import format_sensor_value, get_sensor_severity, is_in_normal_range


def sanitize_for_json(obj: Any) -> Any:
    """Recursively convert numpy types, enums and dates to native Python for JSON."""
    if isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(item) for item in obj]
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        val = float(obj)
        return None if (math.isnan(val) or math.isinf(val)) else val
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return sanitize_for_json(obj.tolist())
    if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
        return None
    return obj


def to_dict(obj: Any) -> Dict[str, Any]:
    """Convert a (nested) dataclass instance to a JSON-ready dict."""
    return sanitize_for_json(dataclasses.asdict(obj))


def sse_event(event: str, data: Any) -> str:
    """Format an SSE event string."""
    payload = json.dumps(sanitize_for_json(data), default=str)
    return f"event: {event}\ndata: {payload}\n\n"


# ─── Domain serialization ──────────────────────────────────────────

def anomaly_to_dict(anomaly) -> Dict[str, Any]:
    """AnomalyIssue dataclass -> API dict."""
    return to_dict(anomaly)


def sensor_to_dict(sensor) -> Dict[str, Any]:
    """Sensor -> API dict, with the dashboard's display fields."""
    data = to_dict(sensor)
    data["severity"] = get_sensor_severity(sensor).value
    data["formatted_value"] = format_sensor_value(sensor)
    data["in_normal_range"] = is_in_normal_range(sensor)
    return data


def record_to_dict(record) -> Dict[str, Any]:
    """SystemStateRecord -> API dict."""
    return to_dict(record)
