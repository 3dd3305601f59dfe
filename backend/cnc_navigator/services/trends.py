"""
Reading trend summaries.

Per-channel statistics and chart series over a list of readings, used by
the part detail view and as extra context for the assistant.
"""

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from ..models.sensor import SensorReading
from .sensor_engine import CHANNELS

CHART_CHANNELS = {
    "vibration": ["servo_motor_vibration", "tooling_vibration", "base_plate_vibration"],
    "coolant": ["tool_coolant_supply_level", "coolant_reservoir_level", "coolant_flow_rate"],
}


def readings_to_frame(readings: List[SensorReading]) -> pd.DataFrame:
    """Readings as a DataFrame ordered oldest to newest."""
    if not readings:
        return pd.DataFrame(columns=[c.field for c in CHANNELS] + ["timestamp", "issue_id"])
    df = pd.DataFrame([asdict(r) for r in readings])
    return df.sort_values("timestamp").reset_index(drop=True)


def summarize_readings(readings: List[SensorReading]) -> Dict[str, Dict[str, Any]]:
    """min / max / mean / std and out-of-normal-range count per channel."""
    df = readings_to_frame(readings)
    summary: Dict[str, Dict[str, Any]] = {}
    if df.empty:
        return summary

    for spec in CHANNELS:
        col = df[spec.field].astype(float)
        outside = (col < spec.normal_range.min) | (col > spec.normal_range.max)
        summary[spec.id] = {
            "name": spec.name,
            "unit": spec.unit,
            "min": round(col.min(), 3),
            "max": round(col.max(), 3),
            "mean": round(col.mean(), 3),
            "std": round(col.std(), 3) if len(col) > 1 else 0.0,
            "out_of_range": int(outside.sum()),
        }
    return summary


def chart_series(readings: List[SensorReading], limit: int = 20) -> Dict[str, List[Dict[str, Any]]]:
    """The last ``limit`` readings as chart points, oldest first."""
    df = readings_to_frame(readings).tail(limit)
    series: Dict[str, List[Dict[str, Any]]] = {}
    for chart, fields in CHART_CHANNELS.items():
        points = df[["timestamp"] + fields].round(3)
        series[chart] = points.to_dict("records")
    return series


def format_trend_summary(summary: Dict[str, Dict[str, Any]]) -> str:
    """Compact text block of channel statistics for the LLM prompt."""
    if not summary:
        return ""
    lines = ["\nHistorical trend summary:"]
    for stats in summary.values():
        lines.append(
            f"- {stats['name']}: mean {stats['mean']:.4g} {stats['unit']}, "
            f"range {stats['min']:.4g}-{stats['max']:.4g}, "
            f"{stats['out_of_range']} readings outside normal range"
        )
    return "\n".join(lines) + "\n"
