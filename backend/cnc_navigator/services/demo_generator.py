"""
Demo Data Generator for the CNC Insight Navigator

Simulates the machine's sensor feed and the machined-parts catalog.
Most values are drawn inside each channel's normal range; anomalous
readings push the labelled channel (and, rarely, any channel) up to 50%
beyond its normal bounds.
"""

import random
import time
from datetime import date
from typing import Dict, List, Optional, Tuple

from ..models.part import MachinedPart
from ..models.sensor import SensorReading
from .catalog import NO_FAULT_ID

HOUR_MS = 3_600_000

# (field, normal min, normal max, issue id whose label boosts this channel)
_CHANNEL_RANGES: List[Tuple[str, float, float, Optional[int]]] = [
    ("servo_motor_voltage", 46, 50, 0),
    ("servo_motor_speed", 1500, 3000, 1),
    ("servo_motor_vibration", 0.5, 2, 2),
    ("tooling_vibration", 1, 3, 3),
    ("tool_wear_level", 80, 100, 4),
    ("tool_coolant_supply_level", 70, 100, 5),
    ("coolant_reservoir_level", 80, 100, 6),
    ("coolant_flow_rate", 5, 8, 7),
    ("base_plate_pressure", 50, 70, None),
    ("base_plate_vibration", 0.5, 1.5, None),
    ("base_plate_coolant_distribution", 80, 100, None),
]

MACHINED_PARTS: List[MachinedPart] = [
    MachinedPart(
        id="PT-7843-A",
        name="Precision Gear Assembly",
        material="Stainless Steel 316L",
        last_machined=date(2023, 4, 15),
        operation_time=94.5,
        issue_history=(8, 8, 8, 2, 8, 8),
        image_url="/images/parts/precision-gear-assembly.png",
    ),
    MachinedPart(
        id="PT-6392-B",
        name="Turbine Impeller",
        material="Titanium Ti-6Al-4V",
        last_machined=date(2023, 5, 22),
        operation_time=127.3,
        issue_history=(8, 1, 8, 8, 5, 8),
        image_url="/images/parts/turbine-impeller.png",
    ),
    MachinedPart(
        id="PT-9201-C",
        name="Hydraulic Valve Housing",
        material="Aluminum 7075-T6",
        last_machined=date(2023, 6, 8),
        operation_time=68.7,
        issue_history=(0, 8, 8, 8, 8, 8),
        image_url="/placeholder.svg",
    ),
    MachinedPart(
        id="PT-5127-D",
        name="Transmission Coupling",
        material="Alloy Steel 4340",
        last_machined=date(2023, 6, 17),
        operation_time=83.2,
        issue_history=(8, 8, 3, 8, 8, 8),
        image_url="/placeholder.svg",
    ),
    MachinedPart(
        id="PT-3476-E",
        name="Medical Implant Component",
        material="Titanium Ti-6Al-4V ELI",
        last_machined=date(2023, 7, 5),
        operation_time=105.9,
        issue_history=(8, 8, 8, 8, 8, 8),
        image_url="/placeholder.svg",
    ),
]


def _generate_value(rng: random.Random, low: float, high: float, anomaly_chance: float) -> float:
    """Draw a value in [low, high], or outside it with ``anomaly_chance``."""
    if rng.random() < anomaly_chance:
        if rng.random() < 0.5:
            return low - low * rng.random() * 0.5  # up to 50% below min
        return high + high * rng.random() * 0.5  # up to 50% above max
    return low + rng.random() * (high - low)


def generate_mock_sensor_readings(
    count: int,
    anomaly_chance: float = 0.1,
    rng: Optional[random.Random] = None,
    now_ms: Optional[int] = None,
) -> List[SensorReading]:
    """
    Generate simulated readings, newest first, one hour apart.

    Returns:
        List of SensorReading whose ``issue_id`` is the injected label
        (0-7 for an anomalous reading, NO_FAULT_ID otherwise).
    """
    rng = rng or random.Random()
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    readings = []

    for i in range(count):
        has_anomaly = rng.random() < anomaly_chance
        anomaly_type = rng.randrange(8) if has_anomaly else NO_FAULT_ID

        values: Dict[str, float] = {}
        for field_name, low, high, boosted_by in _CHANNEL_RANGES:
            chance = 0.5 if boosted_by is not None and anomaly_type == boosted_by else 0.1
            values[field_name] = _generate_value(rng, low, high, chance)

        readings.append(SensorReading(
            timestamp=now_ms - i * HOUR_MS,
            issue_id=anomaly_type,
            **values,
        ))

    return readings


def get_dashboard_sensor_data(
    anomaly_chance: float = 0.2,
    rng: Optional[random.Random] = None,
) -> SensorReading:
    """One fresh reading for the live dashboard."""
    return generate_mock_sensor_readings(1, anomaly_chance, rng=rng)[0]


def get_part_historical_readings(part_id: str, count: int = 50) -> List[SensorReading]:
    """Deterministic reading history for a part, seeded from its id."""
    seed = ord(part_id[0]) + ord(part_id[-1]) if part_id else 0
    anomaly_chance = (seed % 10) / 100  # between 0.00 and 0.09
    return generate_mock_sensor_readings(count, anomaly_chance, rng=random.Random(seed))


# ─── Parts catalog ───────────────────────────────────────────────────

def list_parts() -> List[MachinedPart]:
    return list(MACHINED_PARTS)


def get_part(part_id: str) -> Optional[MachinedPart]:
    for part in MACHINED_PARTS:
        if part.id.lower() == part_id.lower():
            return part
    return None


def find_part(term: str) -> Optional[MachinedPart]:
    """Match a part by exact id (case-insensitive) or by name substring."""
    term = term.strip().lower()
    if not term:
        return None
    for part in MACHINED_PARTS:
        if part.id.lower() == term or term in part.name.lower():
            return part
    return None


def part_has_anomalies(part: MachinedPart) -> bool:
    return any(issue != NO_FAULT_ID for issue in part.issue_history)
