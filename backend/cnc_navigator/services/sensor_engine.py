"""
Sensor Classification & Insight Engine

Turns a raw SensorReading into the eleven classified Sensor views shown on
the dashboard, and derives the human-readable insights and the most
critical issue from them.

Each channel carries two ranges:
  - normal_range: what the dashboard renders as "in range"
  - a fault threshold (usually wider) that decides the sensor's issue_id

A value may sit outside its normal range and still classify as NORMAL
as long as it has not crossed the fault threshold.
"""

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models.anomaly import AnomalyIssue, AnomalySeverity
from ..models.sensor import CriticalRange, NormalRange, Sensor, SensorReading
from .catalog import NO_FAULT_ID, get_issue, normal_issue

ALL_NORMAL_INSIGHT = "All sensor readings are within normal operating parameters."
RECOMMENDED_ACTION = (
    "Recommended action: Perform a diagnostic check on the affected "
    "components before the next operation."
)

RMS_UNIT = "mm/s (RMS)"


@dataclass(frozen=True)
class ChannelSpec:
    """Fixed classification rule for one reading channel."""
    id: str
    name: str
    field: str
    unit: str
    normal_range: NormalRange
    critical_range: CriticalRange
    fault_id: int
    fault_below: Optional[float] = None
    fault_above: Optional[float] = None

    def is_fault(self, value: float) -> bool:
        if self.fault_below is not None and value < self.fault_below:
            return True
        if self.fault_above is not None and value > self.fault_above:
            return True
        return False


# Ids 4 and 5 are intentionally shared between tooling and base plate channels.
CHANNELS: List[ChannelSpec] = [
    ChannelSpec("servo-motor-voltage", "Servo Motor Voltage", "servo_motor_voltage", "V",
                NormalRange(46, 50), CriticalRange(46, 50), 0, fault_below=46, fault_above=50),
    ChannelSpec("servo-motor-speed", "Servo Motor Speed", "servo_motor_speed", "RPM",
                NormalRange(1500, 3000), CriticalRange(1400, 3200), 1, fault_below=1400, fault_above=3200),
    ChannelSpec("servo-motor-vibration", "Servo Motor Vibration", "servo_motor_vibration", RMS_UNIT,
                NormalRange(0.5, 2), CriticalRange(max=3), 2, fault_above=3),
    ChannelSpec("tooling-vibration", "Tool Vibration", "tooling_vibration", RMS_UNIT,
                NormalRange(1, 3), CriticalRange(max=4), 3, fault_above=4),
    ChannelSpec("tool-wear-level", "Tool Wear Level", "tool_wear_level", "% of Life",
                NormalRange(80, 100), CriticalRange(20, 30), 4, fault_below=30),
    ChannelSpec("tool-coolant-supply", "Tool Coolant Supply Level", "tool_coolant_supply_level", "% level",
                NormalRange(70, 100), CriticalRange(min=50), 5, fault_below=50),
    ChannelSpec("coolant-reservoir-level", "Coolant Reservoir Level", "coolant_reservoir_level", "% Capacity",
                NormalRange(80, 100), CriticalRange(min=50), 6, fault_below=50),
    ChannelSpec("coolant-flow-rate", "Coolant Flow Rate", "coolant_flow_rate", "L/min",
                NormalRange(5, 8), CriticalRange(3, 10), 7, fault_below=3, fault_above=10),
    ChannelSpec("base-plate-pressure", "Base Plate Pressure", "base_plate_pressure", "psi",
                NormalRange(50, 70), CriticalRange(40, 80), 4, fault_below=40, fault_above=80),
    ChannelSpec("base-plate-vibration", "Base Plate Vibration", "base_plate_vibration", RMS_UNIT,
                NormalRange(0.5, 1.5), CriticalRange(max=2), 4, fault_above=2),
    ChannelSpec("base-plate-coolant", "Base Plate Coolant Distribution", "base_plate_coolant_distribution",
                "% Coverage", NormalRange(80, 100), CriticalRange(min=50), 5, fault_below=50),
]


# ─── Classification ──────────────────────────────────────────────────

def get_sensors_from_reading(reading: SensorReading) -> List[Sensor]:
    """Classify every channel of a reading, in fixed display order.

    The reading's own ``issue_id`` label is not consulted; each sensor's
    issue is recomputed from its raw value.
    """
    sensors = []
    for spec in CHANNELS:
        value = float(getattr(reading, spec.field))
        sensors.append(Sensor(
            id=spec.id,
            name=spec.name,
            value=value,
            unit=spec.unit,
            normal_range=spec.normal_range,
            critical_range=spec.critical_range,
            issue_id=spec.fault_id if spec.is_fault(value) else NO_FAULT_ID,
        ))
    return sensors


def get_sensor_severity(sensor: Sensor) -> AnomalySeverity:
    issue = get_issue(sensor.issue_id)
    return issue.severity if issue else AnomalySeverity.NORMAL


def is_in_normal_range(sensor: Sensor) -> bool:
    return sensor.normal_range.min <= sensor.value <= sensor.normal_range.max


def format_sensor_value(sensor: Sensor) -> str:
    """Format a sensor value with unit-specific precision."""
    if sensor.unit == RMS_UNIT:
        return f"{sensor.value:.2f} {sensor.unit}"
    if sensor.unit in ("RPM", "psi") and math.isfinite(sensor.value):
        # half-up, like a dashboard gauge
        return f"{int(math.floor(sensor.value + 0.5))} {sensor.unit}"
    return f"{sensor.value:.1f} {sensor.unit}"


def _format_bound(bound: float) -> str:
    return f"{bound:g}"


# ─── Insights ────────────────────────────────────────────────────────

def generate_insights(sensors: List[Sensor]) -> List[str]:
    """Summarise faulted sensors, grouped by affected component."""
    faulted = [s for s in sensors if s.issue_id != NO_FAULT_ID]
    if not faulted:
        return [ALL_NORMAL_INSIGHT]

    by_component: Dict[str, List[Sensor]] = OrderedDict()
    for sensor in faulted:
        issue = get_issue(sensor.issue_id)
        if issue:
            by_component.setdefault(issue.affected_component, []).append(sensor)

    insights = []
    for component, group in by_component.items():
        insights.append(f"{component} shows {len(group)} anomalies that require attention.")
        for sensor in group:
            issue = get_issue(sensor.issue_id)
            insights.append(
                f"{issue.name}: {sensor.name} reading of {format_sensor_value(sensor)} "
                f"is outside normal range of {_format_bound(sensor.normal_range.min)}-"
                f"{_format_bound(sensor.normal_range.max)} {sensor.unit}."
            )

    if by_component:
        insights.append(RECOMMENDED_ACTION)
    return insights


def get_most_critical_issue(sensors: List[Sensor]) -> AnomalyIssue:
    """Return the first critical issue among faulted sensors, else the first fault."""
    faulted = [s for s in sensors if s.issue_id != NO_FAULT_ID]
    if not faulted:
        return normal_issue()

    for sensor in faulted:
        issue = get_issue(sensor.issue_id)
        if issue and issue.severity == AnomalySeverity.CRITICAL:
            return issue
    return get_issue(faulted[0].issue_id) or normal_issue()


def faulted_issues(sensors: List[Sensor]) -> List[AnomalyIssue]:
    """Distinct issues raised by the sensors, in encounter order."""
    seen: Dict[int, AnomalyIssue] = OrderedDict()
    for sensor in sensors:
        if sensor.issue_id == NO_FAULT_ID or sensor.issue_id in seen:
            continue
        issue = get_issue(sensor.issue_id)
        if issue:
            seen[sensor.issue_id] = issue
    return list(seen.values())
