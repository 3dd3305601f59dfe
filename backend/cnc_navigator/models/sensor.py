from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class SensorReading:
    """One timestamped snapshot of every monitored channel."""

    timestamp: int  # epoch milliseconds
    servo_motor_voltage: float
    servo_motor_speed: float
    servo_motor_vibration: float
    tooling_vibration: float
    tool_wear_level: float
    tool_coolant_supply_level: float
    coolant_reservoir_level: float
    coolant_flow_rate: float
    base_plate_pressure: float
    base_plate_vibration: float
    base_plate_coolant_distribution: float
    issue_id: int  # ground-truth label from the data source


@dataclass(frozen=True)
class NormalRange:
    min: float
    max: float


@dataclass(frozen=True)
class CriticalRange:
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True)
class Sensor:
    """Classified view of a single channel of a reading."""

    id: str
    name: str
    value: float
    unit: str
    normal_range: NormalRange
    critical_range: CriticalRange = field(default_factory=CriticalRange)
    issue_id: int = 8
