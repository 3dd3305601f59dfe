"""Unit tests for sensor classification and insight generation."""

import pytest

from cnc_navigator.models.anomaly import AnomalySeverity
from cnc_navigator.services.catalog import ANOMALY_ISSUES, NO_FAULT_ID, get_issue
from cnc_navigator.services.sensor_engine import (
    ALL_NORMAL_INSIGHT,
    RECOMMENDED_ACTION,
    faulted_issues,
    format_sensor_value,
    generate_insights,
    get_most_critical_issue,
    get_sensor_severity,
    get_sensors_from_reading,
    is_in_normal_range,
)

from conftest import make_reading

SENSOR_IDS = [
    "servo-motor-voltage",
    "servo-motor-speed",
    "servo-motor-vibration",
    "tooling-vibration",
    "tool-wear-level",
    "tool-coolant-supply",
    "coolant-reservoir-level",
    "coolant-flow-rate",
    "base-plate-pressure",
    "base-plate-vibration",
    "base-plate-coolant",
]


def _issue_of(sensors, sensor_id):
    return next(s.issue_id for s in sensors if s.id == sensor_id)


def test_catalog_has_single_normal_entry() -> None:
    normal = [i for i in ANOMALY_ISSUES if i.severity == AnomalySeverity.NORMAL]
    assert [i.id for i in normal] == [NO_FAULT_ID]
    assert get_issue(42) is None


def test_normal_reading_yields_eleven_unfaulted_sensors(normal_reading) -> None:
    sensors = get_sensors_from_reading(normal_reading)

    assert [s.id for s in sensors] == SENSOR_IDS
    assert all(s.issue_id == NO_FAULT_ID for s in sensors)
    assert all(is_in_normal_range(s) for s in sensors)


@pytest.mark.parametrize(
    "field, value, sensor_id, expected",
    [
        ("servo_motor_voltage", 45.9, "servo-motor-voltage", 0),
        ("servo_motor_voltage", 50.1, "servo-motor-voltage", 0),
        ("servo_motor_voltage", 46.0, "servo-motor-voltage", NO_FAULT_ID),
        ("servo_motor_speed", 1399, "servo-motor-speed", 1),
        ("servo_motor_speed", 3201, "servo-motor-speed", 1),
        ("servo_motor_speed", 3200, "servo-motor-speed", NO_FAULT_ID),
        ("servo_motor_vibration", 3.01, "servo-motor-vibration", 2),
        ("servo_motor_vibration", 0.0, "servo-motor-vibration", NO_FAULT_ID),
        ("tooling_vibration", 4.5, "tooling-vibration", 3),
        ("tool_wear_level", 29.9, "tool-wear-level", 4),
        ("tool_wear_level", 30.0, "tool-wear-level", NO_FAULT_ID),
        ("tool_coolant_supply_level", 49.0, "tool-coolant-supply", 5),
        ("coolant_reservoir_level", 49.0, "coolant-reservoir-level", 6),
        ("coolant_flow_rate", 2.9, "coolant-flow-rate", 7),
        ("coolant_flow_rate", 10.1, "coolant-flow-rate", 7),
        ("base_plate_pressure", 39.0, "base-plate-pressure", 4),
        ("base_plate_pressure", 81.0, "base-plate-pressure", 4),
        ("base_plate_vibration", 2.1, "base-plate-vibration", 4),
        ("base_plate_coolant_distribution", 49.0, "base-plate-coolant", 5),
    ],
)
def test_fault_thresholds(field, value, sensor_id, expected) -> None:
    sensors = get_sensors_from_reading(make_reading(**{field: value}))

    assert _issue_of(sensors, sensor_id) == expected
    others = [s for s in sensors if s.id != sensor_id]
    assert all(s.issue_id == NO_FAULT_ID for s in others)


def test_classification_ignores_reading_label() -> None:
    sensors = get_sensors_from_reading(make_reading(issue_id=0))
    assert all(s.issue_id == NO_FAULT_ID for s in sensors)


def test_outside_normal_range_but_below_fault_threshold() -> None:
    sensors = get_sensors_from_reading(make_reading(servo_motor_speed=3100))
    speed = sensors[1]

    assert speed.issue_id == NO_FAULT_ID
    assert not is_in_normal_range(speed)
    assert get_sensor_severity(speed) == AnomalySeverity.NORMAL


def test_format_sensor_value_precision() -> None:
    sensors = get_sensors_from_reading(make_reading(
        servo_motor_voltage=48.26,
        servo_motor_speed=2200.5,
        servo_motor_vibration=1.234,
        base_plate_pressure=59.4,
        tool_wear_level=88.27,
    ))
    by_id = {s.id: s for s in sensors}

    assert format_sensor_value(by_id["servo-motor-voltage"]) == "48.3 V"
    assert format_sensor_value(by_id["servo-motor-speed"]) == "2201 RPM"
    assert format_sensor_value(by_id["servo-motor-vibration"]) == "1.23 mm/s (RMS)"
    assert format_sensor_value(by_id["base-plate-pressure"]) == "59 psi"
    assert format_sensor_value(by_id["tool-wear-level"]) == "88.3 % of Life"


def test_insights_all_normal(normal_reading) -> None:
    assert generate_insights(get_sensors_from_reading(normal_reading)) == [ALL_NORMAL_INSIGHT]


def test_insights_grouped_by_component() -> None:
    sensors = get_sensors_from_reading(make_reading(
        tool_wear_level=25.0,
        base_plate_pressure=85.0,
        servo_motor_voltage=44.0,
    ))

    assert generate_insights(sensors) == [
        "Servo Motor shows 1 anomalies that require attention.",
        "Power Fluctuation: Servo Motor Voltage reading of 44.0 V is outside normal range of 46-50 V.",
        "Tooling shows 2 anomalies that require attention.",
        "Base Plate Instability: Tool Wear Level reading of 25.0 % of Life is outside normal range "
        "of 80-100 % of Life.",
        "Base Plate Instability: Base Plate Pressure reading of 85 psi is outside normal range of 50-70 psi.",
        RECOMMENDED_ACTION,
    ]


def test_insights_print_fractional_bounds() -> None:
    insights = generate_insights(get_sensors_from_reading(make_reading(base_plate_vibration=2.5)))
    assert insights[1] == (
        "Base Plate Instability: Base Plate Vibration reading of 2.50 mm/s (RMS) is outside "
        "normal range of 0.5-1.5 mm/s (RMS)."
    )


def test_most_critical_normal_when_nothing_faulted(normal_reading) -> None:
    issue = get_most_critical_issue(get_sensors_from_reading(normal_reading))
    assert issue.id == NO_FAULT_ID


def test_most_critical_prefers_critical_over_earlier_warning() -> None:
    # speed warning (id 1) comes before coolant supply critical (id 5)
    sensors = get_sensors_from_reading(make_reading(servo_motor_speed=1000, tool_coolant_supply_level=40))
    assert get_most_critical_issue(sensors).id == 5


def test_most_critical_first_critical_wins() -> None:
    sensors = get_sensors_from_reading(make_reading(servo_motor_voltage=40, tool_coolant_supply_level=40))
    assert get_most_critical_issue(sensors).id == 0


def test_most_critical_falls_back_to_first_fault() -> None:
    sensors = get_sensors_from_reading(make_reading(servo_motor_speed=1000, coolant_flow_rate=12))
    assert get_most_critical_issue(sensors).id == 1


def test_faulted_issues_are_distinct_in_order() -> None:
    sensors = get_sensors_from_reading(make_reading(
        tool_wear_level=10, base_plate_vibration=3, coolant_flow_rate=1,
    ))
    assert [i.id for i in faulted_issues(sensors)] == [4, 7]


def test_non_finite_values_do_not_break_formatting() -> None:
    sensors = get_sensors_from_reading(make_reading(
        servo_motor_speed=float("inf"),
        base_plate_pressure=float("nan"),
    ))
    by_id = {s.id: s for s in sensors}

    assert by_id["servo-motor-speed"].issue_id == 1
    assert format_sensor_value(by_id["servo-motor-speed"]) == "inf RPM"
    assert format_sensor_value(by_id["base-plate-pressure"]) == "nan psi"
    assert generate_insights(sensors)[1] == (
        "Motor Overload: Servo Motor Speed reading of inf RPM is outside normal range of 1500-3000 RPM."
    )
