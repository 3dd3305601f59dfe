"""Tests for the simulated sensor feed and the parts catalog."""

import random

from cnc_navigator.services.demo_generator import (
    HOUR_MS,
    MACHINED_PARTS,
    find_part,
    generate_mock_sensor_readings,
    get_dashboard_sensor_data,
    get_part,
    get_part_historical_readings,
    list_parts,
    part_has_anomalies,
)


def test_readings_are_newest_first_hourly() -> None:
    readings = generate_mock_sensor_readings(5, rng=random.Random(1), now_ms=10 * HOUR_MS)

    assert [r.timestamp for r in readings] == [10 * HOUR_MS - i * HOUR_MS for i in range(5)]


def test_no_anomaly_chance_labels_everything_normal() -> None:
    readings = generate_mock_sensor_readings(30, anomaly_chance=0.0, rng=random.Random(7))
    assert {r.issue_id for r in readings} == {8}


def test_full_anomaly_chance_labels_faults() -> None:
    readings = generate_mock_sensor_readings(30, anomaly_chance=1.0, rng=random.Random(7))
    assert all(0 <= r.issue_id <= 7 for r in readings)


def test_values_stay_within_half_range_margin() -> None:
    readings = generate_mock_sensor_readings(200, anomaly_chance=0.5, rng=random.Random(3))
    for r in readings:
        assert 23 <= r.servo_motor_voltage <= 75
        assert 2.5 <= r.coolant_flow_rate <= 12
        assert r.tool_wear_level >= 40


def test_same_seed_same_readings() -> None:
    a = generate_mock_sensor_readings(10, rng=random.Random(42), now_ms=0)
    b = generate_mock_sensor_readings(10, rng=random.Random(42), now_ms=0)
    assert a == b


def test_dashboard_reading() -> None:
    reading = get_dashboard_sensor_data(anomaly_chance=0.0, rng=random.Random(5))
    assert reading.issue_id == 8


def test_part_history_is_deterministic_per_part() -> None:
    first = get_part_historical_readings("PT-7843-A", count=20)
    second = get_part_historical_readings("PT-7843-A", count=20)
    other = get_part_historical_readings("PT-6392-B", count=20)

    assert len(first) == 20
    strip = lambda rs: [(r.servo_motor_voltage, r.issue_id) for r in rs]  # noqa: E731
    assert strip(first) == strip(second)
    assert strip(first) != strip(other)


def test_parts_catalog_lookup() -> None:
    assert len(list_parts()) == 5
    assert get_part("pt-9201-c").name == "Hydraulic Valve Housing"
    assert get_part("PT-0000-Z") is None


def test_find_part_by_id_or_name() -> None:
    assert find_part("PT-5127-D").name == "Transmission Coupling"
    assert find_part("impeller").id == "PT-6392-B"
    assert find_part("  ") is None
    assert find_part("sprocket") is None


def test_part_has_anomalies() -> None:
    flagged = [p.id for p in MACHINED_PARTS if part_has_anomalies(p)]
    assert flagged == ["PT-7843-A", "PT-6392-B", "PT-9201-C", "PT-5127-D"]
