"""Tests for per-channel trend statistics."""

from cnc_navigator.services.trends import (
    chart_series,
    format_trend_summary,
    readings_to_frame,
    summarize_readings,
)

from conftest import make_reading


def test_frame_is_sorted_oldest_first() -> None:
    df = readings_to_frame([make_reading(timestamp=3), make_reading(timestamp=1), make_reading(timestamp=2)])
    assert list(df["timestamp"]) == [1, 2, 3]


def test_summary_statistics() -> None:
    readings = [
        make_reading(timestamp=2, servo_motor_voltage=52.0),
        make_reading(timestamp=1, servo_motor_voltage=48.0),
    ]
    summary = summarize_readings(readings)

    voltage = summary["servo-motor-voltage"]
    assert voltage["min"] == 48.0
    assert voltage["max"] == 52.0
    assert voltage["mean"] == 50.0
    assert voltage["out_of_range"] == 1
    assert summary["coolant-flow-rate"]["out_of_range"] == 0
    assert len(summary) == 11


def test_single_reading_has_zero_std() -> None:
    summary = summarize_readings([make_reading()])
    assert summary["tool-wear-level"]["std"] == 0.0


def test_empty_summary() -> None:
    assert summarize_readings([]) == {}
    assert format_trend_summary({}) == ""


def test_chart_series_limits_points() -> None:
    readings = [make_reading(timestamp=i) for i in range(30)]
    series = chart_series(readings, limit=20)

    assert set(series) == {"vibration", "coolant"}
    assert len(series["vibration"]) == 20
    assert series["vibration"][0]["timestamp"] == 10
    assert series["coolant"][-1]["coolant_flow_rate"] == 6.5


def test_trend_summary_text() -> None:
    text = format_trend_summary(summarize_readings([make_reading(), make_reading(timestamp=1)]))

    assert text.startswith("\nHistorical trend summary:\n")
    assert "- Servo Motor Voltage: mean 48 V, range 48-48, 0 readings outside normal range" in text
