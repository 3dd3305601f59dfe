"""Shared fixtures and fakes for the CNC Insight Navigator test suite."""

import sys
from dataclasses import replace
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from cnc_navigator.core.config import Settings  # noqa: E402
from cnc_navigator.models.sensor import SensorReading  # noqa: E402

NORMAL_VALUES = dict(
    servo_motor_voltage=48.0,
    servo_motor_speed=2200.0,
    servo_motor_vibration=1.2,
    tooling_vibration=2.0,
    tool_wear_level=90.0,
    tool_coolant_supply_level=85.0,
    coolant_reservoir_level=90.0,
    coolant_flow_rate=6.5,
    base_plate_pressure=60.0,
    base_plate_vibration=1.0,
    base_plate_coolant_distribution=90.0,
)


def make_reading(timestamp: int = 0, issue_id: int = 8, **overrides) -> SensorReading:
    """A reading with every channel inside its normal range, unless overridden."""
    return replace(
        SensorReading(timestamp=timestamp, issue_id=issue_id, **NORMAL_VALUES),
        **overrides,
    )


class FakeHandle:
    """Embedded model handle that replays fixed partial results."""

    def __init__(self, parts, fail_after=None):
        self.parts = parts
        self.fail_after = fail_after
        self.prompts = []

    def generate_response(self, prompt, on_partial):
        self.prompts.append(prompt)
        for i, part in enumerate(self.parts):
            if self.fail_after is not None and i == self.fail_after:
                raise RuntimeError("inference crashed")
            on_partial(part, i == len(self.parts) - 1)


class AsyncFakeHandle(FakeHandle):
    async def generate_response(self, prompt, on_partial):
        FakeHandle.generate_response(self, prompt, on_partial)


class FakeBinding:
    """Host binding exposing create_from_options(options) -> handle."""

    def __init__(self, handle=None, fail=False):
        self.handle = handle
        self.fail = fail
        self.options = None

    def create_from_options(self, options):
        self.options = options
        if self.fail:
            raise RuntimeError("model asset not found")
        return self.handle


@pytest.fixture
def normal_reading() -> SensorReading:
    return make_reading()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        LLM_BACKEND="fallback",
        FALLBACK_CHUNK_DELAY=0,
        AUTO_SAMPLE=False,
        DASHBOARD_ANOMALY_CHANCE=0.0,
    )
