"""
Machine Monitor (live dashboard state)

Owns the current reading, the active part and the system history, and
samples the simulated sensor feed on a fixed interval. Uses an asyncio
background task, like the rest of the service.
"""

import asyncio
import logging
import random
import threading
from dataclasses import dataclass
from typing import List, Optional

from ..models.anomaly import AnomalyIssue
from ..models.chat import ContextualData
from ..models.part import MachinedPart
from ..models.sensor import Sensor, SensorReading
from .demo_generator import get_dashboard_sensor_data, get_part_historical_readings
from .history import SystemHistory
from .sensor_engine import generate_insights, get_most_critical_issue, get_sensors_from_reading

logger = logging.getLogger("cnc_navigator.monitor")


@dataclass(frozen=True)
class DashboardSnapshot:
    reading: SensorReading
    sensors: List[Sensor]
    insights: List[str]
    most_critical: AnomalyIssue
    active_part: Optional[MachinedPart]


class MachineMonitor:
    """Periodically samples the machine and records each state in the history."""

    def __init__(
        self,
        history: SystemHistory,
        interval_seconds: float = 30.0,
        anomaly_chance: float = 0.2,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.history = history
        self.interval_seconds = interval_seconds
        self.anomaly_chance = anomaly_chance
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._reading: Optional[SensorReading] = None
        self._active_part: Optional[MachinedPart] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    # ── State ─────────────────────────────────────────────────────

    @property
    def active_part(self) -> Optional[MachinedPart]:
        with self._lock:
            return self._active_part

    def set_active_part(self, part: Optional[MachinedPart]) -> None:
        with self._lock:
            self._active_part = part
        logger.info("Active part set to %s", part.id if part else "none")

    def refresh(self) -> SensorReading:
        """Sample a new reading and record it in the history."""
        reading = get_dashboard_sensor_data(self.anomaly_chance, rng=self._rng)
        with self._lock:
            self._reading = reading
            part = self._active_part
            self.history.record(reading, part)
        return reading

    def current_reading(self) -> SensorReading:
        with self._lock:
            if self._reading is None:
                return self.refresh()
            return self._reading

    def snapshot(self) -> DashboardSnapshot:
        reading = self.current_reading()
        sensors = get_sensors_from_reading(reading)
        return DashboardSnapshot(
            reading=reading,
            sensors=sensors,
            insights=generate_insights(sensors),
            most_critical=get_most_critical_issue(sensors),
            active_part=self.active_part,
        )

    def build_context(self) -> ContextualData:
        """Chat context: the selected part's history, else the live reading."""
        part = self.active_part
        if part is not None:
            readings = get_part_historical_readings(part.id)
        else:
            readings = [self.current_reading()]

        sensors = get_sensors_from_reading(readings[0])
        most_critical = get_most_critical_issue(sensors)
        return ContextualData(
            part=part,
            sensor_readings=readings,
            anomalies=[] if most_critical.is_normal else [most_critical],
            insights=generate_insights(sensors),
        )

    # ── Background loop ───────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Machine monitor started (every %.0fs)", self.interval_seconds)

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Machine monitor stopped")

    async def _loop(self) -> None:
        # the first sample is taken by whoever starts the monitor
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.refresh()
            except Exception as exc:
                logger.error("Monitor tick error: %s", exc)
