"""
Dashboard API

Live machine status: the current reading classified into sensors,
insights and the most critical issue. Also exposes the classifier
for arbitrary readings and the anomaly catalog.
"""

from typing import List

from fastapi import APIRouter, Depends

from ..models.sensor import SensorReading
from ..services.catalog import ANOMALY_ISSUES
from ..services.monitor import MachineMonitor
from ..services.sensor_engine import generate_insights, get_most_critical_issue, get_sensors_from_reading
from ..utils import anomaly_to_dict, sensor_to_dict, to_dict
from .deps import get_monitor
from .schemas import AnomalyOut, ClassificationResponse, SensorReadingIn

router = APIRouter(tags=["Dashboard"])


def _classification(reading: SensorReading) -> dict:
    sensors = get_sensors_from_reading(reading)
    return {
        "sensors": [sensor_to_dict(s) for s in sensors],
        "insights": generate_insights(sensors),
        "most_critical": anomaly_to_dict(get_most_critical_issue(sensors)),
    }


@router.get("/dashboard")
async def get_dashboard(monitor: MachineMonitor = Depends(get_monitor)):
    """Current machine status as shown on the dashboard."""
    snapshot = monitor.snapshot()
    return {
        "reading": to_dict(snapshot.reading),
        "sensors": [sensor_to_dict(s) for s in snapshot.sensors],
        "insights": snapshot.insights,
        "most_critical": anomaly_to_dict(snapshot.most_critical),
        "active_part": to_dict(snapshot.active_part) if snapshot.active_part else None,
        "history_length": len(monitor.history),
    }


@router.post("/dashboard/refresh")
async def refresh_dashboard(monitor: MachineMonitor = Depends(get_monitor)):
    """Sample a new reading now and record it in the system history."""
    monitor.refresh()
    return await get_dashboard(monitor)


@router.post("/sensors/classify", response_model=ClassificationResponse)
async def classify_reading(body: SensorReadingIn):
    """Classify an arbitrary reading without touching the live state."""
    return _classification(body.to_reading())


@router.get("/anomalies", response_model=List[AnomalyOut])
async def list_anomalies():
    """The anomaly classification table."""
    return [anomaly_to_dict(issue) for issue in ANOMALY_ISSUES]
