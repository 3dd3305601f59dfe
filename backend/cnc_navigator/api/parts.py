"""
Machined Parts API

Parts catalog, search by id or name, per-part detail (historical readings,
insights and trends) and selection of the part currently on the machine.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from ..services.demo_generator import (
    find_part,
    get_part,
    get_part_historical_readings,
    list_parts,
    part_has_anomalies,
)
from ..services.monitor import MachineMonitor
from ..services.sensor_engine import generate_insights, get_sensors_from_reading
from ..services.trends import chart_series, summarize_readings
from ..utils import sanitize_for_json, to_dict
from .deps import get_monitor

router = APIRouter(prefix="/parts", tags=["Parts"])


def _part_summary(part) -> dict:
    data = to_dict(part)
    data["has_anomalies"] = part_has_anomalies(part)
    return data


@router.get("/")
async def get_parts():
    return [_part_summary(p) for p in list_parts()]


@router.get("/search")
async def search_parts(q: str = Query(..., min_length=1, description="Part id or part of its name")):
    part = find_part(q)
    if not part:
        raise HTTPException(status_code=404, detail=f"No part matching '{q}'")
    return _part_summary(part)


@router.put("/active/{part_id}")
async def set_active_part(part_id: str, monitor: MachineMonitor = Depends(get_monitor)):
    """Mark a part as the one currently being machined."""
    part = get_part(part_id)
    if not part:
        raise HTTPException(status_code=404, detail="Part not found")
    monitor.set_active_part(part)
    return {"status": "active", "part": _part_summary(part)}


@router.delete("/active")
async def clear_active_part(monitor: MachineMonitor = Depends(get_monitor)):
    monitor.set_active_part(None)
    return {"status": "cleared"}


@router.get("/{part_id}")
async def get_part_detail(part_id: str):
    """Part detail with its historical readings, latest insights and trends."""
    part = get_part(part_id)
    if not part:
        raise HTTPException(status_code=404, detail="Part not found")

    readings = get_part_historical_readings(part.id)
    sensors = get_sensors_from_reading(readings[0]) if readings else []
    return {
        "part": _part_summary(part),
        "readings": [to_dict(r) for r in readings],
        "insights": generate_insights(sensors) if sensors else [],
        "trends": sanitize_for_json(summarize_readings(readings)),
        "charts": sanitize_for_json(chart_series(readings)),
    }
