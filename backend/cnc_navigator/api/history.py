"""
System History API

Read access to the bounded system-state history and its LLM context text.
"""

from fastapi import APIRouter, Depends, Query

from ..services.history import SystemHistory
from ..utils import record_to_dict
from .deps import get_history

router = APIRouter(prefix="/history", tags=["History"])


@router.get("/")
async def get_system_history(
    count: int = Query(20, ge=0, description="Maximum number of records, newest first"),
    history: SystemHistory = Depends(get_history),
):
    records = history.query(count)
    return {
        "count": len(records),
        "max_length": history.max_length,
        "records": [record_to_dict(r) for r in records],
    }


@router.get("/context")
async def get_history_context(history: SystemHistory = Depends(get_history)):
    """History formatted as it is handed to the assistant."""
    return {"context": history.format_for_llm()}

