"""Request-scoped accessors for the objects created in the app lifespan."""

from fastapi import Request

from ..services.history import SystemHistory
from ..services.llm_service import ResponseStreamer
from ..services.monitor import MachineMonitor


def get_monitor(request: Request) -> MachineMonitor:
    return request.app.state.monitor


def get_history(request: Request) -> SystemHistory:
    return request.app.state.monitor.history


def get_streamer(request: Request) -> ResponseStreamer:
    return request.app.state.streamer
