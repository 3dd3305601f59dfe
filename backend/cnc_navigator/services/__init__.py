from .catalog import ANOMALY_ISSUES, NO_FAULT_ID, get_issue
from .sensor_engine import get_sensors_from_reading, generate_insights, get_most_critical_issue
from .history import SystemHistory, format_system_history
from .llm_service import ResponseStreamer, ResponseChunk

__all__ = [
    "ANOMALY_ISSUES",
    "NO_FAULT_ID",
    "get_issue",
    "get_sensors_from_reading",
    "generate_insights",
    "get_most_critical_issue",
    "SystemHistory",
    "format_system_history",
    "ResponseStreamer",
    "ResponseChunk",
]
