from .anomaly import AnomalyIssue, AnomalySeverity
from .sensor import SensorReading, Sensor, NormalRange, CriticalRange
from .part import MachinedPart
from .history import SystemStateRecord
from .chat import ChatMessage, ContextualData

__all__ = [
    "AnomalyIssue",
    "AnomalySeverity",
    "SensorReading",
    "Sensor",
    "NormalRange",
    "CriticalRange",
    "MachinedPart",
    "SystemStateRecord",
    "ChatMessage",
    "ContextualData",
]
