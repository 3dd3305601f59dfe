from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import uuid

from .anomaly import AnomalyIssue
from .part import MachinedPart
from .sensor import SensorReading


@dataclass
class ChatMessage:
    """A single turn of the chat with the assistant."""
    role: str  # "user" or "assistant"
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ContextualData:
    """Machine context handed to the assistant alongside the conversation."""
    part: Optional[MachinedPart] = None
    sensor_readings: List[SensorReading] = field(default_factory=list)  # newest first
    anomalies: List[AnomalyIssue] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)

    @property
    def latest_reading(self) -> Optional[SensorReading]:
        return self.sensor_readings[0] if self.sensor_readings else None

    @property
    def active_anomaly(self) -> Optional[AnomalyIssue]:
        """First anomaly in the context that is not the normal entry."""
        for anomaly in self.anomalies:
            if not anomaly.is_normal:
                return anomaly
        return None
