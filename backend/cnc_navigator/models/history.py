from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .anomaly import AnomalyIssue
from .part import MachinedPart
from .sensor import SensorReading


@dataclass(frozen=True)
class SystemStateRecord:
    """Snapshot of the machine state kept in the system history."""

    timestamp: datetime
    reading: SensorReading
    formatted_time: str
    anomaly: Optional[AnomalyIssue] = None  # only set for non-normal issues
    active_part: Optional[MachinedPart] = None
