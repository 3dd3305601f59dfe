"""
System History Service

Bounded, newest-first log of machine state snapshots, plus the formatter
that turns it into context text for the chat assistant.

The history is an explicit object owned by whoever drives the chat session
(see MachineMonitor); it is not a module-level singleton.
"""

import logging
import threading
from collections import deque
from datetime import datetime
from itertools import islice
from typing import Deque, List, Optional

from ..models.history import SystemStateRecord
from ..models.part import MachinedPart
from ..models.sensor import SensorReading
from .catalog import get_issue

logger = logging.getLogger("cnc_navigator.history")

MAX_HISTORY_LENGTH = 20
NO_HISTORY = "No system history available."
TIME_FORMAT = "%H:%M:%S %Y-%m-%d"


class SystemHistory:
    """Thread-safe ring buffer of SystemStateRecord, most recent first."""

    def __init__(self, max_length: int = MAX_HISTORY_LENGTH):
        if max_length < 1:
            raise ValueError(f"max_length must be positive, got {max_length}")
        self.max_length = max_length
        self._records: Deque[SystemStateRecord] = deque(maxlen=max_length)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def record(
        self,
        reading: SensorReading,
        active_part: Optional[MachinedPart] = None,
    ) -> SystemStateRecord:
        """Add a new system state; the oldest entry is evicted beyond capacity.

        The anomaly comes from the reading's own ``issue_id`` label, which can
        disagree with the per-channel classification of the same reading.
        """
        anomaly = get_issue(reading.issue_id)
        now = datetime.now()
        record = SystemStateRecord(
            timestamp=now,
            reading=reading,
            formatted_time=now.strftime(TIME_FORMAT),
            anomaly=anomaly if anomaly and not anomaly.is_normal else None,
            active_part=active_part,
        )

        with self._lock:
            self._records.appendleft(record)

        logger.debug(
            "Recorded system state at %s (issue=%s, part=%s)",
            record.formatted_time,
            record.anomaly.name if record.anomaly else "none",
            active_part.id if active_part else "none",
        )
        return record

    def query(self, count: Optional[int] = None) -> List[SystemStateRecord]:
        """Return up to ``count`` records, newest first."""
        if count is None:
            count = self.max_length
        with self._lock:
            return list(islice(self._records, max(count, 0)))

    def format_for_llm(self) -> str:
        return format_system_history(self.query())


def format_system_history(records: List[SystemStateRecord]) -> str:
    """Format history records (newest first) as a context block for the LLM."""
    if not records:
        return NO_HISTORY

    lines = "\nSYSTEM HISTORY:\n"

    # Records with anomalies come first, they matter most for troubleshooting
    anomaly_records = [r for r in records if r.anomaly]
    if anomaly_records:
        lines += "\nDetected Issues:\n"
        for record in anomaly_records:
            if record.active_part:
                part_info = f"for part {record.active_part.name} ({record.active_part.id})"
            else:
                part_info = "with no specific part selected"
            lines += (
                f"- {record.formatted_time}: {record.anomaly.severity.value.upper()} - "
                f"{record.anomaly.name} {part_info}. {record.anomaly.description}.\n"
            )

    latest = records[0]
    lines += f"\nCurrent System State (as of {latest.formatted_time}):\n"
    if latest.anomaly:
        lines += (
            f"- Current Issue: {latest.anomaly.name} "
            f"({latest.anomaly.severity.value.upper()})\n"
        )
    else:
        lines += "- No active issues detected\n"

    return lines
