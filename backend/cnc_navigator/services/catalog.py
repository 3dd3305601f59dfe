"""
Anomaly Classification Table

Static catalog of the fault categories the machine can report. Every
sensor defaults to the NORMAL entry unless its threshold rule fires.
"""

from typing import Dict, List, Optional

from ..models.anomaly import AnomalyIssue, AnomalySeverity

NO_FAULT_ID = 8

ANOMALY_ISSUES: List[AnomalyIssue] = [
    AnomalyIssue(0, "Power Fluctuation", "Voltage supply to servo motor outside normal operating range",
                 AnomalySeverity.CRITICAL, "Servo Motor"),
    AnomalyIssue(1, "Motor Overload", "Servo motor operating outside normal speed range",
                 AnomalySeverity.WARNING, "Servo Motor"),
    AnomalyIssue(2, "Excessive Tool Vibration", "Servo motor vibration outside normal operation parameters",
                 AnomalySeverity.WARNING, "Servo Motor"),
    AnomalyIssue(3, "Inadequate Cooling", "Tooling vibration outside normal operation parameters",
                 AnomalySeverity.WARNING, "Tooling"),
    AnomalyIssue(4, "Base Plate Instability", "Tool wear level indicating replacement required soon",
                 AnomalySeverity.WARNING, "Tooling"),
    AnomalyIssue(5, "Coolant Pump Malfunction", "Coolant supply level below recommended threshold",
                 AnomalySeverity.CRITICAL, "Coolant Pump"),
    AnomalyIssue(6, "Overheating and Expansion", "Coolant reservoir level below recommended threshold",
                 AnomalySeverity.WARNING, "Coolant Pump"),
    AnomalyIssue(7, "Tool Misalignment", "Coolant flow rate outside normal parameters",
                 AnomalySeverity.WARNING, "Coolant Pump"),
    AnomalyIssue(NO_FAULT_ID, "Normal", "All parameters within normal operating ranges",
                 AnomalySeverity.NORMAL, "System"),
]

_BY_ID: Dict[int, AnomalyIssue] = {issue.id: issue for issue in ANOMALY_ISSUES}


def get_issue(issue_id: int) -> Optional[AnomalyIssue]:
    """Look up a catalog entry by id; unknown ids return None."""
    return _BY_ID.get(issue_id)


def normal_issue() -> AnomalyIssue:
    return _BY_ID[NO_FAULT_ID]
