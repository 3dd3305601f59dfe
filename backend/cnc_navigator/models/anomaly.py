from dataclasses import dataclass
import enum


class AnomalySeverity(str, enum.Enum):
    """Anomaly severity levels."""
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AnomalyIssue:
    """Catalog entry describing one fault category of the machine."""

    id: int
    name: str
    description: str
    severity: AnomalySeverity
    affected_component: str

    @property
    def is_normal(self) -> bool:
        return self.severity == AnomalySeverity.NORMAL
