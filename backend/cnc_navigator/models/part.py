from dataclasses import dataclass
from datetime import date
from typing import Tuple


@dataclass(frozen=True)
class MachinedPart:
    """A part produced on the machine, as supplied by the parts catalog."""

    id: str
    name: str
    material: str
    last_machined: date
    operation_time: float  # minutes
    issue_history: Tuple[int, ...]
    image_url: str
