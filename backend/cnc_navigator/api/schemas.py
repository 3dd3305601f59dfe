"""
API Request/Response Schemas

Pydantic models used across API endpoints for request validation
and response serialization.
"""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Dict, Any

from ..models.chat import ChatMessage
from ..models.sensor import SensorReading


# ─── Sensor Schemas ──────────────────────────────────────────────────

class SensorReadingIn(BaseModel):
    timestamp: int = Field(default=0, description="Epoch milliseconds")
    servo_motor_voltage: float = Field(allow_inf_nan=False)
    servo_motor_speed: float = Field(allow_inf_nan=False)
    servo_motor_vibration: float = Field(allow_inf_nan=False)
    tooling_vibration: float = Field(allow_inf_nan=False)
    tool_wear_level: float = Field(allow_inf_nan=False)
    tool_coolant_supply_level: float = Field(allow_inf_nan=False)
    coolant_reservoir_level: float = Field(allow_inf_nan=False)
    coolant_flow_rate: float = Field(allow_inf_nan=False)
    base_plate_pressure: float = Field(allow_inf_nan=False)
    base_plate_vibration: float = Field(allow_inf_nan=False)
    base_plate_coolant_distribution: float = Field(allow_inf_nan=False)
    issue_id: int = 8

    def to_reading(self) -> SensorReading:
        return SensorReading(**self.model_dump())


class AnomalyOut(BaseModel):
    id: int
    name: str
    description: str
    severity: str
    affected_component: str


class SensorOut(BaseModel):
    id: str
    name: str
    value: float
    unit: str
    normal_range: Dict[str, float]
    critical_range: Dict[str, Optional[float]]
    issue_id: int
    severity: str
    formatted_value: str
    in_normal_range: bool


class ClassificationResponse(BaseModel):
    sensors: List[SensorOut]
    insights: List[str]
    most_critical: AnomalyOut


# ─── Chat Schemas ────────────────────────────────────────────────────

class ChatMessageIn(BaseModel):
    role: Literal["user", "assistant"]
    content: str

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class ChatRequest(BaseModel):
    messages: List[ChatMessageIn] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    id: str
    role: str
    content: str
    timestamp: str
    backend: str


class ChatStatus(BaseModel):
    backend: str
    ready: bool
    remote_reachable: Optional[bool] = None
    message: str
