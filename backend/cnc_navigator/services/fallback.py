"""
Keyword-based fallback responder.

Used when no live model backend is configured or reachable. The reply is
picked by the first keyword group found in the lower-cased user message,
then worded differently depending on whether the machine context currently
carries a non-normal anomaly.
"""

from typing import Callable, List, Optional, Sequence, Tuple

from ..models.chat import ContextualData
from ..models.history import SystemStateRecord

Responder = Callable[[ContextualData, Optional[List[SystemStateRecord]]], str]


def _reading_value(context: ContextualData, field_name: str, fmt: str, default: str) -> str:
    reading = context.latest_reading
    if reading is None:
        return default
    return format(getattr(reading, field_name), fmt)


def _vibration(context: ContextualData, history) -> str:
    tool = _reading_value(context, "tooling_vibration", ".2f", "3.2")
    servo = _reading_value(context, "servo_motor_vibration", ".2f", "1.8")
    base = _reading_value(context, "base_plate_vibration", ".2f", "1.1")
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"The machine is currently reporting {anomaly.name} ({anomaly.severity.value}). "
            f"Tooling vibration is at {tool} mm/s and servo motor vibration at {servo} mm/s. "
            "Excessive vibration usually points to a loose tool holder, worn bearings or "
            "spindle misalignment. Check tool mounting and alignment before the next cycle "
            "and replace worn components if the vibration persists."
        )
    return (
        f"Vibration levels look stable. Tooling vibration is at {tool} mm/s, "
        f"servo motor vibration at {servo} mm/s and base plate vibration at {base} mm/s. "
        "Keep monitoring during heavy cuts and inspect the tool mounting at the next "
        "scheduled maintenance."
    )


def _coolant(context: ContextualData, history) -> str:
    supply = _reading_value(context, "tool_coolant_supply_level", ".1f", "78.5")
    flow = _reading_value(context, "coolant_flow_rate", ".1f", "6.2")
    reservoir = _reading_value(context, "coolant_reservoir_level", ".1f", "85.0")
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"With {anomaly.name} active, the coolant system deserves a close look. "
            f"The coolant supply level is at {supply}%, the reservoir at {reservoir}% and the "
            f"flow rate at {flow} L/min. Verify the pump output and top up the reservoir "
            "before continuing, since poor cooling accelerates tool wear."
        )
    return (
        f"The coolant supply level is at {supply}% and the flow rate is {flow} L/min, "
        "within normal operating parameters. I recommend scheduling a coolant system "
        "maintenance check within the next week to keep performance optimal."
    )


def _tool_wear(context: ContextualData, history) -> str:
    wear = _reading_value(context, "tool_wear_level", ".1f", "84.3")
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"Current tool wear level is at {wear}% of life while {anomaly.name} is reported. "
            "Replace the tool before the next operation to avoid quality issues or an "
            "unexpected failure."
        )
    return (
        f"Current tool wear level is at {wear}% of life. Plan the tool replacement within "
        "the next few machining cycles to avoid quality issues or unexpected failures."
    )


def _servo_motor(context: ContextualData, history) -> str:
    voltage = _reading_value(context, "servo_motor_voltage", ".1f", "48.2")
    speed = _reading_value(context, "servo_motor_speed", ".0f", "2200")
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"The servo motor reads {voltage}V at {speed} RPM. Because {anomaly.name} is "
            f"active on the {anomaly.affected_component.lower()}, check the power supply "
            "and the load on the axis drives before resuming production."
        )
    return (
        f"The servo motor is operating within normal parameters. Voltage is stable at "
        f"{voltage}V and speed is at {speed} RPM. No immediate action is needed for the "
        "servo system."
    )


def _history(context: ContextualData, history: Optional[List[SystemStateRecord]]) -> str:
    records = history or []
    flagged = [r for r in records if r.anomaly]
    if not records:
        return (
            "No system history has been recorded yet. Once the machine has reported a "
            "few readings I can summarise how its state has evolved."
        )
    summary = (
        f"Over the last {len(records)} recorded states, {len(flagged)} reported an issue."
    )
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"{summary} The machine currently reports {anomaly.name}, so compare the "
            f"recent readings of the {anomaly.affected_component.lower()} against earlier "
            "runs to see whether the problem is recurring."
        )
    if flagged:
        last = flagged[0]
        return (
            f"{summary} The most recent one was {last.anomaly.name} at "
            f"{last.formatted_time}. The machine is currently running without active issues."
        )
    return f"{summary} The machine has been running without issues."


def _part(context: ContextualData, history) -> str:
    part = context.part
    if part:
        info = (
            f"The selected {part.name} (ID: {part.id}) is made of {part.material} and was "
            f"last machined on {part.last_machined.strftime('%a %b %d %Y')}. "
            f"The operation took {part.operation_time:g} minutes."
        )
    else:
        info = "No specific part is currently selected."
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"{info} Note that {anomaly.name} is currently active, which can affect the "
            "surface finish and dimensional accuracy of this part. Inspect it before release."
        )
    return (
        f"{info} Based on historical data, this part type typically experiences minimal "
        "issues, but requires careful monitoring of coolant flow to maintain an optimal "
        "surface finish."
    )


def _generic(context: ContextualData, history) -> str:
    anomaly = context.active_anomaly
    if anomaly:
        return (
            f"The machine is currently reporting {anomaly.name} ({anomaly.severity.value}) "
            f"on the {anomaly.affected_component.lower()}: {anomaly.description}. "
            "Perform a diagnostic check on the affected component before the next operation."
        )
    wear = _reading_value(context, "tool_wear_level", ".1f", "84.3")
    flow = _reading_value(context, "coolant_flow_rate", ".1f", "6.2")
    return (
        "Based on the current sensor readings, all systems are operating within normal "
        f"parameters. The tool wear level is at {wear}% and the coolant system is running "
        f"at {flow} L/min. No immediate actions are required, but I recommend a routine "
        "inspection of the tooling system during the next maintenance cycle."
    )


# First match wins, so order matters.
KEYWORD_GROUPS: Sequence[Tuple[str, Tuple[str, ...], Responder]] = (
    ("vibration", ("vibration", "shaking", "chatter"), _vibration),
    ("coolant", ("coolant", "cooling", "flow"), _coolant),
    ("tool_wear", ("tool wear", "tool life", "wear"), _tool_wear),
    ("servo_motor", ("motor", "servo", "voltage"), _servo_motor),
    ("history", ("history", "historical", "trend", "past", "previous"), _history),
    ("part", ("part", "gear"), _part),
)

_RESPONDERS = {topic: responder for topic, _, responder in KEYWORD_GROUPS}


def match_topic(user_message: str) -> str:
    query = (user_message or "").lower()
    for topic, keywords, _ in KEYWORD_GROUPS:
        if any(k in query for k in keywords):
            return topic
    return "generic"


def fallback_response(
    user_message: str,
    context: Optional[ContextualData] = None,
    history: Optional[List[SystemStateRecord]] = None,
) -> str:
    """Pick a canned reply for the user's message."""
    context = context or ContextualData()
    responder = _RESPONDERS.get(match_topic(user_message), _generic)
    return responder(context, history)


# ─── Chunking ────────────────────────────────────────────────────────

def split_words(text: str) -> List[str]:
    """Word-by-word increments; joined back they give ``text`` exactly."""
    words = text.split(" ")
    return [w if i == 0 else " " + w for i, w in enumerate(words)]


def split_slices(text: str, size: int) -> List[str]:
    """Fixed-width slices; an empty text still yields one empty increment."""
    if size < 1:
        raise ValueError(f"slice size must be positive, got {size}")
    if not text:
        return [""]
    return [text[i:i + size] for i in range(0, len(text), size)]
