"""
LLM Response Streaming Service

Answers chat questions about the machine with one of three interchangeable
strategies, chosen once when the streamer is created:

  - EmbeddedModelBackend: a host-provided inference binding
  - RemoteChatBackend:    an Ollama-compatible chat endpoint, streamed as NDJSON
  - no backend:           keyword-matched canned replies (see fallback.py)

Whatever happens, a call always ends with exactly one chunk flagged
``done``; backend failures degrade to the fallback reply instead of
reaching the caller. There is no mid-stream cancellation.
"""

import asyncio
import inspect
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from ..core.config import Settings
from ..models.chat import ChatMessage, ContextualData
from ..models.history import SystemStateRecord
from .fallback import fallback_response, split_slices, split_words
from .history import SystemHistory, format_system_history
from .trends import format_trend_summary, summarize_readings

logger = logging.getLogger("cnc_navigator.llm")

VALID_BACKENDS = ("auto", "embedded", "remote", "fallback")
ERROR_MESSAGE = "Error contacting backend. Please try again later."

SYSTEM_PROMPT = (
    "You are the CNC Insight Navigator assistant. You help technicians analyze "
    "CNC machining operations and diagnose issues."
)

RESPONSE_GUIDELINES = """When responding:
1. Highlight any anomalies or critical values that need attention
2. Provide specific recommendations for addressing issues
3. Reference specific sensor readings when relevant
4. Use technical but accessible language"""

ChunkCallback = Callable[[str, bool], Union[None, Awaitable[None]]]


class LLMBackendError(Exception):
    """A live model backend could not produce a response."""


@dataclass(frozen=True)
class ResponseChunk:
    """One text increment of a streamed answer."""
    text: str
    done: bool = False


@dataclass(frozen=True)
class EmbeddedModelOptions:
    model_asset_path: str
    max_tokens: int = 1000
    top_k: int = 40
    temperature: float = 0.8
    random_seed: int = 101

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddedModelOptions":
        return cls(
            model_asset_path=settings.EMBEDDED_MODEL_PATH,
            max_tokens=settings.EMBEDDED_MAX_TOKENS,
            top_k=settings.EMBEDDED_TOP_K,
            temperature=settings.EMBEDDED_TEMPERATURE,
            random_seed=settings.EMBEDDED_RANDOM_SEED,
        )


# ─── Backends ────────────────────────────────────────────────────────

class ChatBackend(ABC):
    """A live model strategy. ``generate`` yields increments, the last one done."""

    name: str = "backend"
    # How the fallback reply is chunked when this backend fails
    fallback_chunking: str = "words"

    async def initialize(self) -> bool:
        return True

    @property
    def ready(self) -> bool:
        return True

    @abstractmethod
    def generate(self, prompt: str, conversation: List[Dict[str, str]]) -> AsyncIterator[ResponseChunk]:
        """Stream the answer for a fully built prompt / conversation."""


class EmbeddedModelBackend(ChatBackend):
    """
    Wraps an injected inference binding exposing
    ``create_from_options(options) -> handle`` and
    ``handle.generate_response(prompt, on_partial(text, done))``.
    Either call may be synchronous or a coroutine.
    """

    name = "embedded"
    fallback_chunking = "words"

    def __init__(self, binding: Any, options: EmbeddedModelOptions):
        self._binding = binding
        self.options = options
        self._handle: Any = None

    async def initialize(self) -> bool:
        try:
            handle = self._binding.create_from_options(self.options)
            if inspect.isawaitable(handle):
                handle = await handle
        except Exception as e:
            logger.warning("Embedded model initialization failed: %s", e)
            self._handle = None
            return False
        self._handle = handle
        logger.info("Embedded model initialized from %s", self.options.model_asset_path)
        return True

    @property
    def ready(self) -> bool:
        return self._handle is not None

    async def generate(self, prompt: str, conversation: List[Dict[str, str]]) -> AsyncIterator[ResponseChunk]:
        if self._handle is None:
            raise LLMBackendError("Embedded model is not initialized")

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def on_partial(text: Optional[str], done: bool) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, ResponseChunk(text or "", bool(done)))

        generate_response = self._handle.generate_response
        if inspect.iscoroutinefunction(generate_response):
            task = asyncio.ensure_future(generate_response(prompt, on_partial))
        else:
            task = asyncio.ensure_future(asyncio.to_thread(generate_response, prompt, on_partial))

        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
                if not getter.done():
                    getter.cancel()
                    break
                chunk = getter.result()
                yield chunk
                if chunk.done:
                    return

            # The binding returned (or failed); deliver what it already produced
            while not queue.empty():
                chunk = queue.get_nowait()
                yield chunk
                if chunk.done:
                    return
            exc = task.exception()
            if exc is not None:
                raise LLMBackendError(f"Embedded generation failed: {exc}") from exc
            yield ResponseChunk("", True)
        finally:
            if not task.done():
                task.cancel()


class RemoteChatBackend(ChatBackend):
    """Streams from an Ollama-style ``/api/chat`` endpoint."""

    name = "remote"
    fallback_chunking = "slices"

    def __init__(
        self,
        api_url: str,
        model: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def ping(self) -> bool:
        """Check whether the server answers its model listing endpoint."""
        try:
            async with self._client() as client:
                response = await client.get(self.api_url.replace("/chat", "/tags"))
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def generate(self, prompt: str, conversation: List[Dict[str, str]]) -> AsyncIterator[ResponseChunk]:
        payload = {
            "model": self.model,
            "messages": conversation,
            "stream": True,
        }
        try:
            async with self._client() as client:
                async with client.stream("POST", self.api_url, json=payload) as response:
                    if not response.is_success:
                        raise LLMBackendError(
                            f"Chat endpoint returned HTTP {response.status_code}"
                        )
                    async for line in response.aiter_lines():
                        if not line.strip():
                            continue
                        try:
                            data = json.loads(line)
                        except json.JSONDecodeError:
                            logger.warning("Skipping malformed stream line: %.200s", line)
                            continue
                        if not isinstance(data, dict):
                            logger.warning("Skipping unexpected stream line: %.200s", line)
                            continue

                        message = data.get("message") or {}
                        content = (message.get("content") or "") if isinstance(message, dict) else ""
                        done = bool(data.get("done"))
                        if content or done:
                            yield ResponseChunk(content, done)
                        if done:
                            return
        except httpx.HTTPError as e:
            raise LLMBackendError(f"{type(e).__name__}: {e}") from e

        logger.warning("Chat stream closed without a done marker")
        yield ResponseChunk("", True)


def build_backends(
    settings: Settings,
    binding: Any = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[ChatBackend]:
    """Candidate backends for the configured LLM_BACKEND, in preference order."""
    mode = settings.LLM_BACKEND.lower()
    if mode not in VALID_BACKENDS:
        raise ValueError(f"Invalid LLM_BACKEND: {settings.LLM_BACKEND}. Must be one of {VALID_BACKENDS}")

    candidates: List[ChatBackend] = []
    if mode in ("auto", "embedded"):
        if binding is not None:
            candidates.append(EmbeddedModelBackend(binding, EmbeddedModelOptions.from_settings(settings)))
        elif mode == "embedded":
            logger.warning("LLM_BACKEND=embedded but no inference binding was provided")
    if mode in ("auto", "remote") and settings.OLLAMA_API_URL:
        candidates.append(RemoteChatBackend(
            settings.OLLAMA_API_URL,
            settings.OLLAMA_MODEL,
            timeout=settings.REMOTE_TIMEOUT_SECONDS,
            transport=transport,
        ))
    return candidates


# ─── Prompt building ─────────────────────────────────────────────────

def last_user_message(messages: List[ChatMessage]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


def build_context_block(
    context: ContextualData,
    history: Optional[List[SystemStateRecord]] = None,
) -> str:
    """Serialize live readings, insights, anomalies, part and history."""
    text = ""

    reading = context.latest_reading
    if reading is not None:
        text += "\nCurrent sensor data:\n"
        text += (
            f"- Servo Motor: Voltage {reading.servo_motor_voltage:.2f}V, "
            f"Speed {reading.servo_motor_speed:.0f} RPM, "
            f"Vibration {reading.servo_motor_vibration:.2f} mm/s\n"
        )
        text += (
            f"- Tooling: Vibration {reading.tooling_vibration:.2f} mm/s, "
            f"Wear Level {reading.tool_wear_level:.1f}%\n"
        )
        text += (
            f"- Coolant: Supply {reading.tool_coolant_supply_level:.1f}%, "
            f"Reservoir {reading.coolant_reservoir_level:.1f}%, "
            f"Flow Rate {reading.coolant_flow_rate:.1f} L/min\n"
        )
        text += (
            f"- Base Plate: Pressure {reading.base_plate_pressure:.1f} psi, "
            f"Vibration {reading.base_plate_vibration:.2f} mm/s, "
            f"Coolant Distribution {reading.base_plate_coolant_distribution:.1f}%\n"
        )

    if context.insights:
        text += "\nCurrent insights:\n"
        for insight in context.insights:
            text += f"- {insight}\n"

    active = [a for a in context.anomalies if not a.is_normal]
    if active:
        text += "\nActive anomalies:\n"
        for anomaly in active:
            text += (
                f"- {anomaly.name} ({anomaly.severity.value.upper()}) on "
                f"{anomaly.affected_component}: {anomaly.description}\n"
            )

    part = context.part
    if part is not None:
        text += f"\nSelected part: {part.name} (ID: {part.id})\n"
        text += f"- Material: {part.material}\n"
        text += f"- Last machined: {part.last_machined.strftime('%a %b %d %Y')}\n"
        text += f"- Operation time: {part.operation_time:g} minutes\n"

    if len(context.sensor_readings) > 1:
        text += format_trend_summary(summarize_readings(context.sensor_readings))

    if history is not None:
        text += "\n" + format_system_history(history) + "\n"

    return text


def build_prompt(
    messages: List[ChatMessage],
    context: ContextualData,
    history: Optional[List[SystemStateRecord]] = None,
) -> str:
    """Single-string prompt for the embedded model."""
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"{build_context_block(context, history)}\n\n"
        "Given the context above, provide a clear and concise response to the user's "
        "message. Highlight any important areas to examine or actions to take.\n\n"
        f"User's message: {last_user_message(messages)}\n\n"
        f"{RESPONSE_GUIDELINES}\n\n"
        "Your response:"
    )


def build_conversation(
    messages: List[ChatMessage],
    context: ContextualData,
    history: Optional[List[SystemStateRecord]] = None,
) -> List[Dict[str, str]]:
    """Chat-completion messages: a system turn with the context, then the chat."""
    system = (
        f"{SYSTEM_PROMPT}\n\n--- MACHINE CONTEXT ---\n"
        f"{build_context_block(context, history)}\n{RESPONSE_GUIDELINES}"
    )
    conversation = [{"role": "system", "content": system}]
    for message in messages:
        if message.role in ("user", "assistant"):
            conversation.append({"role": message.role, "content": message.content})
    return conversation


# ─── Streamer ────────────────────────────────────────────────────────

class ResponseStreamer:
    """Runs one chat exchange against the selected backend."""

    def __init__(
        self,
        backend: Optional[ChatBackend] = None,
        history: Optional[SystemHistory] = None,
        chunk_delay: float = 0.03,
        slice_size: int = 12,
    ):
        self.backend = backend
        self.history = history
        self.chunk_delay = chunk_delay
        self.slice_size = slice_size

    @classmethod
    async def create(
        cls,
        settings: Settings,
        history: Optional[SystemHistory] = None,
        binding: Any = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ResponseStreamer":
        """Pick the first candidate backend that initializes, else fallback."""
        backend = None
        for candidate in build_backends(settings, binding=binding, transport=transport):
            if await candidate.initialize():
                backend = candidate
                break
        logger.info("Chat backend: %s", backend.name if backend else "fallback")
        return cls(
            backend=backend,
            history=history,
            chunk_delay=settings.FALLBACK_CHUNK_DELAY,
            slice_size=settings.FALLBACK_SLICE_SIZE,
        )

    @property
    def mode(self) -> str:
        if self.backend is not None and self.backend.ready:
            return self.backend.name
        return "fallback"

    async def stream_response(
        self,
        messages: List[ChatMessage],
        context: Optional[ContextualData] = None,
    ) -> AsyncIterator[ResponseChunk]:
        """Yield the answer's increments; the last (and only the last) is done."""
        context = context or ContextualData()
        history = self.history.query() if self.history is not None else None
        user_message = last_user_message(messages)

        backend = self.backend if self.backend is not None and self.backend.ready else None
        if backend is None:
            logger.info("Using fallback response mode")
            async for chunk in self._fallback(user_message, context, history, "words"):
                yield chunk
            return

        prompt = build_prompt(messages, context, history)
        conversation = build_conversation(messages, context, history)
        logger.debug("Prompt for %s backend: %d characters", backend.name, len(prompt))

        finished = False
        try:
            async for chunk in backend.generate(prompt, conversation):
                if finished:
                    logger.debug("Dropping %s chunk received after the final one", backend.name)
                    continue
                yield chunk
                finished = chunk.done
        except Exception as e:
            if finished:
                logger.warning("%s backend failed after completing: %s", backend.name, e)
                return
            logger.error("%s backend failed, using fallback: %s", backend.name, e)
            async for chunk in self._fallback(user_message, context, history, backend.fallback_chunking):
                yield chunk
            return

        if not finished:
            yield ResponseChunk("", True)

    async def _fallback(
        self,
        user_message: str,
        context: ContextualData,
        history: Optional[List[SystemStateRecord]],
        chunking: str,
    ) -> AsyncIterator[ResponseChunk]:
        try:
            text = fallback_response(user_message, context, history)
            if chunking == "slices":
                pieces = split_slices(text, self.slice_size)
            else:
                pieces = split_words(text)
        except Exception as e:
            logger.error("Fallback responder failed: %s", e)
            yield ResponseChunk(ERROR_MESSAGE, True)
            return

        for i, piece in enumerate(pieces):
            last = i == len(pieces) - 1
            yield ResponseChunk(piece, last)
            if not last and self.chunk_delay > 0:
                await asyncio.sleep(self.chunk_delay)

    async def stream(
        self,
        messages: List[ChatMessage],
        context: Optional[ContextualData],
        on_chunk: ChunkCallback,
    ) -> str:
        """Deliver every increment to ``on_chunk(text, is_final)``; return the full text."""
        parts = []
        async for chunk in self.stream_response(messages, context):
            parts.append(chunk.text)
            result = on_chunk(chunk.text, chunk.done)
            if inspect.isawaitable(result):
                await result
        return "".join(parts)
