"""
AI Chat API

Conversational interface grounded in the live machine state. The chat
surface owns the conversation and posts it in full; answers come back
either whole or streamed as Server-Sent Events.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..models.chat import ChatMessage
from ..services.llm_service import RemoteChatBackend, ResponseStreamer
from ..services.monitor import MachineMonitor
from ..utils import sse_event
from .deps import get_monitor, get_streamer
from .schemas import ChatRequest, ChatResponse, ChatStatus

logger = logging.getLogger("cnc_navigator.chat")

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/status", response_model=ChatStatus)
async def get_chat_status(streamer: ResponseStreamer = Depends(get_streamer)):
    """Which backend answers questions, and whether it is usable right now."""
    mode = streamer.mode
    remote_reachable = None
    if isinstance(streamer.backend, RemoteChatBackend):
        remote_reachable = await streamer.backend.ping()

    if mode == "fallback":
        message = "Using fallback mode"
    elif remote_reachable is False:
        message = "Chat endpoint unreachable, answers will use fallback mode"
    else:
        message = f"{mode.capitalize()} model ready"

    return ChatStatus(
        backend=mode,
        ready=mode != "fallback" and remote_reachable is not False,
        remote_reachable=remote_reachable,
        message=message,
    )


@router.post("/", response_model=ChatResponse)
async def send_message(
    body: ChatRequest,
    monitor: MachineMonitor = Depends(get_monitor),
    streamer: ResponseStreamer = Depends(get_streamer),
):
    """Send the conversation and get the assistant's full answer."""
    messages = [m.to_message() for m in body.messages]
    context = monitor.build_context()

    content = await streamer.stream(messages, context, lambda text, done: None)
    reply = ChatMessage(role="assistant", content=content)

    return {
        "id": reply.id,
        "role": reply.role,
        "content": reply.content,
        "timestamp": reply.timestamp.isoformat(),
        "backend": streamer.mode,
    }


@router.post("/stream")
async def stream_message(
    body: ChatRequest,
    monitor: MachineMonitor = Depends(get_monitor),
    streamer: ResponseStreamer = Depends(get_streamer),
):
    """
    Stream the answer via Server-Sent Events.

    Events emitted:
      - chunk: { text, done }, one per increment; only the last has done=true
    """
    messages = [m.to_message() for m in body.messages]
    context = monitor.build_context()
    started = datetime.now()

    async def event_stream():
        total = 0
        async for chunk in streamer.stream_response(messages, context):
            total += len(chunk.text)
            yield sse_event("chunk", {"text": chunk.text, "done": chunk.done})
        logger.info(
            "Chat stream finished: %d characters in %.2fs via %s",
            total, (datetime.now() - started).total_seconds(), streamer.mode,
        )

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
