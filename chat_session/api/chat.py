"""Streaming chat endpoint.

Answers a chat request with Server-Sent Events. Each frame is a
``StreamChunk`` serialized as JSON on a ``data:`` line.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from chat_session.models.schemas import (
    ChatRequest,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    StreamChunk,
    StreamStatus,
)
from chat_session.session.errors import TransportError
from chat_session.transport.base import Transport, close_stream
from chat_session.transport.placeholder import PlaceholderTransport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

# Module-level singleton backend
_backend: Transport | None = None


def get_backend_transport() -> Transport:
    """Return the backend answering chat requests.

    Uses the Agno agent when an LLM API key is configured, otherwise the
    placeholder responder.

    Returns:
        The shared backend transport.
    """
    global _backend
    if _backend is None:
        from chat_session.agent import get_agent_service, has_llm_api_key

        if has_llm_api_key():
            _backend = get_agent_service()
            logger.info("Chat backend: Agno agent")
        else:
            _backend = PlaceholderTransport()
            logger.info("Chat backend: placeholder (no LLM API key configured)")
    return _backend


def reset_backend_transport() -> None:
    """Drop the shared backend so the next request resolves it again."""
    global _backend
    _backend = None


def _frame(chunk: StreamChunk) -> str:
    return f"data: {chunk.model_dump_json()}\n\n"


async def stream_events(
    request: ChatRequest,
    backend: Transport,
) -> AsyncGenerator[str, None]:
    """Translate backend events into SSE frames.

    Args:
        request: The validated chat request.
        backend: Transport producing the reply.

    Yields:
        Encoded SSE frames.
    """
    yield _frame(StreamChunk(content="", done=False, status=StreamStatus.RECEIVED))

    seq = 0
    events = backend.open(request.history, request.message)
    try:
        async for event in events:
            if isinstance(event, ChunkEvent):
                if not event.text:
                    continue
                yield _frame(
                    StreamChunk(
                        content=event.text,
                        done=False,
                        seq=seq,
                        status=StreamStatus.GENERATING,
                    )
                )
                seq += 1
            elif isinstance(event, DoneEvent):
                yield _frame(StreamChunk(content="", done=True, status=StreamStatus.COMPLETE))
                return
            elif isinstance(event, ErrorEvent):
                yield _frame(
                    StreamChunk(content="", done=True, status=StreamStatus.ERROR, error=event.reason)
                )
                return
    except TransportError as e:
        logger.warning(f"Backend failed after {seq} chunks: {e}")
        yield _frame(StreamChunk(content="", done=True, status=StreamStatus.ERROR, error=str(e)))
    finally:
        await close_stream(events)


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    backend: Transport = Depends(get_backend_transport),
) -> StreamingResponse:
    """Stream an assistant reply as Server-Sent Events.

    Args:
        request: Message plus prior conversation history.
        backend: Injected backend transport.

    Returns:
        A text/event-stream response of StreamChunk frames.
    """
    logger.info(f"Chat request ({len(request.history)} history messages)")
    return StreamingResponse(
        stream_events(request, backend),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
