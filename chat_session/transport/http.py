"""HTTP transport consuming the ``/chat/stream`` Server-Sent Events endpoint."""

import contextlib
import logging
import os
from collections.abc import AsyncGenerator, Sequence

import httpx
from pydantic import ValidationError

from chat_session.models.schemas import (
    ChatRequest,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    HistoryItem,
    StreamChunk,
    TransportEvent,
)
from chat_session.session.errors import TransportError

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")


class HttpTransport:
    """Streams assistant replies from a remote chat API.

    Args:
        base_url: API root; defaults to ``API_BASE_URL``.
        client: Optional shared AsyncClient (owned by the caller).
        timeout: Request timeout when this transport creates its own client.
        session_id: Forwarded to the server for conversation continuity.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
        session_id: str | None = None,
    ) -> None:
        self._base_url = (base_url or API_BASE_URL).rstrip("/")
        self._client = client
        self._timeout = timeout
        self._session_id = session_id

    def _client_context(self) -> contextlib.AbstractAsyncContextManager[httpx.AsyncClient]:
        if self._client is not None:
            return contextlib.nullcontext(self._client)
        return httpx.AsyncClient(timeout=self._timeout)

    async def open(
        self,
        history: Sequence[HistoryItem],
        text: str,
    ) -> AsyncGenerator[TransportEvent, None]:
        request = ChatRequest(message=text, session_id=self._session_id, history=list(history))

        try:
            async with (
                self._client_context() as client,
                client.stream(
                    "POST",
                    f"{self._base_url}/chat/stream",
                    json=request.model_dump(mode="json"),
                    headers={"Accept": "text/event-stream"},
                ) as response,
            ):
                if response.status_code >= 500:
                    raise TransportError(f"HTTP {response.status_code}")
                if response.status_code >= 400:
                    yield ErrorEvent(reason=f"HTTP {response.status_code}")
                    return

                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    try:
                        chunk = StreamChunk.model_validate_json(line.removeprefix("data: "))
                    except ValidationError as e:
                        logger.warning(f"Malformed stream frame: {e}")
                        yield ErrorEvent(reason="Malformed stream frame")
                        return
                    if chunk.error:
                        yield ErrorEvent(reason=chunk.error)
                        return
                    if chunk.done:
                        yield DoneEvent()
                        return
                    yield ChunkEvent(text=chunk.content, seq=chunk.seq)
        except httpx.RequestError as e:
            raise TransportError(f"Connection failed: {e}") from e
