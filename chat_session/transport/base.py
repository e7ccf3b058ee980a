"""Transport contract between the request controller and a backend."""

from collections.abc import AsyncIterator, Sequence
from typing import Protocol, runtime_checkable

from chat_session.models.schemas import HistoryItem, TransportEvent


@runtime_checkable
class Transport(Protocol):
    """A backend that answers one request with a stream of events.

    ``open`` returns an async iterator (normally an async generator) of
    chunk/done/error events in delivery order. The controller closes it with
    ``aclose()`` to cancel. Channel failures are raised as
    ``TransportError``.
    """

    def open(self, history: Sequence[HistoryItem], text: str) -> AsyncIterator[TransportEvent]:
        ...


async def close_stream(stream: AsyncIterator[TransportEvent]) -> None:
    """Close a transport channel if it supports ``aclose()``."""
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()
