"""Folds transport events into the assistant message of a turn.

The decoder is synchronous: the controller owns the channel and its timers
and hands each event over as it arrives. Every accepted fragment goes
through ``MessageStore.update_content``, which notifies observers with the
partial state.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import TypeAdapter, ValidationError

from chat_session.models.schemas import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    FailureReason,
    MessageStatus,
    TransportEvent,
)
from chat_session.session.errors import OutOfOrderChunk
from chat_session.session.store import MessageStore

logger = logging.getLogger(__name__)

_event_adapter: TypeAdapter[TransportEvent] = TypeAdapter(TransportEvent)


class DecodeResult(str, Enum):
    """Terminal outcome reported by the decoder."""

    COMPLETE = "complete"
    FAILED = "failed"


class CancelToken:
    """Cooperative cancellation flag shared by a turn's components."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


def parse_event(raw: TransportEvent | Mapping[str, Any]) -> TransportEvent:
    """Validate a raw ``{"type": ...}`` mapping into a transport event."""
    if isinstance(raw, ChunkEvent | DoneEvent | ErrorEvent):
        return raw
    return _event_adapter.validate_python(raw)


class StreamDecoder:
    """Applies chunk events to one assistant message in arrival order.

    Attributes:
        accepted: Number of non-empty fragments applied so far.
        content: The folded text.
    """

    def __init__(self, store: MessageStore, message_id: str, token: CancelToken) -> None:
        self._store = store
        self._message_id = message_id
        self._token = token
        self._last_seq: int | None = None
        self._result: DecodeResult | None = None
        self.accepted = 0
        self.content = ""

    @property
    def finished(self) -> bool:
        return self._result is not None

    def feed(self, raw: TransportEvent | Mapping[str, Any]) -> DecodeResult | None:
        """Apply one event.

        Args:
            raw: A transport event or an equivalent mapping.

        Returns:
            The terminal result once the message is finalized, otherwise None.
        """
        if self._result is not None or self._token.cancelled:
            return self._result

        try:
            event = parse_event(raw)
        except ValidationError as e:
            logger.warning(f"Malformed event for {self._message_id}: {e}")
            return self._fail(FailureReason.ERROR, "Malformed transport event")

        if isinstance(event, DoneEvent):
            return self._complete()
        if isinstance(event, ErrorEvent):
            return self._fail(FailureReason.ERROR, event.reason)

        if event.seq is not None:
            if self._last_seq is not None and event.seq != self._last_seq + 1:
                error = OutOfOrderChunk(expected=self._last_seq + 1, received=event.seq)
                logger.warning(f"Rejecting chunk for {self._message_id}: {error}")
                return self._fail(FailureReason.OUT_OF_ORDER, str(error))
            self._last_seq = event.seq

        if not event.text:
            return None

        self.content += event.text
        self.accepted += 1
        self._store.update_content(self._message_id, self.content, MessageStatus.STREAMING)
        return None

    def finish_unterminated(self) -> DecodeResult:
        """Finalize after the channel closed without a terminal marker."""
        if self._result is not None:
            return self._result
        return self._fail(FailureReason.CLOSED, "Response stream ended unexpectedly")

    def _complete(self) -> DecodeResult:
        message = self._store.get(self._message_id)
        if message is not None and message.status is MessageStatus.PENDING:
            self._store.update_content(self._message_id, self.content, MessageStatus.STREAMING)
        self._store.update_content(self._message_id, self.content, MessageStatus.COMPLETE)
        self._result = DecodeResult.COMPLETE
        return self._result

    def _fail(self, reason: FailureReason, error: str | None) -> DecodeResult:
        self._store.update_content(
            self._message_id,
            self.content,
            MessageStatus.FAILED,
            reason=reason,
            error=error,
        )
        self._result = DecodeResult.FAILED
        return self._result
