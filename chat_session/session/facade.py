"""Public API of a chat session.

``ChatSession`` composes the message store and the request controller for
a caller such as a UI or a test harness. Misuse of the API is reported in
result objects instead of raised; a failed turn shows up as an assistant
message with ``status=failed``.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType

from pydantic import ValidationError

from chat_session.models.schemas import ChatRequest, Message, MessageUpdate
from chat_session.session.config import SessionConfig
from chat_session.session.controller import RequestController, Turn, TurnState
from chat_session.session.errors import (
    ChatSessionError,
    InvalidMessage,
    SessionBusy,
    SessionClosed,
)
from chat_session.session.store import MessageStore
from chat_session.transport.base import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    """Outcome of ``send_message``: a turn handle or the reason it was rejected."""

    turn: Turn | None = None
    error: ChatSessionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CancelResult:
    """Outcome of ``cancel_active``; ``cancelled`` is False for a no-op."""

    cancelled: bool
    request_id: str | None = None


class ChatSession:
    """A single conversation with at most one active turn.

    Args:
        transport: Backend answering each turn.
        config: Timeout and retry policy; loaded from environment if omitted.
    """

    def __init__(self, transport: Transport, config: SessionConfig | None = None) -> None:
        self._store = MessageStore()
        self._controller = RequestController(self._store, transport, config)

    async def __aenter__(self) -> "ChatSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def state(self) -> TurnState:
        return self._controller.state

    @property
    def active_turn(self) -> Turn | None:
        return self._controller.active_turn

    def send_message(self, text: str) -> SendResult:
        """Submit user text and start a turn.

        Args:
            text: The user's message; must be non-empty after trimming.

        Returns:
            SendResult holding the Turn, or an InvalidMessage, SessionBusy or
            SessionClosed error. The store is unchanged on rejection.
        """
        try:
            request = ChatRequest(message=text)
        except ValidationError:
            return SendResult(error=InvalidMessage("Message must not be empty"))

        try:
            turn = self._controller.submit(request.message)
        except (SessionBusy, SessionClosed) as e:
            logger.info(f"Rejected message: {e}")
            return SendResult(error=e)
        return SendResult(turn=turn)

    def cancel_active(self) -> CancelResult:
        """Cancel the active turn; a no-op result when nothing is active."""
        turn = self._controller.active_turn
        if turn is None or not self._controller.cancel():
            return CancelResult(cancelled=False)
        return CancelResult(cancelled=True, request_id=turn.request_id)

    def history(self) -> tuple[Message, ...]:
        """Snapshot of the conversation in display order."""
        return self._store.list()

    def on_update(self, observer: Callable[[MessageUpdate], None]) -> Callable[[], None]:
        """Register ``observer`` for every store change; returns an unsubscribe callable."""
        return self._store.subscribe(observer)

    async def close(self) -> None:
        """Cancel any active turn and reject further messages."""
        await self._controller.close()
