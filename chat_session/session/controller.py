"""Request lifecycle controller: one outstanding turn at a time.

The controller appends the turn's messages, drives the transport channel
on the running asyncio loop, enforces timeouts and retries, and reconciles
every outcome into the message store. Failures of a turn never propagate to
the caller; they end as an assistant message with ``status=failed``.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum

from chat_session.models.schemas import (
    FailureReason,
    HistoryItem,
    Message,
    MessageStatus,
    Role,
    TransportEvent,
)
from chat_session.session.config import SessionConfig, get_session_config
from chat_session.session.decoder import CancelToken, DecodeResult, StreamDecoder
from chat_session.session.errors import SessionBusy, SessionClosed, TransportError
from chat_session.session.store import MessageStore
from chat_session.transport.base import Transport, close_stream

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Controller lifecycle states."""

    IDLE = "idle"
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


_ACTIVE_STATES = frozenset({TurnState.PENDING, TurnState.STREAMING})


class _DeadlineExceeded(Exception):
    """Internal signal: the first-chunk or per-chunk window expired."""


@dataclass
class Turn:
    """Handle for one user submission and the assistant reply it provokes.

    Attributes:
        request_id: Correlates the turn with its transport request.
        user_message_id: Id of the user's message in the store.
        assistant_message_id: Id of the assistant message in the store.
        token: Cooperative cancellation token for this turn.
        attempts: Transport requests opened so far (1 + retries).
        outcome: Terminal state once the turn has finished.
    """

    request_id: str
    user_message_id: str
    assistant_message_id: str
    token: CancelToken = field(default_factory=CancelToken)
    attempts: int = 0
    outcome: TurnState | None = None
    _store: MessageStore | None = field(default=None, repr=False)
    _task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.outcome is not None

    async def wait(self) -> Message:
        """Wait for the turn to finish and return the final assistant message."""
        if self._task is not None:
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                # A cancelled turn task is expected; cancellation of the waiter is not
                if not self._task.cancelled():
                    raise
        message = self._store.get(self.assistant_message_id) if self._store else None
        if message is None:
            raise LookupError(f"Assistant message {self.assistant_message_id} not found")
        return message


class RequestController:
    """Owns the single active turn of a session.

    Args:
        store: Message store the turn writes into.
        transport: Backend that answers requests.
        config: Timeout and retry policy; loaded from environment if omitted.
    """

    def __init__(
        self,
        store: MessageStore,
        transport: Transport,
        config: SessionConfig | None = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._config = config or get_session_config()
        self._state = TurnState.IDLE
        self._turn: Turn | None = None
        self._closed = False

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def active_turn(self) -> Turn | None:
        return self._turn if self._state in _ACTIVE_STATES else None

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, text: str) -> Turn:
        """Start a new turn for ``text``.

        Must be called from within a running event loop.

        Args:
            text: The user's message.

        Returns:
            The Turn handle.

        Raises:
            SessionBusy: If a turn is already active.
            SessionClosed: If the session was closed.
        """
        if self._closed:
            raise SessionClosed("Session is closed")
        if self._state is not TurnState.IDLE:
            raise SessionBusy(f"A turn is already {self._state.value}")

        loop = asyncio.get_running_loop()
        history = self._history()

        user_id = self._store.append(
            Message(role=Role.USER, content=text, status=MessageStatus.COMPLETE)
        )
        assistant_id = self._store.append(
            Message(role=Role.ASSISTANT, content="", status=MessageStatus.PENDING)
        )
        turn = Turn(
            request_id=uuid.uuid4().hex,
            user_message_id=user_id,
            assistant_message_id=assistant_id,
            _store=self._store,
        )
        self._turn = turn
        self._state = TurnState.PENDING
        turn._task = loop.create_task(self._run(turn, history, text))
        logger.info(f"Started turn {turn.request_id} ({len(history)} history messages)")
        return turn

    def cancel(self) -> bool:
        """Cancel the active turn.

        Returns:
            True if a turn was cancelled, False if there was nothing to cancel.
        """
        turn = self.active_turn
        if turn is None:
            return False
        try:
            self._abort(turn, FailureReason.CANCELLED, "Cancelled by user")
        finally:
            if turn._task is not None and not turn._task.done():
                turn._task.cancel()
        return True

    async def close(self) -> None:
        """Cancel any active turn and reject further submissions."""
        self._closed = True
        turn = self._turn
        self.cancel()
        if turn is not None and turn._task is not None:
            await turn.wait()
        logger.info("Request controller closed")

    def _history(self) -> list[HistoryItem]:
        limit = self._config.history_limit
        if limit == 0:
            return []
        completed = [
            HistoryItem(role=m.role, content=m.content)
            for m in self._store.list()
            if m.status is MessageStatus.COMPLETE
        ]
        return completed[-limit:]

    def _is_current(self, turn: Turn) -> bool:
        return self._turn is turn and self._state in _ACTIVE_STATES

    def _finish(self, turn: Turn, outcome: TurnState) -> None:
        turn.outcome = outcome
        self._state = outcome
        logger.info(f"Turn {turn.request_id} finished: {outcome.value}")
        self._state = TurnState.IDLE

    def _abort(self, turn: Turn, reason: FailureReason, error: str) -> None:
        """Stop the turn and record ``reason`` on its assistant message."""
        turn.token.cancel()
        try:
            self._mark_failed(turn, reason, error)
        finally:
            self._finish(turn, TurnState.CANCELLED)

    def _fail(self, turn: Turn, reason: FailureReason, error: str) -> None:
        try:
            self._mark_failed(turn, reason, error)
        finally:
            self._finish(turn, TurnState.FAILED)

    def _mark_failed(self, turn: Turn, reason: FailureReason, error: str) -> None:
        message = self._store.get(turn.assistant_message_id)
        if message is not None and message.status in (
            MessageStatus.PENDING,
            MessageStatus.STREAMING,
        ):
            self._store.update_content(
                turn.assistant_message_id,
                message.content,
                MessageStatus.FAILED,
                reason=reason,
                error=error,
            )

    async def _run(self, turn: Turn, history: list[HistoryItem], text: str) -> None:
        loop = asyncio.get_running_loop()
        config = self._config
        decoder = StreamDecoder(self._store, turn.assistant_message_id, turn.token)
        first_deadline = (
            loop.time() + config.first_chunk_timeout
            if config.first_chunk_timeout is not None
            else None
        )
        delay = config.retry_delay

        try:
            while True:
                turn.attempts += 1
                stream = None
                try:
                    stream = self._transport.open(history, text)
                    result = await self._consume(turn, decoder, stream, first_deadline)
                except TransportError as e:
                    if (
                        e.retriable
                        and decoder.accepted == 0
                        and turn.attempts <= config.max_retries
                    ):
                        logger.warning(
                            f"Transport failed for turn {turn.request_id} "
                            f"(attempt {turn.attempts}/{config.max_retries + 1}): {e}, "
                            f"retrying in {delay}s..."
                        )
                        await self._backoff(delay, first_deadline)
                        delay *= config.retry_multiplier
                        continue
                    logger.warning(f"Transport failed for turn {turn.request_id}: {e}")
                    if self._is_current(turn):
                        self._fail(turn, FailureReason.TRANSPORT, str(e))
                    return
                finally:
                    if stream is not None:
                        await close_stream(stream)

                if result is None:
                    return
                if self._is_current(turn):
                    outcome = (
                        TurnState.COMPLETE if result is DecodeResult.COMPLETE else TurnState.FAILED
                    )
                    self._finish(turn, outcome)
                return
        except _DeadlineExceeded:
            if self._is_current(turn):
                logger.warning(f"Turn {turn.request_id} timed out")
                self._abort(turn, FailureReason.TIMEOUT, "Timed out waiting for response")
        except asyncio.CancelledError:
            if not turn.token.cancelled and self._is_current(turn):
                self._abort(turn, FailureReason.CANCELLED, "Request task cancelled")
            raise
        except Exception as e:
            logger.exception(f"Turn {turn.request_id} failed unexpectedly")
            if self._is_current(turn):
                self._fail(turn, FailureReason.ERROR, str(e))

    async def _consume(
        self,
        turn: Turn,
        decoder: StreamDecoder,
        stream: AsyncIterator[TransportEvent],
        first_deadline: float | None,
    ) -> DecodeResult | None:
        """Feed events from one channel into the decoder.

        Returns:
            The decoder's terminal result, or None if the turn was stopped.
        """
        loop = asyncio.get_running_loop()
        per_chunk = self._config.per_chunk_timeout
        deadline = first_deadline
        accepted = decoder.accepted

        while True:
            if turn.token.cancelled:
                return None
            try:
                async with asyncio.timeout_at(deadline) as window:
                    event = await anext(stream)
            except StopAsyncIteration:
                self._mark_streaming(turn)
                return decoder.finish_unterminated()
            except TimeoutError:
                if window.expired():
                    raise _DeadlineExceeded() from None
                raise

            if turn.token.cancelled:
                return None
            result = decoder.feed(event)
            if decoder.accepted > accepted or result is not None:
                self._mark_streaming(turn)
            if result is not None:
                return result
            if decoder.accepted > accepted:
                accepted = decoder.accepted
                deadline = loop.time() + per_chunk if per_chunk is not None else None

    async def _backoff(self, delay: float, first_deadline: float | None) -> None:
        if first_deadline is not None:
            remaining = first_deadline - asyncio.get_running_loop().time()
            if remaining <= delay:
                await asyncio.sleep(max(remaining, 0.0))
                raise _DeadlineExceeded()
        await asyncio.sleep(delay)

    def _mark_streaming(self, turn: Turn) -> None:
        if self._is_current(turn) and self._state is TurnState.PENDING:
            self._state = TurnState.STREAMING


