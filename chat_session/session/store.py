"""Ordered, append-only message log with synchronous observers."""

import itertools
import logging
from collections.abc import Callable, Iterator

from chat_session.models.schemas import (
    FailureReason,
    Message,
    MessageStatus,
    MessageUpdate,
)
from chat_session.session.errors import InvalidTransition, ReentrantMutation

logger = logging.getLogger(__name__)

Observer = Callable[[MessageUpdate], None]

# Allowed status edges for update_content
_TRANSITIONS: dict[MessageStatus, frozenset[MessageStatus]] = {
    MessageStatus.PENDING: frozenset({MessageStatus.STREAMING, MessageStatus.FAILED}),
    MessageStatus.STREAMING: frozenset(
        {MessageStatus.STREAMING, MessageStatus.COMPLETE, MessageStatus.FAILED}
    ),
}


class MessageStore:
    """Owns the conversation's messages in display order.

    Messages are frozen pydantic models; every mutation swaps in an updated
    copy and notifies observers with a fresh snapshot.
    """

    def __init__(self) -> None:
        self._messages: dict[str, Message] = {}
        self._order: list[str] = []
        self._observers: list[Observer] = []
        self._counter = itertools.count(1)
        self._notifying = False

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.list())

    def append(self, message: Message) -> str:
        """Store a new message and return its assigned id.

        The store owns identity: any id already set on ``message`` is
        replaced with the next id in creation order.

        Args:
            message: The message to append.

        Returns:
            The assigned message id.
        """
        self._guard()
        message_id = f"msg_{next(self._counter):08d}"
        stored = message.model_copy(update={"id": message_id})
        self._messages[message_id] = stored
        self._order.append(message_id)
        self._notify("appended", stored)
        return message_id

    def get(self, message_id: str) -> Message | None:
        """Return the message with ``message_id``, or None if unknown."""
        return self._messages.get(message_id)

    def update_content(
        self,
        message_id: str,
        content: str,
        status: MessageStatus,
        reason: FailureReason | None = None,
        error: str | None = None,
    ) -> Message:
        """Replace a message's content and status.

        Args:
            message_id: Target message.
            content: Full new content; must extend the current content.
            status: New status; must be a valid successor of the current one.
            reason: Failure reason, recorded when status is failed.
            error: Failure detail, recorded when status is failed.

        Returns:
            The updated message.

        Raises:
            InvalidTransition: If the message is unknown, already final, the
                status edge is not allowed, or the content change is illegal.
            ReentrantMutation: If called from inside an observer.
        """
        self._guard()
        current = self._messages.get(message_id)
        if current is None:
            raise InvalidTransition(f"Unknown message: {message_id}")

        allowed = _TRANSITIONS.get(current.status)
        if allowed is None:
            raise InvalidTransition(
                f"Message {message_id} is {current.status.value} and can no longer change"
            )
        if status not in allowed:
            raise InvalidTransition(
                f"Invalid transition for {message_id}: "
                f"{current.status.value} -> {status.value}"
            )

        if content != current.content:
            # Content only moves while streaming (the first chunk arrives with pending->streaming)
            if status is not MessageStatus.STREAMING and current.status is not MessageStatus.STREAMING:
                raise InvalidTransition(
                    f"Content of {message_id} cannot change while {current.status.value}"
                )
            if not content.startswith(current.content):
                raise InvalidTransition(f"Content of {message_id} is append-only")

        failed = status is MessageStatus.FAILED
        updated = current.model_copy(
            update={
                "content": content,
                "status": status,
                "reason": reason if failed else None,
                "error": error if failed else None,
            }
        )
        self._messages[message_id] = updated
        self._notify("updated", updated)
        return updated

    def list(self) -> tuple[Message, ...]:
        """Return a snapshot of all messages in display order."""
        return tuple(self._messages[message_id] for message_id in self._order)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer for every future mutation.

        Args:
            observer: Called synchronously with a MessageUpdate.

        Returns:
            A callable that removes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _guard(self) -> None:
        if self._notifying:
            raise ReentrantMutation("Store cannot be mutated from an observer")

    def _notify(self, kind: str, message: Message) -> None:
        if not self._observers:
            return
        update = MessageUpdate(kind=kind, message=message, messages=self.list())
        self._notifying = True
        try:
            for observer in list(self._observers):
                try:
                    observer(update)
                except ReentrantMutation:
                    raise
                except Exception:
                    logger.exception(f"Store observer failed on {kind} {message.id}")
        finally:
            self._notifying = False
