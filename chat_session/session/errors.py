"""Exceptions raised by the chat session core.

Turn-level failures never reach the caller as exceptions: they are recorded
on the assistant message as ``status=failed`` with a reason. The exceptions
below either describe API misuse (returned inside result objects by the
session facade) or are raised internally between components.
"""


class ChatSessionError(Exception):
    """Base class for chat session errors."""

    pass


class SessionBusy(ChatSessionError):
    """Raised when a message is submitted while another turn is active."""

    pass


class SessionClosed(ChatSessionError):
    """Raised when a closed session receives a new submission."""

    pass


class InvalidMessage(ChatSessionError):
    """Raised when submitted text is empty after trimming."""

    pass


class InvalidTransition(ChatSessionError):
    """Raised when a store update breaks the message lifecycle."""

    pass


class ReentrantMutation(InvalidTransition):
    """Raised when an observer mutates the store during notification."""

    pass


class OutOfOrderChunk(ChatSessionError):
    """Raised when a chunk sequence number is duplicated or out of order."""

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"Expected chunk {expected}, received {received}")


class TransportError(ChatSessionError):
    """Raised by a transport when the channel itself fails.

    Attributes:
        retriable: Whether the controller may retry the request.
    """

    def __init__(self, message: str, retriable: bool = True) -> None:
        self.retriable = retriable
        super().__init__(message)
