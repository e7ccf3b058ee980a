from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Speaker of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageStatus(str, Enum):
    """Lifecycle status of a stored message."""

    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Why an assistant message ended in the failed status."""

    CANCELLED = "cancelled"
    TIMEOUT = "timeout"
    ERROR = "error"
    OUT_OF_ORDER = "out_of_order"
    TRANSPORT = "transport"
    CLOSED = "closed"


class Message(BaseModel):
    """A single message in the conversation.

    Messages are immutable values. The message store replaces an entry with
    an updated copy instead of mutating it, so snapshots handed to observers
    never change underneath them.

    Attributes:
        id: Store-assigned identifier; ids sort in creation order.
        role: The speaker (user or assistant).
        content: The message text accumulated so far.
        status: Lifecycle status.
        created_at: Creation timestamp.
        reason: Failure reason when status is failed.
        error: Human-readable failure detail, if any.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    role: Role
    content: str = ""
    status: MessageStatus = MessageStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    reason: FailureReason | None = None
    error: str | None = None


class MessageUpdate(BaseModel):
    """Notification delivered to store observers after every mutation.

    Attributes:
        kind: "appended" for new messages, "updated" for content/status changes.
        message: The message as it is after the mutation.
        messages: Snapshot of the whole conversation after the mutation.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["appended", "updated"]
    message: Message
    messages: tuple[Message, ...]


class ChunkEvent(BaseModel):
    """A fragment of assistant text, optionally carrying a sequence number."""

    type: Literal["chunk"] = "chunk"
    text: str
    seq: int | None = None


class DoneEvent(BaseModel):
    """Terminal marker: the response finished successfully."""

    type: Literal["done"] = "done"


class ErrorEvent(BaseModel):
    """Terminal marker: the backend reported an error."""

    type: Literal["error"] = "error"
    reason: str


TransportEvent = Annotated[ChunkEvent | DoneEvent | ErrorEvent, Field(discriminator="type")]


class HistoryItem(BaseModel):
    """Prior conversation entry sent along with a new request."""

    role: Role
    content: str


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    RECEIVED = "received"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class ChatRequest(BaseModel):
    """Request payload for the streaming chat endpoint.

    Attributes:
        message: User's question or prompt.
        session_id: Optional session for conversation continuity.
        history: Completed messages preceding this request.
    """

    message: str = Field(..., min_length=1)
    session_id: str | None = None
    history: list[HistoryItem] = Field(default_factory=list)

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text content of this chunk.
        done: Whether this is the final chunk.
        seq: Position of a content chunk within the response.
        status: Current processing status (received, generating, complete, error).
        error: Error message if something went wrong.
    """

    content: str
    done: bool
    seq: int | None = None
    status: StreamStatus | None = None
    error: str | None = None
