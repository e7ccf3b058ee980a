"""Pydantic models for messages, transport events and API payloads.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Message: Immutable conversation entry with lifecycle status
    - MessageUpdate: Store change notification
    - ChunkEvent / DoneEvent / ErrorEvent: Transport event contract
    - ChatRequest: Incoming chat request payload
    - StreamChunk: Server-Sent Event frame
"""

from chat_session.models.schemas import (
    ChatRequest,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    FailureReason,
    HistoryItem,
    Message,
    MessageStatus,
    MessageUpdate,
    Role,
    StreamChunk,
    StreamStatus,
    TransportEvent,
)

__all__ = [
    "ChatRequest",
    "ChunkEvent",
    "DoneEvent",
    "ErrorEvent",
    "FailureReason",
    "HistoryItem",
    "Message",
    "MessageStatus",
    "MessageUpdate",
    "Role",
    "StreamChunk",
    "StreamStatus",
    "TransportEvent",
]
