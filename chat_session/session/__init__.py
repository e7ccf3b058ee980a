"""Chat session core: message ordering, request lifecycle and streaming.

Responsibilities:
    - Message store with stable ids and synchronous observers
    - One active turn per session, with cancellation, timeouts and retries
    - Folding streamed chunks into the assistant message
    - A facade for UIs and test harnesses

Transport-agnostic: any backend satisfying the chunk/done/error contract
can drive a session.
"""

from chat_session.session.config import SessionConfig, get_session_config
from chat_session.session.controller import RequestController, Turn, TurnState
from chat_session.session.decoder import CancelToken, DecodeResult, StreamDecoder
from chat_session.session.errors import (
    ChatSessionError,
    InvalidMessage,
    InvalidTransition,
    OutOfOrderChunk,
    ReentrantMutation,
    SessionBusy,
    SessionClosed,
    TransportError,
)
from chat_session.session.facade import CancelResult, ChatSession, SendResult
from chat_session.session.store import MessageStore

__all__ = [
    "CancelResult",
    "CancelToken",
    "ChatSession",
    "ChatSessionError",
    "DecodeResult",
    "InvalidMessage",
    "InvalidTransition",
    "MessageStore",
    "OutOfOrderChunk",
    "ReentrantMutation",
    "RequestController",
    "SendResult",
    "SessionBusy",
    "SessionClosed",
    "SessionConfig",
    "StreamDecoder",
    "Turn",
    "TurnState",
    "TransportError",
    "get_session_config",
]
