"""Backends that answer a chat request with a stream of events.

Every transport satisfies the same contract: ``open(history, text)``
returns an async iterator of chunk/done/error events, closable by the
caller for cancellation.

Transports:
    - HttpTransport: Consumes the SSE endpoint of a remote chat API
    - PlaceholderTransport: Simulated reply after a fixed delay
    - AgentService (chat_session.agent): Agno agent over an LLM
"""

from chat_session.session.errors import TransportError
from chat_session.transport.base import Transport
from chat_session.transport.http import HttpTransport
from chat_session.transport.placeholder import PlaceholderTransport, placeholder_reply

__all__ = [
    "HttpTransport",
    "PlaceholderTransport",
    "Transport",
    "TransportError",
    "placeholder_reply",
]
