"""Chat Session - request/response chat session manager.

Owns message ordering, the in-flight request lifecycle, retries,
cancellation and streaming-token delivery behind a chat screen.

Components:
    - session: Message store, request controller, stream decoder, facade
    - transport: HTTP, placeholder and agent backends
    - api: Streaming chat endpoint (Server-Sent Events)
    - agent: Agno agent backend for LLM replies
    - ui: NiceGUI chat page
    - models: Message, event and wire schemas
"""

__version__ = "0.1.0"
