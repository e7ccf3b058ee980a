"""Test package for the chat session manager.

Structure:
    - unit/: Store, decoder, controller, facade, transports and agent
    - integration/: The SSE endpoint and sessions driven over HTTP

Backends are replaced by ScriptedTransport (tests/support.py) so no LLM
is needed. Leverages pytest with pytest-check for soft assertions.
"""
