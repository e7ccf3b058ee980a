"""Integration tests for components working together as a system.

Coverage:
    - /chat/stream framing, validation and error reporting
    - ChatSession over HttpTransport against the in-process API

Runs the FastAPI app through httpx's ASGITransport with the backend
swapped via dependency overrides.
"""
