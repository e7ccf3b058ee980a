"""Unit tests for individual components in isolation.

Coverage:
    - session/: Message store, stream decoding, request lifecycle
    - transport/: Placeholder and HTTP transports
    - agent/: Agent configuration and event mapping

Uses mocks for the model and HTTP layer. Leverages pytest-check for
multiple assertions per test.
"""
