"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - fast_config: SessionConfig with short timeouts and no backoff delay
    - async_client: HTTPX client for API testing
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from chat_session.api import app
from chat_session.session.config import SessionConfig


@pytest.fixture
def fast_config() -> SessionConfig:
    """Session policy suited to tests: bounded timeouts, instant retries.

    Returns:
        SessionConfig with retries enabled and no backoff delay.
    """
    return SessionConfig(
        first_chunk_timeout=2.0,
        per_chunk_timeout=2.0,
        max_retries=2,
        retry_delay=0.0,
        retry_multiplier=2.0,
        history_limit=20,
    )


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
