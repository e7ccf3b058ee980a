"""Session configuration with environment variable loading.

Timeouts are in seconds; ``None`` disables the corresponding bound.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


def _env_timeout(name: str, default: float) -> float | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    if value.strip().lower() in ("none", "off", "0"):
        return None
    return float(value)


class SessionConfig(BaseModel):
    """Request lifecycle policy for a chat session.

    Attributes:
        first_chunk_timeout: Bound on submit -> first accepted chunk.
        per_chunk_timeout: Bound on the gap between accepted chunks.
        max_retries: Retries for transport failures before the first chunk.
        retry_delay: Initial backoff delay.
        retry_multiplier: Backoff growth factor per retry.
        history_limit: Completed messages sent along with a request.
    """

    first_chunk_timeout: float | None = Field(
        default_factory=lambda: _env_timeout("CHAT_FIRST_CHUNK_TIMEOUT", 30.0),
        gt=0.0,
        description="Seconds allowed from submit to the first chunk",
    )
    per_chunk_timeout: float | None = Field(
        default_factory=lambda: _env_timeout("CHAT_PER_CHUNK_TIMEOUT", 15.0),
        gt=0.0,
        description="Seconds allowed between successive chunks",
    )
    max_retries: int = Field(
        default_factory=lambda: int(os.getenv("CHAT_MAX_RETRIES", "2")),
        ge=0,
        le=10,
        description="Retries for transport failures before any chunk arrives",
    )
    retry_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Initial retry backoff delay in seconds",
    )
    retry_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Backoff multiplier applied after each retry",
    )
    history_limit: int = Field(
        default=20,
        ge=0,
        description="Number of prior completed messages sent with a request",
    )


def get_session_config() -> SessionConfig:
    """Create session configuration from environment.

    Returns:
        Configured SessionConfig instance.
    """
    return SessionConfig()
