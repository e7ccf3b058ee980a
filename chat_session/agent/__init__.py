"""Agno agent backend for LLM-generated replies.

Responsibilities:
    - Agent initialization with OpenAI-compatible models
    - Turning request history into model input
    - Streaming model output through the transport contract

Leverages the Agno framework for agent lifecycle management.
Maintains clean separation from the HTTP layer and the session core.
"""

from chat_session.agent.chat_agent import AgentService, get_agent_service
from chat_session.agent.config import AgentConfig, get_agent_config, has_llm_api_key

__all__ = [
    "AgentConfig",
    "AgentService",
    "get_agent_config",
    "get_agent_service",
    "has_llm_api_key",
]
