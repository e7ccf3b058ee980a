"""Agno agent backend with streaming support.

Wraps an Agno ``Agent`` over an OpenAI-compatible model and exposes it
through the transport contract, so the streaming API (or a session running
in-process) can use it like any other backend.

Architecture Decisions:

1. **Stateless agent** - Conversation state lives in the session's message
   store. Each request carries its own history, so the agent needs no
   storage of its own and any API worker can answer any request.

2. **Singleton Pattern** - Agent initialization is expensive (model client
   setup). The singleton reuses one agent across requests.

3. **Service Wrapper** - Decouples the transport contract from Agno's
   interface. If Agno's API changes we only fix one place.

4. **Errors as TransportError** - Model/API failures surface as transport
   failures, which the request controller retries or records on the
   assistant message. Nothing is folded into the reply text.
"""

import logging
from collections.abc import AsyncGenerator, Sequence

from agno.agent import Agent
from agno.models.message import Message as AgnoMessage
from agno.models.openai import OpenAIChat

from chat_session.agent.config import AgentConfig, get_agent_config
from chat_session.models.schemas import (
    ChunkEvent,
    DoneEvent,
    HistoryItem,
    TransportEvent,
)
from chat_session.session.errors import TransportError

logger = logging.getLogger(__name__)


class AgentService:
    """Service for streaming replies from the Agno chat agent.

    Wraps Agno's Agent with:
    - OpenAI or OpenAI-compatible model configuration
    - Per-request conversation history
    - Singleton lifecycle management
    - The chunk/done transport contract
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._agent = self._create_agent()

    def _create_agent(self) -> Agent:
        """Create the Agno agent instance.

        Returns:
            Configured Agent with OpenAI model.
        """
        model = OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
        )

        return Agent(
            model=model,
            description="A helpful chat assistant.",
            instructions=[
                "Provide helpful and accurate responses.",
                "Be concise yet thorough.",
            ],
            markdown=False,
        )

    @staticmethod
    def _build_input(history: Sequence[HistoryItem], text: str) -> list[AgnoMessage]:
        messages = [AgnoMessage(role=item.role.value, content=item.content) for item in history]
        messages.append(AgnoMessage(role="user", content=text))
        return messages

    async def open(
        self,
        history: Sequence[HistoryItem],
        text: str,
    ) -> AsyncGenerator[TransportEvent, None]:
        """Stream response events for a message.

        Args:
            history: Completed messages preceding this request.
            text: The user's message.

        Yields:
            One ChunkEvent per model content chunk, then a DoneEvent.

        Raises:
            TransportError: If the model call fails.
        """
        seq = 0
        try:
            response_stream = self._agent.arun(self._build_input(history, text), stream=True)

            async for chunk in response_stream:
                content = getattr(chunk, "content", None)
                if isinstance(content, str) and content:
                    yield ChunkEvent(text=content, seq=seq)
                    seq += 1

        except TransportError:
            raise
        except Exception as e:
            logger.error(f"Agent stream failed after {seq} chunks: {e}")
            raise TransportError(f"Model request failed: {e}") from e

        yield DoneEvent()


# Module-level singleton instance
_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    """Get or create the global agent service.

    Uses singleton pattern for resource efficiency.

    Returns:
        The AgentService instance.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
