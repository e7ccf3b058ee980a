"""In-process placeholder backend.

Simulates an assistant reply after a fixed delay, echoing the user's text.
Used when no LLM is configured so the chat screen still works end to end.
"""

import asyncio
import logging
import os
import re
from collections.abc import AsyncGenerator, Sequence

from chat_session.models.schemas import ChunkEvent, DoneEvent, HistoryItem, TransportEvent

logger = logging.getLogger(__name__)

DEFAULT_REPLY_DELAY = 1.5  # seconds
DEFAULT_CHUNK_DELAY = 0.05  # seconds


def placeholder_reply(text: str) -> str:
    """Build the canned reply for ``text``."""
    return (
        f'Hello there! You said: "{text}". This is a placeholder response. '
        "Set LLM_API_KEY to get a real answer from a model."
    )


class PlaceholderTransport:
    """Streams the canned reply word by word after ``reply_delay`` seconds."""

    def __init__(
        self,
        reply_delay: float | None = None,
        chunk_delay: float = DEFAULT_CHUNK_DELAY,
    ) -> None:
        if reply_delay is None:
            reply_delay = float(os.getenv("PLACEHOLDER_REPLY_DELAY", str(DEFAULT_REPLY_DELAY)))
        self.reply_delay = reply_delay
        self.chunk_delay = chunk_delay

    async def open(
        self,
        history: Sequence[HistoryItem],
        text: str,
    ) -> AsyncGenerator[TransportEvent, None]:
        logger.debug(f"Placeholder reply for message with {len(history)} history entries")
        await asyncio.sleep(self.reply_delay)

        # Words keep their trailing whitespace so the chunks concatenate back exactly
        for seq, word in enumerate(re.findall(r"\S+\s*", placeholder_reply(text))):
            yield ChunkEvent(text=word, seq=seq)
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)

        yield DoneEvent()
