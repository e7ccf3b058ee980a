"""Test doubles and helpers shared across the test suite."""

import asyncio
from collections.abc import AsyncGenerator, Callable, Sequence
from typing import Any

from chat_session.models.schemas import HistoryItem


class ScriptedTransport:
    """Transport that replays a fixed script per request.

    Each script is a list of steps:
        - a transport event (or event mapping): yielded to the controller
        - a float: seconds to sleep
        - an asyncio.Event: wait until the test sets it
        - an exception instance: raised from the channel

    The last script is reused once earlier scripts are exhausted.
    """

    def __init__(self, *scripts: list[Any]) -> None:
        self._scripts = list(scripts)
        self.calls: list[tuple[tuple[HistoryItem, ...], str]] = []
        self.closed = 0

    def open(self, history: Sequence[HistoryItem], text: str) -> AsyncGenerator[Any, None]:
        self.calls.append((tuple(history), text))
        script = self._scripts.pop(0) if len(self._scripts) > 1 else self._scripts[0]
        return self._run(script)

    async def _run(self, script: list[Any]) -> AsyncGenerator[Any, None]:
        try:
            for step in script:
                if isinstance(step, BaseException):
                    raise step
                if isinstance(step, int | float):
                    await asyncio.sleep(step)
                elif isinstance(step, asyncio.Event):
                    await step.wait()
                else:
                    yield step
        finally:
            self.closed += 1


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the event loop until it holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)
