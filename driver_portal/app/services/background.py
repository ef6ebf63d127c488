"""
Detached background tasks for best-effort side calls.

Tasks are never awaited by the request that spawned them; their outcome
is only logged. References are kept until completion so the event loop
does not drop them.
"""

import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger("driver_portal.background")


class BackgroundTasks:

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, label: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        task.set_name(label)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info(f"Background task {task.get_name()} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc!r}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight task. Used on shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
