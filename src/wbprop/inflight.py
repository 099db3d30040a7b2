"""Deduplication of identical in-flight queries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """Map of cache key to the task currently fetching it.

    A single registry is shared by every client so two callers asking for
    the same key, from any instance client, share one network operation.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def begin(
        self, key: str, factory: Callable[[], Awaitable[Any]],
    ) -> asyncio.Task[Any]:
        """Return the pending task for *key*, starting one if needed.

        The registration is dropped once the task settles, whether it
        succeeded, failed or was cancelled.
        """
        existing = self._tasks.get(key)
        if existing is not None:
            logger.debug("Joining in-flight request: %s", key)
            return existing

        task: asyncio.Task[Any] = asyncio.ensure_future(factory())
        self._tasks[key] = task
        task.add_done_callback(lambda done: self._retire(key, done))
        return task

    def _retire(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]

    def get(self, key: str) -> asyncio.Task[Any] | None:
        return self._tasks.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)
