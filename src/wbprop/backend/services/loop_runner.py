"""Background event loop for the Flask backend.

Flask serves each request on its own thread, but the query path (gates,
in-flight registry, cache) is built for one event loop.  :class:`LoopRunner`
owns that loop on a daemon thread; request threads hand work to it and block
until it is done, so shared state is only ever touched from the loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoopRunner:
    """Run coroutines and plain calls on a dedicated event-loop thread."""

    def __init__(self, name: str = "wbprop-loop") -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_forever, name=name, daemon=True,
        )
        self._thread.start()

    def _run_forever(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def run(self, coro: Awaitable[T], timeout: float | None = None) -> T:
        """Run *coro* on the loop and return its result."""
        if self._loop.is_closed():
            raise RuntimeError("LoopRunner is closed")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout)

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run the synchronous *fn* on the loop thread."""

        async def _invoke() -> T:
            return fn(*args)

        return self.run(_invoke())

    def close(self) -> None:
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        self._loop.close()
        logger.debug("Event loop closed")
