"""Per-client concurrency limit with FIFO hand-off."""

from __future__ import annotations

import asyncio
from collections import deque
from types import TracebackType


class ConcurrencyGate:
    """Bounded semaphore whose waiters are served strictly in arrival order.

    A released slot is handed directly to the oldest waiter, so a caller
    arriving later can never take it first.
    """

    def __init__(self, max_concurrent: int = 5) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.active_count = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def waiting(self) -> int:
        """Number of callers queued for a slot."""
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> None:
        if self.active_count < self.max_concurrent and not self._waiters:
            self.active_count += 1
            return

        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Slot was granted just before cancellation; pass it on.
                self.release()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            raise

    def release(self) -> None:
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                # Slot moves to the waiter; active_count is unchanged.
                fut.set_result(None)
                return
        if self.active_count <= 0:
            raise RuntimeError("release() called without a matching acquire()")
        self.active_count -= 1

    async def __aenter__(self) -> ConcurrencyGate:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"ConcurrencyGate(active={self.active_count}/"
            f"{self.max_concurrent}, waiting={self.waiting})"
        )
