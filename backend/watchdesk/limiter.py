from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConcurrencyLimiter:
    """
    Bounds how many units of work run at once.

    Units beyond the bound wait in a FIFO queue; each completion (success or
    failure) hands its slot to the oldest waiter. The counters are only
    touched between awaits, so no lock is needed on a single event loop.
    """

    def __init__(self, concurrency: int) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def limit(
        self, unit_of_work: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        await self._acquire()
        try:
            return await unit_of_work(*args, **kwargs)
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._active < self.concurrency and not self._waiters:
            self._active += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        logger.debug(
            "Limiter full (%d active), queued unit (%d pending)",
            self._active,
            len(self._waiters),
        )
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.cancelled():
                if waiter in self._waiters:
                    self._waiters.remove(waiter)
            else:
                # Slot was already handed over before the cancel landed.
                self._release()
            raise

    def _release(self) -> None:
        self._active -= 1
        self._drain()

    def _drain(self) -> None:
        while self._waiters and self._active < self.concurrency:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._active += 1
            waiter.set_result(None)
