"""Rate-limited task queue shared by every outbound request."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

if TYPE_CHECKING:
    from persona_scraper.config import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RateLimiter:
    """Bounded-concurrency queue with a minimum gap between dispatches.

    Tasks are zero-argument callables returning an awaitable. They start in
    submission order, at most ``concurrency`` run at once, and two starts are
    never closer than ``delay`` seconds. A failing task only fails its own
    ``enqueue`` call; the queue itself never retries.
    """

    def __init__(self, delay: float = 2.0, concurrency: int = 3) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self.concurrency = concurrency
        self._slots = asyncio.Semaphore(concurrency)
        self._dispatch_lock = asyncio.Lock()
        self._last_dispatch: float | None = None
        self._queued = 0
        self._in_flight = 0
        logger.info(
            "Rate limiter initialized: %d concurrent requests, %.0fms delay",
            concurrency,
            delay * 1000,
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        delay: float | None = None,
        concurrency: int | None = None,
    ) -> RateLimiter:
        return cls(
            delay=config.rate_limit_delay if delay is None else delay,
            concurrency=config.max_concurrent_requests if concurrency is None else concurrency,
        )

    async def enqueue(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run *task* once a slot is free and the dispatch interval has passed."""
        self._queued += 1
        try:
            await self._slots.acquire()
        except BaseException:
            self._queued -= 1
            raise
        try:
            try:
                await self._wait_for_dispatch()
            finally:
                self._queued -= 1
            self._in_flight += 1
            try:
                return await task()
            finally:
                self._in_flight -= 1
        finally:
            self._slots.release()

    # Alias kept for callers written against the queue's ``add`` name.
    add = enqueue

    async def _wait_for_dispatch(self) -> None:
        async with self._dispatch_lock:
            loop = asyncio.get_running_loop()
            if self._last_dispatch is not None:
                remaining = self._last_dispatch + self.delay - loop.time()
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last_dispatch = loop.time()

    async def wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def stats(self) -> dict[str, int]:
        """Return queued (``size``) and running (``pending``) task counts."""
        return {"size": self._queued, "pending": self._in_flight}
