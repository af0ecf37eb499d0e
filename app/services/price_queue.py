"""Sequential, rate-limited previous-close fetching."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Protocol

logger = logging.getLogger(__name__)

Fetch = Callable[[str], Awaitable["float | None"]]
Sleep = Callable[[float], Awaitable[None]]


class Backoff(Protocol):
    def delay(self, consecutive_failures: int) -> float:
        """Seconds to idle before the next request."""


@dataclass(frozen=True)
class ConstantBackoff:
    """The same gap between every pair of requests."""

    interval: float = 0.15

    def delay(self, consecutive_failures: int) -> float:
        return max(0.0, self.interval)


@dataclass(frozen=True)
class ExponentialBackoff:
    """Grow the gap while requests keep failing; reset after a success."""

    base: float = 0.15
    factor: float = 2.0
    maximum: float = 60.0

    def delay(self, consecutive_failures: int) -> float:
        return max(0.0, min(self.maximum, self.base * (self.factor ** max(0, consecutive_failures))))


class PriceFetchQueue:
    """Drain a queue of symbols one request at a time.

    A single worker pulls symbols off an :class:`asyncio.Queue` and waits
    ``backoff.delay(consecutive_failures)`` between consecutive requests. A
    failed symbol maps to ``None`` and the worker moves on; nothing is retried.
    """

    def __init__(
        self,
        fetch: Fetch,
        *,
        backoff: Backoff | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._fetch = fetch
        self._backoff = backoff or ConstantBackoff()
        self._sleep = sleep

    async def fetch(self, symbols: Iterable[str]) -> dict[str, float | None]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        for symbol in dict.fromkeys(symbols):
            queue.put_nowait(symbol)
        results: dict[str, float | None] = {}
        if queue.empty():
            return results
        worker = asyncio.create_task(self._worker(queue, results))
        drained = asyncio.create_task(queue.join())
        try:
            done, _ = await asyncio.wait({worker, drained}, return_when=asyncio.FIRST_COMPLETED)
            if worker in done:
                # the worker only stops by raising; surface it instead of waiting on the queue
                worker.result()
        finally:
            for task in (worker, drained):
                task.cancel()
            await asyncio.gather(worker, drained, return_exceptions=True)
        return results

    async def _worker(self, queue: asyncio.Queue[str], results: dict[str, float | None]) -> None:
        failures = 0
        first = True
        while True:
            symbol = await queue.get()
            try:
                if not first:
                    await self._sleep(self._backoff.delay(failures))
                first = False
                try:
                    price = await self._fetch(symbol)
                except Exception:  # noqa: BLE001 - one bad symbol must not stop the loop
                    logger.exception("Price fetch raised for %s", symbol)
                    price = None
                results[symbol] = price
                failures = failures + 1 if price is None else 0
            finally:
                queue.task_done()


__all__ = ["Backoff", "ConstantBackoff", "ExponentialBackoff", "PriceFetchQueue"]
