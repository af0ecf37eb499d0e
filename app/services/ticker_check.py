"""Debounced ticker validation state machine."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable

from app.providers.polygon import NOT_FOUND, TickerLookup

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Awaitable[TickerLookup]]

NOT_FOUND_MESSAGE = "Ticker symbol not found or invalid."
EMPTY_MESSAGE = "Please enter a ticker first."


async def _settled(task: asyncio.Task[bool]) -> None:
    """Await ``task``, absorbing its cancellation but not the caller's."""

    try:
        await task
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise


class TickerCheckState(str, enum.Enum):
    UNCHECKED = "unchecked"
    CHECKING = "checking"
    VALID = "valid"
    INVALID = "invalid"


class TickerValidator:
    """Validate a ticker field against the market-data lookup.

    At most one check is pending at a time. ``schedule`` waits for the
    settle delay before looking up, ``check_now`` looks up immediately; both
    cancel whatever check was pending, so only the latest value can land.
    """

    def __init__(self, lookup: Lookup, *, settle_seconds: float = 1.0) -> None:
        self._lookup = lookup
        self._settle_seconds = settle_seconds
        self._task: asyncio.Task[bool] | None = None
        self.state = TickerCheckState.UNCHECKED
        self.ticker: str | None = None
        self.display_name: str | None = None
        self.error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.state is TickerCheckState.VALID

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_valid_for(self, ticker: str) -> bool:
        return self.is_valid and self.ticker == ticker.strip().upper()

    def schedule(self, value: str) -> asyncio.Task[bool] | None:
        """Debounced check triggered by an edit of the ticker field."""

        self._cancel_pending()
        normalized = value.strip().upper()
        if not normalized:
            self.reset()
            return None
        self._task = asyncio.create_task(self._run(normalized, self._settle_seconds))
        return self._task

    async def check_now(self, value: str) -> bool:
        """Explicit check; pre-empts any pending debounced check."""

        self._cancel_pending()
        normalized = value.strip().upper()
        if not normalized:
            self.reset()
            self.error = EMPTY_MESSAGE
            return False
        task = asyncio.create_task(self._run(normalized, 0.0))
        self._task = task
        await _settled(task)
        return self.is_valid

    async def wait(self) -> bool:
        """Wait for the pending check, if any, and return the current validity."""

        while self._task is not None and not self._task.done():
            await _settled(self._task)
        return self.is_valid

    def reset(self) -> None:
        self._cancel_pending()
        self.state = TickerCheckState.UNCHECKED
        self.ticker = None
        self.display_name = None
        self.error = None

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, ticker: str, delay: float) -> bool:
        if delay > 0:
            await asyncio.sleep(delay)
        self.state = TickerCheckState.CHECKING
        self.ticker = ticker
        try:
            result = await self._lookup(ticker)
        except Exception:  # noqa: BLE001 - any lookup failure means the ticker is not usable
            logger.exception("Ticker lookup raised for %r", ticker)
            result = NOT_FOUND
        if result.exists:
            self.state = TickerCheckState.VALID
            self.display_name = result.name
            self.error = None
        else:
            self.state = TickerCheckState.INVALID
            self.display_name = None
            self.error = NOT_FOUND_MESSAGE
            logger.info("Ticker %s did not validate", ticker)
        return result.exists


__all__ = ["EMPTY_MESSAGE", "NOT_FOUND_MESSAGE", "TickerCheckState", "TickerValidator"]
