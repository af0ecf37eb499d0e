"""Polygon.io client used for ticker lookups, previous closes and FX rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from app.config import AppSettings
from portfolio_analyzer.fx import FxQuote, fx_ticker, quote_or_fallback

logger = logging.getLogger(__name__)

BASE_URL = "https://api.polygon.io"


class PolygonError(RuntimeError):
    """Raised when Polygon returns an error status or an unusable payload."""


@dataclass(frozen=True)
class TickerLookup:
    exists: bool
    name: Optional[str] = None


NOT_FOUND = TickerLookup(exists=False, name=None)


class PolygonClient:
    """Read-only Polygon client.

    The public helpers never raise: lookup failures collapse to
    :data:`NOT_FOUND` and price failures to ``None``.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        client: Any,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: AppSettings, client: httpx.AsyncClient) -> "PolygonClient":
        return cls(
            settings.polygon_api_key,
            client=client,
            base_url=settings.polygon_base_url,
            timeout=settings.polygon_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _get(self, path: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        if not self._api_key:
            raise PolygonError("POLYGON_API_KEY is not set")
        query = dict(params or {})
        query["apiKey"] = self._api_key
        try:
            response = await self._client.get(f"{self._base_url}{path}", params=query, timeout=self._timeout)
        except httpx.InvalidURL as exc:
            raise PolygonError(f"Cannot build a Polygon URL for {path!r}") from exc
        if response.status_code >= 400:
            raise PolygonError(f"Polygon error {response.status_code} for {path}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise PolygonError(f"Polygon returned non-JSON content for {path}") from exc
        if not isinstance(payload, dict):
            raise PolygonError(f"Unexpected Polygon payload for {path}")
        return payload

    async def ticker_details(self, symbol: str) -> dict[str, Any]:
        return await self._get(f"/v3/reference/tickers/{symbol}")

    async def previous_close_aggregate(self, symbol: str) -> dict[str, Any]:
        return await self._get(f"/v2/aggs/ticker/{symbol}/prev", {"adjusted": "true"})

    async def lookup_ticker(self, symbol: str) -> TickerLookup:
        """Return whether ``symbol`` is an exact Polygon ticker, with its name."""

        normalized = symbol.strip().upper()
        if not normalized or not self._api_key:
            return NOT_FOUND
        try:
            payload = await self.ticker_details(normalized)
        except (PolygonError, httpx.HTTPError) as exc:
            logger.warning("Ticker validation failed for %s: %s", normalized, exc)
            return NOT_FOUND
        results = payload.get("results")
        if payload.get("status") == "OK" and isinstance(results, dict) and results.get("ticker") == normalized:
            return TickerLookup(exists=True, name=results.get("name") or normalized)
        return NOT_FOUND

    async def get_previous_close(self, symbol: str) -> float | None:
        """Return the latest previous-close value, or ``None`` when unavailable."""

        normalized = symbol.strip().upper()
        if not normalized:
            return None
        try:
            payload = await self.previous_close_aggregate(normalized)
        except (PolygonError, httpx.HTTPError) as exc:
            logger.warning("Previous close fetch failed for %s: %s", normalized, exc)
            return None
        results = payload.get("results")
        if isinstance(results, list) and results and isinstance(results[0], dict):
            close = results[0].get("c")
            if isinstance(close, (int, float)) and not isinstance(close, bool):
                return float(close)
        logger.warning("Could not find price for %s in Polygon response", normalized)
        return None

    async def get_fx_rate(self, base: str, quote: str) -> float | None:
        if base.upper() == quote.upper():
            return 1.0
        return await self.get_previous_close(fx_ticker(base, quote))

    async def resolve_fx_rate(
        self,
        base: str,
        quote: str,
        fallbacks: Mapping[str, float] | None = None,
    ) -> FxQuote:
        """Fetch ``base``->``quote``, applying the configured fallback on failure."""

        rate = await self.get_fx_rate(base, quote)
        resolved = quote_or_fallback(base, quote, rate, fallbacks)
        if resolved.fallback:
            logger.warning("Using fallback FX rate %s for %s/%s", resolved.rate, resolved.base, resolved.quote)
        return resolved


__all__ = ["NOT_FOUND", "PolygonClient", "PolygonError", "TickerLookup"]
