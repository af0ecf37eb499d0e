"""Portfolio refresh orchestration for one user's session."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence
from uuid import UUID

from app.providers.polygon import PolygonClient
from app.services.add_holding import EditHoldingForm
from app.services.holdings import HoldingsStore
from app.services.price_queue import PriceFetchQueue
from portfolio_analyzer.fx import DISPLAY_CURRENCIES, FxQuote, ensure_supported
from portfolio_analyzer.models import CANONICAL_CURRENCY, Holding, PortfolioValuation
from portfolio_analyzer.valuation import unique_tickers, value_portfolio

logger = logging.getLogger(__name__)


class PortfolioView:
    """Cached holdings, prices and display currency for one user.

    ``refresh`` reloads everything from the store and the market; the
    currency toggle only re-values what is cached.
    """

    def __init__(
        self,
        user_id: str,
        market: PolygonClient,
        prices: PriceFetchQueue,
        *,
        display_currencies: Sequence[str] = DISPLAY_CURRENCIES,
        fx_fallbacks: Mapping[str, float] | None = None,
    ) -> None:
        self.user_id = user_id
        self._market = market
        self._prices = prices
        self._display_currencies = tuple(display_currencies)
        self._fx_fallbacks = dict(fx_fallbacks or {})
        self.holdings: list[Holding] = []
        self.price_map: dict[str, float | None] = {}
        self.fx = FxQuote(CANONICAL_CURRENCY, CANONICAL_CURRENCY, 1.0)
        self.loading = False
        self.valuation = value_portfolio([], {})

    @property
    def currency(self) -> str:
        return self.fx.quote

    async def refresh(self, store: HoldingsStore) -> PortfolioValuation:
        self.loading = True
        try:
            holdings = await store.list(self.user_id)
            tickers = unique_tickers(holdings)
            price_map = await self._prices.fetch(tickers) if tickers else {}
            self.holdings = holdings
            self.price_map = price_map
            self._revalue()
        finally:
            self.loading = False
        logger.info(
            "Refreshed portfolio for %s: %d holdings, %d tickers",
            self.user_id,
            len(self.holdings),
            len(self.price_map),
        )
        return self.valuation

    async def change_currency(self, currency: str) -> PortfolioValuation:
        target = ensure_supported(currency, self._display_currencies)
        if target == CANONICAL_CURRENCY:
            self.fx = FxQuote(CANONICAL_CURRENCY, CANONICAL_CURRENCY, 1.0)
        else:
            # Stored prices are USD, so the display rate is USD -> target
            self.fx = await self._market.resolve_fx_rate(CANONICAL_CURRENCY, target, self._fx_fallbacks)
        self._revalue()
        return self.valuation

    async def edit_holding(self, store: HoldingsStore, holding_id: UUID, form: EditHoldingForm) -> PortfolioValuation:
        await store.update(self.user_id, holding_id, form.changes())
        return await self.refresh(store)

    async def delete_holding(self, store: HoldingsStore, holding_id: UUID) -> PortfolioValuation:
        await store.delete(self.user_id, holding_id)
        return await self.refresh(store)

    def _revalue(self) -> None:
        self.valuation = value_portfolio(
            self.holdings,
            self.price_map,
            self.fx.rate,
            currency=self.fx.quote,
        )


class PortfolioViewRegistry:
    """One :class:`PortfolioView` per user for the lifetime of the process."""

    def __init__(
        self,
        market: PolygonClient,
        prices: PriceFetchQueue,
        *,
        display_currencies: Sequence[str] = DISPLAY_CURRENCIES,
        fx_fallbacks: Mapping[str, float] | None = None,
    ) -> None:
        self._market = market
        self._prices = prices
        self._display_currencies = tuple(display_currencies)
        self._fx_fallbacks = dict(fx_fallbacks or {})
        self._views: dict[str, PortfolioView] = {}

    def get(self, user_id: str) -> PortfolioView:
        view = self._views.get(user_id)
        if view is None:
            view = PortfolioView(
                user_id,
                self._market,
                self._prices,
                display_currencies=self._display_currencies,
                fx_fallbacks=self._fx_fallbacks,
            )
            self._views[user_id] = view
        return view

    def discard(self, user_id: str) -> None:
        self._views.pop(user_id, None)


__all__ = ["PortfolioView", "PortfolioViewRegistry"]
