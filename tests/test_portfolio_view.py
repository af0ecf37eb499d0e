"""Portfolio refresh orchestration tests."""

from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

import pytest

from app.services.add_holding import EditHoldingForm
from app.services.portfolio import PortfolioView, PortfolioViewRegistry
from app.services.price_queue import ConstantBackoff, PriceFetchQueue
from portfolio_analyzer.fx import UnsupportedCurrencyError
from portfolio_analyzer.models import Holding


class MemoryStore:
    def __init__(self, holdings: list[Holding]) -> None:
        self.holdings = {h.id: h for h in holdings}
        self.list_calls = 0

    async def list(self, user_id: str) -> list[Holding]:
        self.list_calls += 1
        rows = [h for h in self.holdings.values() if h.user_id == user_id]
        return sorted(rows, key=lambda h: h.ticker)

    async def update(self, user_id: str, holding_id: UUID, fields: dict) -> Holding:
        current = self.holdings[holding_id]
        values = {
            "quantity": current.quantity,
            "purchase_price_usd": current.purchase_price_usd,
            "purchase_date": current.purchase_date,
        }
        if "purchase_price" in fields:
            values["purchase_price_usd"] = fields["purchase_price"]
        for key in ("quantity", "purchase_date"):
            if key in fields:
                values[key] = fields[key]
        self.holdings[holding_id] = Holding(
            id=holding_id, user_id=user_id, ticker=current.ticker, **values
        )
        return self.holdings[holding_id]

    async def delete(self, user_id: str, holding_id: UUID) -> None:
        del self.holdings[holding_id]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _holding(ticker: str, quantity: float, price: float, user_id: str = "user-1") -> Holding:
    return Holding(uuid4(), user_id, ticker, quantity, price, date(2024, 3, 1))


def _view(polygon, sleep: RecordingSleep | None = None) -> PortfolioView:
    queue = PriceFetchQueue(polygon.get_previous_close, backoff=ConstantBackoff(0.15), sleep=sleep or RecordingSleep())
    return PortfolioView("user-1", polygon, queue, fx_fallbacks={"EURUSD": 1.08})


def _price_urls(polygon_http) -> list[str]:
    return [url for url in polygon_http.urls if "/v2/aggs/ticker/" in url and "C:" not in url]


async def test_refresh_fetches_unique_tickers_sequentially(polygon, polygon_http):
    sleep = RecordingSleep()
    view = _view(polygon, sleep)
    store = MemoryStore([_holding("MSFT", 1, 300), _holding("AAPL", 10, 100), _holding("AAPL", 5, 120)])

    valuation = await view.refresh(store)

    assert [url.rsplit("/", 2)[-2] for url in _price_urls(polygon_http)] == ["AAPL", "MSFT"]
    assert sleep.delays == [0.15]
    assert len(valuation.rows) == 3
    assert valuation.totals.market_value == pytest.approx(15 * 150 + 400)
    assert valuation.totals.cost_basis == pytest.approx(1000 + 600 + 300)
    assert not view.loading


async def test_empty_portfolio_makes_no_market_calls(polygon, polygon_http):
    view = _view(polygon)

    valuation = await view.refresh(MemoryStore([]))

    assert polygon_http.calls == []
    assert valuation.rows == ()
    assert valuation.totals.gain_loss_percent == 0


async def test_unpriced_ticker_is_reported_missing(polygon):
    view = _view(polygon)

    valuation = await view.refresh(MemoryStore([_holding("GONE", 2, 10)]))

    assert valuation.totals.missing_prices == ("GONE",)
    assert valuation.rows[0].current_price is None


async def test_currency_toggle_reuses_cached_prices(polygon, polygon_http):
    view = _view(polygon)
    await view.refresh(MemoryStore([_holding("AAPL", 10, 100)]))
    price_requests = len(_price_urls(polygon_http))

    valuation = await view.change_currency("eur")

    assert len(_price_urls(polygon_http)) == price_requests
    assert polygon_http.urls[-1].endswith("/C:USDEUR/prev")
    assert view.currency == "EUR"
    assert valuation.totals.fx_rate == pytest.approx(0.9)
    assert valuation.totals.market_value == pytest.approx(1500 * 0.9)
    assert valuation.totals.gain_loss_percent == pytest.approx(50.0)


async def test_switching_back_to_usd_needs_no_request(polygon, polygon_http):
    view = _view(polygon)
    await view.change_currency("GBP")
    calls = len(polygon_http.calls)

    valuation = await view.change_currency("USD")

    assert len(polygon_http.calls) == calls
    assert valuation.totals.fx_rate == 1.0


async def test_fx_failure_falls_back_and_flags_quote(polygon, polygon_http):
    polygon_http.failing.add("C:USDGBP")
    view = _view(polygon)

    await view.change_currency("GBP")

    assert view.fx.fallback
    assert view.fx.rate == 1.0


async def test_unsupported_display_currency_is_rejected(polygon):
    with pytest.raises(UnsupportedCurrencyError):
        await _view(polygon).change_currency("JPY")


async def test_edit_and_delete_rerun_refresh(polygon):
    view = _view(polygon)
    keep = _holding("AAPL", 10, 100)
    drop = _holding("MSFT", 1, 300)
    store = MemoryStore([keep, drop])
    await view.refresh(store)

    edited = await view.edit_holding(store, keep.id, EditHoldingForm(quantity=20))
    assert edited.rows[0].holding.quantity == 20
    assert edited.totals.cost_basis == pytest.approx(2000 + 300)

    remaining = await view.delete_holding(store, drop.id)
    assert [row.ticker for row in remaining.rows] == ["AAPL"]
    assert store.list_calls == 3


def test_registry_keeps_one_view_per_user(polygon):
    queue = PriceFetchQueue(polygon.get_previous_close)
    registry = PortfolioViewRegistry(polygon, queue)

    assert registry.get("a") is registry.get("a")
    assert registry.get("a") is not registry.get("b")
    first = registry.get("a")
    registry.discard("a")
    assert registry.get("a") is not first
