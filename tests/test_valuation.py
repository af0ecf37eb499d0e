from datetime import date
from uuid import uuid4

import pytest

from portfolio_analyzer import Holding, unique_tickers, value_portfolio
from portfolio_analyzer.valuation import value_holding


def _holding(ticker: str, quantity: float, price: float) -> Holding:
    return Holding(
        id=uuid4(),
        user_id="user-1",
        ticker=ticker,
        quantity=quantity,
        purchase_price_usd=price,
        purchase_date=date(2024, 3, 1),
    )


def test_single_holding_matches_manual_profit():
    valuation = value_portfolio([_holding("AAPL", 10, 100)], {"AAPL": 150.0}, 1.0)

    row = valuation.rows[0]
    assert row.market_value == pytest.approx(1500)
    assert row.cost_basis == pytest.approx(1000)
    assert row.gain_loss == pytest.approx(500)
    assert round(row.gain_loss_percent, 2) == 50.00
    assert valuation.totals.gain_loss_percent == pytest.approx(50.0)


def test_empty_portfolio_totals_are_zero():
    totals = value_portfolio([], {}, 1.3).totals

    assert totals.market_value == 0
    assert totals.cost_basis == 0
    assert totals.gain_loss == 0
    assert totals.gain_loss_percent == 0


def test_zero_cost_basis_gives_zero_percent():
    row = value_holding(_holding("FREE", 5, 0.0), 12.0)

    assert row.market_value == pytest.approx(60)
    assert row.gain_loss_percent == 0.0


def test_missing_price_counts_as_zero_but_is_reported():
    holdings = [_holding("AAPL", 2, 100), _holding("GONE", 3, 10)]
    valuation = value_portfolio(holdings, {"AAPL": 120.0, "GONE": None})

    gone = valuation.rows[1]
    assert gone.current_price is None
    assert not gone.price_available
    assert gone.market_value == 0
    assert gone.gain_loss == pytest.approx(-30)
    assert valuation.totals.missing_prices == ("GONE",)


def test_ticker_absent_from_price_map_does_not_raise():
    valuation = value_portfolio([_holding("MSFT", 1, 10)], {})
    assert valuation.rows[0].market_value == 0
    assert valuation.totals.missing_prices == ("MSFT",)


@pytest.mark.parametrize("fx_rate", [1.0, 0.92, 3.67])
def test_totals_scale_linearly_with_fx_rate(fx_rate):
    holdings = [_holding("AAPL", 10, 100), _holding("MSFT", 3, 250), _holding("AAPL", 1, 180)]
    prices = {"AAPL": 150.0, "MSFT": 400.0}

    valuation = value_portfolio(holdings, prices, fx_rate, currency="eur")

    assert valuation.totals.currency == "EUR"
    assert sum(r.cost_basis for r in valuation.rows) * fx_rate == pytest.approx(valuation.totals.cost_basis)
    assert sum(r.market_value for r in valuation.rows) * fx_rate == pytest.approx(valuation.totals.market_value)
    baseline = value_portfolio(holdings, prices, 1.0).totals
    assert valuation.totals.gain_loss_percent == pytest.approx(baseline.gain_loss_percent)


def test_display_rows_convert_money_but_not_percent():
    valuation = value_portfolio([_holding("AAPL", 10, 100)], {"AAPL": 150.0}, 0.5, currency="GBP")

    row = valuation.display_rows()[0]
    assert row.current_price == pytest.approx(75)
    assert row.market_value == pytest.approx(750)
    assert row.cost_basis == pytest.approx(500)
    assert row.gain_loss_percent == pytest.approx(50)


def test_unique_tickers_keep_first_seen_order():
    holdings = [_holding("MSFT", 1, 1), _holding("AAPL", 1, 1), _holding("MSFT", 2, 1)]
    assert unique_tickers(holdings) == ["MSFT", "AAPL"]
