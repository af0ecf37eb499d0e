"""Pure valuation functions turning holdings and prices into display rows."""
from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import CANONICAL_CURRENCY, DisplayRow, Holding, PortfolioTotals, PortfolioValuation

PriceMap = Mapping[str, Optional[float]]


def _percent(gain_loss: float, cost_basis: float) -> float:
    if cost_basis == 0:
        return 0.0
    return gain_loss / cost_basis * 100


def unique_tickers(holdings: Iterable[Holding]) -> List[str]:
    """Return distinct tickers in first-seen order."""

    seen: Dict[str, None] = {}
    for holding in holdings:
        seen.setdefault(holding.ticker, None)
    return list(seen)


def value_holding(holding: Holding, price: Optional[float]) -> DisplayRow:
    """Compute the canonical-currency metrics for a single holding."""

    market_value = holding.quantity * (price or 0.0)
    cost_basis = holding.quantity * holding.purchase_price_usd
    gain_loss = market_value - cost_basis
    return DisplayRow(
        holding=holding,
        current_price=price,
        market_value=market_value,
        cost_basis=cost_basis,
        gain_loss=gain_loss,
        gain_loss_percent=_percent(gain_loss, cost_basis),
    )


def value_portfolio(
    holdings: Sequence[Holding],
    prices: PriceMap,
    fx_rate: float = 1.0,
    *,
    currency: str = CANONICAL_CURRENCY,
) -> PortfolioValuation:
    """Value ``holdings`` against ``prices`` and total them in the display currency.

    A ticker missing from ``prices`` (or mapped to ``None``) counts as a zero
    price and is reported in ``totals.missing_prices``.
    """

    rows = tuple(value_holding(h, prices.get(h.ticker)) for h in holdings)
    market_value = sum(row.market_value for row in rows) * fx_rate
    cost_basis = sum(row.cost_basis for row in rows) * fx_rate
    gain_loss = market_value - cost_basis
    missing = tuple(t for t in unique_tickers(holdings) if prices.get(t) is None)
    totals = PortfolioTotals(
        currency=currency.upper(),
        fx_rate=fx_rate,
        market_value=market_value,
        cost_basis=cost_basis,
        gain_loss=gain_loss,
        gain_loss_percent=_percent(gain_loss, cost_basis),
        missing_prices=missing,
    )
    return PortfolioValuation(rows=rows, totals=totals)


__all__ = ["PriceMap", "unique_tickers", "value_holding", "value_portfolio"]
