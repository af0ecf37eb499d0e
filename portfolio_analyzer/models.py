"""Domain models used by the portfolio valuation engine."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Tuple
from uuid import UUID

CANONICAL_CURRENCY = "USD"


@dataclass(frozen=True)
class Holding:
    """One recorded purchase lot of a ticker owned by a user.

    ``purchase_price_usd`` is always expressed in the canonical currency,
    whatever currency the price was entered in.
    """

    id: UUID
    user_id: str
    ticker: str
    quantity: float
    purchase_price_usd: float
    purchase_date: date


@dataclass(frozen=True)
class DisplayRow:
    """A holding enriched with its latest price and derived metrics."""

    holding: Holding
    current_price: Optional[float]
    market_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float

    @property
    def price_available(self) -> bool:
        return self.current_price is not None

    @property
    def ticker(self) -> str:
        return self.holding.ticker

    def converted(self, fx_rate: float) -> "DisplayRow":
        """Return the row with monetary values scaled into a display currency.

        The percentage is scale invariant and is kept as is.
        """

        return replace(
            self,
            current_price=None if self.current_price is None else self.current_price * fx_rate,
            market_value=self.market_value * fx_rate,
            cost_basis=self.cost_basis * fx_rate,
            gain_loss=self.gain_loss * fx_rate,
        )


@dataclass(frozen=True)
class PortfolioTotals:
    """Aggregate valuation of a portfolio in the display currency."""

    currency: str
    fx_rate: float
    market_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float
    missing_prices: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PortfolioValuation:
    """Rows (canonical currency) plus totals (display currency)."""

    rows: Tuple[DisplayRow, ...]
    totals: PortfolioTotals

    def display_rows(self) -> Tuple[DisplayRow, ...]:
        return tuple(row.converted(self.totals.fx_rate) for row in self.rows)
