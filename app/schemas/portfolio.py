"""Pydantic schemas for portfolio valuation responses."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field

from portfolio_analyzer.models import DisplayRow, PortfolioValuation


class DisplayRowSchema(BaseModel):
    id: UUID
    ticker: str
    quantity: float
    purchase_date: date
    purchase_price: float = Field(..., description="Cost per share in the display currency")
    current_price: float | None = Field(None, description="Previous close in the display currency")
    price_available: bool
    market_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float

    @classmethod
    def from_row(cls, row: DisplayRow, fx_rate: float) -> "DisplayRowSchema":
        converted = row.converted(fx_rate)
        return cls(
            id=row.holding.id,
            ticker=row.holding.ticker,
            quantity=row.holding.quantity,
            purchase_date=row.holding.purchase_date,
            purchase_price=row.holding.purchase_price_usd * fx_rate,
            current_price=converted.current_price,
            price_available=row.price_available,
            market_value=converted.market_value,
            cost_basis=converted.cost_basis,
            gain_loss=converted.gain_loss,
            gain_loss_percent=round(row.gain_loss_percent, 2),
        )


class PortfolioTotalsSchema(BaseModel):
    currency: str
    fx_rate: float
    fx_fallback: bool = False
    market_value: float
    cost_basis: float
    gain_loss: float
    gain_loss_percent: float
    missing_prices: list[str] = Field(default_factory=list)


class PortfolioResponse(BaseModel):
    rows: list[DisplayRowSchema]
    totals: PortfolioTotalsSchema

    @classmethod
    def from_valuation(cls, valuation: PortfolioValuation, *, fx_fallback: bool = False) -> "PortfolioResponse":
        totals = valuation.totals
        return cls(
            rows=[DisplayRowSchema.from_row(row, totals.fx_rate) for row in valuation.rows],
            totals=PortfolioTotalsSchema(
                currency=totals.currency,
                fx_rate=totals.fx_rate,
                fx_fallback=fx_fallback,
                market_value=totals.market_value,
                cost_basis=totals.cost_basis,
                gain_loss=totals.gain_loss,
                gain_loss_percent=round(totals.gain_loss_percent, 2),
                missing_prices=list(totals.missing_prices),
            ),
        )


class CurrencyChangeRequest(BaseModel):
    currency: str = Field(..., min_length=3, max_length=3, examples=["EUR"])


__all__ = [
    "CurrencyChangeRequest",
    "DisplayRowSchema",
    "PortfolioResponse",
    "PortfolioTotalsSchema",
]
