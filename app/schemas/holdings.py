"""Pydantic schemas for holdings."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from pydantic import BaseModel

from portfolio_analyzer.models import Holding


class HoldingSchema(BaseModel):
    id: UUID
    ticker: str
    quantity: float
    purchase_price: float
    purchase_date: date

    @classmethod
    def from_domain(cls, holding: Holding) -> "HoldingSchema":
        return cls(
            id=holding.id,
            ticker=holding.ticker,
            quantity=holding.quantity,
            purchase_price=holding.purchase_price_usd,
            purchase_date=holding.purchase_date,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "3f1c1a4e-8a55-4b43-9a0c-5b9c7f0b2f11",
                "ticker": "AAPL",
                "quantity": 10,
                "purchase_price": 100.0,
                "purchase_date": "2024-03-01",
            }
        }


__all__ = ["HoldingSchema"]
