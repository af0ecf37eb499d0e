"""ORM models for persisted holdings."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_analyzer.models import Holding

from .database import Base


class PortfolioHolding(Base):
    """One purchase lot; ``purchase_price`` is stored in USD."""

    __tablename__ = "portfolios"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    ticker: Mapped[str] = mapped_column(String(32), index=True)
    quantity: Mapped[float] = mapped_column(Float)
    purchase_price: Mapped[float] = mapped_column(Float)
    purchase_date: Mapped[date] = mapped_column(Date)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    def to_domain(self) -> Holding:
        return Holding(
            id=self.id,
            user_id=self.user_id,
            ticker=self.ticker,
            quantity=float(self.quantity),
            purchase_price_usd=float(self.purchase_price),
            purchase_date=self.purchase_date,
        )


__all__ = ["PortfolioHolding"]
