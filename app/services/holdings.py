"""Holdings persistence scoped to a single owner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import PortfolioHolding
from portfolio_analyzer.models import Holding

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"quantity", "purchase_price", "purchase_date"})


class HoldingsStoreError(RuntimeError):
    """Raised when the backing store rejects a read or mutation."""


class HoldingNotFoundError(HoldingsStoreError):
    """Raised when a holding does not exist or belongs to another user."""


@dataclass(frozen=True)
class NewHolding:
    ticker: str
    quantity: float
    purchase_price_usd: float
    purchase_date: date


class HoldingsStore:
    """CRUD over the ``portfolios`` table.

    The session and the owner id are passed in explicitly; every query is
    filtered by owner so one user never sees or mutates another's rows.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(self, user_id: str) -> list[Holding]:
        stmt = (
            select(PortfolioHolding)
            .where(PortfolioHolding.user_id == user_id)
            .order_by(PortfolioHolding.ticker.asc(), PortfolioHolding.purchase_date.asc())
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Error fetching portfolio for %s", user_id)
            raise HoldingsStoreError("Could not load holdings.") from exc
        return [row.to_domain() for row in result.scalars().all()]

    async def insert(self, user_id: str, holding: NewHolding) -> Holding:
        record = PortfolioHolding(
            user_id=user_id,
            ticker=holding.ticker.strip().upper(),
            quantity=holding.quantity,
            purchase_price=holding.purchase_price_usd,
            purchase_date=holding.purchase_date,
        )
        self._session.add(record)
        await self._commit("Could not add holding.")
        await self._session.refresh(record)
        logger.info("Added holding %s (%s) for %s", record.id, record.ticker, user_id)
        return record.to_domain()

    async def update(self, user_id: str, holding_id: UUID, fields: dict[str, Any]) -> Holding:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        record = await self._get_owned(user_id, holding_id)
        for name, value in fields.items():
            setattr(record, name, value)
        await self._commit("Could not update holding.")
        await self._session.refresh(record)
        return record.to_domain()

    async def delete(self, user_id: str, holding_id: UUID) -> None:
        stmt = delete(PortfolioHolding).where(
            PortfolioHolding.id == holding_id,
            PortfolioHolding.user_id == user_id,
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Delete error for holding %s", holding_id)
            raise HoldingsStoreError("Could not delete holding.") from exc
        if result.rowcount == 0:
            await self._session.rollback()
            raise HoldingNotFoundError("Holding not found")
        await self._commit("Could not delete holding.")

    async def _get_owned(self, user_id: str, holding_id: UUID) -> PortfolioHolding:
        try:
            record = await self._session.get(PortfolioHolding, holding_id)
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Error loading holding %s", holding_id)
            raise HoldingsStoreError("Could not load holding.") from exc
        if record is None or record.user_id != user_id:
            raise HoldingNotFoundError("Holding not found")
        return record

    async def _commit(self, message: str) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception(message)
            raise HoldingsStoreError(message) from exc


__all__ = ["HoldingNotFoundError", "HoldingsStore", "HoldingsStoreError", "NewHolding", "UPDATABLE_FIELDS"]
