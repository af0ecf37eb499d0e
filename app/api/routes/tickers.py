"""Ticker existence checks."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies.auth import get_current_user
from app.api.dependencies.services import get_market
from app.providers.polygon import PolygonClient
from app.schemas import TickerCheckSchema
from app.services.identity import User
from app.services.ticker_check import NOT_FOUND_MESSAGE

router = APIRouter()


@router.get("/{symbol}", response_model=TickerCheckSchema)
async def check_ticker(
    symbol: str,
    market: PolygonClient = Depends(get_market),
    current_user: User = Depends(get_current_user),
) -> TickerCheckSchema:
    result = await market.lookup_ticker(symbol)
    return TickerCheckSchema(
        ticker=symbol.strip().upper(),
        exists=result.exists,
        name=result.name,
        error=None if result.exists else NOT_FOUND_MESSAGE,
    )


__all__ = ["router"]
