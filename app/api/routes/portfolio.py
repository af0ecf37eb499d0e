"""Portfolio valuation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies.auth import get_current_user
from app.api.dependencies.services import get_store, get_views
from app.schemas import CurrencyChangeRequest, PortfolioResponse
from app.services.holdings import HoldingsStore, HoldingsStoreError
from app.services.identity import User
from app.services.portfolio import PortfolioView, PortfolioViewRegistry
from portfolio_analyzer.fx import UnsupportedCurrencyError

router = APIRouter()


async def _change_currency(view: PortfolioView, currency: str) -> None:
    try:
        await view.change_currency(currency)
    except UnsupportedCurrencyError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    currency: str | None = Query(default=None, min_length=3, max_length=3),
    store: HoldingsStore = Depends(get_store),
    views: PortfolioViewRegistry = Depends(get_views),
    current_user: User = Depends(get_current_user),
) -> PortfolioResponse:
    view = views.get(current_user.id)
    if currency is not None and currency.upper() != view.currency:
        await _change_currency(view, currency)
    try:
        valuation = await view.refresh(store)
    except HoldingsStoreError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return PortfolioResponse.from_valuation(valuation, fx_fallback=view.fx.fallback)


@router.put("/currency", response_model=PortfolioResponse)
async def put_currency(
    payload: CurrencyChangeRequest,
    views: PortfolioViewRegistry = Depends(get_views),
    current_user: User = Depends(get_current_user),
) -> PortfolioResponse:
    view = views.get(current_user.id)
    await _change_currency(view, payload.currency)
    return PortfolioResponse.from_valuation(view.valuation, fx_fallback=view.fx.fallback)


__all__ = ["router"]
