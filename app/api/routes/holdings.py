"""Holding CRUD endpoints."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies.auth import get_current_user
from app.api.dependencies.services import get_app_settings, get_market, get_store, get_views
from app.config import AppSettings
from app.providers.polygon import PolygonClient
from app.schemas import HoldingSchema, PortfolioResponse
from app.services.add_holding import AddHoldingFlow, AddHoldingForm, EditHoldingForm, TickerNotValidatedError
from app.services.holdings import HoldingNotFoundError, HoldingsStore, HoldingsStoreError
from app.services.identity import User
from app.services.portfolio import PortfolioViewRegistry
from portfolio_analyzer.fx import UnsupportedCurrencyError

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_error(exc: HoldingsStoreError) -> HTTPException:
    if isinstance(exc, HoldingNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get("", response_model=list[HoldingSchema])
async def list_holdings(
    store: HoldingsStore = Depends(get_store),
    current_user: User = Depends(get_current_user),
) -> list[HoldingSchema]:
    try:
        holdings = await store.list(current_user.id)
    except HoldingsStoreError as exc:
        raise _store_error(exc) from exc
    return [HoldingSchema.from_domain(h) for h in holdings]


@router.post("", response_model=HoldingSchema, status_code=status.HTTP_201_CREATED)
async def add_holding(
    payload: AddHoldingForm,
    store: HoldingsStore = Depends(get_store),
    market: PolygonClient = Depends(get_market),
    views: PortfolioViewRegistry = Depends(get_views),
    settings: AppSettings = Depends(get_app_settings),
    current_user: User = Depends(get_current_user),
) -> HoldingSchema:
    flow = AddHoldingFlow(
        market,
        settle_seconds=settings.ticker_check_settle_seconds,
        fx_fallbacks=settings.fx_fallback_rates,
        input_currencies=settings.input_currencies,
    )
    view = views.get(current_user.id)

    async def _refresh(holding) -> None:
        try:
            await view.refresh(store)
        except HoldingsStoreError:
            # the insert is committed; a stale view must not turn it into an error
            logger.warning("Portfolio refresh failed after adding holding %s", holding.id, exc_info=True)

    flow.on_success(_refresh)
    await flow.check_ticker(payload.ticker)
    try:
        holding = await flow.submit(payload, current_user.id, store)
    except TickerNotValidatedError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"ticker": flow.validator.error or str(exc)},
        ) from exc
    except UnsupportedCurrencyError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"purchase_currency": str(exc)},
        ) from exc
    except HoldingsStoreError as exc:
        raise _store_error(exc) from exc
    return HoldingSchema.from_domain(holding)


@router.put("/{holding_id}", response_model=PortfolioResponse)
async def edit_holding(
    holding_id: UUID,
    payload: EditHoldingForm,
    store: HoldingsStore = Depends(get_store),
    views: PortfolioViewRegistry = Depends(get_views),
    current_user: User = Depends(get_current_user),
) -> PortfolioResponse:
    view = views.get(current_user.id)
    try:
        valuation = await view.edit_holding(store, holding_id, payload)
    except HoldingsStoreError as exc:
        raise _store_error(exc) from exc
    return PortfolioResponse.from_valuation(valuation, fx_fallback=view.fx.fallback)


@router.delete("/{holding_id}", response_model=PortfolioResponse)
async def delete_holding(
    holding_id: UUID,
    store: HoldingsStore = Depends(get_store),
    views: PortfolioViewRegistry = Depends(get_views),
    current_user: User = Depends(get_current_user),
) -> PortfolioResponse:
    view = views.get(current_user.id)
    try:
        valuation = await view.delete_holding(store, holding_id)
    except HoldingsStoreError as exc:
        raise _store_error(exc) from exc
    return PortfolioResponse.from_valuation(valuation, fx_fallback=view.fx.fallback)


__all__ = ["router"]
