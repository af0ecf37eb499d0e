"""Route registration helpers."""

from __future__ import annotations

from fastapi import APIRouter

from .auth import router as auth_router
from .holdings import router as holdings_router
from .portfolio import router as portfolio_router
from .tickers import router as tickers_router

api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(tickers_router, prefix="/tickers", tags=["tickers"])
api_router.include_router(holdings_router, prefix="/holdings", tags=["holdings"])
api_router.include_router(portfolio_router, prefix="/portfolio", tags=["portfolio"])

__all__ = ["api_router"]
