"""Dependencies handing request handlers the per-app service objects."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Request

from app.config import AppSettings
from app.db import Database
from app.providers.polygon import PolygonClient
from app.services.holdings import HoldingsStore
from app.services.portfolio import PortfolioViewRegistry


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_market(request: Request) -> PolygonClient:
    return request.app.state.market


def get_views(request: Request) -> PortfolioViewRegistry:
    return request.app.state.views


async def get_store(request: Request) -> AsyncIterator[HoldingsStore]:
    database: Database = request.app.state.database
    async with database.session() as session:
        yield HoldingsStore(session)


__all__ = ["get_app_settings", "get_market", "get_store", "get_views"]
