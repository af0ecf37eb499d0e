"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.config import AppSettings, get_settings
from app.core.logging import setup_logging
from app.core.telemetry import setup_telemetry
from app.db import Database
from app.providers.polygon import PolygonClient
from app.services.identity import IdentityClient
from app.services.portfolio import PortfolioViewRegistry
from app.services.price_queue import ConstantBackoff, PriceFetchQueue

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    database: Database | None = None,
    market: PolygonClient | None = None,
    identity: IdentityClient | None = None,
) -> FastAPI:
    """Build the application; collaborators may be injected for tests."""

    settings = settings or get_settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        logger.info("Portfolio Analyzer configuration: %s", settings.dict_for_logging())
        await database.create_all()
        async with httpx.AsyncClient() as http_client:
            app.state.market = market or PolygonClient.from_settings(settings, http_client)
            app.state.identity = identity or IdentityClient.from_settings(settings, http_client)
            prices = PriceFetchQueue(
                app.state.market.get_previous_close,
                backoff=ConstantBackoff(settings.price_request_interval_seconds),
            )
            app.state.views = PortfolioViewRegistry(
                app.state.market,
                prices,
                display_currencies=settings.display_currencies,
                fx_fallbacks=settings.fx_fallback_rates,
            )
            if not app.state.market.configured:
                logger.warning("POLYGON_API_KEY is not set; ticker checks and prices will be unavailable")
            yield
        await database.dispose()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=_lifespan)
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    setup_telemetry(app, settings, engine=database.engine)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {
            "status": "ok",
            "timestamp": datetime.now().isoformat(),
            "base_currency": settings.base_currency,
        }

    return app


def configure_app() -> FastAPI:
    setup_logging()
    return create_app()


__all__ = ["configure_app", "create_app"]
