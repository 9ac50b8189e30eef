"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clovis_api.config import settings
from clovis_api.routers import cheapest, period, search, token
from clovis_crawler.google.service import FlightSearchService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Own one HTTP connection pool for the lifetime of the app."""
    service = FlightSearchService()
    app.state.search_service = service
    logger.info("Flight search service started")
    try:
        yield
    finally:
        await service.close()


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title=settings.title,
        version=settings.version,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(token.router)
    app.include_router(search.router)
    app.include_router(cheapest.router)
    app.include_router(period.router)

    @app.get("/", tags=["meta"])
    async def describe() -> dict[str, Any]:
        """Service descriptor listing every endpoint."""
        return {
            "name": settings.title,
            "version": settings.version,
            "endpoints": {
                "token": "GET /token",
                "searchRoundTrip": (
                    "GET /flights/search/roundTrip?from&to&departDate&returnDate"
                ),
                "searchOneWay": "GET /flights/search/oneWay?from&to&departDate",
                "cheapest": "GET /flights/cheapest?from&to&departDate&returnDate",
                "cheapestOneWay": "GET /flights/cheapest/oneWay?from&to&departDate",
                "return": "POST /flights/return",
                "periodRoundTrip": (
                    "GET /flights/period/roundTrip?from&to&periodStart&periodEnd"
                    "&tripDays&durationMode&durationVariation&preferWeekends"
                ),
                "periodOneWay": (
                    "GET /flights/period/oneWay?from&to&periodStart&periodEnd"
                ),
            },
        }

    return app


app = create_app()
