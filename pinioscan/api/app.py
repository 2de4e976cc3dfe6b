"""FastAPI application factory for the scan API."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware

from config.settings import settings
from pinioscan.api.limiter import limiter, rate_limit_exceeded_handler
from pinioscan.api.middleware import SecurityHeadersMiddleware
from pinioscan.services import Services, build_services

VERSION = "0.1.0"


def create_app(services: Services | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    ``services`` is built from settings on startup unless passed in; an
    injected instance is left open on shutdown (the caller owns it).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = services is None
        app.state.services = build_services(settings) if owned else services
        logger.info("[API] Scan services ready")
        try:
            yield
        finally:
            if owned:
                await app.state.services.close()
            logger.info("[API] Scan services closed")

    app = FastAPI(
        title="Pinioscan API",
        version=VERSION,
        docs_url="/api/docs" if os.getenv("PINIOSCAN_DEBUG") else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if os.getenv("PINIOSCAN_DEBUG") else None,
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    from pinioscan.api.routers.health import router as health_router
    from pinioscan.api.routers.ledger import router as ledger_router
    from pinioscan.api.routers.scan import router as scan_router
    from pinioscan.api.routers.skill import router as skill_router

    app.include_router(health_router)
    app.include_router(scan_router)
    app.include_router(ledger_router)
    app.include_router(skill_router)

    return app
