# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from servercat import __version__
from servercat.api.deps import AppServices
from servercat.api.errors import register_exception_handlers
from servercat.api.middleware import (
    ContentGuardMiddleware,
    ErrorLoggingMiddleware,
    RateLimitMiddleware,
    RequestMiddleware,
    SecurityHeadersMiddleware,
    SuspiciousAgentMiddleware,
    ThreatScanMiddleware,
)
from servercat.api.routes import auth, graphql_api, health, products, security
from servercat.audit.middleware import AuditMiddleware, AuthMonitorMiddleware
from servercat.core.config import Settings, get_settings

logger = logging.getLogger("servercat.api.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    services: AppServices = app.state.services

    # Periodic sweeps and log rotation, unless explicitly disabled
    if services.settings.enable_background_tasks:
        await services.start_background()

    yield

    await services.stop_background()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    services = AppServices.from_settings(settings)

    app = FastAPI(
        title="servercat",
        description="Server offering catalog behind an OWASP-style security pipeline",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(auth.router, tags=["auth"])
    app.include_router(products.router, prefix="/products", tags=["products"])
    app.include_router(products.router, prefix="/productos", tags=["products"])
    app.include_router(graphql_api.router, tags=["graphql"])
    app.include_router(security.router, tags=["security"])

    # Added innermost first: the last middleware added sees the request first
    app.add_middleware(ErrorLoggingMiddleware, services=services)
    app.add_middleware(AuditMiddleware, services=services)
    app.add_middleware(ThreatScanMiddleware, services=services)
    app.add_middleware(ContentGuardMiddleware, services=services)
    app.add_middleware(SuspiciousAgentMiddleware, services=services)
    app.add_middleware(RateLimitMiddleware, services=services)
    app.add_middleware(AuthMonitorMiddleware, services=services)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
        max_age=86400,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestMiddleware)

    logger.debug("Application created (environment=%s)", settings.environment)
    return app
