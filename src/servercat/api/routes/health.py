# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Health check endpoint with its own rate limit."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from servercat import __version__
from servercat.api.deps import AppServices, client_address, get_services
from servercat.core.exceptions import RateLimitExceededError

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    uptime: float
    timestamp: str


async def health_rate_limit(
    request: Request,
    services: AppServices = Depends(get_services),
) -> None:
    decision = services.health_limiter.check_and_increment(client_address(request))
    if not decision.allowed:
        raise RateLimitExceededError(decision.retry_after)


@router.get("/health", response_model=HealthResponse)
async def health(
    services: AppServices = Depends(get_services),
    _limit: None = Depends(health_rate_limit),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        service="servercat",
        version=__version__,
        uptime=round(services.uptime, 3),
        timestamp=datetime.now(UTC).isoformat(),
    )
