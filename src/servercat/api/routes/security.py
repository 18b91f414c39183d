# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security posture report and webhook registration endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from servercat.api.deps import AppServices, get_services
from servercat.api.rbac import Principal, require_create, require_read
from servercat.core.constants import SecurityEventType, Severity
from servercat.security.webhook import validate_webhook_url

router = APIRouter()


class WebhookRequest(BaseModel):
    url: str


class WebhookResponse(BaseModel):
    status: str
    url: str
    host: str


@router.get("/security-status")
async def security_status(
    services: AppServices = Depends(get_services),
    _principal: Principal = Depends(require_read),
) -> dict[str, Any]:
    """Dependency vulnerability report plus critical-file integrity status."""
    dependency_report = services.dependencies.report()
    integrity = services.file_monitor.check()
    overall = (
        "WARNING"
        if dependency_report["vulnerabilityCount"] > 0 or integrity.compromised
        else "SECURE"
    )
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "dependencies": dependency_report,
        "integrity": integrity.to_dict(),
        "overallStatus": overall,
    }


@router.post("/webhook", response_model=WebhookResponse)
async def register_webhook(
    body: WebhookRequest,
    services: AppServices = Depends(get_services),
    principal: Principal = Depends(require_create),
) -> WebhookResponse:
    """Accept a webhook target after the SSRF allow-list checks."""
    settings = services.settings
    host = validate_webhook_url(
        body.url,
        allowed_hosts=settings.webhook_allowed_hosts,
        allowed_protocols=settings.webhook_allowed_protocols,
    )
    services.security_logger.log_event(
        SecurityEventType.CONFIGURATION_CHANGE,
        Severity.LOW,
        {"action": "webhook_registered", "host": host, "userId": principal.id},
    )
    return WebhookResponse(status="accepted", url=body.url, host=host)
