# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Middlewares that turn request outcomes into security events and audit entries."""

from __future__ import annotations

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from servercat.api.deps import client_address
from servercat.api.middleware import ServiceMiddleware
from servercat.core.constants import SecurityEventType, Severity

_LOGIN_PATH = "/login"

# Routes whose successful and failed accesses both generate audit entries
_AUDITED_PREFIXES = ("/products", "/productos", "/graphql")


class AuthMonitorMiddleware(ServiceMiddleware):
    """Records login outcomes and every 401/403 response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        security_logger = self.services.security_logger
        context = {
            "ip": client_address(request),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "userAgent": request.headers.get("user-agent", ""),
        }

        if request.url.path == _LOGIN_PATH and request.method == "POST":
            if response.status_code == 200:
                security_logger.log_event(SecurityEventType.AUTH_SUCCESS, Severity.LOW, context)
            else:
                security_logger.log_event(SecurityEventType.AUTH_FAILURE, Severity.MEDIUM, context)

        if response.status_code in (401, 403):
            security_logger.log_event(SecurityEventType.UNAUTHORIZED_ACCESS, Severity.MEDIUM, context)

        return response


class AuditMiddleware(ServiceMiddleware):
    """Writes data-access audit entries and feeds the anomaly detector.

    Both depend on the principal the authentication dependency attached to
    ``request.state``; unauthenticated requests are not recorded here.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        principal = getattr(request.state, "principal", None)
        if principal is None:
            return response

        ip_address = client_address(request)
        path = request.url.path
        action = f"{request.method} {path}"

        if path.startswith(_AUDITED_PREFIXES):
            result = "success" if response.status_code < 400 else "failure"
            self.services.security_logger.log_event(
                SecurityEventType.DATA_ACCESS,
                Severity.LOW,
                {
                    "action": action,
                    "userId": principal.id,
                    "role": str(principal.role),
                    "status": response.status_code,
                },
            )
            self.services.security_logger.log_audit(
                action,
                principal,
                path,
                result,
                ip_address=ip_address,
                user_agent=request.headers.get("user-agent", ""),
            )

        self.services.anomaly_detector.record(principal.id, action, ip_address)
        return response
