# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Request middleware: request IDs, security headers, rate limiting, content and threat checks.

Each stage renders its own rejection as a JSON response; exceptions raised
here never reach the application's exception handlers.
"""

from __future__ import annotations

import json
import logging
import re
import time
import traceback
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from servercat.api.deps import AppServices, client_address
from servercat.api.errors import error_response
from servercat.core.constants import SecurityEventType, Severity
from servercat.core.exceptions import (
    ForbiddenError,
    MissingContentTypeError,
    PayloadTooLargeError,
    RateLimitExceededError,
    ThreatDetectedError,
    UnsupportedMediaTypeError,
)
from servercat.security.injection import scan, scan_request, validate_graphql_query
from servercat.security.masking import mask_sensitive

logger = logging.getLogger("servercat.api.middleware")

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Responses on these paths must never be cached by clients or proxies
_NO_STORE_PREFIXES = ("/products", "/productos", "/graphql")

_RATE_LIMIT_SKIP_PATHS: set[str] = {"/health"}

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline'",
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data: https:",
    "font-src 'self'",
    "connect-src 'self'",
    "frame-ancestors 'none'",
    "base-uri 'self'",
    "form-action 'self'",
])

SUSPICIOUS_AGENT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (r"sqlmap", r"nmap", r"nikto", r"wget", r"curl", r"python-requests", r"bot", r"scanner", r"crawl")
)


def is_suspicious_agent(user_agent: str) -> bool:
    return any(p.search(user_agent) for p in SUSPICIOUS_AGENT_PATTERNS)


class ServiceMiddleware(BaseHTTPMiddleware):
    """Base for middlewares that need the application's service container."""

    def __init__(self, app: ASGIApp, services: AppServices) -> None:
        super().__init__(app)
        self.services = services


class RequestMiddleware(BaseHTTPMiddleware):
    """Adds request logging and X-Request-ID header to every response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.monotonic()

        response = await call_next(request)

        duration_ms = round((time.monotonic() - start) * 1000, 1)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "%s %s %s %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"request_id": request_id, "client_ip": client_address(request)},
        )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Sets hardening headers on every response.

    HSTS is only sent over HTTPS; catalog and GraphQL responses are marked
    non-cacheable.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if "server" in response.headers:
            del response.headers["server"]

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"

        if request.url.path.startswith(_NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"

        return response


class RateLimitMiddleware(ServiceMiddleware):
    """Global fixed-window limiter keyed by client address.

    * Returns **429** with ``Retry-After`` once the window's quota is spent.
    * Adds ``X-RateLimit-Limit``, ``X-RateLimit-Remaining`` and
      ``X-RateLimit-Reset`` (seconds) to every response.
    * Skips ``/health``, which has its own limiter.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _RATE_LIMIT_SKIP_PATHS:
            return await call_next(request)

        client_ip = client_address(request)
        decision = self.services.rate_limiter.check_and_increment(client_ip)
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": str(decision.reset_after),
        }

        if not decision.allowed:
            self.services.security_logger.log_event(
                SecurityEventType.RATE_LIMIT_EXCEEDED,
                Severity.MEDIUM,
                {"ip": client_ip, "method": request.method, "path": request.url.path},
            )
            response = error_response(RateLimitExceededError(decision.retry_after))
            response.headers.update(headers)
            return response

        response = await call_next(request)
        response.headers.update(headers)
        return response


class SuspiciousAgentMiddleware(ServiceMiddleware):
    """Flags scanner and scripted-client user agents; blocks them only when configured to."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        user_agent = request.headers.get("user-agent", "")
        if user_agent and is_suspicious_agent(user_agent):
            self.services.security_logger.log_event(
                SecurityEventType.SUSPICIOUS_ACTIVITY,
                Severity.MEDIUM,
                {
                    "reason": "suspicious_user_agent",
                    "ip": client_address(request),
                    "userAgent": user_agent,
                    "path": request.url.path,
                },
            )
            if self.services.settings.block_suspicious_agents:
                return error_response(ForbiddenError("Client not allowed"))
        return await call_next(request)


class ContentGuardMiddleware(ServiceMiddleware):
    """Checks Content-Type and declared size of request bodies.

    Only requests that actually carry a body are inspected, so bodiless
    POSTs (``/login`` without credentials) pass through.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method not in _BODY_METHODS:
            return await call_next(request)

        try:
            length = int(request.headers.get("content-length") or 0)
        except ValueError:
            length = 0
        chunked = "chunked" in request.headers.get("transfer-encoding", "").lower()
        if length <= 0 and not chunked:
            return await call_next(request)

        settings = self.services.settings
        content_type = request.headers.get("content-type", "").strip().lower()
        if not content_type:
            return error_response(MissingContentTypeError())
        if not any(content_type.startswith(t) for t in settings.allowed_content_types):
            return error_response(UnsupportedMediaTypeError())
        if length > settings.max_body_bytes:
            return error_response(
                PayloadTooLargeError(f"Maximum allowed size is {settings.max_body_bytes // 1024}KB")
            )
        return await call_next(request)


def _decode_body(raw: bytes) -> Any:
    """Parse a JSON body, falling back to its text so non-JSON payloads are still scanned."""
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


class ThreatScanMiddleware(ServiceMiddleware):
    """Rejects requests whose query, body, or monitored headers match an injection signature.

    GraphQL bodies use the GraphQL query validator for ``query`` and the
    generic scan for ``variables``.  The decoded body is left on
    ``request.state.json_body`` for the error logger.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        body: Any = None
        if request.method in _BODY_METHODS:
            body = _decode_body(await request.body())
            request.state.json_body = body

        query = dict(request.query_params)
        threats: list[dict[str, Any]]

        if request.url.path == "/graphql" and isinstance(body, dict):
            findings = scan_request(query=query, headers=request.headers)
            findings.extend(scan(body.get("variables"), "body.variables"))
            threats = [f.to_dict() for f in findings]
            threats.extend(
                {"signature": "graphql", "field": "body.query", "description": problem}
                for problem in validate_graphql_query(body.get("query"))
            )
        else:
            findings = scan_request(query=query, body=body, headers=request.headers)
            threats = [f.to_dict() for f in findings]

        if threats:
            self.services.security_logger.log_event(
                SecurityEventType.INJECTION_ATTEMPT,
                Severity.HIGH,
                {
                    "ip": client_address(request),
                    "method": request.method,
                    "url": str(request.url.path),
                    "threats": threats,
                },
            )
            return error_response(ThreatDetectedError())

        return await call_next(request)


class ErrorLoggingMiddleware(ServiceMiddleware):
    """Terminal handler for exceptions no exception handler claimed.

    The failure is written to the error log with masked request details;
    clients get a generic message in production and the exception text and
    trace otherwise.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            principal = getattr(request.state, "principal", None)
            self.services.security_logger.log_error(
                exc,
                {
                    "method": request.method,
                    "path": request.url.path,
                    "ip": client_address(request),
                    "userAgent": request.headers.get("user-agent", ""),
                    "user": principal.id if principal is not None else None,
                    "body": mask_sensitive(getattr(request.state, "json_body", None)),
                    "query": mask_sensitive(dict(request.query_params)),
                },
            )
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)

            if self.services.settings.is_production:
                content: dict[str, Any] = {
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                }
            else:
                content = {
                    "error": "INTERNAL_ERROR",
                    "message": str(exc),
                    "stack": "".join(traceback.format_exception(exc)),
                }
            return JSONResponse(status_code=500, content=content)
