# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for servercat.

Errors raised to HTTP clients derive from :class:`ApiError`; each subclass
fixes the status code and the ``error`` kind string rendered in the body.
"""

from __future__ import annotations

from typing import Any


class ServercatError(Exception):
    """Base exception for all servercat errors."""


class ConfigurationError(ServercatError):
    """Invalid or missing configuration."""


class ApiError(ServercatError):
    """An error with a fixed HTTP status and a structured JSON body."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, *, details: list[str] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error_code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


# ---------------------------------------------------------------------------
# Authentication / authorization
# ---------------------------------------------------------------------------


class AuthError(ApiError):
    """Base class for credential and permission failures."""

    status_code = 401
    error_code = "UNAUTHENTICATED"


class MissingCredentialError(AuthError):
    status_code = 401
    error_code = "MISSING_CREDENTIAL"
    default_message = "Authorization bearer token required"


class InvalidCredentialError(AuthError):
    status_code = 403
    error_code = "INVALID_CREDENTIAL"
    default_message = "The provided token is invalid or has expired"


class IncompletePayloadError(AuthError):
    status_code = 403
    error_code = "INCOMPLETE_PAYLOAD"
    default_message = "The token does not carry a valid subject and role"


class UnauthenticatedError(AuthError):
    status_code = 401
    error_code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class ForbiddenError(AuthError):
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "Insufficient permissions"


# ---------------------------------------------------------------------------
# Request content
# ---------------------------------------------------------------------------


class ValidationFailedError(ApiError):
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "The provided data does not meet the requirements"


class ThreatDetectedError(ApiError):
    status_code = 400
    error_code = "THREAT_DETECTED"
    default_message = "Potentially dangerous patterns were detected; the request was rejected"


class IntegrityFailureError(ApiError):
    status_code = 400
    error_code = "INTEGRITY_FAILURE"
    default_message = "Data integrity check failed"


class MissingContentTypeError(ApiError):
    status_code = 400
    error_code = "CONTENT_TYPE_REQUIRED"
    default_message = "A Content-Type header is required"


class UnsupportedMediaTypeError(ApiError):
    status_code = 415
    error_code = "UNSUPPORTED_MEDIA_TYPE"
    default_message = "Content-Type not allowed"


class PayloadTooLargeError(ApiError):
    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"
    default_message = "Request body too large"


class InvalidWebhookError(ApiError):
    status_code = 400
    error_code = "INVALID_WEBHOOK_URL"
    default_message = "Webhook URL is not allowed"


# ---------------------------------------------------------------------------
# Flow control / lookup
# ---------------------------------------------------------------------------


class RateLimitExceededError(ApiError):
    status_code = 429
    error_code = "RATE_LIMIT_EXCEEDED"
    default_message = "Too many requests, please try again later"

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["retryAfter"] = self.retry_after
        return body


class NotFoundError(ApiError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Resource not found"
