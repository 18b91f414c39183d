# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Role-based access control for bearer credentials.

Defines roles, permissions, the static role-to-permission table, and the
FastAPI dependencies that authenticate callers and gate routes.
"""

from __future__ import annotations

from enum import StrEnum

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from servercat.api.credentials import CredentialIssuer
from servercat.api.deps import AppServices, get_services
from servercat.core.constants import SecurityEventType, Severity
from servercat.core.exceptions import (
    AuthError,
    ForbiddenError,
    IncompletePayloadError,
    MissingCredentialError,
    UnauthenticatedError,
)

_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Role and Permission enumerations
# ---------------------------------------------------------------------------


class Role(StrEnum):
    """Roles carried by credentials."""

    ADMIN = "admin"
    USER = "user"
    READONLY = "readonly"


class Permission(StrEnum):
    """Permissions checked on catalog routes."""

    READ_PRODUCTS = "read:products"
    CREATE_PRODUCTS = "create:products"
    UPDATE_PRODUCTS = "update:products"
    DELETE_PRODUCTS = "delete:products"


# ---------------------------------------------------------------------------
# Role -> Permission mapping
# ---------------------------------------------------------------------------

ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.USER: frozenset({
        Permission.READ_PRODUCTS,
        Permission.CREATE_PRODUCTS,
        Permission.UPDATE_PRODUCTS,
    }),
    Role.READONLY: frozenset({
        Permission.READ_PRODUCTS,
    }),
}


def permissions_of(role: str) -> frozenset[Permission]:
    """Return the permission set of *role*; unknown roles get nothing."""
    try:
        return ROLE_PERMISSIONS.get(Role(role), frozenset())
    except ValueError:
        return frozenset()


def role_has_permission(role: str, permission: Permission) -> bool:
    """Check whether *role* grants *permission*."""
    return permission in permissions_of(role)


# ---------------------------------------------------------------------------
# Authenticated identity returned by the dependency chain
# ---------------------------------------------------------------------------


class Principal:
    """The caller derived from a verified credential."""

    __slots__ = ("id", "permissions", "role")

    def __init__(self, id: str, role: str) -> None:
        self.id = id
        self.role = role
        self.permissions = permissions_of(role)

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __repr__(self) -> str:
        return f"Principal(id={self.id!r}, role={self.role!r})"


# ---------------------------------------------------------------------------
# Core authentication logic (non-dependency, reusable)
# ---------------------------------------------------------------------------


def authenticate_token(token: str | None, issuer: CredentialIssuer) -> Principal:
    """Turn a raw bearer token into a :class:`Principal`.

    Usable from any context (FastAPI dependencies, GraphQL resolvers, tests).
    """
    if not token:
        raise MissingCredentialError()
    claims = issuer.verify(token)
    subject = claims.get("sub")
    role = claims.get("role")
    if not subject or not role:
        raise IncompletePayloadError()
    return Principal(id=str(subject), role=str(role))


# ---------------------------------------------------------------------------
# FastAPI dependency (extracts bearer credential, delegates to core logic)
# ---------------------------------------------------------------------------


async def authenticate(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    services: AppServices = Depends(get_services),
) -> Principal:
    """FastAPI dependency: authenticate the ``Authorization: Bearer`` header.

    The principal is attached to ``request.state.principal`` so outer
    middlewares (audit, anomaly detection) can see who made the request.
    """
    token = credentials.credentials if credentials is not None else None
    try:
        principal = authenticate_token(token, services.issuer)
    except AuthError as exc:
        services.security_logger.log_event(
            SecurityEventType.AUTH_FAILURE,
            Severity.MEDIUM,
            {
                "reason": exc.error_code,
                "path": request.url.path,
                "ip": request.client.host if request.client else "",
            },
        )
        raise
    request.state.principal = principal
    return principal


# ---------------------------------------------------------------------------
# Permission checks
# ---------------------------------------------------------------------------


def check_permission(principal: Principal | None, permission: Permission) -> Principal:
    """Raise unless *principal* exists and holds *permission*."""
    if principal is None:
        raise UnauthenticatedError()
    if not principal.has_permission(permission):
        raise ForbiddenError(f"Insufficient permissions: requires {permission.value}")
    return principal


def require_permission(permission: Permission):
    """Return a FastAPI dependency that enforces *permission*.

    The returned dependency is meant to be stored as a module-level
    singleton and referenced (not called) inside ``Depends()``.
    """
    _auth_security = Security(authenticate)

    async def _check(principal: Principal = _auth_security) -> Principal:
        return check_permission(principal, permission)

    return _check


async def check_resource_ownership(
    request: Request,
    principal: Principal = Security(authenticate),
) -> Principal:
    """Ownership gate for mutating routes.

    Admins pass unconditionally.  Other roles also pass: their own id is
    recorded as ``request.state.resource_owner`` but no resource data is
    consulted, so this does not restrict access on its own.
    """
    if not principal.is_admin:
        request.state.resource_owner = principal.id
    return principal


# ---------------------------------------------------------------------------
# Pre-built dependency singletons
# ---------------------------------------------------------------------------

require_read = require_permission(Permission.READ_PRODUCTS)
require_create = require_permission(Permission.CREATE_PRODUCTS)
require_update = require_permission(Permission.UPDATE_PRODUCTS)
require_delete = require_permission(Permission.DELETE_PRODUCTS)
