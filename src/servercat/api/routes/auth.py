# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Login endpoint issuing bearer credentials."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from servercat.api.deps import AppServices, get_services

router = APIRouter()


class LoginRequest(BaseModel):
    username: str = "admin"
    role: str = "admin"


class LoginResponse(BaseModel):
    token: str
    tokenType: str = "Bearer"
    expiresIn: int


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest | None = Body(default=None),
    services: AppServices = Depends(get_services),
) -> LoginResponse:
    """Issue a credential for the requested identity.

    Teaching endpoint: no password is checked and any role is accepted.
    Without a body the caller gets an admin credential.
    """
    request = body or LoginRequest()
    credential = services.issuer.issue(request.username or "admin", request.role or "admin")
    return LoginResponse(token=credential.token, expiresIn=credential.expires_in)
