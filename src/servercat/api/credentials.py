# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Signed bearer credentials (HS256 JWT) carrying a subject and a role."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import jwt

from servercat.core.exceptions import InvalidCredentialError

logger = logging.getLogger("servercat.api.credentials")

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class Credential:
    token: str
    subject: str
    role: str
    issued_at: int
    expires_at: int

    @property
    def expires_in(self) -> int:
        return self.expires_at - self.issued_at


class CredentialIssuer:
    """Issues and verifies signed credentials with a fixed validity period."""

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm
        self._clock = clock

    def issue(self, subject_id: str, role: str) -> Credential:
        if not subject_id:
            raise ValueError("subject_id must be a non-empty string")
        issued_at = int(self._clock())
        expires_at = issued_at + self.ttl_seconds
        token = jwt.encode(
            {"sub": str(subject_id), "role": str(role), "iat": issued_at, "exp": expires_at},
            self._secret,
            algorithm=self.algorithm,
        )
        return Credential(
            token=token,
            subject=str(subject_id),
            role=str(role),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(self, token: str) -> dict[str, Any]:
        """Return the decoded claims or raise :class:`InvalidCredentialError`.

        Signature, structure, and expiry are all checked; the cause is logged
        but never returned to the caller.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            logger.debug("Credential rejected: %s", exc)
            raise InvalidCredentialError() from exc
