# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Outbound URL validation guarding against server-side request forgery."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable
from urllib.parse import urlsplit

from servercat.core.exceptions import InvalidWebhookError

_LOCAL_HOSTNAMES = frozenset({"localhost", "localhost.localdomain"})


def _is_internal_address(host: str) -> bool:
    if host in _LOCAL_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        addr = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return addr.is_loopback or addr.is_link_local or addr.is_unspecified or addr.is_private


def validate_webhook_url(
    url: str,
    *,
    allowed_hosts: Iterable[str],
    allowed_protocols: Iterable[str] = ("https",),
) -> str:
    """Return the normalized host of *url* or raise :class:`InvalidWebhookError`.

    The scheme must be allow-listed, the host must be allow-listed, and hosts
    resolving syntactically to loopback, link-local, unspecified or private
    addresses are refused even if allow-listed.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidWebhookError("A webhook URL is required")
    try:
        parts = urlsplit(url.strip())
        host = (parts.hostname or "").lower()
    except ValueError as exc:
        raise InvalidWebhookError("Malformed webhook URL") from exc

    if parts.scheme.lower() not in {p.lower() for p in allowed_protocols}:
        raise InvalidWebhookError(f"Protocol not allowed: {parts.scheme or '(none)'}")
    if not host:
        raise InvalidWebhookError("Webhook URL has no host")
    if _is_internal_address(host):
        raise InvalidWebhookError("Internal addresses are not allowed")
    if host not in {h.lower() for h in allowed_hosts}:
        raise InvalidWebhookError(f"Host not allowed: {host}")
    return host
