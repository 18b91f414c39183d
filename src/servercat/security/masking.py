# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Masking of sensitive keys before data reaches a log line or a client."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from servercat.core.constants import MASK, SENSITIVE_FIELDS


def is_sensitive(key: str) -> bool:
    return key.lower() in SENSITIVE_FIELDS


def mask_sensitive(data: Any) -> Any:
    """Return a copy of *data* with every sensitive key's value replaced by the mask."""
    if isinstance(data, Mapping):
        return {
            key: MASK if is_sensitive(str(key)) else mask_sensitive(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item) for item in data]
    return data


def sanitize_response(data: Any) -> Any:
    """Return a copy of *data* with sensitive keys removed entirely."""
    if isinstance(data, Mapping):
        return {
            key: sanitize_response(value)
            for key, value in data.items()
            if not is_sensitive(str(key))
        }
    if isinstance(data, list):
        return [sanitize_response(item) for item in data]
    return data
