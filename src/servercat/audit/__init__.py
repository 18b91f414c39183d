# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Append-only security, error, and audit logging."""

from servercat.audit.events import SecurityEvent
from servercat.audit.logger import SecurityLogger

__all__ = [
    "SecurityEvent",
    "SecurityLogger",
]
