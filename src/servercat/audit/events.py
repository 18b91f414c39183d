# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security event record written to the append-only log sinks."""

from __future__ import annotations

import os
import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from servercat.core.constants import SecurityEventType, Severity


class SecurityEvent(BaseModel):
    """A single write-once log record.

    Events are serialized as one JSON object per line and are never updated
    or read back by the service.
    """

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    event_type: SecurityEventType
    severity: Severity = Severity.LOW
    process_id: int = Field(default_factory=os.getpid)
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form structured details about the event",
    )

    def to_line(self) -> str:
        return self.model_dump_json() + "\n"
