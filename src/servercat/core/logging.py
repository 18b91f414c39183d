# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Process logging for the ``servercat`` namespace.

Both formatters scrub bearer credentials, JWTs, and ``key=value`` pairs
whose key names a sensitive field before a record leaves the process.
Security events proper go to the JSON-lines files written by
:class:`servercat.audit.logger.SecurityLogger`; this module only covers
the operational stream.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from servercat.core.constants import MASK, SENSITIVE_FIELDS

# Keep a short prefix of each credential so log lines stay correlatable
REDACT_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(Bearer\s+[A-Za-z0-9\-._~+/]{6})[A-Za-z0-9\-._~+/=]*"), r"\1[REDACTED]"),
    (re.compile(r"(eyJ[A-Za-z0-9_\-]{6})[A-Za-z0-9_\-]*\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"), r"\1[REDACTED]"),
    (re.compile(r"\b(\w*(?:" + "|".join(SENSITIVE_FIELDS) + r")\w*)=[^\s&,;]+", re.IGNORECASE), r"\1=" + MASK),
]

# LogRecord attributes copied into JSON output when a caller passes them via ``extra``
_EXTRA_FIELDS = ("request_id", "event_type", "client_ip", "principal")


def redact_sensitive(text: str) -> str:
    for pattern, replacement in REDACT_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class JsonFormatter(logging.Formatter):
    """One JSON object per record, timestamps in UTC ISO-8601."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_sensitive(record.getMessage()),
        }
        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = redact_sensitive(str(value))
        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            log_entry["exception"] = {
                "type": type(exc).__name__,
                "message": redact_sensitive(str(exc)),
            }
        return json.dumps(log_entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return redact_sensitive(super().format(record))


def setup_logging(level: str = "INFO", fmt: str = "json", *, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single stream handler to the ``servercat`` logger and return it."""
    root = logging.getLogger("servercat")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            TextFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root.addHandler(handler)
    return root
