# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Security logger writing structured JSON lines to security, error, and audit files."""

from __future__ import annotations

import logging
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from servercat.audit.events import SecurityEvent
from servercat.core.constants import SecurityEventType, Severity

if TYPE_CHECKING:
    from servercat.api.rbac import Principal

_logger = logging.getLogger("servercat.audit")

SECURITY_LOG = "security.log"
ERROR_LOG = "errors.log"
AUDIT_LOG = "audit.log"

_ALERT_SEVERITIES = frozenset({Severity.HIGH, Severity.CRITICAL})


class SecurityLogger:
    """Records security events, errors, and audit trails to append-only files.

    The logger provides fire-and-forget semantics: a failed write is reported
    on the ``servercat.audit`` logger and never propagates to the caller.
    When *log_dir* is ``None`` events are only echoed to the stdlib logger.
    """

    def __init__(self, log_dir: Path | None = None) -> None:
        self._log_dir = log_dir
        if self._log_dir is not None:
            try:
                self._log_dir.mkdir(parents=True, exist_ok=True)
            except OSError:
                _logger.exception("Failed to create log directory %s", self._log_dir)

    @property
    def log_dir(self) -> Path | None:
        return self._log_dir

    def path_for(self, name: str) -> Path | None:
        return self._log_dir / name if self._log_dir is not None else None

    # -----------------------------------------------------------------
    # Public sinks
    # -----------------------------------------------------------------

    def log_event(
        self,
        event_type: SecurityEventType,
        severity: Severity,
        context: dict[str, Any] | None = None,
    ) -> SecurityEvent:
        """Append a security event; High and Critical events are also echoed as alerts."""
        event = SecurityEvent(event_type=event_type, severity=severity, context=context or {})
        self._append(SECURITY_LOG, event)
        if severity in _ALERT_SEVERITIES:
            _logger.warning("SECURITY ALERT [%s] %s: %s", severity, event_type, event.context)
        else:
            _logger.debug("security event=%s type=%s", event.event_id, event_type)
        return event

    def log_error(self, error: BaseException, context: dict[str, Any] | None = None) -> SecurityEvent:
        """Append an error record including the exception type, message, and trace."""
        event = SecurityEvent(
            event_type=SecurityEventType.ERROR_OCCURRED,
            severity=Severity.MEDIUM,
            context={
                "error": {
                    "name": type(error).__name__,
                    "message": str(error),
                    "stack": "".join(traceback.format_exception(error)),
                },
                "context": context or {},
            },
        )
        self._append(ERROR_LOG, event)
        return event

    def log_audit(
        self,
        action: str,
        principal: Principal | None,
        resource: str,
        result: str,
        *,
        ip_address: str = "",
        user_agent: str = "",
    ) -> SecurityEvent:
        """Append an audit trail entry: who did what on which resource, and the outcome."""
        event = SecurityEvent(
            event_type=SecurityEventType.AUDIT,
            severity=Severity.LOW,
            context={
                "action": action,
                "user": (
                    {"id": principal.id, "role": str(principal.role)}
                    if principal is not None
                    else None
                ),
                "resource": resource,
                "result": result,
                "session": {"ip": ip_address, "user_agent": user_agent},
            },
        )
        self._append(AUDIT_LOG, event)
        return event

    # -----------------------------------------------------------------
    # Rotation
    # -----------------------------------------------------------------

    def rotate(self, *, today: str | None = None) -> list[Path]:
        """Rename each current log file to ``<name>.<YYYY-MM-DD>``.

        A file is left in place when the dated target already exists.
        Returns the paths of the rotated files.
        """
        if self._log_dir is None:
            return []
        date_suffix = today or datetime.now(UTC).strftime("%Y-%m-%d")
        rotated: list[Path] = []
        for name in (SECURITY_LOG, ERROR_LOG, AUDIT_LOG):
            current = self._log_dir / name
            target = self._log_dir / f"{name}.{date_suffix}"
            try:
                if current.exists() and not target.exists():
                    current.rename(target)
                    rotated.append(target)
            except OSError:
                _logger.exception("Failed to rotate log file %s", current)
        if rotated:
            _logger.info("Rotated %d log file(s)", len(rotated))
        return rotated

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _append(self, name: str, event: SecurityEvent) -> None:
        """Append a single JSON line to *name*; failures are logged and swallowed."""
        if self._log_dir is None:
            return
        try:
            line = event.to_line()
            with (self._log_dir / name).open("a", encoding="utf-8") as fh:
                fh.write(line)
        except Exception:
            _logger.exception("Failed to write %s entry %s", name, event.event_id)
