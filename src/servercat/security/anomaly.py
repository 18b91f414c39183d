# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Per-principal action history with burst and origin-spread heuristics."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from servercat.core.constants import AnomalyKind, SecurityEventType, Severity

if TYPE_CHECKING:
    from servercat.audit.logger import SecurityLogger

logger = logging.getLogger("servercat.security.anomaly")


@dataclass(frozen=True)
class ActionRecord:
    action: str
    timestamp: float
    origin: str


@dataclass
class ActionHistory:
    actions: deque[ActionRecord]
    origins: set[str] = field(default_factory=set)
    first_seen: float = 0.0
    last_seen: float = 0.0


@dataclass(frozen=True)
class AnomalyEvent:
    kind: AnomalyKind
    severity: Severity
    principal_id: str
    details: dict[str, Any]


class AnomalyDetector:
    """Tracks recent actions per principal and flags unusual patterns.

    Two checks run independently after every recorded action:

    * more than ``burst_threshold`` actions in the trailing
      ``burst_window_seconds`` raises ``HIGH_FREQUENCY_ACTIONS`` (high);
    * more than ``max_origins`` distinct origins raises ``MULTIPLE_ORIGINS``
      (medium).

    Histories are bounded to ``history_size`` entries and evicted by
    :meth:`sweep` after ``retention_seconds`` of inactivity.
    """

    def __init__(
        self,
        *,
        history_size: int = 100,
        burst_threshold: int = 50,
        burst_window_seconds: float = 60.0,
        max_origins: int = 3,
        retention_seconds: float = 86_400.0,
        security_logger: SecurityLogger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.history_size = history_size
        self.burst_threshold = burst_threshold
        self.burst_window_seconds = burst_window_seconds
        self.max_origins = max_origins
        self.retention_seconds = retention_seconds
        self._security_logger = security_logger
        self._clock = clock
        self._histories: dict[str, ActionHistory] = {}

    def __len__(self) -> int:
        return len(self._histories)

    def history_for(self, principal_id: str) -> ActionHistory | None:
        return self._histories.get(principal_id)

    def record(self, principal_id: str, action: str, origin: str) -> list[AnomalyEvent]:
        """Append *action* to the principal's history and return any anomalies it triggers."""
        now = self._clock()
        history = self._histories.get(principal_id)
        if history is None:
            history = ActionHistory(
                actions=deque(maxlen=self.history_size),
                first_seen=now,
            )
            self._histories[principal_id] = history

        history.actions.append(ActionRecord(action=action, timestamp=now, origin=origin))
        history.origins.add(origin)
        history.last_seen = now

        events: list[AnomalyEvent] = []

        recent = sum(1 for a in history.actions if now - a.timestamp < self.burst_window_seconds)
        if recent > self.burst_threshold:
            events.append(
                AnomalyEvent(
                    kind=AnomalyKind.HIGH_FREQUENCY_ACTIONS,
                    severity=Severity.HIGH,
                    principal_id=principal_id,
                    details={
                        "actionsCount": recent,
                        "timeWindow": f"{self.burst_window_seconds:g}s",
                    },
                )
            )

        if len(history.origins) > self.max_origins:
            events.append(
                AnomalyEvent(
                    kind=AnomalyKind.MULTIPLE_ORIGINS,
                    severity=Severity.MEDIUM,
                    principal_id=principal_id,
                    details={"ipCount": len(history.origins), "ips": sorted(history.origins)},
                )
            )

        for event in events:
            self._report(event)
        return events

    def sweep(self) -> int:
        """Evict principals with no activity for longer than the retention period."""
        now = self._clock()
        stale = [
            principal_id
            for principal_id, history in list(self._histories.items())
            if now - history.last_seen > self.retention_seconds
        ]
        for principal_id in stale:
            del self._histories[principal_id]
        if stale:
            logger.debug("Evicted %d idle action histories", len(stale))
        return len(stale)

    def _report(self, event: AnomalyEvent) -> None:
        logger.info("Anomaly %s for principal %s", event.kind, event.principal_id)
        if self._security_logger is None:
            return
        self._security_logger.log_event(
            SecurityEventType.SUSPICIOUS_ACTIVITY,
            event.severity,
            {
                "anomaly": str(event.kind),
                "userId": event.principal_id,
                "details": event.details,
            },
        )
