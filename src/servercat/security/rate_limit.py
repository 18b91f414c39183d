# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fixed-window request counter keyed by client identifier."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger("servercat.security.rate_limit")


@dataclass
class RateWindow:
    count: int
    start: float


@dataclass(frozen=True)
class RateDecision:
    """Outcome of a single admission check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int
    reset_after: int


class RateLimiter:
    """Counts requests per client in fixed, non-sliding windows.

    A window opens on the first request from a client and is replaced once
    more than ``window_seconds`` have elapsed since it opened.  A request is
    rejected when it pushes the window's count above ``max_requests``;
    rejected requests still count.  Bursts straddling a window boundary can
    therefore see up to twice the limit admitted.
    """

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, RateWindow] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def check_and_increment(self, client_id: str) -> RateDecision:
        now = self._clock()
        window = self._windows.get(client_id)
        if window is None or now - window.start > self.window_seconds:
            window = RateWindow(count=0, start=now)
            self._windows[client_id] = window

        window.count += 1
        reset_after = max(0, math.ceil(window.start + self.window_seconds - now))

        if window.count > self.max_requests:
            return RateDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                retry_after=reset_after,
                reset_after=reset_after,
            )

        return RateDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - window.count,
            retry_after=0,
            reset_after=reset_after,
        )

    def sweep(self) -> int:
        """Discard windows that opened more than one window ago. Returns the count removed."""
        now = self._clock()
        stale = [
            client_id
            for client_id, window in list(self._windows.items())
            if now - window.start > self.window_seconds
        ]
        for client_id in stale:
            del self._windows[client_id]
        if stale:
            logger.debug("Swept %d stale rate windows", len(stale))
        return len(stale)

    def reset(self) -> None:
        self._windows.clear()
