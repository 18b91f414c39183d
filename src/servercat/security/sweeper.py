# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Asyncio background loop running a maintenance callable at a fixed interval."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("servercat.security.sweeper")


class PeriodicTask:
    """Runs *func* every *interval* seconds on the current event loop.

    The first run happens one interval after :meth:`start`.  Exceptions from
    *func* are logged and the loop keeps going.
    """

    def __init__(self, name: str, func: Callable[[], Any], interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self._func = func
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"servercat-{self.name}")
        logger.info("Periodic task %s started (interval=%ss)", self.name, self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("Periodic task %s stopped", self.name)

    def run_once(self) -> Any:
        return self._func()

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            try:
                self.run_once()
            except Exception:
                logger.exception("Periodic task %s failed", self.name)
