"""Single-flight periodic scheduler for the feed pipeline.

Fires immediately, then every `interval_sec` on a fixed cadence. A tick that
finds the previous check still running is skipped, never queued. Each check is
bounded by `timeout_sec` so a hung network call cannot hold the flag forever.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger


class PollScheduler:
    """Drives one check per interval, at most one at a time."""

    def __init__(
        self,
        check: Callable[[], Awaitable[object]],
        *,
        interval_sec: float = 90.0,
        timeout_sec: float | None = 600.0,
    ) -> None:
        self._check = check
        self._interval = interval_sec
        self._timeout = timeout_sec
        self._running = False
        self._stop = asyncio.Event()
        self._current: asyncio.Task | None = None
        self.runs = 0
        self.skipped = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def tick(self) -> bool:
        """Run one check unless one is in flight. Returns False when skipped."""
        if self._running:
            self.skipped += 1
            logger.info("[SCHED] Previous check still running, skipping this tick")
            return False

        self._running = True
        try:
            self.runs += 1
            await asyncio.wait_for(self._check(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error(f"[SCHED] Check exceeded {self._timeout}s and was cancelled")
        except Exception as e:
            logger.opt(exception=True).error(f"[SCHED] Check failed: {e}")
        finally:
            self._running = False
        return True

    async def run(self) -> None:
        """Tick now and on every interval until stop() is called."""
        logger.info(f"[SCHED] Starting, interval={self._interval}s")
        while not self._stop.is_set():
            if not self._running:
                self._current = asyncio.create_task(self.tick())
            else:
                await self.tick()  # logs and counts the skip
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

        if self._current is not None and not self._current.done():
            await self._current
        logger.info("[SCHED] Stopped")

    def stop(self) -> None:
        self._stop.set()
