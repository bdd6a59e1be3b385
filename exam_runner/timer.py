"""Repeating one-second ticker for the exam countdown."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class Ticker:
    """
    Calls ``callback`` every ``interval`` seconds on an absolute schedule.

    Late ticks do not shift later ones, and ticks missed while a callback was
    running are skipped rather than replayed in a burst. ``restart`` moves the
    schedule so the next tick lands a full interval from now. The loop ends
    when ``keep_running`` returns False or ``stop`` is called.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval: float = 1.0,
        keep_running: Callable[[], bool] | None = None,
    ):
        self.callback = callback
        self.interval = interval
        self.keep_running = keep_running or (lambda: True)
        self.ticks = 0
        self._task: asyncio.Task | None = None
        self._next_at = 0.0
        self._rescheduled = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="exam-ticker")

    def restart(self) -> None:
        """Re-anchor the schedule: the next tick fires one interval from now."""
        if not self.running:
            return
        self._next_at = asyncio.get_running_loop().time() + self.interval
        self._rescheduled.set()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        self._next_at = loop.time() + self.interval
        while self.keep_running():
            delay = max(0.0, self._next_at - loop.time())
            try:
                await asyncio.wait_for(self._rescheduled.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            if self._rescheduled.is_set():
                self._rescheduled.clear()
                continue
            if not self.keep_running():
                break
            try:
                await self.callback()
            except Exception:
                logger.exception("Tick handler failed")
            self.ticks += 1
            if self._rescheduled.is_set():
                # restart() ran during the callback and already set the deadline.
                self._rescheduled.clear()
                continue
            self._next_at += self.interval
            now = loop.time()
            if self._next_at <= now:
                skipped = int((now - self._next_at) // self.interval) + 1
                logger.debug("Ticker fell behind, skipping %d tick(s)", skipped)
                self._next_at += skipped * self.interval

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait(self) -> None:
        if self._task is not None:
            await self._task
