"""
User-facing notification channel.

Background work (uploads, microphone start) publishes here instead of raising
into the timer. The view layer subscribes with a callback or consumes the
asyncio queue returned by ``stream()``.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Callable

logger = logging.getLogger(__name__)


class Level(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: Level
    title: str
    message: str
    blocking: bool = False
    created_at: datetime | None = None


Listener = Callable[[Notification], None]


class Notifier:
    """In-process publish/subscribe channel for toasts and alerts."""

    def __init__(self, max_queue: int = 100):
        self._listeners: list[Listener] = []
        self._queues: set[asyncio.Queue] = set()
        self._max_queue = max_queue
        self.history: list[Notification] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def stream(self) -> AsyncIterator[Notification]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue)
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)

    def publish(self, notification: Notification) -> None:
        self.history.append(notification)
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener failed")
        for queue in list(self._queues):
            try:
                queue.put_nowait(notification)
            except asyncio.QueueFull:
                # Slow consumer, drop.
                pass

    def notify(
        self,
        level: Level,
        title: str,
        message: str = "",
        blocking: bool = False,
    ) -> Notification:
        notification = Notification(
            level=level,
            title=title,
            message=message,
            blocking=blocking,
            created_at=datetime.now(timezone.utc),
        )
        self.publish(notification)
        return notification

    def info(self, title: str, message: str = "") -> Notification:
        return self.notify(Level.INFO, title, message)

    def success(self, title: str, message: str = "") -> Notification:
        return self.notify(Level.SUCCESS, title, message)

    def warning(self, title: str, message: str = "") -> Notification:
        return self.notify(Level.WARNING, title, message)

    def error(self, title: str, message: str = "", blocking: bool = True) -> Notification:
        return self.notify(Level.ERROR, title, message, blocking=blocking)

    def by_level(self, level: Level) -> list[Notification]:
        return [item for item in self.history if item.level == level]
