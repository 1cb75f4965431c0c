"""
In-process event bus.

Components announce what happened (a backup finished) without knowing
who listens. Handlers may be plain functions or coroutines; a handler
that raises is logged and skipped so it can never fail the operation
that emitted the event.

Usage:
    bus = EventBus()
    bus.on(BackupCompleted, lister.handle_backup_completed)
    await bus.emit(BackupCompleted(path="/home/u/notes.txt", display_name="notes.txt"))
"""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Union

from pydantic import BaseModel, Field

logger = logging.getLogger("nimbusvault.events")

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class BackupCompleted(BaseModel):
    """A backup request succeeded on the backend."""

    path: str
    display_name: str
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EventBus:
    """Type-keyed publish/subscribe for client events."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = {}

    def on(self, event_type: type, handler: Handler) -> None:
        """Register a handler for an event type."""
        self._handlers.setdefault(event_type, []).append(handler)

    def off(self, event_type: type, handler: Handler) -> bool:
        """Remove a handler.

        Returns:
            True if the handler was registered.
        """
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    async def emit(self, event: BaseModel) -> int:
        """Deliver an event to every handler registered for its type.

        Handlers run in registration order; coroutine handlers are awaited.

        Args:
            event: The event instance.

        Returns:
            Number of handlers that ran without raising.
        """
        delivered = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as exc:
                logger.error(
                    "Handler %r failed on %s: %s",
                    handler, type(event).__name__, exc,
                )
        return delivered
