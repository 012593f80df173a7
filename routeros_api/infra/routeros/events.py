"""Synchronous in-process event publishing for the API client.

Observers register callbacks per event name. ``emit`` invokes every callback
registered for that name, in registration order, on the caller's stack.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

EventCallback = Callable[..., Any]


class EventEmitter:
    """Minimal ordered publish/subscribe mixin.

    Example:
        client.on("connected", lambda: print("up"))
        client.on("error", lambda exc: print(f"failed: {exc}"))
    """

    def __init__(self) -> None:
        self._listeners: defaultdict[str, list[EventCallback]] = defaultdict(list)

    def on(self, event: str, callback: EventCallback) -> EventCallback:
        """Register ``callback`` for ``event`` and return it."""
        self._listeners[event].append(callback)
        return callback

    def off(self, event: str, callback: EventCallback) -> None:
        """Remove a previously registered callback (no-op if absent)."""
        listeners = self._listeners.get(event)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def listeners(self, event: str) -> list[EventCallback]:
        """Return a copy of the callbacks registered for ``event``."""
        return list(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> int:
        """Invoke every callback for ``event`` in registration order.

        Args:
            event: Event name
            *args: Positional arguments passed to each callback

        Returns:
            Number of callbacks invoked
        """
        callbacks = self.listeners(event)
        for callback in callbacks:
            callback(*args)
        return len(callbacks)
