"""In-process publish/subscribe for state change notifications."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)


class Event(NamedTuple):
    name: str
    ts: datetime
    payload: Any


Handler = Callable[[Event], None]


class EventBus:
    """Delivers each published event to the handlers subscribed at publish time.

    Handlers run synchronously in subscription order. A handler that raises is
    logged and skipped; the remaining handlers still receive the event.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler`` for ``name``; returns a callable that unsubscribes it."""
        with self._lock:
            self._subscribers.setdefault(name, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(name, handler)

        return unsubscribe

    def unsubscribe(self, name: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscribers.get(name)
            if handlers and handler in handlers:
                handlers.remove(handler)

    def publish(self, name: str, payload: Any = None) -> int:
        """Publish an event; returns the number of handlers that ran cleanly."""
        with self._lock:
            handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return 0

        event = Event(name=name, ts=datetime.now(), payload=payload)
        delivered = 0
        for handler in handlers:
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(f"Handler {handler!r} failed for event {name}")
        return delivered
