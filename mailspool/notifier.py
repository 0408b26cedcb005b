"""Typed notification channel — an explicit callback registry."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class Notifier(Generic[T]):
    """Broadcast one kind of event to registered handlers.

    Handlers run synchronously on the publishing thread, in registration
    order.  Registration is thread-safe; ``publish`` iterates over a
    snapshot, so a handler may unsubscribe itself (or others) mid-publish.
    Exceptions raised by a handler propagate to the publisher.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Callable[[T], None]] = []
        self._registry_lock = threading.Lock()

    def subscribe(self, handler: Callable[[T], None]) -> Callable[[], None]:
        """Register *handler*; returns a callable that unregisters it."""
        with self._registry_lock:
            self._handlers.append(handler)
        logger.debug("notifier_subscribed", channel=self.name, handlers=len(self._handlers))

        def _unsubscribe() -> None:
            self.unsubscribe(handler)

        return _unsubscribe

    def unsubscribe(self, handler: Callable[[T], None]) -> None:
        """Remove *handler*; unknown handlers are ignored."""
        with self._registry_lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def publish(self, event: T) -> None:
        with self._registry_lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler(event)

    def __len__(self) -> int:
        return len(self._handlers)
