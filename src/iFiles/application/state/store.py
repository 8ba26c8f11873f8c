"""Injectable reactive value holder.

Upload progress, the active search filter and the chosen sort live in
``Store`` instances passed to whoever needs them, so each test (or each
window of the app) works on its own isolated state.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, TypeVar

from iFiles.events.bus import Subscription

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class Store(Generic[T]):
    """Holds one value and notifies subscribers with ``(new, old)`` when it changes."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscriptions: List[Subscription] = []
        self._lock = threading.RLock()

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        with self._lock:
            old = self._value
            if old == value:
                return
            self._value = value
            subscriptions = [sub for sub in self._subscriptions if sub.active]
            self._subscriptions = subscriptions
        for sub in subscriptions:
            try:
                sub.handler(value, old)
            except Exception as exc:
                _logger.error("Store subscriber %r failed: %s", sub.handler, exc)

    def update(self, fn: Callable[[T], T]) -> T:
        """Replace the value with ``fn(current)`` and return the result."""
        with self._lock:
            value = fn(self._value)
            self.set(value)
        return value

    def subscribe(self, callback: Callable[[T, T], None]) -> Subscription:
        sub = Subscription(event_type=object, handler=callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return sum(1 for sub in self._subscriptions if sub.active)


def create_store(initial: T) -> Store[T]:
    return Store(initial)
