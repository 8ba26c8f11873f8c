"""View model base tracking bus subscriptions so ``dispose()`` can drop them."""

from __future__ import annotations

from typing import Callable, Type

from iFiles.events.bus import EventBus, Subscription


class BaseViewModel:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe_event(
        self,
        event_bus: EventBus,
        event_type: Type,
        handler: Callable,
    ) -> Subscription:
        sub = event_bus.subscribe(event_type, handler)
        self._subscriptions.append(sub)
        return sub

    def track(self, subscription: Subscription) -> Subscription:
        """Keep a subscription made elsewhere (for example on a ``Store``)."""
        self._subscriptions.append(subscription)
        return subscription

    def dispose(self) -> None:
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
