from .bus import Event, EventBus, Subscription
from .collection_events import (
    CollectionEvent,
    ItemRepositionedEvent,
    ItemUpdatedEvent,
    PageMergedEvent,
    WindowInvalidatedEvent,
    WindowRefreshedEvent,
    WindowResetEvent,
)

__all__ = [
    "CollectionEvent",
    "Event",
    "EventBus",
    "ItemRepositionedEvent",
    "ItemUpdatedEvent",
    "PageMergedEvent",
    "Subscription",
    "WindowInvalidatedEvent",
    "WindowRefreshedEvent",
    "WindowResetEvent",
]
