from dataclasses import dataclass
from typing import Hashable, Optional, Tuple

from .bus import Event
from ..domain.models.sort import SortSpec


@dataclass(kw_only=True)
class CollectionEvent(Event):
    """Base for every hook published by the collection cache."""
    collection_key: Hashable
    sort: SortSpec


@dataclass(kw_only=True)
class PageMergedEvent(CollectionEvent):
    first_page: bool
    added: Tuple[str, ...] = ()
    refreshed: Tuple[str, ...] = ()
    resolved: Tuple[str, ...] = ()
    has_more: bool = False


@dataclass(kw_only=True)
class ItemRepositionedEvent(CollectionEvent):
    """A node entered, left or moved within the flat projection.

    ``from_index``/``to_index`` are positions in the projection before and
    after the change; ``None`` means the node was absent on that side.
    """
    node_id: str
    from_index: Optional[int] = None
    to_index: Optional[int] = None
    ordered: bool = False

    @property
    def is_insert(self) -> bool:
        return self.from_index is None and self.to_index is not None

    @property
    def is_removal(self) -> bool:
        return self.from_index is not None and self.to_index is None


@dataclass(kw_only=True)
class ItemUpdatedEvent(CollectionEvent):
    node_id: str
    index: int


@dataclass(kw_only=True)
class WindowResetEvent(CollectionEvent):
    pass


@dataclass(kw_only=True)
class WindowInvalidatedEvent(CollectionEvent):
    reason: str = ""


@dataclass(kw_only=True)
class WindowRefreshedEvent(CollectionEvent):
    """Fresher records from another window's page moved tracked nodes here."""
    node_ids: Tuple[str, ...] = ()
