"""The two-tier cached window over a sorted remote collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from .core import Node

ORDERED = "ordered"
UNORDERED = "unordered"


@dataclass(frozen=True)
class Page:
    """One response of a paginated fetch."""

    items: Tuple[Node, ...] = ()
    cursor: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    @property
    def has_more(self) -> bool:
        return self.cursor is not None


@dataclass(frozen=True)
class Location:
    tier: str
    index: int


@dataclass(frozen=True)
class ListWindow:
    """Locally held part of a collection.

    ``ordered`` is a sort-correct prefix of the remote collection. Nodes the
    client knows belong to the collection but cannot place relative to the
    unfetched tail wait in ``unordered``, in arrival order. A ``None``
    cursor means the whole collection has been fetched.

    Instances are never mutated; every operation builds a new window.
    """

    ordered: Tuple[str, ...] = ()
    cursor: Optional[str] = None
    unordered: Tuple[str, ...] = field(default=())

    @classmethod
    def empty(cls) -> ListWindow:
        return cls()

    @property
    def has_more(self) -> bool:
        return self.cursor is not None

    def __len__(self) -> int:
        return len(self.ordered) + len(self.unordered)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.ordered or node_id in self.unordered

    def ids(self) -> Iterable[str]:
        yield from self.ordered
        yield from self.unordered

    def locate(self, node_id: str) -> Optional[Location]:
        if node_id in self.ordered:
            return Location(ORDERED, self.ordered.index(node_id))
        if node_id in self.unordered:
            return Location(UNORDERED, self.unordered.index(node_id))
        return None

    def flat_index(self, location: Optional[Location]) -> Optional[int]:
        """Translate a tier location into a position of the flat projection."""
        if location is None:
            return None
        if location.tier == ORDERED:
            return location.index
        return len(self.ordered) + location.index

    def without(self, node_id: str) -> ListWindow:
        return ListWindow(
            ordered=tuple(i for i in self.ordered if i != node_id),
            cursor=self.cursor,
            unordered=tuple(i for i in self.unordered if i != node_id),
        )

    def inserted(self, node_id: str, index: int) -> ListWindow:
        ordered = list(self.ordered)
        ordered.insert(index, node_id)
        return ListWindow(ordered=tuple(ordered), cursor=self.cursor, unordered=self.unordered)

    def deferred(self, node_id: str, index: Optional[int] = None) -> ListWindow:
        """Return a copy with *node_id* in the unordered tier (appended unless *index* is given)."""
        unordered = list(self.unordered)
        if index is None:
            unordered.append(node_id)
        else:
            unordered.insert(index, node_id)
        return ListWindow(ordered=self.ordered, cursor=self.cursor, unordered=tuple(unordered))
