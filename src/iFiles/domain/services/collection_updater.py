"""Apply a single node mutation to one cached window.

Every function here is a pure reducer: it receives a window and returns a
new one together with a description of what moved, so readers of the old
window never observe a half-applied change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..models.core import Node
from ..models.mutations import NodeCreated, NodeMutation, NodeRemoved, NodeUpdated
from ..models.sort import SortSpec
from ..models.window import UNORDERED, ListWindow, Location
from .comparator import affects_order
from .insertion import is_determined, resolve_insertion
from .page_merge import NodeLookup, resolve_nodes

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reposition:
    """Where a node sat before and after an update, as flat projection indices."""

    node_id: str
    before: Optional[Location]
    after: Optional[Location]
    from_index: Optional[int]
    to_index: Optional[int]

    @property
    def moved(self) -> bool:
        return self.from_index != self.to_index or self.before != self.after


@dataclass(frozen=True)
class UpdateResult:
    window: ListWindow
    node_id: Optional[str] = None
    change: Optional[Reposition] = None
    in_place: bool = False

    @property
    def changed(self) -> bool:
        return self.change is not None or self.in_place


def upsert_node(
    window: ListWindow,
    node: Node,
    spec: SortSpec,
    lookup: NodeLookup,
    previous: Optional[Node] = None,
) -> UpdateResult:
    """Insert *node* into *window* or move it to where its current data puts it.

    A tracked node whose update leaves every compared attribute untouched
    keeps its slot. Otherwise it is taken out and placed again as a fresh
    insertion, which may move it between tiers in either direction.
    """
    before = window.locate(node.id)
    if before is not None and previous is not None and not affects_order(previous, node, spec):
        return UpdateResult(window=window, node_id=node.id, in_place=True)

    remaining = window.without(node.id) if before is not None else window
    ordered_nodes = resolve_nodes(remaining.ordered, lookup)
    index = resolve_insertion(ordered_nodes, node, spec, remaining.has_more)

    if is_determined(index):
        updated = remaining.inserted(node.id, index)
    elif before is not None and before.tier == UNORDERED:
        # still ambiguous: keep its slot among the unordered nodes
        updated = remaining.deferred(node.id, before.index)
    else:
        updated = remaining.deferred(node.id)

    after = updated.locate(node.id)
    change = Reposition(
        node_id=node.id,
        before=before,
        after=after,
        from_index=window.flat_index(before),
        to_index=updated.flat_index(after),
    )
    if before is not None and not change.moved:
        return UpdateResult(window=updated, node_id=node.id, in_place=True)
    return UpdateResult(window=updated, node_id=node.id, change=change)


def remove_node(window: ListWindow, node_id: str) -> UpdateResult:
    """Drop *node_id* from whichever tier holds it; the rest keeps its order."""
    before = window.locate(node_id)
    if before is None:
        return UpdateResult(window=window, node_id=node_id)
    updated = window.without(node_id)
    return UpdateResult(
        window=updated,
        node_id=node_id,
        change=Reposition(
            node_id=node_id,
            before=before,
            after=None,
            from_index=window.flat_index(before),
            to_index=None,
        ),
    )


def apply_mutation(
    window: ListWindow,
    mutation: NodeMutation,
    spec: SortSpec,
    lookup: NodeLookup,
    previous: Optional[Node] = None,
) -> UpdateResult:
    """Dispatch *mutation* to the matching reducer."""
    if isinstance(mutation, NodeRemoved):
        return remove_node(window, mutation.node_id)
    if isinstance(mutation, (NodeCreated, NodeUpdated)):
        return upsert_node(window, mutation.node, spec, lookup, previous=previous)
    raise TypeError(f"Unsupported mutation: {type(mutation).__name__}")
