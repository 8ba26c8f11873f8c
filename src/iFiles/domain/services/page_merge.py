"""Combine fetched pages with a cached window."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from ...errors import NodeNotFoundError
from ..models.core import Node
from ..models.sort import SortSpec
from ..models.window import ListWindow, Page
from .insertion import is_determined, resolve_insertion

LOGGER = logging.getLogger(__name__)

NodeLookup = Callable[[str], Optional[Node]]


@dataclass(frozen=True)
class MergeResult:
    window: ListWindow
    added: Tuple[str, ...] = ()
    refreshed: Tuple[str, ...] = ()
    resolved: Tuple[str, ...] = ()


def _unique_ids(items: Iterable[Node]) -> List[str]:
    seen = set()
    ids: List[str] = []
    for node in items:
        if node.id in seen:
            continue
        seen.add(node.id)
        ids.append(node.id)
    return ids


def resolve_nodes(ids: Iterable[str], lookup: NodeLookup) -> List[Node]:
    nodes: List[Node] = []
    for node_id in ids:
        node = lookup(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node {node_id} is listed in a window but not registered")
        nodes.append(node)
    return nodes


def merge_first_page(page: Page) -> MergeResult:
    """Replace the whole window with *page* (first page or explicit reset)."""
    ids = tuple(_unique_ids(page.items))
    return MergeResult(window=ListWindow(ordered=ids, cursor=page.cursor), added=ids)


def merge_next_page(
    window: ListWindow,
    page: Page,
    spec: SortSpec,
    lookup: NodeLookup,
) -> MergeResult:
    """Extend *window* with a "load more" *page*.

    Page nodes already in the ordered tier keep their position. New ones are
    appended in page order, since pagination guarantees they sort after the
    loaded prefix; a page node waiting in the unordered tier is now placed by
    the server and leaves that tier. Afterwards every remaining unordered
    node is offered to the insertion resolver again.
    """
    known = set(window.ordered)
    added: List[str] = []
    refreshed: List[str] = []
    for node_id in _unique_ids(page.items):
        if node_id in known:
            refreshed.append(node_id)
        else:
            added.append(node_id)

    placed = set(added)
    extended = ListWindow(
        ordered=window.ordered + tuple(added),
        cursor=page.cursor,
        unordered=tuple(i for i in window.unordered if i not in placed),
    )
    reconciled, resolved = reconcile_unordered(extended, spec, lookup)
    LOGGER.debug(
        "Merged next page: %d added, %d refreshed, %d resolved, %d still unordered",
        len(added), len(refreshed), len(resolved), len(reconciled.unordered),
    )
    return MergeResult(
        window=reconciled,
        added=tuple(added),
        refreshed=tuple(refreshed),
        resolved=resolved,
    )


def reconcile_unordered(
    window: ListWindow,
    spec: SortSpec,
    lookup: NodeLookup,
) -> Tuple[ListWindow, Tuple[str, ...]]:
    """Move every unordered node whose position became determinable into the ordered tier."""
    if not window.unordered:
        return window, ()

    ordered_ids = list(window.ordered)
    ordered_nodes = resolve_nodes(ordered_ids, lookup)
    pending: List[str] = []
    resolved: List[str] = []
    for node in resolve_nodes(window.unordered, lookup):
        index = resolve_insertion(ordered_nodes, node, spec, window.has_more)
        if is_determined(index):
            ordered_ids.insert(index, node.id)
            ordered_nodes.insert(index, node)
            resolved.append(node.id)
        else:
            pending.append(node.id)

    return (
        ListWindow(ordered=tuple(ordered_ids), cursor=window.cursor, unordered=tuple(pending)),
        tuple(resolved),
    )
