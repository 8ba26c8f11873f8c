"""Client-side store of partially loaded, sorted collections.

The cache keeps one :class:`ListWindow` per ``(collection key, sort)`` pair
plus a shared :class:`NodeRegistry`. Page responses and mutation
notifications are folded in through the pure reducers of
``iFiles.domain.services``; every change swaps a whole window value, then
the matching hook event is published on the :class:`EventBus`.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Hashable, List, Optional, Tuple

from iFiles.application.dtos import CollectionView
from iFiles.application.services.node_registry import NodeRegistry
from iFiles.config import CHECK_INVARIANTS_ENV
from iFiles.domain.models.collection import WindowKey
from iFiles.domain.models.core import Node
from iFiles.domain.models.mutations import NodeCreated, NodeMutation, NodeRemoved, NodeUpdated
from iFiles.domain.models.sort import SortSpec
from iFiles.domain.models.window import ORDERED, ListWindow, Page
from iFiles.domain.services.collection_updater import UpdateResult, remove_node, upsert_node
from iFiles.domain.services.comparator import affects_order
from iFiles.domain.services.invariants import window_violations
from iFiles.domain.services.page_merge import merge_first_page, merge_next_page
from iFiles.domain.services.projector import project
from iFiles.errors import InvariantViolationError
from iFiles.errors.handler import ErrorHandler, ErrorSeverity
from iFiles.events.bus import EventBus
from iFiles.events.collection_events import (
    ItemRepositionedEvent,
    ItemUpdatedEvent,
    PageMergedEvent,
    WindowInvalidatedEvent,
    WindowRefreshedEvent,
    WindowResetEvent,
)

_UPSERT = "upsert"
_REMOVE = "remove"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


class CollectionCache:
    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        registry: Optional[NodeRegistry] = None,
        check_invariants: Optional[bool] = None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self._logger = logging.getLogger(__name__)
        self._events = event_bus or EventBus()
        self._registry = registry or NodeRegistry()
        self._windows: Dict[WindowKey, ListWindow] = {}
        if check_invariants is None:
            check_invariants = _env_flag(CHECK_INVARIANTS_ENV)
        self._strict = check_invariants
        self._errors = error_handler

    # -- properties --------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._events

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def strict(self) -> bool:
        return self._strict

    # -- queries -----------------------------------------------------------

    def window(self, collection_key: Hashable, sort: SortSpec) -> Optional[ListWindow]:
        return self._windows.get(WindowKey(collection_key, sort))

    def window_keys(self, collection_key: Optional[Hashable] = None) -> List[WindowKey]:
        return [
            key for key in self._windows
            if collection_key is None or key.collection_key == collection_key
        ]

    def node(self, node_id: str) -> Optional[Node]:
        return self._registry.get(node_id)

    def read(self, collection_key: Hashable, sort: SortSpec) -> CollectionView:
        """Return the flat projection of a window; unknown keys read as empty."""
        window = self.window(collection_key, sort)
        if window is None:
            return CollectionView()
        items: List[Node] = []
        for node_id in project(window):
            node = self._registry.get(node_id)
            if node is not None:
                items.append(node)
        return CollectionView(items=items, has_more=window.has_more)

    # -- lifecycle ---------------------------------------------------------

    def observe(self, collection_key: Hashable, sort: SortSpec) -> ListWindow:
        """Return the window for the pair, creating an empty one on first use."""
        key = WindowKey(collection_key, sort)
        window = self._windows.get(key)
        if window is None:
            window = ListWindow.empty()
            self._windows[key] = window
        return window

    def reset(self, collection_key: Hashable, sort: SortSpec) -> ListWindow:
        """Drop everything loaded for the pair; the next fetch starts from page one."""
        key = WindowKey(collection_key, sort)
        window = ListWindow.empty()
        self._windows[key] = window
        self._logger.info("Reset window %s / %s", collection_key, sort.token)
        self._events.publish(WindowResetEvent(collection_key=collection_key, sort=sort))
        return window

    def release(self, collection_key: Hashable, sort: SortSpec) -> bool:
        """Forget the window once nobody observes it."""
        removed = self._windows.pop(WindowKey(collection_key, sort), None)
        if removed is None:
            return False
        self.collect_garbage()
        return True

    def invalidate(self, collection_key: Hashable, reason: str = "") -> int:
        """Evict every window of *collection_key*, whatever its sort."""
        keys = self.window_keys(collection_key)
        for key in keys:
            del self._windows[key]
        if keys:
            self._logger.info("Invalidated %d window(s) of %s %s", len(keys), collection_key, reason)
            for key in keys:
                self._events.publish(WindowInvalidatedEvent(
                    collection_key=collection_key, sort=key.sort, reason=reason,
                ))
            self.collect_garbage()
        return len(keys)

    def collect_garbage(self) -> int:
        referenced = set()
        for window in self._windows.values():
            referenced.update(window.ids())
        return self._registry.collect_garbage(referenced)

    # -- page merge --------------------------------------------------------

    def merge_page(
        self,
        collection_key: Hashable,
        sort: SortSpec,
        page: Page,
        first_page: bool,
    ) -> ListWindow:
        """Fold a fetched page into the pair's window.

        The caller guarantees the page answers the currently active request;
        stale responses never reach this method. Fresher records also move
        the same nodes in other windows whose order they change, and a
        first page lets go of whatever the replaced window alone referenced.
        """
        key = WindowKey(collection_key, sort)
        previous = {node.id: self._registry.get(node.id) for node in page.items}
        self._registry.put_many(page.items)
        if first_page:
            result = merge_first_page(page)
        else:
            existing = self._windows.get(key) or ListWindow.empty()
            result = merge_next_page(existing, page, sort, self._registry.get)

        self._store(key, result.window)
        self._events.publish(PageMergedEvent(
            collection_key=collection_key,
            sort=sort,
            first_page=first_page,
            added=result.added,
            refreshed=result.refreshed,
            resolved=result.resolved,
            has_more=result.window.has_more,
        ))
        self._reposition_refreshed(key, page.items, previous)
        if first_page:
            self.collect_garbage()
        return result.window

    def _reposition_refreshed(
        self,
        merged_key: WindowKey,
        nodes: Tuple[Node, ...],
        previous: Dict[str, Optional[Node]],
    ) -> None:
        stale = {
            node.id: (previous[node.id], node) for node in nodes
            if previous.get(node.id) is not None and previous[node.id] != node
        }
        if not stale:
            return
        for key, window in list(self._windows.items()):
            if key == merged_key:
                continue
            moved = [
                after for before, after in stale.values()
                if after.id in window and affects_order(before, after, key.sort)
            ]
            if not moved:
                continue
            # take every moved node out first so the rest stays sorted
            # while each one is placed again
            updated = window
            for node in moved:
                updated = remove_node(updated, node.id).window
            for node in moved:
                updated = upsert_node(updated, node, key.sort, self._registry.get).window
            self._store(key, updated)
            self._logger.debug("Refreshed %d node(s) moved in %s", len(moved), key.collection_key)
            self._events.publish(WindowRefreshedEvent(
                collection_key=key.collection_key,
                sort=key.sort,
                node_ids=tuple(node.id for node in moved),
            ))

    # -- mutations ---------------------------------------------------------

    def apply(self, mutation: NodeMutation) -> int:
        """Fold a mutation notification into every window it concerns.

        Returns the number of windows whose content changed.
        """
        previous: Optional[Node] = None
        if isinstance(mutation, (NodeCreated, NodeUpdated)):
            previous = self._registry.put(mutation.node)
        elif not isinstance(mutation, NodeRemoved):
            raise TypeError(f"Unsupported mutation: {type(mutation).__name__}")

        listed = set(mutation.collection_keys)
        missing = listed - {key.collection_key for key in self._windows}
        if missing:
            self._logger.debug("No cached window for %s; nothing to update", sorted(map(str, missing)))

        touched = 0
        for key, action in self._plan(mutation, listed):
            window = self._windows[key]
            if action == _REMOVE:
                result = remove_node(window, mutation.node_id)
            else:
                result = upsert_node(window, mutation.node, key.sort, self._registry.get, previous=previous)
            if not result.changed:
                continue
            self._store(key, result.window)
            self._publish_update(key, result)
            touched += 1
        return touched

    def _plan(self, mutation: NodeMutation, listed: set) -> List[Tuple[WindowKey, str]]:
        plan: List[Tuple[WindowKey, str]] = []
        for key, window in list(self._windows.items()):
            action = self._action_for(key, window, mutation, listed)
            if action is not None:
                plan.append((key, action))
        return plan

    @staticmethod
    def _action_for(
        key: WindowKey,
        window: ListWindow,
        mutation: NodeMutation,
        listed: set,
    ) -> Optional[str]:
        if isinstance(mutation, NodeRemoved):
            if mutation.node_id not in window:
                return None
            if mutation.purge or key.collection_key in listed:
                return _REMOVE
            return None

        node = mutation.node
        # a key that can judge the node itself overrides the listing
        matches = getattr(key.collection_key, "matches", None)
        verdict = matches(node) if matches is not None else None
        if verdict is False:
            return _REMOVE if node.id in window else None
        if verdict is True or key.collection_key in listed:
            return _UPSERT
        if isinstance(mutation, NodeUpdated) and node.id in window:
            return _UPSERT
        return None

    # -- internal ----------------------------------------------------------

    def _store(self, key: WindowKey, window: ListWindow) -> None:
        problems = window_violations(window, key.sort, self._registry.get)
        if problems:
            error = InvariantViolationError(
                f"Window {key.collection_key} / {key.sort.token}: " + "; ".join(problems)
            )
            if self._strict:
                raise error
            if self._errors is not None:
                self._errors.handle(error, ErrorSeverity.CRITICAL, {"window": str(key.collection_key)})
            else:
                self._logger.critical("%s", error)
        self._windows[key] = window

    def _publish_update(self, key: WindowKey, result: UpdateResult) -> None:
        change = result.change
        if change is None:
            location = result.window.locate(result.node_id)
            self._events.publish(ItemUpdatedEvent(
                collection_key=key.collection_key,
                sort=key.sort,
                node_id=result.node_id,
                index=result.window.flat_index(location),
            ))
            return
        self._logger.debug(
            "%s repositioned in %s: %s -> %s",
            change.node_id, key.collection_key, change.from_index, change.to_index,
        )
        self._events.publish(ItemRepositionedEvent(
            collection_key=key.collection_key,
            sort=key.sort,
            node_id=change.node_id,
            from_index=change.from_index,
            to_index=change.to_index,
            ordered=change.after is not None and change.after.tier == ORDERED,
        ))
