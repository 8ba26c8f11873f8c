from __future__ import annotations

import logging
from typing import Any, Hashable, List, Optional

from PySide6.QtCore import QAbstractListModel, QModelIndex, Qt

from iFiles.application.services.collection_cache import CollectionCache
from iFiles.application.services.paginated_loader import PaginatedCollectionLoader
from iFiles.domain.models.core import Node
from iFiles.domain.models.sort import SortSpec
from iFiles.events.bus import Subscription
from iFiles.events.collection_events import (
    CollectionEvent,
    ItemRepositionedEvent,
    ItemUpdatedEvent,
    PageMergedEvent,
    WindowInvalidatedEvent,
    WindowRefreshedEvent,
    WindowResetEvent,
)
from iFiles.gui.models.roles import Roles, role_names

_LOGGER = logging.getLogger(__name__)


class NodeListModel(QAbstractListModel):
    """Qt list model over the projection of one cached window.

    Rows mirror ``CollectionCache.read``. Cache hooks are translated into
    the matching row notifications so views keep selection and scroll
    position across local insertions.
    """

    def __init__(self, cache: CollectionCache, loader: PaginatedCollectionLoader, parent=None):
        super().__init__(parent)
        self._cache = cache
        self._loader = loader
        self._collection_key: Optional[Hashable] = None
        self._sort: Optional[SortSpec] = None
        self._nodes: List[Node] = []
        self._subscription: Subscription = cache.event_bus.subscribe(CollectionEvent, self._on_event)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def set_collection(self, collection_key: Hashable, sort: SortSpec) -> None:
        """Bind the model to a window and fetch its first page.

        The window bound before is released from the cache.
        """
        if (collection_key, sort) != (self._collection_key, self._sort):
            self._release_window()
        self.beginResetModel()
        self._collection_key = collection_key
        self._sort = sort
        self._nodes = []
        self.endResetModel()
        self._loader.load_first_page(collection_key, sort)

    def node_at(self, row: int) -> Optional[Node]:
        if 0 <= row < len(self._nodes):
            return self._nodes[row]
        return None

    def close(self) -> None:
        self._subscription.cancel()
        self._release_window()

    # ------------------------------------------------------------------
    # QAbstractListModel overrides
    # ------------------------------------------------------------------
    def rowCount(self, parent=QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._nodes)

    def roleNames(self) -> dict:
        return role_names(super().roleNames())

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid():
            return None
        node = self.node_at(index.row())
        if node is None:
            return None

        role_int = int(role)
        if role_int in (Qt.ItemDataRole.DisplayRole, Roles.NAME):
            return node.name
        if role_int == Roles.NODE_ID:
            return node.id
        if role_int == Roles.IS_FOLDER:
            return node.is_folder
        if role_int == Roles.SIZE:
            return node.size
        if role_int == Roles.UPDATED_AT:
            return node.updated_at
        if role_int == Roles.CREATED_AT:
            return node.created_at
        if role_int == Roles.FLAGGED:
            return node.flagged
        if role_int == Roles.PARENT_ID:
            return node.parent_id
        return None

    def canFetchMore(self, parent=QModelIndex()) -> bool:
        if parent.isValid() or not self._is_loader_bound():
            return False
        return self._loader.has_more and not self._loader.loading

    def fetchMore(self, parent=QModelIndex()) -> None:
        if not self.canFetchMore(parent):
            return
        self._loader.load_next_page()

    # ------------------------------------------------------------------
    # Cache hooks
    # ------------------------------------------------------------------
    def _on_event(self, event: CollectionEvent) -> None:
        if event.collection_key != self._collection_key or event.sort != self._sort:
            return
        if isinstance(event, ItemRepositionedEvent):
            self._apply_reposition(event)
        elif isinstance(event, ItemUpdatedEvent):
            self._sync()
            if 0 <= event.index < len(self._nodes):
                model_index = self.index(event.index, 0)
                self.dataChanged.emit(model_index, model_index)
        elif isinstance(event, (PageMergedEvent, WindowRefreshedEvent, WindowResetEvent,
                                WindowInvalidatedEvent)):
            self.beginResetModel()
            self._sync()
            self.endResetModel()

    def _apply_reposition(self, event: ItemRepositionedEvent) -> None:
        source, target = event.from_index, event.to_index
        root = QModelIndex()
        if event.is_removal:
            self.beginRemoveRows(root, source, source)
            self._sync()
            self.endRemoveRows()
        elif event.is_insert:
            self.beginInsertRows(root, target, target)
            self._sync()
            self.endInsertRows()
        elif source == target:
            self._sync()
            model_index = self.index(target, 0)
            self.dataChanged.emit(model_index, model_index)
        else:
            # Qt expects the destination row as counted before the move
            destination = target + 1 if target > source else target
            self.beginMoveRows(root, source, source, root, destination)
            self._sync()
            self.endMoveRows()

    def _sync(self) -> None:
        self._nodes = list(self._cache.read(self._collection_key, self._sort).items)

    def _release_window(self) -> None:
        if self._collection_key is None or self._sort is None:
            return
        self._cache.release(self._collection_key, self._sort)
        _LOGGER.debug("Released window %s / %s", self._collection_key, self._sort.token)

    def _is_loader_bound(self) -> bool:
        active = self._loader.active_key
        return (
            active is not None
            and active.collection_key == self._collection_key
            and active.sort == self._sort
        )
