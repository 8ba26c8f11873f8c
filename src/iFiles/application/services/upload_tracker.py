"""Upload progress bookkeeping and the "upload complete" mutation."""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional

from iFiles.application.services.collection_cache import CollectionCache
from iFiles.application.state.store import Store, create_store
from iFiles.domain.models.collection import FolderChildren
from iFiles.domain.models.core import Node
from iFiles.domain.models.mutations import NodeCreated
from iFiles.errors import UploadNotFoundError

LOGGER = logging.getLogger(__name__)


class UploadStatus(str, Enum):
    LOADING = "Loading"
    COMPLETED = "Completed"
    FAILED = "Failed"


@dataclass(frozen=True)
class UploadItem:
    id: str
    name: str
    parent_id: str
    status: UploadStatus = UploadStatus.LOADING
    percentage: int = 0
    node_id: Optional[str] = None


class UploadTracker:
    """Tracks uploads in a :class:`Store` and publishes finished files to the cache."""

    def __init__(self, cache: CollectionCache, store: Optional[Store[Dict[str, UploadItem]]] = None) -> None:
        self._cache = cache
        self._store = store if store is not None else create_store({})

    @property
    def store(self) -> Store[Dict[str, UploadItem]]:
        return self._store

    def add(self, name: str, parent_id: str, upload_id: Optional[str] = None) -> UploadItem:
        item = UploadItem(id=upload_id or str(uuid.uuid4()), name=name, parent_id=parent_id)
        self._store.update(lambda items: {**items, item.id: item})
        return item

    def item(self, upload_id: str) -> Optional[UploadItem]:
        return self._store.get().get(upload_id)

    def items(self, parent_id: Optional[str] = None) -> List[UploadItem]:
        values = list(self._store.get().values())
        if parent_id is None:
            return values
        return [item for item in values if item.parent_id == parent_id]

    def set_progress(self, upload_id: str, percentage: float) -> UploadItem:
        value = max(0, min(100, math.floor(percentage)))
        return self._replace(upload_id, percentage=value)

    def complete(self, upload_id: str, node: Node) -> UploadItem:
        """Mark the upload finished and insert *node* into its folder's cached windows."""
        item = self._replace(
            upload_id,
            status=UploadStatus.COMPLETED,
            percentage=100,
            node_id=node.id,
        )
        touched = self._cache.apply(NodeCreated(node=node, collection_keys=(FolderChildren(item.parent_id),)))
        LOGGER.debug("Upload %s completed as %s (%d window(s) updated)", upload_id, node.id, touched)
        return item

    def fail(self, upload_id: str) -> UploadItem:
        return self._replace(upload_id, status=UploadStatus.FAILED)

    def retry(self, upload_id: str) -> UploadItem:
        return self._replace(upload_id, status=UploadStatus.LOADING, percentage=0)

    def remove(self, upload_id: str) -> None:
        self._require(upload_id)
        self._store.update(lambda items: {k: v for k, v in items.items() if k != upload_id})

    def _require(self, upload_id: str) -> UploadItem:
        item = self.item(upload_id)
        if item is None:
            raise UploadNotFoundError(f"Upload {upload_id} is not tracked")
        return item

    def _replace(self, upload_id: str, **changes) -> UploadItem:
        updated = replace(self._require(upload_id), **changes)
        self._store.update(lambda items: {**items, upload_id: updated})
        return updated
