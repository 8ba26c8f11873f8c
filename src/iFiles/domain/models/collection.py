"""Keys identifying a listed collection: a folder's children or a search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional, Tuple

from ...config import TRASH_ROOT_ID
from .core import Node
from .sort import SortSpec


@dataclass(frozen=True)
class FolderChildren:
    folder_id: str

    def matches(self, node: Node) -> Optional[bool]:
        if self.folder_id == TRASH_ROOT_ID:
            return node.trashed
        return node.parent_id == self.folder_id and not node.trashed


@dataclass(frozen=True)
class SearchFilter:
    """Search parameters; two searches share a window only when all fields match."""

    keywords: Tuple[str, ...] = ()
    folder_id: Optional[str] = None
    cascade: bool = True
    flagged: Optional[bool] = None
    shared_by_me: Optional[bool] = None
    shared_with_me: Optional[bool] = None
    trashed: Optional[bool] = None

    def with_keywords(self, *keywords: str) -> SearchFilter:
        return SearchFilter(
            keywords=tuple(k for k in keywords if k),
            folder_id=self.folder_id,
            cascade=self.cascade,
            flagged=self.flagged,
            shared_by_me=self.shared_by_me,
            shared_with_me=self.shared_with_me,
            trashed=self.trashed,
        )

    def matches(self, node: Node) -> Optional[bool]:
        """Return whether *node* belongs to this search, or ``None`` if that needs server data.

        Sharing state and cascading folder scope are not part of the node
        record, so filters using them cannot be evaluated locally.
        """
        if self.shared_by_me is not None or self.shared_with_me is not None:
            return None
        if self.trashed is not None and node.trashed != self.trashed:
            return False
        if self.flagged is not None and node.flagged != self.flagged:
            return False
        name = (node.name or "").lower()
        if any(keyword.lower() not in name for keyword in self.keywords):
            return False
        if self.folder_id is not None:
            if node.parent_id == self.folder_id:
                return True
            return None if self.cascade else False
        return True


@dataclass(frozen=True)
class WindowKey:
    collection_key: Hashable
    sort: SortSpec
