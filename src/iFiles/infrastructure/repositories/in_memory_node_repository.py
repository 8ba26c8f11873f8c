"""In-memory node tree answering paginated listings and producing mutation notifications.

It plays the server in tests and in the command line browser: listings are
sorted with the same comparator the client uses and paginated with keyset
cursors, and every mutation returns the notifications a server push would
deliver.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Hashable, Iterable, List, Optional

from iFiles.config import LOCAL_ROOT_ID, TRASH_ROOT_ID
from iFiles.domain.models.collection import FolderChildren, SearchFilter
from iFiles.domain.models.core import Node, NodeType
from iFiles.domain.models.mutations import NodeCreated, NodeMutation, NodeRemoved, NodeUpdated
from iFiles.domain.models.sort import SortSpec
from iFiles.domain.models.window import Page
from iFiles.domain.repositories import INodeSource
from iFiles.domain.services.comparator import compare, sort_nodes
from iFiles.errors import InvalidCursorError, NodeNotFoundError
from iFiles.utils.jsonio import read_json

LOGGER = logging.getLogger(__name__)

_ANCHOR_FIELDS = ("id", "name", "type", "size", "updated_at", "created_at")


def _encode_cursor(anchor: Node, sort: SortSpec) -> str:
    payload: Dict[str, Any] = {
        "sort": sort.token,
        "folders_first": sort.groups_folders,
        "case_sensitive": sort.case_sensitive,
    }
    for name in _ANCHOR_FIELDS:
        value = getattr(anchor, name)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, NodeType):
            value = value.value
        payload[name] = value
    raw = json.dumps(payload, sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _decode_cursor(cursor: str, sort: SortSpec) -> Node:
    """Rebuild the anchor node a cursor was minted from."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError) as exc:
        raise InvalidCursorError(f"Invalid cursor format: {cursor!r}") from exc
    if not isinstance(payload, dict) or "id" not in payload or "sort" not in payload:
        raise InvalidCursorError("Cursor is missing required fields")
    if payload["sort"] != sort.token:
        raise InvalidCursorError(f"Cursor was issued for {payload['sort']}, not {sort.token}")
    rules = (payload.get("folders_first"), payload.get("case_sensitive"))
    if rules != (sort.groups_folders, sort.case_sensitive):
        raise InvalidCursorError(
            f"Cursor was issued for another grouping or case rule than {sort.token}"
        )
    return Node(
        id=payload["id"],
        name=payload.get("name") or "",
        type=NodeType(payload.get("type") or NodeType.FILE.value),
        size=payload.get("size"),
        updated_at=_parse_datetime(payload.get("updated_at")),
        created_at=_parse_datetime(payload.get("created_at")),
    )


def _listing_of(node: Node) -> FolderChildren:
    """The folder listing that currently shows *node*."""
    return FolderChildren(TRASH_ROOT_ID if node.trashed else node.parent_id)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def node_from_record(record: Dict[str, Any]) -> Node:
    return Node(
        id=str(record["id"]),
        name=str(record.get("name", "")),
        type=NodeType(record.get("type", NodeType.FILE.value)),
        parent_id=record.get("parent_id"),
        size=record.get("size"),
        updated_at=_parse_datetime(record.get("updated_at")),
        created_at=_parse_datetime(record.get("created_at")),
        flagged=bool(record.get("flagged", False)),
        trashed=bool(record.get("trashed", False)),
    )


class InMemoryNodeRepository(INodeSource):
    def __init__(self, nodes: Iterable[Node] = (), clock=datetime.now) -> None:
        self._nodes: Dict[str, Node] = {node.id: node for node in nodes}
        self._clock = clock

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> InMemoryNodeRepository:
        return cls(node_from_record(record) for record in records)

    @classmethod
    def load_tree(cls, path: Path) -> InMemoryNodeRepository:
        """Load a JSON file holding a list of node records (or ``{"nodes": [...]}``)."""
        payload = read_json(path)
        if isinstance(payload, dict):
            payload = payload.get("nodes", [])
        return cls.from_records(payload)

    # -- queries -----------------------------------------------------------

    def get(self, node_id: str) -> Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(f"Node {node_id} does not exist")
        return node

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def members(self, collection_key: Hashable, sort: SortSpec) -> List[Node]:
        """Every node of the collection, in *sort* order."""
        return sort_nodes((n for n in self._nodes.values() if self._belongs(collection_key, n)), sort)

    def fetch_first_page(self, collection_key: Hashable, sort: SortSpec, page_size: int) -> Page:
        return self._page(self.members(collection_key, sort), sort, page_size)

    def fetch_next_page(
        self,
        collection_key: Hashable,
        sort: SortSpec,
        cursor: str,
        page_size: int,
    ) -> Page:
        anchor = _decode_cursor(cursor, sort)
        remaining = [n for n in self.members(collection_key, sort) if compare(n, anchor, sort) > 0]
        return self._page(remaining, sort, page_size)

    def _page(self, nodes: List[Node], sort: SortSpec, page_size: int) -> Page:
        items = nodes[:page_size]
        cursor = None
        if len(nodes) > page_size and items:
            cursor = _encode_cursor(items[-1], sort)
        return Page(items=tuple(items), cursor=cursor)

    def _belongs(self, collection_key: Hashable, node: Node) -> bool:
        if isinstance(collection_key, FolderChildren):
            return bool(collection_key.matches(node))
        if isinstance(collection_key, SearchFilter):
            return self._matches_search(collection_key, node)
        raise NodeNotFoundError(f"Unknown collection {collection_key!r}")

    def _matches_search(self, search: SearchFilter, node: Node) -> bool:
        if search.shared_by_me or search.shared_with_me:
            # sharing is not modelled here
            return False
        if node.id in (LOCAL_ROOT_ID, TRASH_ROOT_ID):
            return False
        if search.folder_id is not None and not self._in_scope(node, search.folder_id, search.cascade):
            return False
        plain = SearchFilter(
            keywords=search.keywords,
            flagged=search.flagged,
            trashed=search.trashed,
        )
        return bool(plain.matches(node))

    def _in_scope(self, node: Node, folder_id: str, cascade: bool) -> bool:
        parent_id = node.parent_id
        seen = set()
        while parent_id is not None and parent_id not in seen:
            if parent_id == folder_id:
                return True
            if not cascade:
                return False
            seen.add(parent_id)
            parent = self._nodes.get(parent_id)
            parent_id = parent.parent_id if parent is not None else None
        return False

    # -- mutations ---------------------------------------------------------

    def create_folder(self, parent_id: str, name: str) -> List[NodeMutation]:
        now = self._clock()
        folder = Node(
            id=str(uuid.uuid4()),
            name=name,
            type=NodeType.FOLDER,
            parent_id=parent_id,
            created_at=now,
            updated_at=now,
        )
        self._nodes[folder.id] = folder
        return [NodeCreated(node=folder, collection_keys=(FolderChildren(parent_id),))]

    def upload_file(self, parent_id: str, name: str, size: int, node_id: Optional[str] = None) -> Node:
        """Store an uploaded file; the upload flow announces it once the transfer completes."""
        now = self._clock()
        node = Node(
            id=node_id or str(uuid.uuid4()),
            name=name,
            type=NodeType.FILE,
            parent_id=parent_id,
            size=size,
            created_at=now,
            updated_at=now,
        )
        self._nodes[node.id] = node
        return node

    def rename(self, node_id: str, name: str) -> List[NodeMutation]:
        node = self._save(self.get(node_id).with_changes(name=name, updated_at=self._clock()))
        return [NodeUpdated(node=node, collection_keys=(_listing_of(node),))]

    def flag(self, node_ids: Iterable[str], flagged: bool = True) -> List[NodeMutation]:
        mutations: List[NodeMutation] = []
        for node_id in node_ids:
            node = self._save(self.get(node_id).with_changes(flagged=flagged))
            mutations.append(NodeUpdated(node=node, collection_keys=(_listing_of(node),)))
        return mutations

    def move(self, node_ids: Iterable[str], destination_id: str) -> List[NodeMutation]:
        mutations: List[NodeMutation] = []
        for node_id in node_ids:
            node = self.get(node_id)
            if node.parent_id == destination_id:
                continue
            moved = self._save(node.with_changes(parent_id=destination_id, updated_at=self._clock()))
            mutations.append(NodeRemoved(node_id=node_id, collection_keys=(FolderChildren(node.parent_id),)))
            mutations.append(NodeCreated(node=moved, collection_keys=(FolderChildren(destination_id),)))
        return mutations

    def trash(self, node_ids: Iterable[str]) -> List[NodeMutation]:
        mutations: List[NodeMutation] = []
        for node_id in node_ids:
            node = self.get(node_id)
            if node.trashed:
                continue
            trashed = self._save(node.with_changes(trashed=True))
            mutations.append(NodeRemoved(node_id=node_id, collection_keys=(FolderChildren(node.parent_id),)))
            mutations.append(NodeUpdated(node=trashed, collection_keys=(FolderChildren(TRASH_ROOT_ID),)))
        return mutations

    def restore(self, node_ids: Iterable[str]) -> List[NodeMutation]:
        mutations: List[NodeMutation] = []
        for node_id in node_ids:
            node = self.get(node_id)
            if not node.trashed:
                continue
            restored = self._save(node.with_changes(trashed=False))
            mutations.append(NodeRemoved(node_id=node_id, collection_keys=(FolderChildren(TRASH_ROOT_ID),)))
            mutations.append(NodeUpdated(node=restored, collection_keys=(FolderChildren(node.parent_id),)))
        return mutations

    def delete_permanently(self, node_ids: Iterable[str]) -> List[NodeMutation]:
        mutations: List[NodeMutation] = []
        for node_id in node_ids:
            node = self._nodes.pop(node_id, None)
            if node is None:
                LOGGER.debug("Skipping delete of unknown node %s", node_id)
                continue
            mutations.append(NodeRemoved(
                node_id=node_id,
                collection_keys=(FolderChildren(TRASH_ROOT_ID),),
                purge=True,
            ))
        return mutations

    def _save(self, node: Node) -> Node:
        self._nodes[node.id] = node
        return node
