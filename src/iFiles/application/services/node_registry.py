"""Normalized node records shared by every cached window."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, Optional, Set

from iFiles.domain.models.core import Node

LOGGER = logging.getLogger(__name__)


class NodeRegistry:
    """Latest known record for each node id.

    Windows only store ids; a node renamed once is renamed in every listing
    that shows it.
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}

    def get(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def put(self, node: Node) -> Optional[Node]:
        """Store *node* and return the record it replaced, if any."""
        previous = self._nodes.get(node.id)
        self._nodes[node.id] = node
        return previous

    def put_many(self, nodes: Iterable[Node]) -> None:
        for node in nodes:
            self._nodes[node.id] = node

    def discard(self, node_id: str) -> None:
        self._nodes.pop(node_id, None)

    def collect_garbage(self, referenced: Set[str]) -> int:
        """Forget every node not in *referenced*; return how many were dropped."""
        stale = [node_id for node_id in self._nodes if node_id not in referenced]
        for node_id in stale:
            del self._nodes[node_id]
        if stale:
            LOGGER.debug("Dropped %d unreferenced nodes", len(stale))
        return len(stale)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))
