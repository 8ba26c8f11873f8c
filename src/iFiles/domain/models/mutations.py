"""Notifications describing a change to a node and the collections it touches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Tuple, Union

from .core import Node


@dataclass(frozen=True)
class NodeCreated:
    """A node now belongs to the listed collections (create, restore, upload complete, move in)."""

    node: Node
    collection_keys: Tuple[Hashable, ...] = ()

    @property
    def node_id(self) -> str:
        return self.node.id


@dataclass(frozen=True)
class NodeUpdated:
    """A tracked node changed (rename, flag, size or timestamp update)."""

    node: Node
    collection_keys: Tuple[Hashable, ...] = ()

    @property
    def node_id(self) -> str:
        return self.node.id


@dataclass(frozen=True)
class NodeRemoved:
    """A node left the listed collections (trash, move out).

    With ``purge`` set the node is gone for good (permanent delete) and leaves
    every cached window, listed or not.
    """

    node_id: str
    collection_keys: Tuple[Hashable, ...] = ()
    purge: bool = False


NodeMutation = Union[NodeCreated, NodeUpdated, NodeRemoved]
