"""Total order over nodes for a given sort specification.

The chain mirrors the order the node server applies for the same sort:
optional folder grouping, the primary field, then the node id. Local and
remote order must agree, otherwise insertions computed from a loaded prefix
would land in the wrong place.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Callable, Iterable, List

from ..models.core import Node, NodeType
from ..models.sort import SortField, SortSpec


def _cmp(left: Any, right: Any) -> int:
    """Three-way comparison where ``None`` sorts before any value."""
    if left == right:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    return -1 if left < right else 1


def primary_value(node: Node, spec: SortSpec) -> Any:
    """Return the value of *node* that the primary comparison looks at."""
    if spec.field is SortField.NAME:
        name = node.name
        if name is None:
            return None
        return name if spec.case_sensitive else name.lower()
    if spec.field is SortField.SIZE:
        return node.size or 0
    return getattr(node, spec.field.value)


def _type_rank(node: Node) -> int:
    return 0 if node.type == NodeType.FOLDER else 1


def compare(a: Node, b: Node, spec: SortSpec) -> int:
    """Compare two nodes under *spec*, returning -1, 0 or 1.

    Only the same id compares equal.
    """
    if spec.groups_folders:
        result = _cmp(_type_rank(a), _type_rank(b))
        if result:
            return result

    result = _cmp(primary_value(a, spec), primary_value(b, spec))
    if result:
        return -result if spec.descending else result

    return _cmp(a.id, b.id)


def affects_order(before: Node, after: Node, spec: SortSpec) -> bool:
    """Return True if replacing *before* with *after* can move the node under *spec*."""
    if before.id != after.id:
        return True
    if spec.groups_folders and before.type != after.type:
        return True
    return primary_value(before, spec) != primary_value(after, spec)


def node_sort_key(spec: SortSpec) -> Callable[[Node], Any]:
    """Key function usable with ``sorted``/``list.sort``."""
    return cmp_to_key(lambda a, b: compare(a, b, spec))


def sort_nodes(nodes: Iterable[Node], spec: SortSpec) -> List[Node]:
    return sorted(nodes, key=node_sort_key(spec))
