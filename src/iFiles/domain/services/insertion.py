"""Decide where a single node belongs in a partially loaded ordered window."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from ..models.core import Node
from ..models.sort import SortSpec
from .comparator import compare

LOGGER = logging.getLogger(__name__)


class _NotDetermined:
    """Sentinel: the position cannot be computed from local data alone."""

    _instance: Optional["_NotDetermined"] = None

    def __new__(cls) -> "_NotDetermined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_DETERMINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_NotDetermined, ())


NOT_DETERMINED = _NotDetermined()

Resolution = Union[int, _NotDetermined]


def resolve_insertion(
    ordered: Sequence[Node],
    item: Node,
    spec: SortSpec,
    has_more: bool,
) -> Resolution:
    """Return the index at which *item* belongs in *ordered*, or ``NOT_DETERMINED``.

    *ordered* must already be sorted under *spec* and must not contain
    *item*. The item goes before the first loaded node that sorts after it.
    When it sorts after every loaded node, its place is the end of the
    window only if nothing remains to fetch (*has_more* is False): with
    remote nodes still unloaded, any of them might belong in between.
    """
    for index, node in enumerate(ordered):
        if compare(item, node, spec) < 0:
            return index
    if has_more:
        LOGGER.debug("Position of %s is not determined past %d loaded nodes", item.id, len(ordered))
        return NOT_DETERMINED
    return len(ordered)


def is_determined(resolution: Resolution) -> bool:
    return resolution is not NOT_DETERMINED
