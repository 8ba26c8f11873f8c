"""Structural checks for list windows, run when invariant checking is enabled."""

from __future__ import annotations

from typing import List

from ...errors import InvariantViolationError
from ..models.sort import SortSpec
from ..models.window import ListWindow
from .comparator import compare
from .page_merge import NodeLookup


def window_violations(window: ListWindow, spec: SortSpec, lookup: NodeLookup) -> List[str]:
    """Return a description of every broken invariant of *window* (empty when healthy)."""
    problems: List[str] = []

    if len(set(window.ordered)) != len(window.ordered):
        problems.append("ordered tier contains duplicate ids")
    if len(set(window.unordered)) != len(window.unordered):
        problems.append("unordered tier contains duplicate ids")
    overlap = set(window.ordered) & set(window.unordered)
    if overlap:
        problems.append(f"ids present in both tiers: {sorted(overlap)}")
    if window.unordered and not window.has_more:
        problems.append("unordered nodes remain although the collection is fully loaded")

    previous = None
    for node_id in window.ordered:
        node = lookup(node_id)
        if node is None:
            problems.append(f"node {node_id} is not registered")
            previous = None
            continue
        if previous is not None and compare(previous, node, spec) > 0:
            problems.append(f"{previous.id} sorts after {node.id}")
        previous = node
    return problems


def check_window(window: ListWindow, spec: SortSpec, lookup: NodeLookup) -> None:
    problems = window_violations(window, spec, lookup)
    if problems:
        raise InvariantViolationError("; ".join(problems))
