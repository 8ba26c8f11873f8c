from .collection_updater import Reposition, UpdateResult, apply_mutation, remove_node, upsert_node
from .comparator import affects_order, compare, node_sort_key, sort_nodes
from .insertion import NOT_DETERMINED, is_determined, resolve_insertion
from .invariants import check_window, window_violations
from .page_merge import MergeResult, merge_first_page, merge_next_page, reconcile_unordered
from .projector import project

__all__ = [
    "MergeResult",
    "NOT_DETERMINED",
    "Reposition",
    "UpdateResult",
    "affects_order",
    "apply_mutation",
    "check_window",
    "compare",
    "is_determined",
    "merge_first_page",
    "merge_next_page",
    "node_sort_key",
    "project",
    "reconcile_unordered",
    "remove_node",
    "resolve_insertion",
    "sort_nodes",
    "upsert_node",
    "window_violations",
]
