"""Tests for combining fetched pages with a cached window."""

from __future__ import annotations

import pytest

from iFiles.domain.models.window import ListWindow, Page
from iFiles.domain.services.page_merge import merge_first_page, merge_next_page, reconcile_unordered
from iFiles.errors import NodeNotFoundError


@pytest.fixture
def nodes(make_node):
    return {n.id: n for n in (make_node(i, i.upper()) for i in ("a", "b", "c", "d", "e", "z"))}


def _page(nodes, ids, cursor=None):
    return Page(items=[nodes[i] for i in ids], cursor=cursor)


class TestFirstPage:
    def test_replaces_existing_window(self, nodes):
        result = merge_first_page(_page(nodes, ["a", "b"], cursor="next"))
        assert result.window == ListWindow(ordered=("a", "b"), cursor="next")
        assert result.added == ("a", "b")

    def test_duplicate_items_are_kept_once(self, nodes):
        result = merge_first_page(_page(nodes, ["a", "a", "b"]))
        assert result.window.ordered == ("a", "b")


class TestNextPage:
    def test_appends_new_ids_and_takes_new_cursor(self, nodes, name_asc):
        window = ListWindow(ordered=("a", "b"), cursor="c1")
        result = merge_next_page(window, _page(nodes, ["c", "d"], cursor="c2"), name_asc, nodes.get)
        assert result.window.ordered == ("a", "b", "c", "d")
        assert result.window.cursor == "c2"
        assert result.added == ("c", "d")

    def test_known_ids_keep_their_position(self, nodes, name_asc):
        window = ListWindow(ordered=("a", "b", "c"), cursor="c1")
        result = merge_next_page(window, _page(nodes, ["c", "d"]), name_asc, nodes.get)
        assert result.window.ordered == ("a", "b", "c", "d")
        assert result.refreshed == ("c",)
        assert result.added == ("d",)

    def test_remerging_same_page_is_idempotent(self, nodes, name_asc):
        window = ListWindow(ordered=("a", "b"), cursor="c1")
        page = _page(nodes, ["c", "d"], cursor="c2")
        once = merge_next_page(window, page, name_asc, nodes.get).window
        twice = merge_next_page(once, page, name_asc, nodes.get).window
        assert twice == once

    def test_page_item_leaves_unordered_tier(self, nodes, name_asc):
        window = ListWindow(ordered=("a", "b"), cursor="c1", unordered=("c",))
        result = merge_next_page(window, _page(nodes, ["c", "d"], cursor="c2"), name_asc, nodes.get)
        assert result.window.ordered == ("a", "b", "c", "d")
        assert result.window.unordered == ()

    def test_unordered_nodes_resolve_once_fully_loaded(self, nodes, name_asc):
        window = ListWindow(ordered=("a", "b"), cursor="c1", unordered=("z",))
        result = merge_next_page(window, _page(nodes, ["c", "d"], cursor=None), name_asc, nodes.get)
        assert result.window.ordered == ("a", "b", "c", "d", "z")
        assert result.window.unordered == ()
        assert result.resolved == ("z",)

    def test_unordered_node_resolves_when_page_passes_it(self, nodes, name_asc):
        window = ListWindow(ordered=("a",), cursor="c1", unordered=("c",))
        result = merge_next_page(window, _page(nodes, ["b", "d"], cursor="c2"), name_asc, nodes.get)
        assert result.window.ordered == ("a", "b", "c", "d")
        assert result.window.unordered == ()

    def test_still_ambiguous_nodes_stay_in_arrival_order(self, nodes, name_asc):
        window = ListWindow(ordered=("a",), cursor="c1", unordered=("z", "e"))
        result = merge_next_page(window, _page(nodes, ["b"], cursor="c2"), name_asc, nodes.get)
        assert result.window.unordered == ("z", "e")
        assert result.resolved == ()


class TestReconcile:
    def test_no_unordered_is_a_noop(self, nodes, name_asc):
        window = ListWindow(ordered=("a",))
        assert reconcile_unordered(window, name_asc, nodes.get) == (window, ())

    def test_unregistered_node_raises(self, nodes, name_asc):
        window = ListWindow(ordered=("a",), cursor="c1", unordered=("ghost",))
        with pytest.raises(NodeNotFoundError):
            reconcile_unordered(window, name_asc, nodes.get)
