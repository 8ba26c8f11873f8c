"""Tests for CollectionCache: windows, routing of mutations, hooks and checks."""

from __future__ import annotations

import logging
from unittest.mock import Mock

import pytest

from iFiles.application.services.collection_cache import CollectionCache
from iFiles.config import CHECK_INVARIANTS_ENV, TRASH_ROOT_ID
from iFiles.domain.models.collection import FolderChildren, SearchFilter
from iFiles.domain.models.mutations import NodeCreated, NodeRemoved, NodeUpdated
from iFiles.domain.models.sort import SortDirection, SortField, SortSpec
from iFiles.domain.models.window import ListWindow, Page
from iFiles.errors import InvariantViolationError
from iFiles.errors.handler import ErrorSeverity
from iFiles.events.collection_events import (
    CollectionEvent,
    ItemRepositionedEvent,
    ItemUpdatedEvent,
    PageMergedEvent,
    WindowInvalidatedEvent,
    WindowRefreshedEvent,
    WindowResetEvent,
)
from iFiles.infrastructure.repositories.in_memory_node_repository import InMemoryNodeRepository

ROOT = FolderChildren("root")
OTHER = FolderChildren("other")


@pytest.fixture
def seeded(cache, make_node, name_asc):
    nodes = [make_node("a", "A"), make_node("b", "B"), make_node("c", "C")]
    cache.merge_page(ROOT, name_asc, Page(items=nodes, cursor="next"), first_page=True)
    return {n.id: n for n in nodes}


# ---------------------------------------------------------------------------
# Reads and lifecycle
# ---------------------------------------------------------------------------


class TestReads:
    def test_unknown_key_reads_empty(self, cache, name_asc):
        view = cache.read(FolderChildren("nowhere"), name_asc)
        assert view.items == []
        assert not view.has_more

    def test_observe_creates_empty_window_once(self, cache, name_asc):
        window = cache.observe(ROOT, name_asc)
        assert window == ListWindow.empty()
        assert cache.observe(ROOT, name_asc) is window

    def test_read_resolves_nodes_through_registry(self, cache, seeded, name_asc):
        view = cache.read(ROOT, name_asc)
        assert view.ids == ("a", "b", "c")
        assert view.has_more

    def test_windows_are_keyed_by_sort(self, cache, seeded, name_asc):
        assert cache.window(ROOT, name_asc.inverse()) is None
        assert len(cache.window_keys(ROOT)) == 1

    def test_rename_is_visible_in_every_listing(self, cache, seeded, make_node, name_asc):
        search = SearchFilter(keywords=("b",))
        cache.merge_page(search, name_asc, Page(items=[seeded["b"]]), first_page=True)
        cache.apply(NodeUpdated(seeded["b"].with_changes(flagged=True), (ROOT,)))
        assert cache.read(search, name_asc).items[0].flagged


class TestLifecycle:
    def test_reset_publishes_event(self, cache, seeded, name_asc, recorder):
        events = recorder(WindowResetEvent)
        cache.reset(ROOT, name_asc)
        assert cache.window(ROOT, name_asc) == ListWindow.empty()
        assert len(events.events) == 1

    def test_release_collects_unreferenced_nodes(self, cache, seeded, name_asc):
        assert cache.release(ROOT, name_asc)
        assert cache.node("a") is None
        assert not cache.release(ROOT, name_asc)

    def test_release_keeps_nodes_shared_with_other_windows(self, cache, seeded, name_asc):
        cache.merge_page(OTHER, name_asc, Page(items=[seeded["a"]]), first_page=True)
        cache.release(ROOT, name_asc)
        assert cache.node("a") is not None
        assert cache.node("b") is None

    def test_invalidate_drops_every_sort(self, cache, seeded, name_asc, recorder):
        events = recorder(WindowInvalidatedEvent)
        by_date = SortSpec(field=SortField.UPDATED_AT, direction=SortDirection.DESC)
        cache.merge_page(ROOT, by_date, Page(items=list(seeded.values())), first_page=True)
        assert cache.invalidate(ROOT, reason="moved into") == 2
        assert cache.window_keys(ROOT) == []
        assert {e.sort for e in events.events} == {name_asc, by_date}
        assert cache.invalidate(ROOT) == 0


# ---------------------------------------------------------------------------
# Page merge
# ---------------------------------------------------------------------------


class TestMergePage:
    def test_publishes_page_merged(self, cache, name_asc, make_node, recorder):
        events = recorder(PageMergedEvent)
        cache.merge_page(ROOT, name_asc, Page(items=[make_node("a")], cursor="c"), first_page=True)
        (event,) = events.events
        assert event.first_page
        assert event.added == ("a",)
        assert event.has_more

    def test_refreshes_registry_for_known_nodes(self, cache, seeded, name_asc):
        fresh = seeded["c"].with_changes(flagged=True)
        cache.merge_page(ROOT, name_asc, Page(items=[fresh]), first_page=False)
        assert cache.node("c").flagged
        assert cache.window(ROOT, name_asc).ordered == ("a", "b", "c")

    def test_next_page_without_window_starts_from_empty(self, cache, make_node, name_asc):
        window = cache.merge_page(ROOT, name_asc, Page(items=[make_node("a")]), first_page=False)
        assert window.ordered == ("a",)

    def test_first_page_lets_go_of_replaced_nodes(self, cache, seeded, name_asc):
        cache.merge_page(ROOT, name_asc, Page(items=[seeded["a"]]), first_page=True)
        assert cache.node("a") is not None
        assert cache.node("b") is None

    def test_fresher_records_move_nodes_in_other_windows(self, cache, seeded, name_asc, recorder):
        events = recorder(WindowRefreshedEvent)
        renamed = seeded["a"].with_changes(name="D")
        page = Page(items=[seeded["b"], seeded["c"], renamed])
        cache.merge_page(SearchFilter(), name_asc, page, first_page=True)
        window = cache.window(ROOT, name_asc)
        # past the last loaded node while ROOT still has pages to fetch
        assert window.ordered == ("b", "c")
        assert window.unordered == ("a",)
        (event,) = events.events
        assert event.collection_key == ROOT
        assert event.node_ids == ("a",)

    def test_several_fresher_records_in_one_window(self, cache, seeded, name_asc):
        first = seeded["c"].with_changes(name="A0")
        last = seeded["a"].with_changes(name="Cz")
        page = Page(items=[first, seeded["b"], last])
        cache.merge_page(SearchFilter(), name_asc, page, first_page=True)
        window = cache.window(ROOT, name_asc)
        assert window.ordered == ("c", "b")
        assert window.unordered == ("a",)

    def test_order_neutral_refresh_leaves_other_windows(self, cache, seeded, name_asc, recorder):
        events = recorder(WindowRefreshedEvent)
        flagged = seeded["b"].with_changes(flagged=True)
        cache.merge_page(SearchFilter(), name_asc, Page(items=[flagged]), first_page=True)
        assert cache.window(ROOT, name_asc).ordered == ("a", "b", "c")
        assert cache.read(ROOT, name_asc).items[1].flagged
        assert events.events == []


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


class TestApply:
    def test_created_in_listed_window(self, cache, seeded, make_node, name_asc, recorder):
        events = recorder(ItemRepositionedEvent)
        assert cache.apply(NodeCreated(make_node("d", "BB"), (ROOT,))) == 1
        (event,) = events.events
        assert event.is_insert
        assert event.to_index == 2
        assert event.ordered

    def test_missing_window_is_a_noop(self, cache, make_node):
        assert cache.apply(NodeCreated(make_node("d"), (FolderChildren("elsewhere"),))) == 0

    def test_created_is_routed_to_every_sort(self, cache, seeded, make_node, name_asc):
        descending = name_asc.inverse()
        cache.merge_page(ROOT, descending, Page(items=list(seeded.values())[::-1]), first_page=True)
        assert cache.apply(NodeCreated(make_node("d", "BB"), (ROOT,))) == 2
        assert cache.window(ROOT, descending).ordered == ("c", "d", "b", "a")

    def test_order_neutral_update_publishes_item_updated(self, cache, seeded, name_asc, recorder):
        events = recorder(CollectionEvent)
        cache.apply(NodeUpdated(seeded["b"].with_changes(flagged=True), (ROOT,)))
        (event,) = events.events
        assert isinstance(event, ItemUpdatedEvent)
        assert event.index == 1

    def test_update_repositions_tracking_windows_without_listing(self, cache, seeded, name_asc):
        cache.merge_page(OTHER, name_asc, Page(items=[seeded["a"], seeded["c"]], cursor="x"), first_page=True)
        renamed = seeded["a"].with_changes(name="Bz", parent_id="root")
        # OTHER is a folder key whose membership rule rejects the node
        cache.apply(NodeUpdated(renamed, ()))
        assert cache.window(ROOT, name_asc).ordered == ("b", "a", "c")
        assert "a" not in cache.window(OTHER, name_asc)

    def test_removed_from_listed_window_only(self, cache, seeded, name_asc, recorder):
        cache.merge_page(OTHER, name_asc, Page(items=[seeded["a"]]), first_page=True)
        events = recorder(ItemRepositionedEvent)
        assert cache.apply(NodeRemoved("a", (ROOT,))) == 1
        assert events.events[0].is_removal
        assert "a" in cache.window(OTHER, name_asc)

    def test_purge_removes_everywhere(self, cache, seeded, name_asc):
        cache.merge_page(OTHER, name_asc, Page(items=[seeded["a"]]), first_page=True)
        assert cache.apply(NodeRemoved("a", (), purge=True)) == 2

    def test_search_window_gains_matching_node(self, cache, make_node, name_asc):
        search = SearchFilter(keywords=("report",))
        cache.merge_page(search, name_asc, Page(items=[make_node("r1", "report 1")]), first_page=True)
        cache.apply(NodeCreated(make_node("r2", "Report 2"), (ROOT,)))
        cache.apply(NodeCreated(make_node("x", "holiday"), (ROOT,)))
        assert cache.window(search, name_asc).ordered == ("r1", "r2")

    def test_search_window_drops_node_that_stops_matching(self, cache, make_node, name_asc):
        search = SearchFilter(keywords=("report",))
        node = make_node("r1", "report")
        cache.merge_page(search, name_asc, Page(items=[node]), first_page=True)
        cache.apply(NodeUpdated(node.with_changes(name="notes"), (ROOT,)))
        assert cache.read(search, name_asc).items == []

    def test_trash_window_follows_trashed_flag(self, cache, seeded, name_asc):
        trash = FolderChildren(TRASH_ROOT_ID)
        cache.merge_page(trash, name_asc, Page(items=[]), first_page=True)
        cache.apply(NodeRemoved("b", (ROOT,)))
        cache.apply(NodeUpdated(seeded["b"].with_changes(trashed=True), (trash,)))
        assert cache.window(trash, name_asc).ordered == ("b",)
        assert "b" not in cache.window(ROOT, name_asc)

    def test_listing_never_overrides_a_rejecting_key(self, cache, seeded, name_asc):
        trashed = seeded["b"].with_changes(trashed=True)
        cache.apply(NodeRemoved("b", (ROOT,)))
        assert cache.apply(NodeUpdated(trashed, (ROOT,))) == 0
        assert "b" not in cache.window(ROOT, name_asc)

    def test_rename_of_trashed_node_stays_in_trash(self, cache, seeded, name_asc):
        repository = InMemoryNodeRepository(list(seeded.values()))
        trash = FolderChildren(TRASH_ROOT_ID)
        cache.merge_page(trash, name_asc, Page(items=[]), first_page=True)
        for mutation in repository.trash(["b"]):
            cache.apply(mutation)
        for mutation in repository.rename("b", "Bee"):
            cache.apply(mutation)
        assert cache.read(ROOT, name_asc).ids == ("a", "c")
        assert cache.read(trash, name_asc).ids == ("b",)
        assert cache.node("b").name == "Bee"

    def test_unknown_mutation_raises(self, cache):
        with pytest.raises(TypeError):
            cache.apply(object())


# ---------------------------------------------------------------------------
# Invariant checks
# ---------------------------------------------------------------------------


def _unsorted_page(make_node):
    return Page(items=[make_node("b", "B"), make_node("a", "A")])


class TestInvariantChecks:
    def test_strict_mode_raises_and_keeps_previous_window(self, cache, make_node, name_asc):
        with pytest.raises(InvariantViolationError):
            cache.merge_page(ROOT, name_asc, _unsorted_page(make_node), first_page=True)
        assert cache.window(ROOT, name_asc) is None

    def test_lenient_mode_reports_through_error_handler(self, event_bus, make_node, name_asc):
        handler = Mock()
        cache = CollectionCache(event_bus=event_bus, check_invariants=False, error_handler=handler)
        cache.merge_page(ROOT, name_asc, _unsorted_page(make_node), first_page=True)
        error, severity = handler.handle.call_args[0][:2]
        assert isinstance(error, InvariantViolationError)
        assert severity is ErrorSeverity.CRITICAL
        assert cache.window(ROOT, name_asc).ordered == ("b", "a")

    def test_lenient_mode_logs_without_handler(self, event_bus, make_node, name_asc, caplog):
        cache = CollectionCache(event_bus=event_bus, check_invariants=False)
        with caplog.at_level(logging.CRITICAL):
            cache.merge_page(ROOT, name_asc, _unsorted_page(make_node), first_page=True)
        assert "sorts after" in caplog.text

    def test_environment_flag_enables_strict_mode(self, monkeypatch, event_bus):
        monkeypatch.setenv(CHECK_INVARIANTS_ENV, "1")
        assert CollectionCache(event_bus=event_bus).strict
        monkeypatch.setenv(CHECK_INVARIANTS_ENV, "0")
        assert not CollectionCache(event_bus=event_bus).strict
