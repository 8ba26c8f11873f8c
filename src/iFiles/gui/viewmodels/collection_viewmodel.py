"""Pure Python view model for one browsed collection; no Qt dependency."""

from __future__ import annotations

import logging
from typing import Hashable, List, Optional

from iFiles.application.services.collection_cache import CollectionCache
from iFiles.application.services.paginated_loader import PaginatedCollectionLoader
from iFiles.application.state import Store, create_store
from iFiles.domain.models.collection import FolderChildren, SearchFilter, WindowKey
from iFiles.domain.models.core import Node
from iFiles.domain.models.sort import SortSpec
from iFiles.events.collection_events import CollectionEvent, WindowInvalidatedEvent
from iFiles.gui.viewmodels.base import BaseViewModel


class CollectionViewModel(BaseViewModel):
    """Exposes the projection of the active window as ``Store`` state.

    The active sort and search filter are stores too, so other widgets (a
    sort menu, a search box) can share them. Writing either store resets
    the affected window and fetches its first page again. Only the window
    on screen is kept: moving to another folder, search or sort releases
    the previous one from the cache.
    """

    def __init__(
        self,
        cache: CollectionCache,
        loader: PaginatedCollectionLoader,
        sort_store: Optional[Store[SortSpec]] = None,
        search_store: Optional[Store[Optional[SearchFilter]]] = None,
    ) -> None:
        super().__init__()
        self._cache = cache
        self._loader = loader
        self._logger = logging.getLogger(__name__)
        self._window: Optional[WindowKey] = None

        self.sort_store: Store[SortSpec] = sort_store or create_store(SortSpec())
        self.search_store: Store[Optional[SearchFilter]] = search_store or create_store(None)

        self.items: Store[List[Node]] = create_store([])
        self.has_more: Store[bool] = create_store(False)
        self.loading: Store[bool] = create_store(False)
        self.collection_key: Store[Optional[Hashable]] = create_store(None)
        # message of the last failed load, cleared by the next successful one
        self.error: Store[Optional[str]] = create_store(None)

        self.subscribe_event(cache.event_bus, CollectionEvent, self._on_collection_event)
        self.track(self.sort_store.subscribe(self._on_sort_changed))
        self.track(self.search_store.subscribe(self._on_search_changed))

    @property
    def sort(self) -> SortSpec:
        return self.sort_store.get()

    # -- commands ----------------------------------------------------------

    def open_folder(self, folder_id: str) -> None:
        self.search_store.set(None)
        self._open(FolderChildren(folder_id))

    def search(self, search: SearchFilter) -> None:
        """Show the results of *search*; an unchanged filter is a no-op."""
        self.search_store.set(search)

    def set_sort(self, sort: SortSpec) -> None:
        self.sort_store.set(sort)

    def load_more(self) -> None:
        if not self.has_more.get() or self._loader.loading:
            return
        self.loading.set(True)
        try:
            self._loader.load_next_page()
        except Exception as exc:
            self._logger.error("Failed to load more items: %s", exc)
            self.error.set(str(exc))
        else:
            self.error.set(None)
        finally:
            self.loading.set(False)
        self._refresh()

    def reload(self) -> None:
        """Drop the active window and fetch its first page again."""
        key = self.collection_key.get()
        if key is None:
            return
        self._cache.reset(key, self.sort)
        self._open(key)

    def dispose(self) -> None:
        self._release_window()
        super().dispose()

    # -- internal ----------------------------------------------------------

    def _open(self, collection_key: Hashable) -> None:
        target = WindowKey(collection_key, self.sort)
        if self._window != target:
            self._release_window()
        self._window = target
        self.collection_key.set(collection_key)
        self.loading.set(True)
        try:
            self._loader.load_first_page(collection_key, self.sort)
        except Exception as exc:
            self._logger.error("Failed to load %s: %s", collection_key, exc)
            self.error.set(str(exc))
        else:
            self.error.set(None)
        finally:
            self.loading.set(False)
        self._refresh()

    def _release_window(self) -> None:
        if self._window is None:
            return
        self._cache.release(self._window.collection_key, self._window.sort)
        self._window = None

    def _refresh(self) -> None:
        key = self.collection_key.get()
        if key is None:
            return
        view = self._cache.read(key, self.sort)
        self.items.set(view.items)
        self.has_more.set(view.has_more)

    def _is_active(self, event: CollectionEvent) -> bool:
        key = self.collection_key.get()
        return key is not None and WindowKey(event.collection_key, event.sort) == WindowKey(key, self.sort)

    def _on_collection_event(self, event: CollectionEvent) -> None:
        if not self._is_active(event):
            return
        if isinstance(event, WindowInvalidatedEvent):
            self._logger.info("Active window invalidated, reloading %s", event.collection_key)
            self._open(event.collection_key)
            return
        if self.loading.get():
            # the load in progress refreshes once it finishes
            return
        self._refresh()

    def _on_sort_changed(self, sort: SortSpec, _old: SortSpec) -> None:
        key = self.collection_key.get()
        if key is None:
            return
        self._cache.reset(key, sort)
        self._open(key)

    def _on_search_changed(self, search: Optional[SearchFilter], _old: Optional[SearchFilter]) -> None:
        if search is None:
            return
        self._cache.reset(search, self.sort)
        self._open(search)
