"""Fetch driver feeding pages of the active collection into the cache.

Fetches may complete out of order or after the user moved on to another
folder, search or sort. Each request carries the generation it was issued
under; only a response to the current pending request is merged, anything
else is logged and dropped before it reaches the cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Optional

from iFiles.application.dtos import CollectionView
from iFiles.application.services.collection_cache import CollectionCache
from iFiles.config import NODES_LOAD_LIMIT
from iFiles.domain.models.collection import WindowKey
from iFiles.domain.models.sort import SortSpec
from iFiles.domain.models.window import Page
from iFiles.domain.repositories import INodeSource
from iFiles.errors import StaleResponseError
from iFiles.errors.handler import ErrorHandler, ErrorSeverity

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE: int = NODES_LOAD_LIMIT


@dataclass(frozen=True)
class PageRequest:
    """Ticket for one in-flight fetch."""

    collection_key: Hashable
    sort: SortSpec
    first_page: bool
    generation: int
    cursor: Optional[str] = None

    @property
    def window_key(self) -> WindowKey:
        return WindowKey(self.collection_key, self.sort)


class PaginatedCollectionLoader:
    """Stateful loader for one active ``(collection key, sort)`` pair.

    Callers either use the synchronous :meth:`load_first_page` /
    :meth:`load_next_page` helpers, or split a fetch into
    :meth:`begin_first_page` / :meth:`begin_next_page` and
    :meth:`complete` when the transport answers asynchronously.
    """

    def __init__(
        self,
        source: INodeSource,
        cache: CollectionCache,
        page_size: int = DEFAULT_PAGE_SIZE,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._source = source
        self._cache = cache
        self._page_size = page_size
        self._errors = error_handler

        # State
        self._active: Optional[WindowKey] = None
        self._pending: Optional[PageRequest] = None
        self._generation: int = 0

    # -- properties --------------------------------------------------------

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def active_key(self) -> Optional[WindowKey]:
        return self._active

    @property
    def loading(self) -> bool:
        return self._pending is not None

    @property
    def has_more(self) -> bool:
        if self._active is None:
            return False
        window = self._cache.window(self._active.collection_key, self._active.sort)
        return window is not None and window.has_more

    # -- request tickets ---------------------------------------------------

    def begin_first_page(self, collection_key: Hashable, sort: SortSpec) -> PageRequest:
        """Make the pair active and issue a first-page request, superseding any pending one."""
        self._generation += 1
        self._active = WindowKey(collection_key, sort)
        self._cache.observe(collection_key, sort)
        request = PageRequest(
            collection_key=collection_key,
            sort=sort,
            first_page=True,
            generation=self._generation,
        )
        self._pending = request
        return request

    def begin_next_page(self) -> Optional[PageRequest]:
        """Issue a "load more" request, or return ``None`` when there is nothing to load."""
        if self._active is None or self._pending is not None:
            return None
        window = self._cache.window(self._active.collection_key, self._active.sort)
        if window is None or not window.has_more:
            return None
        request = PageRequest(
            collection_key=self._active.collection_key,
            sort=self._active.sort,
            first_page=False,
            generation=self._generation,
            cursor=window.cursor,
        )
        self._pending = request
        return request

    def is_current(self, request: PageRequest) -> bool:
        return request is self._pending and request.generation == self._generation

    def complete(self, request: PageRequest, page: Page) -> bool:
        """Merge *page* if *request* is still current; return whether it was merged."""
        if not self.is_current(request):
            LOGGER.warning(
                "Discarding stale page for %s / %s (generation %d, current %d)",
                request.collection_key, request.sort.token, request.generation, self._generation,
            )
            return False
        self._pending = None
        self._cache.merge_page(request.collection_key, request.sort, page, first_page=request.first_page)
        return True

    def fail(self, request: PageRequest, error: Exception) -> None:
        if self.is_current(request):
            self._pending = None
        context = {"collection": str(request.collection_key), "sort": request.sort.token}
        if self._errors is not None:
            self._errors.handle(error, ErrorSeverity.ERROR, context)
        else:
            LOGGER.error("Fetch failed for %s: %s", request.collection_key, error)

    # -- synchronous helpers -----------------------------------------------

    def load_first_page(self, collection_key: Hashable, sort: SortSpec) -> CollectionView:
        request = self.begin_first_page(collection_key, sort)
        try:
            page = self._source.fetch_first_page(collection_key, sort, self._page_size)
        except Exception as exc:
            self.fail(request, exc)
            raise
        self._require_merged(request, page)
        return self._cache.read(collection_key, sort)

    def load_next_page(self) -> CollectionView:
        """Fetch the next page of the active pair; a no-op when everything is loaded."""
        request = self.begin_next_page()
        if request is None:
            if self._active is None:
                return CollectionView()
            return self._cache.read(self._active.collection_key, self._active.sort)
        try:
            page = self._source.fetch_next_page(
                request.collection_key, request.sort, request.cursor, self._page_size,
            )
        except Exception as exc:
            self.fail(request, exc)
            raise
        self._require_merged(request, page)
        return self._cache.read(request.collection_key, request.sort)

    def _require_merged(self, request: PageRequest, page: Page) -> None:
        if not self.complete(request, page):
            raise StaleResponseError(f"Request for {request.collection_key} was superseded")
