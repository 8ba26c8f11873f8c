from abc import ABC, abstractmethod
from typing import Hashable

from .models.sort import SortSpec
from .models.window import Page


class INodeSource(ABC):
    """Transport side of a paginated, sorted node listing."""

    @abstractmethod
    def fetch_first_page(self, collection_key: Hashable, sort: SortSpec, page_size: int) -> Page:
        """Return the first *page_size* nodes of the collection in *sort* order"""
        pass

    @abstractmethod
    def fetch_next_page(
        self,
        collection_key: Hashable,
        sort: SortSpec,
        cursor: str,
        page_size: int,
    ) -> Page:
        """Return the nodes following *cursor*"""
        pass
