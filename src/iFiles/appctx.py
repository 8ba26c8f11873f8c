"""Application-wide context wiring the cache, loader and upload tracker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

from .application.services.collection_cache import CollectionCache
from .application.services.paginated_loader import PaginatedCollectionLoader
from .application.services.upload_tracker import UploadTracker
from .domain.models.sort import SortSpec
from .domain.repositories import INodeSource
from .errors.handler import ErrorHandler
from .events.bus import EventBus
from .settings.schema import DEFAULT_SETTINGS

if TYPE_CHECKING:  # pragma: no cover - only for type checking
    from .settings.manager import SettingsManager


def _create_settings_manager() -> "SettingsManager":
    from .settings.manager import SettingsManager  # Qt is only needed when settings persist

    manager = SettingsManager()
    manager.load()
    return manager


@dataclass
class AppContext:
    """Container object shared by the view layer and the command line.

    ``settings=None`` runs on the built-in defaults without touching disk.
    """

    source: INodeSource
    settings: Optional["SettingsManager"] = field(default_factory=_create_settings_manager)
    event_bus: EventBus = field(default_factory=EventBus)
    page_size: Optional[int] = None
    check_invariants: Optional[bool] = None

    errors: ErrorHandler = field(init=False)
    cache: CollectionCache = field(init=False)
    loader: PaginatedCollectionLoader = field(init=False)
    uploads: UploadTracker = field(init=False)

    def __post_init__(self) -> None:
        if self.page_size is None:
            self.page_size = int(self.setting("listing.page_size"))
        if self.check_invariants is None and self.setting("listing.check_invariants"):
            self.check_invariants = True

        self.errors = ErrorHandler(logging.getLogger("iFiles"), self.event_bus)
        self.cache = CollectionCache(
            event_bus=self.event_bus,
            check_invariants=self.check_invariants,
            error_handler=self.errors,
        )
        self.loader = PaginatedCollectionLoader(
            self.source,
            self.cache,
            page_size=self.page_size,
            error_handler=self.errors,
        )
        self.uploads = UploadTracker(self.cache)

    def setting(self, key: str) -> Any:
        """Read a dotted settings key, falling back to the defaults."""
        default = _default_setting(key)
        if self.settings is None:
            return default
        return self.settings.get(key, default)

    @property
    def default_sort(self) -> SortSpec:
        return SortSpec.parse(str(self.setting("listing.default_sort")))

    def shutdown(self) -> None:
        self.event_bus.shutdown()


def _default_setting(key: str) -> Any:
    target: Any = DEFAULT_SETTINGS
    for part in key.split("."):
        if not isinstance(target, dict):
            return None
        target = target.get(part)
    return target
