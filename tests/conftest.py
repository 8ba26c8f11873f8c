import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from iFiles.application.services.collection_cache import CollectionCache  # noqa: E402
from iFiles.domain.models.core import Node, NodeType  # noqa: E402
from iFiles.domain.models.sort import SortSpec  # noqa: E402
from iFiles.events.bus import EventBus  # noqa: E402

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def _make_node(node_id, name=None, folder=False, parent_id="root", size=None, age=0, **changes):
    """Build a node; ``age`` shifts both timestamps by that many minutes."""
    stamp = BASE_TIME + timedelta(minutes=age)
    return Node(
        id=node_id,
        name=node_id if name is None else name,
        type=NodeType.FOLDER if folder else NodeType.FILE,
        parent_id=parent_id,
        size=size,
        updated_at=stamp,
        created_at=stamp,
        **changes,
    )


class _Recorder:
    """Collects every event of one type published on a bus."""

    def __init__(self, bus, event_type):
        self.events = []
        self.subscription = bus.subscribe(event_type, self.events.append)

    def of(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]


@pytest.fixture
def name_asc() -> SortSpec:
    return SortSpec()


@pytest.fixture
def event_bus() -> EventBus:
    bus = EventBus()
    yield bus
    bus.shutdown()


@pytest.fixture
def cache(event_bus) -> CollectionCache:
    return CollectionCache(event_bus=event_bus, check_invariants=True)


@pytest.fixture
def make_node():
    return _make_node


@pytest.fixture
def recorder(event_bus):
    """Return a factory recording events of a given type from the shared bus."""

    def _factory(event_type):
        return _Recorder(event_bus, event_type)

    return _factory
