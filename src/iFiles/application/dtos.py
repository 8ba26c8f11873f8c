from dataclasses import dataclass, field
from typing import List, Tuple

from iFiles.domain.models.core import Node


@dataclass
class CollectionView:
    """What a list consumer renders: the projected nodes and whether more can be fetched."""
    items: List[Node] = field(default_factory=list)
    has_more: bool = False

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(node.id for node in self.items)

    def __len__(self) -> int:
        return len(self.items)
