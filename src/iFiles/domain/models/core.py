from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class NodeType(str, Enum):
    FOLDER = "Folder"
    FILE = "File"


@dataclass(frozen=True)
class Node:
    id: str
    name: str
    type: NodeType = NodeType.FILE
    parent_id: Optional[str] = None
    size: Optional[int] = None
    updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    flagged: bool = False
    trashed: bool = False

    @property
    def is_folder(self) -> bool:
        return self.type == NodeType.FOLDER

    def with_changes(self, **changes: Any) -> Node:
        return replace(self, **changes)
