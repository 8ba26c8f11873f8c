"""Role definitions exposed by the node list model."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict

from PySide6.QtCore import Qt


class Roles(IntEnum):
    NODE_ID = Qt.UserRole + 1
    NAME = Qt.UserRole + 2
    IS_FOLDER = Qt.UserRole + 3
    SIZE = Qt.UserRole + 4
    UPDATED_AT = Qt.UserRole + 5
    CREATED_AT = Qt.UserRole + 6
    FLAGGED = Qt.UserRole + 7
    PARENT_ID = Qt.UserRole + 8


def role_names(base: Dict[int, bytes] | None = None) -> Dict[int, bytes]:
    """Return a mapping of Qt role numbers to byte names."""

    mapping: Dict[int, bytes] = {} if base is None else dict(base)
    mapping.update(
        {
            Roles.NODE_ID: b"nodeId",
            Roles.NAME: b"name",
            Roles.IS_FOLDER: b"isFolder",
            Roles.SIZE: b"size",
            Roles.UPDATED_AT: b"updatedAt",
            Roles.CREATED_AT: b"createdAt",
            Roles.FLAGGED: b"flagged",
            Roles.PARENT_ID: b"parentId",
        }
    )
    return mapping


__all__ = ["Roles", "role_names"]
