from .collection import FolderChildren, SearchFilter, WindowKey
from .core import Node, NodeType
from .mutations import NodeCreated, NodeMutation, NodeRemoved, NodeUpdated
from .sort import SortDirection, SortField, SortSpec
from .window import ListWindow, Location, Page

__all__ = [
    "FolderChildren",
    "ListWindow",
    "Location",
    "Node",
    "NodeCreated",
    "NodeMutation",
    "NodeRemoved",
    "NodeType",
    "NodeUpdated",
    "Page",
    "SearchFilter",
    "SortDirection",
    "SortField",
    "SortSpec",
    "WindowKey",
]
