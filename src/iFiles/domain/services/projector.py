"""Flatten a two-tier window for consumers."""

from __future__ import annotations

from typing import Tuple

from ..models.window import ListWindow


def project(window: ListWindow) -> Tuple[str, ...]:
    """Return the ordered tier followed by the unordered tier in arrival order."""
    return window.ordered + window.unordered
