"""Default configuration values for iFiles."""

from __future__ import annotations

from typing import Final

# Number of nodes requested per page when listing folder children or search
# results. Windows grow past this between fetches as local insertions land.
NODES_LOAD_LIMIT: Final[int] = 25

# Token of the sort applied when neither settings nor the caller provide one.
DEFAULT_SORT_TOKEN: Final[str] = "NAME_ASC"

# Setting this environment variable to a truthy value forces invariant checks
# on every window mutation, turning violations into exceptions.
CHECK_INVARIANTS_ENV: Final[str] = "IFILES_CHECK_INVARIANTS"

# Identifier of the virtual folder that collects trashed nodes.
TRASH_ROOT_ID: Final[str] = "TRASH"
LOCAL_ROOT_ID: Final[str] = "LOCAL_ROOT"
