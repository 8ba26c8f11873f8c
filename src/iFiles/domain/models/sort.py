"""Sort specification value objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SortField(str, Enum):
    NAME = "name"
    UPDATED_AT = "updated_at"
    CREATED_AT = "created_at"
    SIZE = "size"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    def inverse(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortSpec:
    """Field and direction defining the total order of a collection.

    ``folders_first`` left as ``None`` follows the server rule: folders are
    grouped ahead of files for every field except size. Ties on the primary
    field fall back to ascending id, so two distinct nodes never compare
    equal.
    """

    field: SortField = SortField.NAME
    direction: SortDirection = SortDirection.ASC
    folders_first: Optional[bool] = None
    case_sensitive: bool = False

    @property
    def groups_folders(self) -> bool:
        if self.folders_first is not None:
            return self.folders_first
        return self.field is not SortField.SIZE

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    @property
    def token(self) -> str:
        return f"{self.field.name}_{self.direction.value}"

    def inverse(self) -> SortSpec:
        return SortSpec(
            field=self.field,
            direction=self.direction.inverse(),
            folders_first=self.folders_first,
            case_sensitive=self.case_sensitive,
        )

    @classmethod
    def parse(cls, token: str) -> SortSpec:
        """Build a spec from a token such as ``NAME_ASC`` or ``updated_at_desc``."""
        head, sep, tail = token.strip().upper().rpartition("_")
        if not sep:
            raise ValueError(f"Invalid sort token: {token!r}")
        try:
            return cls(field=SortField[head], direction=SortDirection(tail))
        except (KeyError, ValueError) as exc:
            raise ValueError(f"Invalid sort token: {token!r}") from exc

    @classmethod
    def from_order(cls, direction: SortDirection, field: SortField) -> SortSpec:
        return cls(field=field, direction=direction)


def sort_tokens() -> list[str]:
    """Every token accepted by :meth:`SortSpec.parse`, in canonical form."""
    return [SortSpec(field, direction).token for field in SortField for direction in SortDirection]
