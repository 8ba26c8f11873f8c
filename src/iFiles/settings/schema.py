"""Schema helpers for the client settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import DEFAULT_SORT_TOKEN, NODES_LOAD_LIMIT
from ..domain.models.sort import sort_tokens

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "iFiles/settings.schema.json",
    "type": "object",
    "required": ["schema", "listing"],
    "properties": {
        "schema": {"const": "iFiles/settings@1"},
        "listing": {
            "type": "object",
            "properties": {
                "page_size": {"type": "integer", "minimum": 1, "maximum": 1000},
                "default_sort": {"type": "string", "enum": sort_tokens()},
                "check_invariants": {"type": "boolean"},
            },
            "additionalProperties": True,
        },
        "last_folder": {"type": ["string", "null"]},
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "iFiles/settings@1",
    "listing": {
        "page_size": NODES_LOAD_LIMIT,
        "default_sort": DEFAULT_SORT_TOKEN,
        "check_invariants": False,
    },
    "last_folder": None,
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key == "listing" and isinstance(value, dict):
                merged.setdefault("listing", {}).update(value)
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
