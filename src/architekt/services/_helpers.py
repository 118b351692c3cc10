"""Shared service-layer helpers for reading caller input.

Create operations require fields; update operations use presence checks:
an absent key leaves the field unchanged, a present key replaces it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from architekt.domain.coerce import as_mapping, ensure_string, ensure_unique_strings
from architekt.domain.errors import BadRequestError


def as_input(raw: Any) -> Mapping[str, Any]:
    """Caller input as a mapping; None and non-objects become empty."""
    return as_mapping(raw)


def require_name(data: Mapping[str, Any], label: str) -> str:
    name = ensure_string(data.get("name"))
    if not name:
        msg = f"{label} name is required"
        raise BadRequestError(msg)
    return name


def replace_name(data: Mapping[str, Any], current: str, label: str) -> str:
    """New name if ``name`` is present (must not be blank), else *current*."""
    if "name" not in data:
        return current
    return require_name(data, label)


def replace_text(data: Mapping[str, Any], key: str, current: str) -> str:
    if key not in data:
        return current
    return ensure_string(data[key])


def replace_tags(data: Mapping[str, Any], current: list[str]) -> list[str]:
    if "tags" not in data:
        return current
    return ensure_unique_strings(data["tags"])


def first_present(data: Mapping[str, Any], *keys: str) -> tuple[bool, Any]:
    """``(True, value)`` for the first key in *keys* present in *data*."""
    for key in keys:
        if key in data:
            return True, data[key]
    return False, None
