"""Write-path builder for recursive data model attribute trees.

An incoming attribute list is merged against the previous tree as a
keyed diff over an ``id -> attribute`` map, one recursion level at a time:

- an entry whose ``id`` matches a previous attribute keeps that id, and
  every key it omits falls back to the previous value;
- an entry with an unknown or missing id gets a fresh id;
- an omitted ``attributes`` / ``element`` key keeps the previous subtree
  as-is (copy-on-omit), a present one is rebuilt against the matched
  node's own children / element;
- entries whose resulting ``name`` or ``type`` is blank are dropped.

Constraints are parsed strictly: a malformed constraint raises
:class:`BadRequestError` instead of being dropped.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel

from architekt.domain.coerce import as_mapping, ensure_boolean, ensure_string
from architekt.domain.constraints import normalize_constraints
from architekt.domain.errors import BadRequestError
from architekt.domain.ids import new_id
from architekt.domain.models import DataModelAttribute

AttributeIndex = Mapping[str, DataModelAttribute]


def index_attributes(attributes: list[DataModelAttribute]) -> dict[str, DataModelAttribute]:
    """Build the identity map for one level of an attribute tree."""
    return {attribute.id: attribute for attribute in attributes}


def sanitize_attribute_list(
    raw: Any,
    existing_by_id: AttributeIndex | None = None,
) -> list[DataModelAttribute]:
    """Build an attribute list from caller input.

    Args:
        raw: The submitted list. None means an empty list.
        existing_by_id: Previous attributes at this level, keyed by id.
            Only supplied on the update path.

    Raises:
        BadRequestError: *raw* is not a list, or a constraint is malformed.
    """
    if raw is None:
        return []
    if not isinstance(raw, list | tuple):
        raise BadRequestError("Attributes must be an array")

    existing = existing_by_id or {}
    claimed: set[str] = set()
    result: list[DataModelAttribute] = []
    for item in raw:
        attribute = _build_attribute(item, existing, claimed)
        if attribute is not None:
            result.append(attribute)
    return result


def _resolve(
    data: Mapping[str, Any],
    keys: tuple[str, ...],
    coerce: Callable[[Any], Any],
    previous: Any,
) -> Any:
    """Coerce the first present key in *keys*, else return *previous*."""
    for key in keys:
        if key in data:
            return coerce(data[key])
    return previous


def _build_attribute(
    raw: Any,
    existing: AttributeIndex,
    claimed: set[str],
) -> DataModelAttribute | None:
    if not isinstance(raw, Mapping | BaseModel):
        return None
    data = as_mapping(raw)

    provided_id = ensure_string(data.get("id"))
    previous: DataModelAttribute | None = None
    if provided_id and provided_id not in claimed:
        previous = existing.get(provided_id)
    if previous is not None:
        claimed.add(previous.id)
        attr_id = previous.id
    else:
        attr_id = new_id()

    name = _resolve(data, ("name",), ensure_string, previous.name if previous else "")
    attr_type = _resolve(data, ("type",), ensure_string, previous.type if previous else "")
    if not (name and attr_type):
        return None

    def flag(*keys: str) -> bool:
        default = getattr(previous, _FLAG_FIELDS[keys[0]]) if previous else False
        return _resolve(data, keys, ensure_boolean, default)

    constraints = _resolve(
        data,
        ("constraints",),
        lambda value: normalize_constraints(value, strict=True),
        list(previous.constraints) if previous else [],
    )

    if "attributes" in data:
        children = sanitize_attribute_list(
            data["attributes"],
            index_attributes(previous.attributes) if previous else None,
        )
    else:
        children = list(previous.attributes) if previous else []

    element = _build_element(data, previous) if attr_type == "array" else None

    return DataModelAttribute(
        id=attr_id,
        name=name,
        description=_resolve(
            data, ("description",), ensure_string, previous.description if previous else ""
        ),
        type=attr_type,
        required=flag("required"),
        unique=flag("unique"),
        constraints=constraints,
        read_only=flag("readOnly", "read_only"),
        encrypted=flag("encrypted"),
        private=flag("private"),
        attributes=children,
        element=element,
    )


_FLAG_FIELDS: dict[str, str] = {
    "required": "required",
    "unique": "unique",
    "readOnly": "read_only",
    "encrypted": "encrypted",
    "private": "private",
}


def _build_element(
    data: Mapping[str, Any],
    previous: DataModelAttribute | None,
) -> DataModelAttribute | None:
    """Resolve the element definition of an array attribute."""
    previous_element = previous.element if previous else None
    if "element" not in data:
        return previous_element

    raw_element = data["element"]
    existing: dict[str, DataModelAttribute] = {}
    if previous_element is not None:
        existing[previous_element.id] = previous_element
    return _build_attribute(raw_element, existing, set())
