"""Attribute constraint normalization.

Raw constraints are classified by their ``type`` discriminant into the
closed union from :mod:`architekt.domain.models`. Two entry points:

- :func:`normalize_constraint` (read path): returns None for anything
  malformed.
- :func:`parse_constraint` (write path): raises :class:`BadRequestError`.

INVARIANT: At most one constraint per kind survives per attribute. Later
duplicates are discarded, the first one wins.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from architekt.domain.coerce import as_mapping, ensure_number, ensure_string
from architekt.domain.errors import BadRequestError
from architekt.domain.models import (
    AttributeConstraint,
    EnumConstraint,
    LengthConstraint,
    RangeConstraint,
    RegexConstraint,
)

_ENUM_SPLIT = re.compile(r"[,\r\n]+")


class _Rejected(Exception):
    """Internal signal: constraint is malformed (message is caller-facing)."""


def _number_text(value: int | float) -> str:
    if not math.isfinite(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _enum_values(candidate: Any) -> list[str]:
    if isinstance(candidate, str):
        items: list[Any] = _ENUM_SPLIT.split(candidate)
    elif isinstance(candidate, list | tuple):
        items = list(candidate)
    else:
        return []

    seen: set[str] = set()
    values: list[str] = []
    for item in items:
        if isinstance(item, bool):
            continue
        if isinstance(item, int | float):
            text = _number_text(item)
        else:
            text = ensure_string(item)
        if text and text not in seen:
            seen.add(text)
            values.append(text)
    return values


def _classify(raw: Any) -> AttributeConstraint:
    if not isinstance(raw, Mapping | BaseModel):
        raise _Rejected("Constraint must be an object")
    candidate = as_mapping(raw)
    kind = ensure_string(candidate.get("type"))

    match kind:
        case "regex":
            pattern = candidate.get("value")
            # kept verbatim: surrounding whitespace is part of the pattern
            if not isinstance(pattern, str) or not pattern.strip():
                raise _Rejected("Regex constraint requires a pattern")
            return RegexConstraint(value=pattern)
        case "minLength" | "maxLength":
            numeric = ensure_number(candidate.get("value"))
            if numeric is None:
                raise _Rejected(f"{kind} constraint requires a numeric value")
            integer = math.trunc(numeric)
            if integer < 0:
                raise _Rejected(f"{kind} constraint must not be negative")
            return LengthConstraint(type=kind, value=integer)
        case "min" | "max":
            numeric = ensure_number(candidate.get("value"))
            if numeric is None:
                raise _Rejected(f"{kind} constraint requires a finite number")
            return RangeConstraint(type=kind, value=numeric)
        case "enum":
            source = candidate.get("values")
            if source is None:
                source = candidate.get("value")
            values = _enum_values(source)
            if not values:
                raise _Rejected("Enum constraint requires at least one value")
            return EnumConstraint(values=values)
        case "":
            raise _Rejected("Constraint type is required")
        case _:
            raise _Rejected(f"Unknown constraint type: {kind!r}")


def normalize_constraint(raw: Any) -> AttributeConstraint | None:
    """Classify *raw*, returning None if it is malformed."""
    try:
        return _classify(raw)
    except _Rejected:
        return None


def parse_constraint(raw: Any) -> AttributeConstraint:
    """Classify *raw* or raise :class:`BadRequestError`."""
    try:
        return _classify(raw)
    except _Rejected as exc:
        raise BadRequestError(str(exc)) from None


def normalize_constraints(raw: Any, *, strict: bool = False) -> list[AttributeConstraint]:
    """Normalize a list of constraints, first one per kind wins.

    In strict mode a non-list value or any malformed entry raises
    :class:`BadRequestError`; otherwise they are dropped.
    """
    if raw is None:
        return []
    if not isinstance(raw, list | tuple):
        if strict:
            raise BadRequestError("Attribute constraints must be an array")
        return []

    seen: set[str] = set()
    result: list[AttributeConstraint] = []
    for item in raw:
        constraint = parse_constraint(item) if strict else normalize_constraint(item)
        if constraint is None or constraint.type in seen:
            continue
        seen.add(constraint.type)
        result.append(constraint)
    return result
