"""Total coercion helpers for untrusted input.

Pure functions, no infrastructure dependencies. None of them raise:
anything that cannot be coerced collapses to the fallback.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

# Plain ASCII decimal literal, optionally signed, with optional exponent.
_NUMBER = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def ensure_string(value: Any, fallback: str = "") -> str:
    """Return *value* trimmed, or *fallback* if it is not a non-blank string."""
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed:
            return trimmed
    return fallback


def ensure_boolean(value: Any, fallback: bool = False) -> bool:
    """Return *value* if it is a real bool, else *fallback*.

    Integers are not booleans here: ``1`` coerces to *fallback*.
    """
    if isinstance(value, bool):
        return value
    return fallback


def ensure_number(value: Any) -> int | float | None:
    """Coerce *value* to a finite number, or None.

    Only plain decimal literals such as ``"12"``, ``"-0.5"`` or ``"1e3"``
    are parsed; digit separators (``"1_000"``) and non-ASCII digits are
    rejected. Integer-looking strings stay ``int``. Booleans are never
    numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        match = _NUMBER.fullmatch(text)
        if match is None:
            return None
        if match.group(2) is None and "." not in text:
            return int(text)
        parsed = float(text)
        return parsed if math.isfinite(parsed) else None
    return None


def ensure_unique_strings(value: Any) -> list[str]:
    """Trimmed, non-blank, deduplicated strings in first-seen order.

    Non-list input yields an empty list.
    """
    if not isinstance(value, list | tuple):
        return []
    seen: set[str] = set()
    result: list[str] = []
    for item in value:
        text = ensure_string(item)
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


def ensure_emails(value: Any) -> list[str]:
    """Lower-cased, deduplicated e-mail strings (no format check)."""
    return ensure_unique_strings([email.lower() for email in ensure_unique_strings(value)])


def as_mapping(value: Any) -> Mapping[str, Any]:
    """View *value* as a mapping.

    Pydantic models are dumped by alias so persisted and freshly built
    entities share one code path. Anything else that is not a mapping
    becomes an empty dict.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return value
    return {}
