"""Identifier generation.

Every entity (project, system, flow, step, data model, attribute,
component, entry point) gets a random UUID4 string when a service
creates it.

INVARIANT: IDs are permanent. Edits that resubmit a known id keep it;
nothing ever renames an entity.
"""

from __future__ import annotations

import re
import uuid

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def new_id() -> str:
    """Return a fresh random identifier."""
    return str(uuid.uuid4())


def is_generated_id(value: str) -> bool:
    """Check whether *value* looks like an id minted by :func:`new_id`."""
    return UUID_PATTERN.match(value) is not None
