"""Persistence adapter contract.

An adapter stores one :class:`DomainAggregate` per tenant (user id).
Calls that pass no user id act on the adapter's ``default_user_id``
(``[tenancy] default_user_id``, :data:`DEFAULT_USER_ID` unless configured).

INVARIANT: ``load`` returns a sanitized aggregate (empty if nothing is
stored) and ``save`` persists exactly ``validate_domain_aggregate(data)``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from architekt.domain.models import DomainAggregate
from architekt.domain.sanitize import validate_domain_aggregate

DEFAULT_USER_ID = "local-user"


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Load/save boundary between the services and a storage backend."""

    default_user_id: str

    def load(self, user_id: str | None = None) -> DomainAggregate: ...

    def save(self, aggregate: Any, user_id: str | None = None) -> None: ...


def _looks_like_aggregate(value: Any) -> bool:
    if isinstance(value, DomainAggregate):
        return True
    return isinstance(value, Mapping) and isinstance(value.get("projects"), Mapping)


def _is_single_aggregate(raw: Mapping[str, Any]) -> bool:
    """True for a legacy single-tenant document rather than ``{user_id: aggregate}``.

    A tenant may itself be called ``projects``: its value then looks like
    an aggregate, and so do its sibling tenants.
    """
    projects = raw.get("projects")
    if not isinstance(projects, Mapping) or _looks_like_aggregate(projects):
        return False
    return not any(
        _looks_like_aggregate(value) for key, value in raw.items() if key != "projects"
    )


def sanitize_store(
    raw: Any, default_user_id: str = DEFAULT_USER_ID
) -> dict[str, DomainAggregate]:
    """Coerce a raw multi-tenant store into ``{user_id: aggregate}``.

    A single aggregate (a :class:`DomainAggregate`, or a legacy document
    with a top-level ``projects`` map) is scoped to *default_user_id*.
    Non-mapping entries are dropped.
    """
    if isinstance(raw, DomainAggregate):
        return {default_user_id: validate_domain_aggregate(raw)}
    if not isinstance(raw, Mapping):
        return {}
    if _is_single_aggregate(raw):
        return {default_user_id: validate_domain_aggregate(raw)}

    store: dict[str, DomainAggregate] = {}
    for user_id, value in raw.items():
        if isinstance(user_id, str) and isinstance(value, Mapping | DomainAggregate):
            store[user_id] = validate_domain_aggregate(value)
    return store
