"""In-memory persistence backend (tests, demos, ephemeral servers)."""

from __future__ import annotations

import logging
from typing import Any

from architekt.domain.models import DomainAggregate
from architekt.domain.sanitize import validate_domain_aggregate
from architekt.infrastructure.persistence.base import DEFAULT_USER_ID, sanitize_store

logger = logging.getLogger(__name__)


class MemoryPersistence:
    """Dict-backed store keyed by user id.

    Aggregates are copied on the way in and out, so callers can never
    mutate stored state by holding on to a returned object.
    """

    def __init__(self, seed: Any = None, *, default_user_id: str = DEFAULT_USER_ID) -> None:
        self.default_user_id = default_user_id
        self._store: dict[str, DomainAggregate] = sanitize_store(seed, default_user_id)

    def load(self, user_id: str | None = None) -> DomainAggregate:
        aggregate = self._store.get(user_id or self.default_user_id)
        if aggregate is None:
            return DomainAggregate()
        return aggregate.model_copy(deep=True)

    def save(self, aggregate: Any, user_id: str | None = None) -> None:
        user_id = user_id or self.default_user_id
        self._store = {**self._store, user_id: validate_domain_aggregate(aggregate)}
        logger.debug(
            "Saved aggregate for %s (%d projects)", user_id, len(self._store[user_id].projects)
        )

    def users(self) -> list[str]:
        """User ids with a stored aggregate."""
        return sorted(self._store)
