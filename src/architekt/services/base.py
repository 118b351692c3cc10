"""BaseService: foundation for all architekt services.

Every service receives a :class:`PersistenceAdapter` at construction time
and works on one tenant's aggregate. Mutations follow a single template,
owned by :meth:`BaseService._transaction`:

    load -> validate -> deep clone -> (caller mutates) -> validate -> save

If the block raises, nothing is saved and the stored aggregate is
untouched. There is no locking across the cycle: two interleaved
transactions both start from the same snapshot and the later save wins.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from architekt.domain.errors import NotFoundError
from architekt.domain.models import DomainAggregate, Project
from architekt.domain.sanitize import find_project_by_id, validate_domain_aggregate
from architekt.services.telemetry import trace_span

if TYPE_CHECKING:
    from collections.abc import Iterator

    from architekt.infrastructure.persistence.base import PersistenceAdapter

logger = logging.getLogger(__name__)


class BaseService:
    """Base for entity services.

    Usage::

        class SystemService(BaseService):
            def update_system(self, project_id, system_id, changes):
                with self._transaction() as aggregate:
                    project = self._get_project(aggregate, project_id)
                    ...
    """

    def __init__(self, persistence: PersistenceAdapter, *, user_id: str | None = None) -> None:
        self._persistence = persistence
        self._user_id = user_id or persistence.default_user_id

    def _snapshot(self) -> DomainAggregate:
        """Load and re-validate the stored aggregate (read-only use)."""
        with trace_span("load"):
            return validate_domain_aggregate(self._persistence.load(self._user_id))

    @contextmanager
    def _transaction(self) -> Iterator[DomainAggregate]:
        """Yield a private clone of the aggregate; save it if the block succeeds."""
        aggregate = self._snapshot().model_copy(deep=True)
        yield aggregate
        with trace_span("save"):
            self._persistence.save(validate_domain_aggregate(aggregate), self._user_id)
        logger.debug("Committed aggregate for %s", self._user_id)

    @staticmethod
    def _get_project(aggregate: DomainAggregate, project_id: str) -> Project:
        project = find_project_by_id(aggregate, project_id)
        if project is None:
            msg = f"Project {project_id} not found"
            raise NotFoundError(msg)
        return project
