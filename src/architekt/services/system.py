"""SystemService: the per-project system tree."""

from __future__ import annotations

import logging
from typing import Any

from architekt.domain import hierarchy
from architekt.domain.coerce import ensure_string
from architekt.domain.models import System
from architekt.services._helpers import (
    as_input,
    replace_name,
    replace_tags,
    replace_text,
    require_name,
)
from architekt.services.base import BaseService
from architekt.services.telemetry import traced

logger = logging.getLogger(__name__)


class SystemService(BaseService):
    """Create, read, update and cascade-delete systems."""

    @traced
    def list_systems(self, project_id: str) -> list[System]:
        project = self._get_project(self._snapshot(), project_id)
        return list(project.systems.values())

    @traced
    def get_system(self, project_id: str, system_id: str) -> System:
        project = self._get_project(self._snapshot(), project_id)
        return hierarchy.get_system_or_raise(project, system_id)

    @traced
    def create_system(self, project_id: str, data: Any) -> System:
        """Create a system under ``parentId`` (default: the project root).

        Raises:
            BadRequestError: ``name`` is missing or blank.
            NotFoundError: Unknown project or parent.
        """
        fields = as_input(data)
        name = require_name(fields, "System")

        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            system = hierarchy.create_system(
                project,
                name=name,
                description=ensure_string(fields.get("description")),
                tags=replace_tags(fields, []),
                parent_id=ensure_string(fields.get("parentId", fields.get("parent_id"))) or None,
            )
        return system

    @traced
    def update_system(self, project_id: str, system_id: str, changes: Any) -> System:
        """Rename, re-describe or re-tag a system. The tree shape is untouched."""
        fields = as_input(changes)
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            system = hierarchy.get_system_or_raise(project, system_id)
            system.name = replace_name(fields, system.name, "System")
            system.description = replace_text(fields, "description", system.description)
            system.tags = replace_tags(fields, system.tags)
        return system

    @traced
    def delete_system(self, project_id: str, system_id: str) -> None:
        """Delete a system and all of its descendants.

        Flows referencing removed systems are not modified.

        Raises:
            BadRequestError: The system is the project root.
        """
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            removed = hierarchy.delete_system(project, system_id)
        logger.info("Deleted %d system(s) from project %s", len(removed), project_id)
