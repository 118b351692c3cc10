"""ProjectService: project lifecycle and sharing."""

from __future__ import annotations

import logging
from typing import Any

from architekt.domain.coerce import ensure_string
from architekt.domain.errors import BadRequestError
from architekt.domain.ids import new_id
from architekt.domain.models import Project, System
from architekt.domain.sanitize import list_projects
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


class ProjectService(BaseService):
    """Create, read, update, delete and share projects."""

    @traced
    def list_projects(self) -> list[Project]:
        return list_projects(self._snapshot())

    @traced
    def get_project(self, project_id: str) -> Project:
        return self._get_project(self._snapshot(), project_id)

    @traced
    def create_project(self, data: Any) -> Project:
        """Create a project together with its root system.

        The root system is named after the project.

        Raises:
            BadRequestError: ``name`` is missing or blank.
        """
        fields = as_input(data)
        name = require_name(fields, "Project")

        with self._transaction() as aggregate:
            root = System(id=new_id(), name=name, is_root=True)
            project = Project(
                id=new_id(),
                name=name,
                description=ensure_string(fields.get("description")),
                tags=replace_tags(fields, []),
                root_system_id=root.id,
                systems={root.id: root},
            )
            aggregate.projects[project.id] = project

        logger.info("Created project %s", project.id)
        return project

    @traced
    def update_project(self, project_id: str, changes: Any) -> Project:
        fields = as_input(changes)
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            project.name = replace_name(fields, project.name, "Project")
            project.description = replace_text(fields, "description", project.description)
            project.tags = replace_tags(fields, project.tags)
        return project

    @traced
    def delete_project(self, project_id: str) -> None:
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            del aggregate.projects[project.id]
        logger.info("Deleted project %s", project_id)

    @traced
    def share_project(self, project_id: str, email: Any) -> Project:
        """Add a collaborator e-mail (lower-cased) to ``shared_with``.

        Raises:
            BadRequestError: *email* is blank or has no ``@``.
        """
        address = ensure_string(email).lower()
        if "@" not in address:
            raise BadRequestError("A valid e-mail address is required to share a project")

        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            if address not in project.shared_with:
                project.shared_with.append(address)
        return project
