"""ComponentService: components and the entry points they own."""

from __future__ import annotations

import logging
from typing import Any

from architekt.domain import components as registry
from architekt.domain.coerce import ensure_string
from architekt.domain.ids import new_id
from architekt.domain.models import Component, ComponentEntryPoint
from architekt.services._helpers import (
    as_input,
    first_present,
    replace_name,
    replace_text,
    require_name,
)
from architekt.services.base import BaseService
from architekt.services.telemetry import traced

logger = logging.getLogger(__name__)


class ComponentService(BaseService):
    """Manage components and their entry points.

    Entry points can be edited as a whole list through
    :meth:`update_component` (``entryPoints``) or one at a time through the
    ``*_entry_point`` methods.
    """

    @traced
    def list_components(self, project_id: str) -> list[Component]:
        project = self._get_project(self._snapshot(), project_id)
        return list(project.components.values())

    @traced
    def get_component(self, project_id: str, component_id: str) -> Component:
        project = self._get_project(self._snapshot(), project_id)
        return registry.get_component_or_raise(project, component_id)

    @traced
    def create_component(self, project_id: str, data: Any) -> Component:
        """Create a component, optionally with an initial ``entryPoints`` list.

        Raises:
            BadRequestError: Missing name, or an invalid entry point.
        """
        fields = as_input(data)
        name = require_name(fields, "Component")

        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            component = Component(
                id=new_id(),
                name=name,
                description=ensure_string(fields.get("description")),
            )
            _, raw_entry_points = first_present(fields, "entryPoints", "entry_points")
            entry_points = registry.sanitize_entry_points(project, raw_entry_points)
            registry.replace_entry_points(project, component, entry_points)
            project.components[component.id] = component

        logger.info("Created component %s in project %s", component.id, project_id)
        return component

    @traced
    def update_component(self, project_id: str, component_id: str, changes: Any) -> Component:
        """Apply a partial update.

        A present ``entryPoints`` list becomes the component's full set;
        owned entry points left out of it are deleted.
        """
        fields = as_input(changes)
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            component = registry.get_component_or_raise(project, component_id)

            name = replace_name(fields, component.name, "Component")
            description = replace_text(fields, "description", component.description)

            has_entry_points, raw_entry_points = first_present(
                fields, "entryPoints", "entry_points"
            )
            if has_entry_points:
                entry_points = registry.sanitize_entry_points(
                    project, raw_entry_points, owned_ids=component.entry_point_ids
                )
                registry.replace_entry_points(project, component, entry_points)

            component.name = name
            component.description = description
        return component

    @traced
    def delete_component(self, project_id: str, component_id: str) -> None:
        """Delete a component and its entry points. Steps are not modified."""
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            registry.remove_component(project, component_id)
        logger.info("Deleted component %s from project %s", component_id, project_id)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @traced
    def list_entry_points(self, project_id: str, component_id: str) -> list[ComponentEntryPoint]:
        project = self._get_project(self._snapshot(), project_id)
        component = registry.get_component_or_raise(project, component_id)
        return [
            project.entry_points[entry_point_id]
            for entry_point_id in component.entry_point_ids
            if entry_point_id in project.entry_points
        ]

    @traced
    def create_entry_point(
        self, project_id: str, component_id: str, data: Any
    ) -> ComponentEntryPoint:
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            component = registry.get_component_or_raise(project, component_id)
            entry_point = registry.build_entry_point(project, as_input(data))
            project.entry_points[entry_point.id] = entry_point
            component.entry_point_ids.append(entry_point.id)
        return entry_point

    @traced
    def update_entry_point(
        self, project_id: str, component_id: str, entry_point_id: str, changes: Any
    ) -> ComponentEntryPoint:
        """Partially update one entry point; its id never changes."""
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            component = registry.get_component_or_raise(project, component_id)
            previous = registry.get_entry_point_or_raise(project, component, entry_point_id)
            entry_point = registry.build_entry_point(project, as_input(changes), previous)
            project.entry_points[entry_point.id] = entry_point
        return entry_point

    @traced
    def delete_entry_point(self, project_id: str, component_id: str, entry_point_id: str) -> None:
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            component = registry.get_component_or_raise(project, component_id)
            registry.get_entry_point_or_raise(project, component, entry_point_id)
            del project.entry_points[entry_point_id]
            component.entry_point_ids = [
                eid for eid in component.entry_point_ids if eid != entry_point_id
            ]
        logger.info("Deleted entry point %s from component %s", entry_point_id, component_id)
