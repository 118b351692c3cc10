"""FlowService: flows, their scopes, and their steps."""

from __future__ import annotations

import logging
from typing import Any

from architekt.domain import flows as flow_rules
from architekt.domain.coerce import ensure_string
from architekt.domain.ids import new_id
from architekt.domain.models import Flow
from architekt.services._helpers import (
    as_input,
    first_present,
    replace_name,
    replace_tags,
    replace_text,
    require_name,
)
from architekt.services.base import BaseService
from architekt.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class FlowService(BaseService):
    """Create, read, update and delete flows with step integrity checks."""

    @traced
    def list_flows(
        self,
        project_id: str,
        *,
        scope: list[str] | None = None,
        tags: list[str] | None = None,
    ) -> list[Flow]:
        """List flows, optionally keeping only those spanning every *scope*
        system and carrying every tag in *tags*."""
        project = self._get_project(self._snapshot(), project_id)
        return flow_rules.filter_flows(list(project.flows.values()), scope=scope, tags=tags)

    @traced
    def get_flow(self, project_id: str, flow_id: str) -> Flow:
        project = self._get_project(self._snapshot(), project_id)
        return flow_rules.get_flow_or_raise(project, flow_id)

    @traced
    def create_flow(self, project_id: str, data: Any) -> Flow:
        """Create a flow.

        ``systemScopeIds`` must name at least one existing system. Steps
        may list the new flow itself as an alternate.

        Raises:
            BadRequestError: Missing name, empty scope, or an invalid step.
            NotFoundError: Unknown project.
        """
        fields = as_input(data)

        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            name = require_name(fields, "Flow")
            flow_id = new_id()

            _, raw_scope = first_present(fields, "systemScopeIds", "system_scope_ids")
            scope = flow_rules.ensure_system_scope(project, raw_scope)

            known_flow_ids = {flow_id, *project.flows}
            _, raw_steps = first_present(fields, "steps")
            with trace_span("steps"):
                steps = (
                    flow_rules.sanitize_steps(project, raw_steps, known_flow_ids)
                    if raw_steps is not None
                    else []
                )

            flow = Flow(
                id=flow_id,
                name=name,
                description=ensure_string(fields.get("description")),
                tags=replace_tags(fields, []),
                system_scope_ids=scope,
                steps=steps,
            )
            project.flows[flow_id] = flow

        logger.info("Created flow %s in project %s", flow_id, project_id)
        return flow

    @traced
    def update_flow(self, project_id: str, flow_id: str, changes: Any) -> Flow:
        """Apply a partial update to a flow.

        A present ``steps`` list replaces the steps; submitted step ids that
        match current steps are kept. When ``steps`` is absent, the stored
        steps are re-validated against the component registry.
        """
        fields = as_input(changes)

        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            flow = flow_rules.get_flow_or_raise(project, flow_id)

            name = replace_name(fields, flow.name, "Flow")
            description = replace_text(fields, "description", flow.description)
            tags = replace_tags(fields, flow.tags)

            has_scope, raw_scope = first_present(fields, "systemScopeIds", "system_scope_ids")
            scope = (
                flow_rules.ensure_system_scope(project, raw_scope)
                if has_scope
                else flow.system_scope_ids
            )

            has_steps, raw_steps = first_present(fields, "steps")
            with trace_span("steps"):
                if has_steps:
                    steps = flow_rules.sanitize_steps(
                        project,
                        raw_steps,
                        set(project.flows),
                        reuse_steps={step.id: step for step in flow.steps},
                    )
                else:
                    flow_rules.validate_existing_steps(project, flow.steps)
                    steps = flow.steps

            flow.name = name
            flow.description = description
            flow.tags = tags
            flow.system_scope_ids = scope
            flow.steps = steps

        return flow

    @traced
    def delete_flow(self, project_id: str, flow_id: str) -> None:
        """Delete a flow and strip it from every step's alternates."""
        with self._transaction() as aggregate:
            project = self._get_project(aggregate, project_id)
            flow = flow_rules.get_flow_or_raise(project, flow_id)
            del project.flows[flow.id]
            flow_rules.strip_alternate_flow(project, flow.id)
        logger.info("Deleted flow %s from project %s", flow_id, project_id)
