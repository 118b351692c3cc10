"""Flow and step integrity checks for the write path.

Every check raises :class:`BadRequestError` on the first violation and
never mutates the project, so a failing flow mutation leaves the clone
untouched.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

from pydantic import BaseModel

from architekt.domain.coerce import as_mapping, ensure_string, ensure_unique_strings
from architekt.domain.errors import BadRequestError, NotFoundError
from architekt.domain.ids import new_id
from architekt.domain.models import Flow, Project, Step, StepEndpoint


def get_flow_or_raise(project: Project, flow_id: str) -> Flow:
    flow = project.flows.get(flow_id)
    if flow is None:
        msg = f"Flow {flow_id} not found in project {project.id}"
        raise NotFoundError(msg)
    return flow


def ensure_system_scope(project: Project, raw: Any) -> list[str]:
    """Deduplicate *raw* and keep ids naming existing systems.

    Raises:
        BadRequestError: No valid system remains.
    """
    scope = [system_id for system_id in ensure_unique_strings(raw) if system_id in project.systems]
    if not scope:
        raise BadRequestError("Flow system scope must reference at least one valid system")
    return scope


def ensure_alternate_flows(known_flow_ids: Collection[str], raw: Any) -> list[str]:
    """Deduplicate *raw* and require every id to be a known flow."""
    ids = ensure_unique_strings(raw)
    for flow_id in ids:
        if flow_id not in known_flow_ids:
            msg = f"Alternate flow {flow_id} is not part of the project"
            raise BadRequestError(msg)
    return ids


def resolve_endpoint(project: Project, raw: Any, role: str) -> StepEndpoint:
    """Validate a step endpoint against the component registry.

    Args:
        role: ``"source"`` or ``"target"``, used in error messages.
    """
    data = as_mapping(raw)
    component_id = ensure_string(data.get("componentId", data.get("component_id")))
    if not component_id:
        msg = f"Step {role} component is required"
        raise BadRequestError(msg)

    component = project.components.get(component_id)
    if component is None:
        msg = f"Step {role} component {component_id} does not exist in project {project.id}"
        raise BadRequestError(msg)

    entry_point_id = ensure_string(data.get("entryPointId", data.get("entry_point_id")))
    if not entry_point_id:
        return StepEndpoint(component_id=component_id, entry_point_id=None)

    if entry_point_id not in project.entry_points:
        msg = f"Step {role} entry point {entry_point_id} does not exist in project {project.id}"
        raise BadRequestError(msg)
    if entry_point_id not in component.entry_point_ids:
        msg = (
            f"Step {role} entry point {entry_point_id} does not belong to "
            f"component {component_id}"
        )
        raise BadRequestError(msg)

    return StepEndpoint(component_id=component_id, entry_point_id=entry_point_id)


def sanitize_steps(
    project: Project,
    raw_steps: Any,
    known_flow_ids: Collection[str],
    reuse_steps: Mapping[str, Step] | None = None,
) -> list[Step]:
    """Build a flow's step list from caller input.

    A submitted id found in *reuse_steps* keeps that id (each at most
    once); any other step gets a fresh id.

    Raises:
        BadRequestError: Not a list, a blank step name, or any endpoint /
            alternate-flow violation.
    """
    if not isinstance(raw_steps, list | tuple):
        raise BadRequestError("Flow steps must be an array")

    reusable = dict(reuse_steps or {})
    result: list[Step] = []

    for raw in raw_steps:
        data = as_mapping(raw) if isinstance(raw, Mapping | BaseModel) else {}
        name = ensure_string(data.get("name"))
        if not name:
            raise BadRequestError("Step name is required")

        source = resolve_endpoint(project, data.get("source"), "source")
        target = resolve_endpoint(project, data.get("target"), "target")
        alternate_flow_ids = ensure_alternate_flows(
            known_flow_ids,
            data.get("alternateFlowIds", data.get("alternate_flow_ids")),
        )

        provided_id = ensure_string(data.get("id"))
        if provided_id and provided_id in reusable:
            del reusable[provided_id]
            step_id = provided_id
        else:
            step_id = new_id()

        result.append(
            Step(
                id=step_id,
                name=name,
                description=ensure_string(data.get("description")),
                tags=ensure_unique_strings(data.get("tags")),
                source=source,
                target=target,
                alternate_flow_ids=alternate_flow_ids,
            )
        )

    return result


def validate_existing_steps(project: Project, steps: list[Step]) -> None:
    """Re-check stored steps' endpoints against the current registry."""
    for step in steps:
        resolve_endpoint(project, step.source, "source")
        resolve_endpoint(project, step.target, "target")


def strip_alternate_flow(project: Project, flow_id: str) -> None:
    """Remove *flow_id* from every step's ``alternate_flow_ids``."""
    for flow in project.flows.values():
        for step in flow.steps:
            step.alternate_flow_ids = [fid for fid in step.alternate_flow_ids if fid != flow_id]


def filter_flows(
    flows: list[Flow],
    *,
    scope: list[str] | None = None,
    tags: list[str] | None = None,
) -> list[Flow]:
    """Keep flows whose scope includes every *scope* id and that carry every tag."""
    return [
        flow
        for flow in flows
        if all(system_id in flow.system_scope_ids for system_id in scope or [])
        and all(tag in flow.tags for tag in tags or [])
    ]
