"""Read-path sanitization: untrusted data in, valid aggregate out.

Every function here is total: it never raises and never returns a
structurally invalid entity. Invalid fields are defaulted, invalid
entities are dropped. There is no error reporting on this path; the
store must always be readable, even when it holds legacy or corrupted
data.

INVARIANT: ``validate_domain_aggregate`` is idempotent, and an aggregate
that already satisfies every invariant passes through unchanged.

The sanitizer does not repair dangling references between entities
(e.g. a flow scope naming a deleted system). It only filters entities
whose own identity fields are blank.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from architekt.domain.coerce import (
    as_mapping,
    ensure_boolean,
    ensure_emails,
    ensure_string,
    ensure_unique_strings,
)
from architekt.domain.constraints import normalize_constraints
from architekt.domain.models import (
    Component,
    ComponentEntryPoint,
    DataModel,
    DataModelAttribute,
    DomainAggregate,
    Flow,
    Project,
    Step,
    StepEndpoint,
    System,
)

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=BaseModel)


def _is_object(value: Any) -> bool:
    return isinstance(value, Mapping | BaseModel)


# ---------------------------------------------------------------------------
# Data model attributes (recursive)
# ---------------------------------------------------------------------------


def sanitize_attribute(raw: Any) -> DataModelAttribute | None:
    """Sanitize one attribute; None if ``id``, ``name`` or ``type`` is blank."""
    data = as_mapping(raw)
    attr_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    attr_type = ensure_string(data.get("type"))
    if not (attr_id and name and attr_type):
        return None

    element: DataModelAttribute | None = None
    raw_element = data.get("element")
    if attr_type == "array" and _is_object(raw_element):
        element = sanitize_attribute(raw_element)

    return DataModelAttribute(
        id=attr_id,
        name=name,
        description=ensure_string(data.get("description")),
        type=attr_type,
        required=ensure_boolean(data.get("required")),
        unique=ensure_boolean(data.get("unique")),
        constraints=normalize_constraints(data.get("constraints")),
        read_only=ensure_boolean(data.get("readOnly", data.get("read_only"))),
        encrypted=ensure_boolean(data.get("encrypted")),
        private=ensure_boolean(data.get("private")),
        attributes=sanitize_attributes(data.get("attributes")),
        element=element,
    )


def sanitize_attributes(raw: Any) -> list[DataModelAttribute]:
    """Sanitize an attribute list, dropping invalid entries."""
    if not isinstance(raw, list | tuple):
        return []
    result: list[DataModelAttribute] = []
    for item in raw:
        attribute = sanitize_attribute(item)
        if attribute is not None:
            result.append(attribute)
    return result


def sanitize_data_model(raw: Any) -> DataModel | None:
    data = as_mapping(raw)
    model_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    if not (model_id and name):
        return None
    return DataModel(
        id=model_id,
        name=name,
        description=ensure_string(data.get("description")),
        attributes=sanitize_attributes(data.get("attributes")),
    )


# ---------------------------------------------------------------------------
# Components and entry points
# ---------------------------------------------------------------------------


def _get(data: Mapping[str, Any], alias: str, name: str) -> Any:
    """Read a field by its wire alias, falling back to the Python name."""
    return data.get(alias, data.get(name))


def sanitize_entry_point(raw: Any) -> ComponentEntryPoint | None:
    data = as_mapping(raw)
    entry_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    entry_type = ensure_string(data.get("type"))
    if not (entry_id and name and entry_type):
        return None
    return ComponentEntryPoint(
        id=entry_id,
        name=name,
        description=ensure_string(data.get("description")),
        type=entry_type,
        function_name=ensure_string(_get(data, "functionName", "function_name")),
        protocol=ensure_string(data.get("protocol")),
        method=ensure_string(data.get("method")),
        path=ensure_string(data.get("path")),
        request_model_ids=ensure_unique_strings(
            _get(data, "requestModelIds", "request_model_ids")
        ),
        response_model_ids=ensure_unique_strings(
            _get(data, "responseModelIds", "response_model_ids")
        ),
        request_attributes=sanitize_attributes(
            _get(data, "requestAttributes", "request_attributes")
        ),
        response_attributes=sanitize_attributes(
            _get(data, "responseAttributes", "response_attributes")
        ),
    )


def sanitize_component(raw: Any) -> Component | None:
    data = as_mapping(raw)
    component_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    if not (component_id and name):
        return None
    return Component(
        id=component_id,
        name=name,
        description=ensure_string(data.get("description")),
        entry_point_ids=ensure_unique_strings(_get(data, "entryPointIds", "entry_point_ids")),
    )


# ---------------------------------------------------------------------------
# Systems, flows, steps
# ---------------------------------------------------------------------------


def sanitize_system(raw: Any) -> System | None:
    data = as_mapping(raw)
    system_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    if not (system_id and name):
        return None
    return System(
        id=system_id,
        name=name,
        description=ensure_string(data.get("description")),
        tags=ensure_unique_strings(data.get("tags")),
        child_ids=ensure_unique_strings(_get(data, "childIds", "child_ids")),
        is_root=ensure_boolean(_get(data, "isRoot", "is_root")),
    )


def sanitize_step_endpoint(raw: Any) -> StepEndpoint:
    data = as_mapping(raw)
    entry_point_id = ensure_string(_get(data, "entryPointId", "entry_point_id"))
    return StepEndpoint(
        component_id=ensure_string(_get(data, "componentId", "component_id")),
        entry_point_id=entry_point_id or None,
    )


def sanitize_step(raw: Any) -> Step | None:
    data = as_mapping(raw)
    step_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    if not (step_id and name):
        return None
    return Step(
        id=step_id,
        name=name,
        description=ensure_string(data.get("description")),
        tags=ensure_unique_strings(data.get("tags")),
        source=sanitize_step_endpoint(data.get("source")),
        target=sanitize_step_endpoint(data.get("target")),
        alternate_flow_ids=ensure_unique_strings(
            _get(data, "alternateFlowIds", "alternate_flow_ids")
        ),
    )


def sanitize_flow(raw: Any) -> Flow | None:
    data = as_mapping(raw)
    flow_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    if not (flow_id and name):
        return None

    steps: list[Step] = []
    raw_steps = data.get("steps")
    if isinstance(raw_steps, list | tuple):
        for item in raw_steps:
            step = sanitize_step(item)
            if step is not None:
                steps.append(step)

    return Flow(
        id=flow_id,
        name=name,
        description=ensure_string(data.get("description")),
        tags=ensure_unique_strings(data.get("tags")),
        system_scope_ids=ensure_unique_strings(_get(data, "systemScopeIds", "system_scope_ids")),
        steps=steps,
    )


# ---------------------------------------------------------------------------
# Keyed entity maps
# ---------------------------------------------------------------------------


def _sanitize_entity_map(
    raw: Any,
    sanitize: Callable[[Any], _E | None],
    label: str,
) -> dict[str, _E]:
    """Sanitize a ``{id: entity}`` map.

    The map key is the default id; an ``id`` inside the value wins.
    Survivors are re-keyed by their sanitized id, first one wins.
    """
    if isinstance(raw, BaseModel) or not isinstance(raw, Mapping):
        return {}

    result: dict[str, _E] = {}
    dropped = 0
    for key, value in raw.items():
        if not _is_object(value):
            dropped += 1
            continue
        merged = {"id": key, **as_mapping(value)}
        entity = sanitize(merged)
        entity_id = getattr(entity, "id", "")
        if entity is None or entity_id in result:
            dropped += 1
            continue
        result[entity_id] = entity

    if dropped:
        logger.debug("Dropped %d invalid %s entries", dropped, label)
    return result


def sanitize_project(raw: Any) -> Project | None:
    """Sanitize a project; None if ``id``, ``name`` or ``rootSystemId`` is blank."""
    data = as_mapping(raw)
    project_id = ensure_string(data.get("id"))
    name = ensure_string(data.get("name"))
    root_system_id = ensure_string(_get(data, "rootSystemId", "root_system_id"))
    if not (project_id and name and root_system_id):
        return None
    return Project(
        id=project_id,
        name=name,
        description=ensure_string(data.get("description")),
        tags=ensure_unique_strings(data.get("tags")),
        shared_with=ensure_emails(_get(data, "sharedWith", "shared_with")),
        root_system_id=root_system_id,
        systems=_sanitize_entity_map(data.get("systems"), sanitize_system, "system"),
        flows=_sanitize_entity_map(data.get("flows"), sanitize_flow, "flow"),
        data_models=_sanitize_entity_map(
            _get(data, "dataModels", "data_models"), sanitize_data_model, "data model"
        ),
        components=_sanitize_entity_map(data.get("components"), sanitize_component, "component"),
        entry_points=_sanitize_entity_map(
            _get(data, "entryPoints", "entry_points"), sanitize_entry_point, "entry point"
        ),
    )


# ---------------------------------------------------------------------------
# Aggregate entry point
# ---------------------------------------------------------------------------


def validate_domain_aggregate(raw: Any) -> DomainAggregate:
    """Sanitize arbitrary input into a :class:`DomainAggregate`.

    Applied on every load and before every save. Never raises.
    """
    data = as_mapping(raw)
    projects = _sanitize_entity_map(data.get("projects"), sanitize_project, "project")
    return DomainAggregate(projects=projects)


def create_empty_domain_aggregate() -> DomainAggregate:
    return DomainAggregate()


def list_projects(aggregate: DomainAggregate) -> list[Project]:
    return list(aggregate.projects.values())


def find_project_by_id(aggregate: DomainAggregate, project_id: str) -> Project | None:
    return aggregate.projects.get(project_id)


def get_root_system(project: Project) -> System | None:
    return project.systems.get(project.root_system_id)
