"""Component registry rules: entry points and their data model references.

Entry points live in the project-level ``entry_points`` map and are owned
by exactly one component through ``Component.entry_point_ids``. Steps
reference them by id.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from architekt.domain.attributes import index_attributes, sanitize_attribute_list
from architekt.domain.coerce import as_mapping, ensure_string, ensure_unique_strings
from architekt.domain.errors import BadRequestError, NotFoundError
from architekt.domain.ids import new_id
from architekt.domain.models import Component, ComponentEntryPoint, DataModel, Project


def get_component_or_raise(project: Project, component_id: str) -> Component:
    component = project.components.get(component_id)
    if component is None:
        msg = f"Component {component_id} not found in project {project.id}"
        raise NotFoundError(msg)
    return component


def get_data_model_or_raise(project: Project, data_model_id: str) -> DataModel:
    data_model = project.data_models.get(data_model_id)
    if data_model is None:
        msg = f"Data model {data_model_id} not found in project {project.id}"
        raise NotFoundError(msg)
    return data_model


def get_entry_point_or_raise(
    project: Project,
    component: Component,
    entry_point_id: str,
) -> ComponentEntryPoint:
    """Look up an entry point owned by *component*."""
    entry_point = project.entry_points.get(entry_point_id)
    if entry_point is None or entry_point_id not in component.entry_point_ids:
        msg = f"Entry point {entry_point_id} not found in component {component.id}"
        raise NotFoundError(msg)
    return entry_point


def ensure_model_references(project: Project, raw: Any, field: str) -> list[str]:
    """Deduplicate data model ids and require each to exist."""
    ids = ensure_unique_strings(raw)
    for model_id in ids:
        if model_id not in project.data_models:
            msg = f"Entry point {field} references unknown data model {model_id}"
            raise BadRequestError(msg)
    return ids


def build_entry_point(
    project: Project,
    raw: Any,
    previous: ComponentEntryPoint | None = None,
) -> ComponentEntryPoint:
    """Build one entry point from caller input.

    With *previous*, the id is kept and omitted keys fall back to the
    previous values (partial update). Without it, a fresh id is minted.
    """
    data = as_mapping(raw)

    def text(key: str, alias: str | None = None) -> str:
        for candidate in (alias, key):
            if candidate and candidate in data:
                return ensure_string(data[candidate])
        return getattr(previous, key) if previous else ""

    name = text("name")
    if not name:
        raise BadRequestError("Entry point name is required")
    entry_type = text("type")
    if not entry_type:
        raise BadRequestError("Entry point type is required")

    def model_ids(field: str, alias: str) -> list[str]:
        for candidate in (alias, field):
            if candidate in data:
                return ensure_model_references(project, data[candidate], alias)
        return list(getattr(previous, field)) if previous else []

    def attributes(field: str, alias: str) -> list:
        existing = getattr(previous, field) if previous else []
        for candidate in (alias, field):
            if candidate in data:
                return sanitize_attribute_list(data[candidate], index_attributes(existing))
        return list(existing)

    return ComponentEntryPoint(
        id=previous.id if previous else new_id(),
        name=name,
        description=text("description"),
        type=entry_type,
        function_name=text("function_name", "functionName"),
        protocol=text("protocol"),
        method=text("method"),
        path=text("path"),
        request_model_ids=model_ids("request_model_ids", "requestModelIds"),
        response_model_ids=model_ids("response_model_ids", "responseModelIds"),
        request_attributes=attributes("request_attributes", "requestAttributes"),
        response_attributes=attributes("response_attributes", "responseAttributes"),
    )


def sanitize_entry_points(
    project: Project,
    raw: Any,
    owned_ids: Collection[str] = (),
) -> list[ComponentEntryPoint]:
    """Build a component's entry point list.

    A submitted id in *owned_ids* (the component's current entry points)
    is an edit of that entry point; any other id is ignored and a fresh
    one is minted, so a component can never adopt another's entry point.
    """
    if raw is None:
        return []
    if not isinstance(raw, list | tuple):
        raise BadRequestError("Component entry points must be an array")

    claimed: set[str] = set()
    result: list[ComponentEntryPoint] = []
    for item in raw:
        data = as_mapping(item)
        provided_id = ensure_string(data.get("id"))
        previous = None
        if provided_id in owned_ids and provided_id not in claimed:
            previous = project.entry_points.get(provided_id)
        if previous is not None:
            claimed.add(previous.id)
        result.append(build_entry_point(project, data, previous))
    return result


def replace_entry_points(
    project: Project,
    component: Component,
    entry_points: list[ComponentEntryPoint],
) -> None:
    """Install *entry_points* as the component's full set.

    Previously owned entry points missing from the new set are removed
    from the project registry.
    """
    keep = {entry_point.id for entry_point in entry_points}
    for old_id in component.entry_point_ids:
        if old_id not in keep:
            project.entry_points.pop(old_id, None)
    for entry_point in entry_points:
        project.entry_points[entry_point.id] = entry_point
    component.entry_point_ids = [entry_point.id for entry_point in entry_points]


def remove_component(project: Project, component_id: str) -> None:
    """Delete a component and its owned entry points.

    Steps that referenced the component are left as-is.
    """
    component = get_component_or_raise(project, component_id)
    for entry_point_id in component.entry_point_ids:
        project.entry_points.pop(entry_point_id, None)
    del project.components[component_id]


def strip_data_model_references(project: Project, data_model_id: str) -> None:
    """Remove *data_model_id* from every entry point's request/response ids."""
    for entry_point in project.entry_points.values():
        entry_point.request_model_ids = [
            mid for mid in entry_point.request_model_ids if mid != data_model_id
        ]
        entry_point.response_model_ids = [
            mid for mid in entry_point.response_model_ids if mid != data_model_id
        ]
