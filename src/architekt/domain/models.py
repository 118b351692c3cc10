"""Entity models for the architecture domain aggregate.

Attributes are snake_case in Python and camelCase on the wire
(``rootSystemId``, ``childIds``, ...). Models accept either spelling on
input and serialize by alias, so a dumped aggregate is exactly the JSON
shape persisted to disk.

These models describe *shape* only. Building them from untrusted input
goes through :mod:`architekt.domain.sanitize` (read path) or the write-path
builders, never through ``model_validate`` on raw caller data.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_ENTITY_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Entity(BaseModel):
    """Base for all aggregate members."""

    model_config = _ENTITY_CONFIG

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the persisted (camelCase) representation."""
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Attribute constraints: closed tagged union keyed on ``type``
# ---------------------------------------------------------------------------


class RegexConstraint(Entity):
    type: Literal["regex"] = "regex"
    value: str


class LengthConstraint(Entity):
    type: Literal["minLength", "maxLength"]
    value: int = Field(ge=0)


class RangeConstraint(Entity):
    type: Literal["min", "max"]
    value: int | float


class EnumConstraint(Entity):
    type: Literal["enum"] = "enum"
    values: list[str] = Field(min_length=1)


AttributeConstraint = Annotated[
    RegexConstraint | LengthConstraint | RangeConstraint | EnumConstraint,
    Field(discriminator="type"),
]

CONSTRAINT_KINDS: tuple[str, ...] = ("regex", "minLength", "maxLength", "min", "max", "enum")


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


class DataModelAttribute(Entity):
    """A typed field; recursive through ``attributes`` and ``element``.

    ``attributes`` holds object children. ``element`` holds the single
    element definition of an ``array`` attribute and is None for any
    other type.
    """

    id: str
    name: str
    description: str = ""
    type: str
    required: bool = False
    unique: bool = False
    constraints: list[AttributeConstraint] = Field(default_factory=list)
    read_only: bool = False
    encrypted: bool = False
    private: bool = False
    attributes: list[DataModelAttribute] = Field(default_factory=list)
    element: DataModelAttribute | None = None


class DataModel(Entity):
    id: str
    name: str
    description: str = ""
    attributes: list[DataModelAttribute] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Components and entry points
# ---------------------------------------------------------------------------


class ComponentEntryPoint(Entity):
    """An interaction surface (HTTP route, queue listener, ...) of a component."""

    id: str
    name: str
    description: str = ""
    type: str
    function_name: str = ""
    protocol: str = ""
    method: str = ""
    path: str = ""
    request_model_ids: list[str] = Field(default_factory=list)
    response_model_ids: list[str] = Field(default_factory=list)
    request_attributes: list[DataModelAttribute] = Field(default_factory=list)
    response_attributes: list[DataModelAttribute] = Field(default_factory=list)


class Component(Entity):
    id: str
    name: str
    description: str = ""
    entry_point_ids: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Systems and flows
# ---------------------------------------------------------------------------


class System(Entity):
    """A node of the project's system tree.

    The tree is stored as forward edges only (``child_ids``); a system's
    parent is looked up, never stored.
    """

    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    child_ids: list[str] = Field(default_factory=list)
    is_root: bool = False


class StepEndpoint(Entity):
    component_id: str = ""
    entry_point_id: str | None = None


class Step(Entity):
    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    source: StepEndpoint = Field(default_factory=StepEndpoint)
    target: StepEndpoint = Field(default_factory=StepEndpoint)
    alternate_flow_ids: list[str] = Field(default_factory=list)


class Flow(Entity):
    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    system_scope_ids: list[str] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Project and aggregate
# ---------------------------------------------------------------------------


class Project(Entity):
    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    shared_with: list[str] = Field(default_factory=list)
    root_system_id: str
    systems: dict[str, System] = Field(default_factory=dict)
    flows: dict[str, Flow] = Field(default_factory=dict)
    data_models: dict[str, DataModel] = Field(default_factory=dict)
    components: dict[str, Component] = Field(default_factory=dict)
    entry_points: dict[str, ComponentEntryPoint] = Field(default_factory=dict)


class DomainAggregate(Entity):
    """All projects of one tenant."""

    projects: dict[str, Project] = Field(default_factory=dict)


DataModelAttribute.model_rebuild()
