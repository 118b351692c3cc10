"""Shared pytest fixtures and test helpers for architekt tests."""

from __future__ import annotations

from typing import Any

import pytest

from architekt.domain.models import Project
from architekt.infrastructure.persistence import MemoryPersistence
from architekt.services.component import ComponentService
from architekt.services.data_model import DataModelService
from architekt.services.flow import FlowService
from architekt.services.project import ProjectService
from architekt.services.system import SystemService


@pytest.fixture
def store() -> MemoryPersistence:
    """Empty in-memory backend shared by every service fixture in a test."""
    return MemoryPersistence()


@pytest.fixture
def projects(store: MemoryPersistence) -> ProjectService:
    return ProjectService(store)


@pytest.fixture
def systems(store: MemoryPersistence) -> SystemService:
    return SystemService(store)


@pytest.fixture
def flows(store: MemoryPersistence) -> FlowService:
    return FlowService(store)


@pytest.fixture
def data_models(store: MemoryPersistence) -> DataModelService:
    return DataModelService(store)


@pytest.fixture
def components(store: MemoryPersistence) -> ComponentService:
    return ComponentService(store)


@pytest.fixture
def project(projects: ProjectService) -> Project:
    """A freshly created project with only its root system."""
    return projects.create_project({"name": "Shop", "description": "Web shop"})


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def component_with_entry_point(
    components: ComponentService,
    project_id: str,
    name: str = "API",
    entry_point: dict[str, Any] | None = None,
) -> tuple[str, str]:
    """Create a component owning one entry point; return both ids."""
    component = components.create_component(
        project_id,
        {
            "name": name,
            "entryPoints": [entry_point or {"name": "login", "type": "http"}],
        },
    )
    return component.id, component.entry_point_ids[0]


def step(
    name: str,
    source: str,
    target: str,
    *,
    source_entry_point: str | None = None,
    target_entry_point: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build raw step input between two components."""
    return {
        "name": name,
        "source": {"componentId": source, "entryPointId": source_entry_point},
        "target": {"componentId": target, "entryPointId": target_entry_point},
        **extra,
    }


def make_project_payload(
    project_id: str = "p1",
    name: str = "Demo",
    root_id: str = "root",
    **extra: Any,
) -> dict[str, Any]:
    """Raw, persisted-shape project with a root system."""
    payload: dict[str, Any] = {
        "id": project_id,
        "name": name,
        "description": "",
        "tags": [],
        "sharedWith": [],
        "rootSystemId": root_id,
        "systems": {
            root_id: {
                "id": root_id,
                "name": name,
                "description": "",
                "tags": [],
                "childIds": [],
                "isRoot": True,
            }
        },
        "flows": {},
        "dataModels": {},
        "components": {},
        "entryPoints": {},
    }
    payload.update(extra)
    return payload
