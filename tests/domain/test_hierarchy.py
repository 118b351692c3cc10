"""Tests for the system tree: creation, parent lookup, cascade delete."""

from __future__ import annotations

import pytest

from architekt.domain.errors import BadRequestError, NotFoundError
from architekt.domain.hierarchy import (
    build_parent_index,
    collect_descendants,
    create_system,
    delete_system,
    find_parent_id,
    get_system_or_raise,
)
from architekt.domain.models import Project
from architekt.domain.sanitize import validate_domain_aggregate
from tests.conftest import make_project_payload


@pytest.fixture
def project() -> Project:
    aggregate = validate_domain_aggregate({"projects": {"p1": make_project_payload()}})
    return aggregate.projects["p1"]


class TestCreateSystem:
    def test_defaults_to_root_parent(self, project: Project) -> None:
        system = create_system(project, name="Auth")
        assert system.id in project.systems
        assert project.systems["root"].child_ids == [system.id]
        assert system.is_root is False

    def test_explicit_parent(self, project: Project) -> None:
        auth = create_system(project, name="Auth")
        login = create_system(project, name="Login", tags=["ui"], parent_id=auth.id)
        assert project.systems[auth.id].child_ids == [login.id]
        assert login.tags == ["ui"]

    def test_unknown_parent(self, project: Project) -> None:
        with pytest.raises(NotFoundError):
            create_system(project, name="X", parent_id="ghost")


class TestParentIndex:
    def test_find_parent(self, project: Project) -> None:
        auth = create_system(project, name="Auth")
        login = create_system(project, name="Login", parent_id=auth.id)
        index = build_parent_index(project)
        assert index == {auth.id: "root", login.id: auth.id}
        assert find_parent_id(project, login.id, index) == auth.id
        assert find_parent_id(project, "root") is None


class TestCollectDescendants:
    def test_includes_start_and_skips_unknown(self, project: Project) -> None:
        auth = create_system(project, name="Auth")
        login = create_system(project, name="Login", parent_id=auth.id)
        project.systems[login.id].child_ids.append("missing")
        assert collect_descendants(project, auth.id) == [auth.id, login.id, "missing"]

    def test_survives_cycles(self, project: Project) -> None:
        auth = create_system(project, name="Auth")
        project.systems[auth.id].child_ids.append("root")
        assert set(collect_descendants(project, "root")) == {"root", auth.id}


class TestDeleteSystem:
    def test_cascades(self, project: Project) -> None:
        auth = create_system(project, name="Auth")
        login = create_system(project, name="Login", parent_id=auth.id)
        other = create_system(project, name="Billing")

        removed = delete_system(project, auth.id)

        assert set(removed) == {auth.id, login.id}
        assert set(project.systems) == {"root", other.id}
        assert project.systems["root"].child_ids == [other.id]

    def test_root_is_protected(self, project: Project) -> None:
        with pytest.raises(BadRequestError, match="Root system cannot be deleted"):
            delete_system(project, "root")
        assert "root" in project.systems

    def test_unknown_system(self, project: Project) -> None:
        with pytest.raises(NotFoundError):
            delete_system(project, "ghost")
        with pytest.raises(NotFoundError):
            get_system_or_raise(project, "ghost")
