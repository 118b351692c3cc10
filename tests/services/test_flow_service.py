"""Tests for FlowService."""

from __future__ import annotations

import pytest

from architekt.domain.errors import BadRequestError, NotFoundError
from architekt.domain.models import Project
from architekt.services.component import ComponentService
from architekt.services.flow import FlowService
from architekt.services.system import SystemService
from tests.conftest import component_with_entry_point, step


@pytest.fixture
def wiring(components: ComponentService, project: Project) -> dict[str, str]:
    web, submit = component_with_entry_point(
        components, project.id, "Web", {"name": "submit", "type": "ui"}
    )
    api, login = component_with_entry_point(components, project.id, "API")
    return {"web": web, "submit": submit, "api": api, "login": login}


class TestCreateFlow:
    def test_with_steps(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        flow = flows.create_flow(
            project.id,
            {
                "name": "Sign in",
                "tags": ["auth"],
                "systemScopeIds": [project.root_system_id],
                "steps": [
                    step(
                        "Submit credentials",
                        wiring["web"],
                        wiring["api"],
                        source_entry_point=wiring["submit"],
                        target_entry_point=wiring["login"],
                    )
                ],
            },
        )
        assert flow.steps[0].source.entry_point_id == wiring["submit"]
        assert flows.get_flow(project.id, flow.id) == flow

    def test_without_steps(self, flows: FlowService, project: Project) -> None:
        flow = flows.create_flow(
            project.id, {"name": "Empty", "systemScopeIds": [project.root_system_id]}
        )
        assert flow.steps == []

    def test_scope_required(self, flows: FlowService, project: Project) -> None:
        with pytest.raises(BadRequestError, match="at least one valid system"):
            flows.create_flow(project.id, {"name": "F", "systemScopeIds": ["ghost"]})

    def test_endpoint_must_exist(self, flows: FlowService, project: Project) -> None:
        with pytest.raises(BadRequestError):
            flows.create_flow(
                project.id,
                {
                    "name": "F",
                    "systemScopeIds": [project.root_system_id],
                    "steps": [step("S", "ghost", "ghost")],
                },
            )
        assert flows.list_flows(project.id) == []

    def test_entry_point_must_belong_to_component(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        with pytest.raises(BadRequestError, match="does not belong"):
            flows.create_flow(
                project.id,
                {
                    "name": "F",
                    "systemScopeIds": [project.root_system_id],
                    "steps": [
                        step("S", wiring["web"], wiring["api"], target_entry_point=wiring["submit"])
                    ],
                },
            )

    def test_alternate_flows(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        retry = flows.create_flow(
            project.id, {"name": "Retry", "systemScopeIds": [project.root_system_id]}
        )
        flow = flows.create_flow(
            project.id,
            {
                "name": "Sign in",
                "systemScopeIds": [project.root_system_id],
                "steps": [
                    step("S", wiring["web"], wiring["api"], alternateFlowIds=[retry.id])
                ],
            },
        )
        assert flow.steps[0].alternate_flow_ids == [retry.id]

        with pytest.raises(BadRequestError, match="Alternate flow"):
            flows.create_flow(
                project.id,
                {
                    "name": "Bad",
                    "systemScopeIds": [project.root_system_id],
                    "steps": [step("S", wiring["web"], wiring["api"], alternateFlowIds=["x"])],
                },
            )


class TestUpdateFlow:
    def test_reuses_step_ids(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        flow = flows.create_flow(
            project.id,
            {
                "name": "F",
                "systemScopeIds": [project.root_system_id],
                "steps": [step("One", wiring["web"], wiring["api"])],
            },
        )
        kept = flow.steps[0].id
        updated = flows.update_flow(
            project.id,
            flow.id,
            {
                "steps": [
                    step("One again", wiring["web"], wiring["api"], id=kept),
                    step("Two", wiring["api"], wiring["web"]),
                ]
            },
        )
        assert [s.id for s in updated.steps][0] == kept
        assert updated.steps[0].name == "One again"
        assert updated.steps[1].id != kept

    def test_partial_keeps_scope_and_steps(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        flow = flows.create_flow(
            project.id,
            {
                "name": "F",
                "systemScopeIds": [project.root_system_id],
                "steps": [step("One", wiring["web"], wiring["api"])],
            },
        )
        updated = flows.update_flow(project.id, flow.id, {"description": "d"})
        assert updated.system_scope_ids == flow.system_scope_ids
        assert updated.steps == flow.steps

    def test_stale_endpoints_block_update(
        self,
        flows: FlowService,
        components: ComponentService,
        project: Project,
        wiring: dict[str, str],
    ) -> None:
        flow = flows.create_flow(
            project.id,
            {
                "name": "F",
                "systemScopeIds": [project.root_system_id],
                "steps": [step("One", wiring["web"], wiring["api"])],
            },
        )
        components.delete_component(project.id, wiring["api"])
        with pytest.raises(BadRequestError):
            flows.update_flow(project.id, flow.id, {"name": "Renamed"})

    def test_scope_revalidated_when_present(
        self, flows: FlowService, systems: SystemService, project: Project
    ) -> None:
        auth = systems.create_system(project.id, {"name": "Auth"})
        flow = flows.create_flow(project.id, {"name": "F", "systemScopeIds": [auth.id]})
        systems.delete_system(project.id, auth.id)

        renamed = flows.update_flow(project.id, flow.id, {"name": "G"})
        assert renamed.system_scope_ids == [auth.id]
        with pytest.raises(BadRequestError):
            flows.update_flow(project.id, flow.id, {"systemScopeIds": [auth.id]})

    def test_self_reference_as_alternate(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        flow = flows.create_flow(
            project.id, {"name": "Loop", "systemScopeIds": [project.root_system_id]}
        )
        updated = flows.update_flow(
            project.id,
            flow.id,
            {"steps": [step("Again", wiring["web"], wiring["api"], alternateFlowIds=[flow.id])]},
        )
        assert updated.steps[0].alternate_flow_ids == [flow.id]


class TestDeleteFlow:
    def test_strips_alternate_references(
        self, flows: FlowService, project: Project, wiring: dict[str, str]
    ) -> None:
        retry = flows.create_flow(
            project.id, {"name": "Retry", "systemScopeIds": [project.root_system_id]}
        )
        main = flows.create_flow(
            project.id,
            {
                "name": "Main",
                "systemScopeIds": [project.root_system_id],
                "steps": [step("S", wiring["web"], wiring["api"], alternateFlowIds=[retry.id])],
            },
        )
        flows.delete_flow(project.id, retry.id)

        assert flows.get_flow(project.id, main.id).steps[0].alternate_flow_ids == []
        with pytest.raises(NotFoundError):
            flows.get_flow(project.id, retry.id)


class TestListFlows:
    def test_filters(self, flows: FlowService, systems: SystemService, project: Project) -> None:
        auth = systems.create_system(project.id, {"name": "Auth"})
        root = project.root_system_id
        a = flows.create_flow(project.id, {"name": "A", "systemScopeIds": [root, auth.id]})
        b = flows.create_flow(
            project.id, {"name": "B", "systemScopeIds": [root], "tags": ["mobile"]}
        )
        assert [f.id for f in flows.list_flows(project.id, scope=[auth.id])] == [a.id]
        assert [f.id for f in flows.list_flows(project.id, tags=["mobile"])] == [b.id]
        assert len(flows.list_flows(project.id)) == 2
