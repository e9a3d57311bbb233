"""Tests for domain models and the static catalog."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import build_workflow

from actiongraph.catalog import ACTION_SCHEMAS, PRESET_QUERIES, WORKFLOW_INFO, WORKFLOWS, get_workflow, load_workflow_file
from actiongraph.domain.models import RetryPolicy, WorkflowNode
from actiongraph.execution.errors import UnknownWorkflowError
from actiongraph.execution.sequencer import topological_sort
from actiongraph.registry import get_global_registry


class TestWorkflowNode:
    def test_camel_case_wire_format(self):
        node = WorkflowNode.model_validate(
            {
                "id": "n",
                "actionRef": "plugin.http.get",
                "dependsOn": ["m"],
                "timeoutMs": 100,
                "retry": {"maxAttempts": 3, "backoffMs": 50},
            }
        )
        assert node.action_ref == "plugin.http.get"
        assert node.depends_on == ["m"]
        assert node.max_attempts == 3
        assert node.backoff_ms == 50

    def test_policy_defaults(self):
        node = WorkflowNode(id="n", action_ref="a")
        assert node.max_attempts == 1
        assert node.backoff_ms == 0
        assert node.timeout_ms is None
        assert node.input == {}

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            RetryPolicy(max_attempts=0)

    def test_frozen(self):
        node = WorkflowNode(id="n", action_ref="a")
        with pytest.raises(ValidationError):
            node.id = "other"


class TestWorkflowDefinition:
    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate node ids: a"):
            build_workflow([{"id": "a", "actionRef": "x"}, {"id": "a", "actionRef": "y"}])

    def test_dangling_dependency_is_accepted(self):
        workflow = build_workflow([{"id": "a", "actionRef": "x", "dependsOn": ["ghost"]}])
        assert workflow.get_node("a").depends_on == ["ghost"]
        assert workflow.get_node("ghost") is None


class TestCatalog:
    def test_catalog_workflows_are_acyclic(self):
        for name, workflow in WORKFLOWS.items():
            plan = topological_sort(workflow.nodes)
            assert plan.ok, name
            assert len(plan.order) <= workflow.metadata.termination.max_nodes

    def test_catalog_actions_are_registered_and_documented(self):
        registry = get_global_registry()
        for workflow in WORKFLOWS.values():
            for node in workflow.nodes:
                assert registry.has_action(node.action_ref)
                assert node.action_ref in ACTION_SCHEMAS

    def test_info_and_presets_cover_catalog(self):
        assert set(WORKFLOW_INFO) == set(WORKFLOWS) == set(PRESET_QUERIES)

    def test_get_workflow(self):
        assert get_workflow("arxiv_search").nodes[0].id == "fetch_arxiv"
        with pytest.raises(UnknownWorkflowError):
            get_workflow("missing")

    def test_load_workflow_file_roundtrip(self, tmp_path):
        source = WORKFLOWS["book_search"]
        path = tmp_path / "book_search.json"
        path.write_text(source.model_dump_json(by_alias=True), encoding="utf8")

        assert load_workflow_file(path) == source

    def test_catalog_leaves_user_agent_to_handler(self):
        for workflow in WORKFLOWS.values():
            for node in workflow.nodes:
                headers = node.input.get("headers", {})
                assert "User-Agent" not in headers, node.id


class TestTimeoutField:
    def test_zero_timeout_is_accepted(self):
        node = WorkflowNode.model_validate({"id": "n", "actionRef": "a", "timeoutMs": 0})
        assert node.timeout_ms == 0

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            WorkflowNode(id="n", action_ref="a", timeout_ms=-1)
