"""Unit tests for workflow export, import, cloning and Mermaid rendering."""

from __future__ import annotations

import json

import pytest

from agentflow.errors.exceptions import WorkflowImportError, WorkflowValidationError
from agentflow.graph.io import clone_workflow, export_workflow, import_workflow, to_mermaid
from agentflow.graph.models import WorkflowCondition, WorkflowGraph
from tests.conftest import chain, edge, linear, make_graph, node, option


@pytest.fixture
def review_graph() -> WorkflowGraph:
    """start -> coder -> check -> review -> end, with a fixer branch."""
    return make_graph(
        [
            node("start", "start"),
            node("coder", "agent", agent_id="coder"),
            node(
                "check",
                "condition",
                conditions=[WorkflowCondition(expression="hasErrors", target_node_id="fixer")],
            ),
            node("fixer", "agent", agent_id="fixer"),
            node(
                "review",
                "human-decision",
                question="Ship it?",
                options=[option("yes", "end"), option("no", "coder")],
            ),
            node("end", "end"),
        ],
        [
            *chain("start", "coder", "check", "review", "end"),
            edge("check", "fixer", label="errors"),
            edge("fixer", "review"),
        ],
    )


class TestExportImport:
    """Tests for export_workflow and import_workflow."""

    def test_export_stamps(self, review_graph: WorkflowGraph) -> None:
        """Exports carry a version and timestamp."""
        payload = json.loads(export_workflow(review_graph))

        assert payload["exportVersion"] == "1.0"
        assert "exportedAt" in payload
        assert payload["id"] == "wf-test"

    def test_round_trip(self, review_graph: WorkflowGraph) -> None:
        """Importing an export restores nodes and edges."""
        imported = import_workflow(export_workflow(review_graph))

        assert imported.id == review_graph.id
        assert imported.nodes == review_graph.nodes
        assert imported.edges == review_graph.edges

    def test_defaults_filled(self) -> None:
        """Missing id, name and version get defaults."""
        payload = json.loads(export_workflow(linear("coder")))
        for key in ("id", "name", "version"):
            payload.pop(key)

        imported = import_workflow(json.dumps(payload))

        assert imported.id.startswith("imported-")
        assert imported.name == "Imported Workflow"
        assert imported.version == 1

    def test_invalid_json(self) -> None:
        """Non-JSON text is an import error."""
        with pytest.raises(WorkflowImportError):
            import_workflow("{not json")

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"edges": []},
            {"nodes": [], "edges": {}},
        ],
    )
    def test_missing_arrays(self, payload: object) -> None:
        """nodes and edges must be arrays."""
        with pytest.raises(WorkflowImportError):
            import_workflow(json.dumps(payload))

    def test_malformed_node(self) -> None:
        """Schema violations are import errors."""
        payload = {"nodes": [{"id": "x", "type": "webhook"}], "edges": []}

        with pytest.raises(WorkflowImportError):
            import_workflow(json.dumps(payload))

    def test_structural_errors(self) -> None:
        """Structurally invalid graphs are rejected with every error."""
        payload = {"nodes": [{"id": "coder", "type": "agent", "data": {"label": "Coder"}}], "edges": []}

        with pytest.raises(WorkflowValidationError) as exc_info:
            import_workflow(json.dumps(payload))

        errors = exc_info.value.errors
        assert "Workflow has no start node" in errors
        assert "Agent node 'Coder' has no agentId" in errors


class TestCloneWorkflow:
    """Tests for clone_workflow."""

    def test_fresh_id_and_name(self, review_graph: WorkflowGraph) -> None:
        """Clones get a new id and a copy suffix."""
        clone = clone_workflow(review_graph)

        assert clone.id != review_graph.id
        assert clone.id.startswith("workflow-")
        assert clone.name == "Test Workflow (copy)"
        assert clone.nodes == review_graph.nodes

    def test_custom_name(self, review_graph: WorkflowGraph) -> None:
        """A new name can be given."""
        assert clone_workflow(review_graph, "Release v2").name == "Release v2"

    def test_accessors_work_on_clone(self, review_graph: WorkflowGraph) -> None:
        """The clone keeps its edge indexes."""
        clone = clone_workflow(review_graph)
        assert clone.first_successor("check") == "review"


class TestToMermaid:
    """Tests for to_mermaid."""

    def test_shapes_and_edges(self, review_graph: WorkflowGraph) -> None:
        """Node types get distinct shapes; edge labels are shown."""
        lines = to_mermaid(review_graph).splitlines()

        assert lines[0] == "flowchart TD"
        assert "    start((Start))" in lines
        assert "    end(((End)))" in lines
        assert "    check{Check}" in lines
        assert "    review[/Review\\]" in lines
        assert "    coder[Coder]" in lines
        assert "    check -->|errors| fixer" in lines
        assert "    start --> coder" in lines

    def test_fenced(self) -> None:
        """fenced wraps the chart in a markdown code block."""
        text = to_mermaid(linear(), fenced=True)

        assert text.startswith("```mermaid\nflowchart TD")
        assert text.endswith("```")
