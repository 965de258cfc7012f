"""Workflow interchange: JSON export/import, cloning and Mermaid rendering."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime

from pydantic import ValidationError

from agentflow.errors.exceptions import WorkflowImportError, WorkflowValidationError
from agentflow.graph.models import NodeType, WorkflowGraph
from agentflow.graph.validation import validate_workflow


EXPORT_VERSION = "1.0"


def export_workflow(graph: WorkflowGraph) -> str:
    """Serialize a graph to indented JSON with export stamps."""
    payload = graph.to_dict()
    payload["exportedAt"] = datetime.now(UTC).isoformat()
    payload["exportVersion"] = EXPORT_VERSION
    return json.dumps(payload, indent=2, ensure_ascii=False)


def import_workflow(text: str) -> WorkflowGraph:
    """Parse and validate a graph exported by :func:`export_workflow`.

    Missing ``id``, ``name`` and ``version`` get defaults; ``updatedAt`` is
    reset to now.

    Raises:
        WorkflowImportError: If the text is not JSON or lacks nodes/edges arrays.
        WorkflowValidationError: If the graph has structural errors.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkflowImportError(f"invalid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise WorkflowImportError("top-level value must be an object")
    if not isinstance(parsed.get("nodes"), list):
        raise WorkflowImportError("'nodes' is missing or not an array")
    if not isinstance(parsed.get("edges"), list):
        raise WorkflowImportError("'edges' is missing or not an array")

    now = datetime.now(UTC)
    data = {
        "id": parsed.get("id") or f"imported-{uuid.uuid4().hex[:12]}",
        "name": parsed.get("name") or "Imported Workflow",
        "description": parsed.get("description") or "",
        "version": parsed.get("version") or 1,
        "createdAt": parsed.get("createdAt") or now,
        "updatedAt": now,
        "nodes": parsed["nodes"],
        "edges": parsed["edges"],
    }

    try:
        graph = WorkflowGraph.model_validate(data)
    except ValidationError as e:
        raise WorkflowImportError(str(e)) from e

    validation = validate_workflow(graph)
    if not validation.valid:
        raise WorkflowValidationError(validation.errors)
    return graph


def clone_workflow(graph: WorkflowGraph, new_name: str | None = None) -> WorkflowGraph:
    """Deep copy a graph under a fresh id."""
    now = datetime.now(UTC)
    return graph.model_copy(
        deep=True,
        update={
            "id": f"workflow-{uuid.uuid4().hex[:12]}",
            "name": new_name or f"{graph.name} (copy)",
            "created_at": now,
            "updated_at": now,
        },
    )


_SHAPES = {
    NodeType.START: "(({label}))",
    NodeType.END: "((({label})))",
    NodeType.CONDITION: "{{{label}}}",
    NodeType.HUMAN_DECISION: "[/{label}\\]",
}


def to_mermaid(graph: WorkflowGraph, fenced: bool = False) -> str:
    """Render a graph as a Mermaid flowchart.

    Args:
        graph: Graph to render.
        fenced: Wrap the chart in a markdown code fence.
    """
    lines = ["flowchart TD"]

    for node in graph.nodes:
        shape = _SHAPES.get(node.type, "[{label}]")
        lines.append(f"    {node.id}{shape.format(label=node.label)}")

    for edge in graph.edges:
        arrow = f"-->|{edge.label}|" if edge.label else "-->"
        lines.append(f"    {edge.source} {arrow} {edge.target}")

    if fenced:
        lines = ["```mermaid", *lines, "```"]
    return "\n".join(lines)
