#!/usr/bin/env python3
"""Linear Workflow Example.

Runs a start -> coder -> reviewer -> end graph with a mock agent, then
routes the review through a condition node. No API key required.

Run:
    python examples/01_linear_workflow.py
"""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.table import Table

from agentflow import (
    NodeData,
    NodeType,
    WorkflowCondition,
    WorkflowEdge,
    WorkflowEngine,
    WorkflowGraph,
    WorkflowNode,
    to_mermaid,
    validate_workflow,
)


console = Console()

RESPONSES = {
    "coder": "Created the API handler\n// filepath: src/api.py\n```python\ndef handler(): ...\n```",
    "reviewer": "Fehler: missing input validation in handler",
    "fixer": "Successfully created validation\n// filepath: src/validation.py",
}


async def mock_agent(agent_id: str, previous_output: str | None) -> str:
    """Stand-in for an LLM call."""
    await asyncio.sleep(0.1)
    return RESPONSES.get(agent_id, f"{agent_id} done")


def build_graph() -> WorkflowGraph:
    def node(node_id: str, node_type: NodeType, label: str, **data) -> WorkflowNode:
        return WorkflowNode(id=node_id, type=node_type, data=NodeData(label=label, **data))

    def edge(source: str, target: str) -> WorkflowEdge:
        return WorkflowEdge(id=f"{source}-{target}", source=source, target=target)

    return WorkflowGraph(
        id="review-pipeline",
        name="Code Review Pipeline",
        description="Generate code, review it and fix reported errors",
        nodes=[
            node("start", NodeType.START, "Start"),
            node("coder", NodeType.AGENT, "Coder", agent_id="coder"),
            node("reviewer", NodeType.AGENT, "Reviewer", agent_id="reviewer"),
            node(
                "check",
                NodeType.CONDITION,
                "Has errors?",
                conditions=[
                    WorkflowCondition(label="errors", expression="hasErrors", target_node_id="fixer"),
                ],
            ),
            node("fixer", NodeType.AGENT, "Fixer", agent_id="fixer"),
            node("end", NodeType.END, "End"),
        ],
        edges=[
            edge("start", "coder"),
            edge("coder", "reviewer"),
            edge("reviewer", "check"),
            edge("check", "end"),
            edge("check", "fixer"),
            edge("fixer", "end"),
        ],
    )


async def main() -> None:
    graph = build_graph()

    validation = validate_workflow(graph)
    console.print(f"[bold]Valid:[/] {validation.valid}  warnings: {validation.warnings}")
    console.print(to_mermaid(graph))

    engine = WorkflowEngine(graph, on_agent_execute=mock_agent)
    engine.on("node:completed", lambda e: console.print(f"  [green]✓[/] {e.node_name}"))

    result = await engine.start()

    table = Table(title="Step Results")
    table.add_column("Node")
    table.add_column("Success")
    table.add_column("Files")
    table.add_column("Duration (ms)", justify="right")
    for step in result.state.node_results.values():
        files = ", ".join(step.metadata.files_generated) if step.metadata else ""
        table.add_row(step.node_name, str(step.success), files, str(step.duration))
    console.print(table)

    metrics = result.state.metrics
    console.print(
        f"[bold cyan]Status:[/] {result.status.value}  "
        f"[bold cyan]Path:[/] {' -> '.join(result.state.visited_nodes)}  "
        f"[bold cyan]Quality:[/] {metrics.code_quality_score}%"
    )


if __name__ == "__main__":
    asyncio.run(main())
