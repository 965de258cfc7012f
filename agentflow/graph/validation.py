"""Structural validation of workflow graphs."""

from __future__ import annotations

from collections import deque

from pydantic import BaseModel, Field

from agentflow.conditions.parser import compile_expression
from agentflow.errors.exceptions import ExpressionError
from agentflow.graph.models import NodeType, WorkflowGraph


MAX_RECOMMENDED_NODES = 15
MIN_DESCRIPTION_LENGTH = 10


class ValidationResult(BaseModel):
    """Outcome of :func:`validate_workflow`.

    Errors make a graph unrunnable; warnings flag likely authoring mistakes.
    """

    valid: bool = Field(..., description="True when there are no errors")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def reachable_from(graph: WorkflowGraph, node_id: str) -> set[str]:
    """Ids reachable from a node over any outgoing edge (BFS)."""
    seen: set[str] = set()
    queue = deque([node_id])
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        queue.extend(edge.target for edge in graph.outgoing_edges(current))
    return seen


def validate_workflow(graph: WorkflowGraph) -> ValidationResult:
    """Check a graph for structural problems.

    Example:
        >>> result = validate_workflow(graph)
        >>> if not result.valid:
        ...     print(result.errors)
    """
    errors: list[str] = []
    warnings: list[str] = []

    starts = graph.nodes_of_type(NodeType.START)
    if not starts:
        errors.append("Workflow has no start node")
    elif len(starts) > 1:
        errors.append("Workflow has multiple start nodes (only one allowed)")

    if not graph.nodes_of_type(NodeType.END):
        errors.append("Workflow has no end node")

    reachable = reachable_from(graph, starts[0].id) if starts else set()
    unreachable = [node.label for node in graph.nodes if node.id not in reachable]
    if unreachable:
        warnings.append(f"Unreachable nodes: {', '.join(unreachable)}")

    for node in graph.nodes_of_type(NodeType.AGENT):
        if not node.data.agent_id:
            errors.append(f"Agent node '{node.label}' has no agentId")

    for edge in graph.edges:
        if not graph.has_node(edge.source):
            errors.append(f"Edge '{edge.id}' has invalid source: {edge.source}")
        if not graph.has_node(edge.target):
            errors.append(f"Edge '{edge.id}' has invalid target: {edge.target}")

    for node in graph.nodes_of_type(NodeType.HUMAN_DECISION):
        if not node.data.options:
            errors.append(f"Human decision '{node.label}' has no options")
        if not node.data.question:
            warnings.append(f"Human decision '{node.label}' has no question")

    for node in graph.nodes_of_type(NodeType.CONDITION):
        if not node.data.conditions:
            errors.append(f"Condition node '{node.label}' has no conditions")
        for condition in node.data.conditions:
            if condition.predicate is None and condition.expression:
                try:
                    compile_expression(condition.expression)
                except ExpressionError as e:
                    errors.append(f"Condition node '{node.label}': {e}")

    if len(graph.nodes) > MAX_RECOMMENDED_NODES:
        warnings.append(
            f"Workflow has many nodes (>{MAX_RECOMMENDED_NODES}), "
            "consider splitting it into sub-workflows"
        )

    if not graph.description or len(graph.description) < MIN_DESCRIPTION_LENGTH:
        warnings.append("Workflow should have a meaningful description")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
