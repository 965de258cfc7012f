"""Workflow graph model, validation and interchange."""

from agentflow.graph.models import (
    HumanDecisionOption,
    NodeData,
    NodeType,
    Position,
    ShowCondition,
    WorkflowCondition,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from agentflow.graph.validation import ValidationResult, validate_workflow
from agentflow.graph.io import clone_workflow, export_workflow, import_workflow, to_mermaid

__all__ = [
    "HumanDecisionOption",
    "NodeData",
    "NodeType",
    "Position",
    "ShowCondition",
    "ValidationResult",
    "WorkflowCondition",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
    "clone_workflow",
    "export_workflow",
    "import_workflow",
    "to_mermaid",
    "validate_workflow",
]
