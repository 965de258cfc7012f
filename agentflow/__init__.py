"""AgentFlow - Non-linear Workflow Engine for LLM Agents.

AgentFlow walks user-authored graphs of typed nodes (agents, human
decisions, conditions, parallel branches, loops, delays), delegating the
actual agent calls and decisions to your callbacks.

Example:
    >>> from agentflow import WorkflowEngine, import_workflow
    >>> graph = import_workflow(open("workflow.json").read())
    >>> engine = WorkflowEngine(graph, on_agent_execute=run_agent)
    >>> result = await engine.start()
    >>> print(result.status, result.state.metrics)
"""

__version__ = "0.1.0"

# Graph exports
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

# Condition exports
from agentflow.conditions.predicates import ConditionType, Predicate, ShowConditionType
from agentflow.conditions.parser import compile_expression

# Analysis exports
from agentflow.analysis.metadata import StepMetadata, extract_metadata
from agentflow.analysis.metrics import AgentPerformance, WorkflowMetrics, WorkflowStatistics
from agentflow.analysis.signals import OutputSignals, detect_issues

# Core exports
from agentflow.core.config import EngineConfig, EngineSettings, ParallelMode
from agentflow.core.engine import WorkflowEngine
from agentflow.core.events import WorkflowEvent, WorkflowEventType
from agentflow.core.hooks import HookContext, HookType
from agentflow.core.state import (
    ExecutionStatus,
    HumanDecisionPending,
    WorkflowExecutionState,
    WorkflowRunResult,
    WorkflowSnapshot,
    WorkflowStepResult,
)

# Error exports
from agentflow.errors.exceptions import (
    AgentExecutionError,
    AgentFlowError,
    ConfigurationError,
    EngineBusyError,
    ExpressionError,
    HumanDecisionError,
    HumanDecisionTimeoutError,
    MissingAgentIdError,
    NodeNotFoundError,
    NoPendingDecisionError,
    SnapshotMismatchError,
    StartNodeNotFoundError,
    StepLimitExceededError,
    WorkflowError,
    WorkflowImportError,
    WorkflowValidationError,
)

# Logging exports
from agentflow.logging import LogLevel, configure_logging, get_logger, log_sink

__all__ = [
    # Version
    "__version__",
    # Graph
    "HumanDecisionOption",
    "NodeData",
    "NodeType",
    "Position",
    "ShowCondition",
    "WorkflowCondition",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
    "ValidationResult",
    "validate_workflow",
    "clone_workflow",
    "export_workflow",
    "import_workflow",
    "to_mermaid",
    # Conditions
    "ConditionType",
    "Predicate",
    "ShowConditionType",
    "compile_expression",
    # Analysis
    "AgentPerformance",
    "OutputSignals",
    "StepMetadata",
    "WorkflowMetrics",
    "WorkflowStatistics",
    "detect_issues",
    "extract_metadata",
    # Core
    "EngineConfig",
    "EngineSettings",
    "ParallelMode",
    "WorkflowEngine",
    "WorkflowEvent",
    "WorkflowEventType",
    "HookContext",
    "HookType",
    "ExecutionStatus",
    "HumanDecisionPending",
    "WorkflowExecutionState",
    "WorkflowRunResult",
    "WorkflowSnapshot",
    "WorkflowStepResult",
    # Errors
    "AgentExecutionError",
    "AgentFlowError",
    "ConfigurationError",
    "EngineBusyError",
    "ExpressionError",
    "HumanDecisionError",
    "HumanDecisionTimeoutError",
    "MissingAgentIdError",
    "NodeNotFoundError",
    "NoPendingDecisionError",
    "SnapshotMismatchError",
    "StartNodeNotFoundError",
    "StepLimitExceededError",
    "WorkflowError",
    "WorkflowImportError",
    "WorkflowValidationError",
    # Logging
    "LogLevel",
    "configure_logging",
    "get_logger",
    "log_sink",
]
