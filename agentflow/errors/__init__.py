"""Error types for AgentFlow."""

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

__all__ = [
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
]
