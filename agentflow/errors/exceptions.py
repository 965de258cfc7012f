"""AgentFlow exception hierarchy.

All exceptions inherit from AgentFlowError for easy catching.
Each exception includes a `retryable` flag to indicate if the operation can be retried.
"""

from __future__ import annotations


class AgentFlowError(Exception):
    """Base exception for all AgentFlow errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


# Configuration Errors
class ConfigurationError(AgentFlowError):
    """Configuration-related errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


# Condition Errors
class ExpressionError(AgentFlowError):
    """Condition expression could not be compiled or evaluated."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Invalid expression '{expression}': {reason}", retryable=False)
        self.expression = expression
        self.reason = reason


# Workflow Errors
class WorkflowError(AgentFlowError):
    """Base class for Workflow-related errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message, retryable=retryable)


class WorkflowValidationError(WorkflowError):
    """Workflow graph failed structural validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(f"Workflow validation failed: {', '.join(errors)}", retryable=False)
        self.errors = errors


class WorkflowImportError(WorkflowError):
    """Workflow payload could not be parsed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Workflow import failed: {reason}", retryable=False)
        self.reason = reason


class StartNodeNotFoundError(WorkflowError):
    """Workflow has no start node."""

    def __init__(self) -> None:
        super().__init__("No start node found", retryable=False)


class NodeNotFoundError(WorkflowError):
    """Node referenced by id does not exist in the graph."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node '{node_id}' not found", retryable=False)
        self.node_id = node_id


class MissingAgentIdError(WorkflowError):
    """Agent node is missing its agentId."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Agent node '{node_id}' has no agentId", retryable=False)
        self.node_id = node_id


class AgentExecutionError(WorkflowError):
    """Agent collaborator failed while executing a node."""

    def __init__(self, message: str, *, agent_id: str, node_id: str) -> None:
        super().__init__(message, retryable=True)
        self.agent_id = agent_id
        self.node_id = node_id


class HumanDecisionError(WorkflowError):
    """Human-decision collaborator failed."""

    def __init__(self, message: str, *, node_id: str) -> None:
        super().__init__(message, retryable=True)
        self.node_id = node_id


class HumanDecisionTimeoutError(HumanDecisionError):
    """No decision arrived before the node's timeout and no default option exists."""

    def __init__(self, node_id: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Human decision for node '{node_id}' timed out after {timeout_seconds}s "
            "and no default option is configured",
            node_id=node_id,
        )
        self.timeout_seconds = timeout_seconds


class StepLimitExceededError(WorkflowError):
    """Run dispatched more nodes than the configured step limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Workflow exceeded the limit of {limit} node executions",
            retryable=False,
        )
        self.limit = limit


class NoPendingDecisionError(WorkflowError):
    """A decision was submitted while none is pending."""

    def __init__(self) -> None:
        super().__init__("No human decision pending", retryable=False)


class SnapshotMismatchError(WorkflowError):
    """Snapshot belongs to a different workflow."""

    def __init__(self, snapshot_workflow_id: str, workflow_id: str) -> None:
        super().__init__(
            f"Snapshot belongs to workflow '{snapshot_workflow_id}', "
            f"not '{workflow_id}'",
            retryable=False,
        )
        self.snapshot_workflow_id = snapshot_workflow_id
        self.workflow_id = workflow_id


class EngineBusyError(WorkflowError):
    """A run is already in flight on this engine."""

    def __init__(self) -> None:
        super().__init__(
            "Workflow engine is already executing. Stop or await the current run first.",
            retryable=True,
        )
