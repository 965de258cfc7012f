"""Execution state of a workflow run.

The engine owns one mutable :class:`WorkflowExecutionState` per instance.
Callers only ever see deep copies of it (``get_state()``, state-change
callbacks and snapshots).
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agentflow.analysis.metadata import StepMetadata
from agentflow.analysis.metrics import WorkflowMetrics
from agentflow.graph.models import HumanDecisionOption, NodeType


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


class ExecutionStatus(str, Enum):
    """Status of a workflow execution."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    WAITING_HUMAN = "waiting-human"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_active(self) -> bool:
        """Whether dispatch may continue in this status."""
        return self in (ExecutionStatus.RUNNING, ExecutionStatus.WAITING_HUMAN)


class StateModel(BaseModel):
    """Base for state records with camelCase JSON names."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class WorkflowStepResult(StateModel):
    """Record of one node execution.

    ``success`` is a quality heuristic derived from the output text. It is
    informational and never gates control flow.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    node_id: str
    node_name: str
    node_type: NodeType
    output: str = ""
    success: bool = Field(True, description="Quality heuristic, not a hard pass/fail")
    duration: int = Field(0, ge=0, description="Execution time in ms")
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: StepMetadata | None = None


class HumanDecisionPending(StateModel):
    """A decision the engine is waiting for."""

    node_id: str
    question: str
    options: list[HumanDecisionOption] = Field(default_factory=list)
    timeout_at: datetime | None = Field(None, description="When the default option applies")
    previous_result: WorkflowStepResult | None = None


class WorkflowExecutionState(StateModel):
    """Mutable run record of one engine.

    Example:
        >>> state = WorkflowExecutionState(workflow_id="wf-1")
        >>> state.status
        <ExecutionStatus.IDLE: 'idle'>
    """

    workflow_id: str
    current_node_id: str | None = None
    visited_nodes: list[str] = Field(
        default_factory=list,
        description="Execution order; repeats on loops and retries",
    )
    node_outputs: dict[str, str] = Field(
        default_factory=dict,
        description="Last raw output per node id",
    )
    node_results: dict[str, WorkflowStepResult] = Field(default_factory=dict)
    loop_iterations: dict[str, int] = Field(
        default_factory=dict,
        description="Completed body iterations per loop node id",
    )
    status: ExecutionStatus = ExecutionStatus.IDLE
    human_decision_pending: HumanDecisionPending | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None
    metrics: WorkflowMetrics | None = None
    retry_count: int = Field(0, ge=0, description="Explicit node retries")

    def copy_state(self) -> WorkflowExecutionState:
        """Deep copy for handing out to callers."""
        return self.model_copy(deep=True)


class WorkflowSnapshot(StateModel):
    """Deep-copied, timestamped save of execution state."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: str
    workflow_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    state: WorkflowExecutionState


class WorkflowRunResult(StateModel):
    """Explicit outcome of ``start()``, ``resume()``, ``jump_to_node()`` and ``retry_node()``.

    Example:
        >>> result = await engine.start()
        >>> if not result.is_success:
        ...     print(result.status, result.error)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        arbitrary_types_allowed=True,
    )

    status: ExecutionStatus
    state: WorkflowExecutionState
    error: str | None = None
    exception: BaseException | None = Field(None, exclude=True)

    @property
    def is_success(self) -> bool:
        """Check if the run reached an end node."""
        return self.status == ExecutionStatus.COMPLETED

    @property
    def is_error(self) -> bool:
        """Check if the run failed."""
        return self.status == ExecutionStatus.ERROR
