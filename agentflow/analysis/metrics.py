"""Workflow metrics, progress statistics and per-agent performance."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from agentflow.core.state import WorkflowStepResult


class WorkflowMetrics(BaseModel):
    """Completion-time quality metrics of a run."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    total_nodes: int = Field(0, ge=0, description="Number of nodes in the graph")
    completed_nodes: int = Field(0, ge=0, description="Results flagged successful")
    failed_nodes: int = Field(0, ge=0, description="Results flagged unsuccessful")
    total_duration: int = Field(0, ge=0, description="Sum of step durations in ms")
    avg_node_duration: int = Field(0, ge=0, description="Rounded mean step duration in ms")
    files_generated: int = Field(0, ge=0, description="Files announced across all steps")
    errors_detected: int = Field(0, ge=0, description="Error keywords across all steps")
    retry_count: int = Field(0, ge=0, description="Explicit node retries during the run")
    code_quality_score: int = Field(0, ge=0, le=100, description="Derived score in [0, 100]")


class WorkflowStatistics(BaseModel):
    """Present-tense progress summary of a run."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    total_nodes: int = 0
    executed_nodes: int = 0
    successful_nodes: int = 0
    failed_nodes: int = 0
    pending_nodes: int = 0
    total_duration: int = 0
    avg_node_duration: float = 0.0
    min_node_duration: int = 0
    max_node_duration: int = 0
    files_generated: int = 0
    errors_detected: int = 0
    current_progress: float = Field(0.0, ge=0.0, le=100.0, description="Percent complete")


class AgentPerformance(BaseModel):
    """Aggregated execution record for one agent id."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    agent_id: str
    execution_count: int = 0
    total_duration: int = 0
    avg_duration: float = 0.0
    success_count: int = 0
    failure_count: int = 0
    success_rate: float = 0.0
    files_generated_total: int = 0
    last_execution: datetime | None = None


def quality_score(files_generated: int, errors_detected: int, failed_nodes: int) -> int:
    """Derive the code quality score.

    ``70 + 5*files - 10*errors`` when nothing failed, else
    ``50 - 20*failed``; both clamped to [0, 100].
    """
    if failed_nodes == 0:
        score = 70 + files_generated * 5 - errors_detected * 10
    else:
        score = 50 - failed_nodes * 20
    return max(0, min(100, score))


def _files(result: WorkflowStepResult) -> int:
    return len(result.metadata.files_generated) if result.metadata else 0


def _errors(result: WorkflowStepResult) -> int:
    return len(result.metadata.errors_found) if result.metadata else 0


def calculate_metrics(
    results: Iterable[WorkflowStepResult],
    total_nodes: int,
    retry_count: int = 0,
) -> WorkflowMetrics:
    """Aggregate step results into workflow metrics."""
    results = list(results)
    completed = sum(1 for r in results if r.success)
    failed = len(results) - completed
    total_duration = sum(r.duration for r in results)
    avg_duration = round(total_duration / len(results)) if results else 0
    files = sum(_files(r) for r in results)
    errors = sum(_errors(r) for r in results)

    return WorkflowMetrics(
        total_nodes=total_nodes,
        completed_nodes=completed,
        failed_nodes=failed,
        total_duration=total_duration,
        avg_node_duration=avg_duration,
        files_generated=files,
        errors_detected=errors,
        retry_count=retry_count,
        code_quality_score=quality_score(files, errors, failed),
    )


def calculate_statistics(
    results: Iterable[WorkflowStepResult],
    executed_nodes: int,
    total_nodes: int,
) -> WorkflowStatistics:
    """Summarize progress of a (possibly still running) workflow.

    Only strictly positive durations enter the duration figures. Pending
    count never goes below zero and progress is capped at 100 percent,
    since loops and retries can visit more nodes than the graph holds.
    """
    results = list(results)
    durations = [r.duration for r in results if r.duration > 0]
    total_duration = sum(durations)

    progress = 0.0
    if total_nodes > 0:
        progress = min(100.0, executed_nodes / total_nodes * 100)

    return WorkflowStatistics(
        total_nodes=total_nodes,
        executed_nodes=executed_nodes,
        successful_nodes=sum(1 for r in results if r.success),
        failed_nodes=sum(1 for r in results if not r.success),
        pending_nodes=max(0, total_nodes - executed_nodes),
        total_duration=total_duration,
        avg_node_duration=total_duration / len(durations) if durations else 0.0,
        min_node_duration=min(durations) if durations else 0,
        max_node_duration=max(durations) if durations else 0,
        files_generated=sum(_files(r) for r in results),
        errors_detected=sum(_errors(r) for r in results),
        current_progress=progress,
    )


class AgentPerformanceTracker:
    """Tracks execution counts and durations per agent id.

    Example:
        >>> tracker = AgentPerformanceTracker()
        >>> tracker.record("coder", duration=120, success=True, files_generated=2)
        >>> tracker.get("coder").success_rate
        100.0
    """

    def __init__(self) -> None:
        self._records: dict[str, AgentPerformance] = {}

    def record(
        self,
        agent_id: str,
        duration: int,
        success: bool,
        files_generated: int = 0,
    ) -> AgentPerformance:
        """Add one execution to the agent's record."""
        perf = self._records.get(agent_id) or AgentPerformance(agent_id=agent_id)

        execution_count = perf.execution_count + 1
        total_duration = perf.total_duration + duration
        success_count = perf.success_count + (1 if success else 0)

        updated = perf.model_copy(
            update={
                "execution_count": execution_count,
                "total_duration": total_duration,
                "avg_duration": total_duration / execution_count,
                "success_count": success_count,
                "failure_count": perf.failure_count + (0 if success else 1),
                "success_rate": success_count / execution_count * 100,
                "files_generated_total": perf.files_generated_total + files_generated,
                "last_execution": datetime.now(UTC),
            }
        )
        self._records[agent_id] = updated
        return updated

    def get(self, agent_id: str) -> AgentPerformance | None:
        """Get the record for one agent."""
        return self._records.get(agent_id)

    def all(self) -> list[AgentPerformance]:
        """Get all records in first-execution order."""
        return list(self._records.values())

    def clear(self) -> None:
        """Forget all records."""
        self._records.clear()
