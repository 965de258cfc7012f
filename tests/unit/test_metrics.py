"""Unit tests for workflow metrics, statistics and agent performance."""

from __future__ import annotations

import pytest

from agentflow.analysis.metadata import StepMetadata
from agentflow.analysis.metrics import (
    AgentPerformanceTracker,
    calculate_metrics,
    calculate_statistics,
    quality_score,
)
from agentflow.core.state import WorkflowStepResult
from agentflow.graph.models import NodeType


def result(
    node_id: str,
    *,
    success: bool = True,
    duration: int = 0,
    files: int = 0,
    errors: int = 0,
) -> WorkflowStepResult:
    metadata = None
    if files or errors:
        metadata = StepMetadata(
            files_generated=[f"file{i}.py" for i in range(files)],
            errors_found=[f"error{i}" for i in range(errors)],
        )
    return WorkflowStepResult(
        node_id=node_id,
        node_name=node_id,
        node_type=NodeType.AGENT,
        output="",
        success=success,
        duration=duration,
        metadata=metadata,
    )


class TestQualityScore:
    """Tests for quality_score."""

    @pytest.mark.parametrize(
        "files,errors,failed,expected",
        [
            (0, 0, 0, 70),
            (2, 1, 0, 70),
            (3, 0, 0, 85),
            (10, 0, 0, 100),
            (0, 8, 0, 0),
            (5, 0, 1, 30),
            (0, 0, 3, 0),
        ],
    )
    def test_score(self, files: int, errors: int, failed: int, expected: int) -> None:
        """Score follows the formula, clamped to [0, 100]."""
        assert quality_score(files, errors, failed) == expected


class TestCalculateMetrics:
    """Tests for calculate_metrics."""

    def test_aggregates_results(self) -> None:
        """Counts, sums and averages come from the results."""
        metrics = calculate_metrics(
            [
                result("a", duration=100, files=2),
                result("b", duration=50, errors=1),
                result("c", duration=0),
            ],
            total_nodes=5,
            retry_count=1,
        )

        assert metrics.total_nodes == 5
        assert metrics.completed_nodes == 3
        assert metrics.failed_nodes == 0
        assert metrics.total_duration == 150
        assert metrics.avg_node_duration == 50
        assert metrics.files_generated == 2
        assert metrics.errors_detected == 1
        assert metrics.retry_count == 1
        assert metrics.code_quality_score == 70

    def test_failed_results_drive_score(self) -> None:
        """Any failed result switches to the failure formula."""
        metrics = calculate_metrics(
            [result("a", success=False), result("b")],
            total_nodes=2,
        )

        assert metrics.failed_nodes == 1
        assert metrics.code_quality_score == 30

    def test_no_results(self) -> None:
        """Empty runs produce zeroed metrics."""
        metrics = calculate_metrics([], total_nodes=3)

        assert metrics.avg_node_duration == 0
        assert metrics.code_quality_score == 70

    def test_camel_case_dump(self) -> None:
        """Metrics serialize with camelCase keys."""
        data = calculate_metrics([], total_nodes=1).model_dump(by_alias=True)

        assert "codeQualityScore" in data
        assert "avgNodeDuration" in data


class TestCalculateStatistics:
    """Tests for calculate_statistics."""

    def test_only_positive_durations_count(self) -> None:
        """Zero durations are left out of duration figures."""
        stats = calculate_statistics(
            [result("a", duration=0), result("b", duration=20), result("c", duration=40)],
            executed_nodes=3,
            total_nodes=6,
        )

        assert stats.total_duration == 60
        assert stats.avg_node_duration == 30.0
        assert stats.min_node_duration == 20
        assert stats.max_node_duration == 40
        assert stats.pending_nodes == 3
        assert stats.current_progress == 50.0

    def test_progress_capped(self) -> None:
        """Loops can visit more nodes than exist; progress stays at 100."""
        stats = calculate_statistics([], executed_nodes=9, total_nodes=3)

        assert stats.current_progress == 100.0
        assert stats.pending_nodes == 0

    def test_empty_graph(self) -> None:
        """Zero nodes gives zero progress."""
        stats = calculate_statistics([], executed_nodes=0, total_nodes=0)

        assert stats.current_progress == 0.0
        assert stats.min_node_duration == 0

    def test_success_counts(self) -> None:
        """Successful and failed results are counted separately."""
        stats = calculate_statistics(
            [result("a"), result("b", success=False)],
            executed_nodes=2,
            total_nodes=2,
        )

        assert stats.successful_nodes == 1
        assert stats.failed_nodes == 1


class TestAgentPerformanceTracker:
    """Tests for AgentPerformanceTracker."""

    def test_record_accumulates(self) -> None:
        """Records aggregate per agent id."""
        tracker = AgentPerformanceTracker()

        tracker.record("coder", duration=100, success=True, files_generated=2)
        perf = tracker.record("coder", duration=50, success=False)

        assert perf.execution_count == 2
        assert perf.total_duration == 150
        assert perf.avg_duration == 75.0
        assert perf.success_count == 1
        assert perf.failure_count == 1
        assert perf.success_rate == 50.0
        assert perf.files_generated_total == 2
        assert perf.last_execution is not None

    def test_get_all_clear(self) -> None:
        """Records are listed in first-execution order and can be cleared."""
        tracker = AgentPerformanceTracker()
        tracker.record("coder", duration=1, success=True)
        tracker.record("reviewer", duration=1, success=True)

        assert [p.agent_id for p in tracker.all()] == ["coder", "reviewer"]
        assert tracker.get("tester") is None

        tracker.clear()
        assert tracker.all() == []
