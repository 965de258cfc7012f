"""Heuristic analysis of agent output and run metrics."""

from agentflow.analysis.metadata import (
    CodeBlockInfo,
    StepMetadata,
    extract_metadata,
    is_successful_output,
)
from agentflow.analysis.metrics import (
    AgentPerformance,
    AgentPerformanceTracker,
    WorkflowMetrics,
    WorkflowStatistics,
    calculate_metrics,
    calculate_statistics,
    quality_score,
)
from agentflow.analysis.signals import OutputSignals, count_file_blocks, detect_issues

__all__ = [
    "AgentPerformance",
    "AgentPerformanceTracker",
    "CodeBlockInfo",
    "OutputSignals",
    "StepMetadata",
    "WorkflowMetrics",
    "WorkflowStatistics",
    "calculate_metrics",
    "calculate_statistics",
    "count_file_blocks",
    "detect_issues",
    "extract_metadata",
    "is_successful_output",
    "quality_score",
]
