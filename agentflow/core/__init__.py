"""Core engine, execution state, events and hooks."""

from agentflow.core.state import (
    ExecutionStatus,
    HumanDecisionPending,
    WorkflowExecutionState,
    WorkflowRunResult,
    WorkflowSnapshot,
    WorkflowStepResult,
)
from agentflow.core.events import EventBus, WorkflowEvent, WorkflowEventType
from agentflow.core.hooks import HookContext, HookRegistry, HookType
from agentflow.core.config import EngineConfig, EngineSettings, ParallelMode, get_settings
from agentflow.core.engine import WorkflowEngine, build_decision_question

__all__ = [
    "EngineConfig",
    "EngineSettings",
    "EventBus",
    "ExecutionStatus",
    "HookContext",
    "HookRegistry",
    "HookType",
    "HumanDecisionPending",
    "ParallelMode",
    "WorkflowEngine",
    "WorkflowEvent",
    "WorkflowEventType",
    "WorkflowExecutionState",
    "WorkflowRunResult",
    "WorkflowSnapshot",
    "WorkflowStepResult",
    "build_decision_question",
    "get_settings",
]
