"""Shared fixtures for integration tests."""

from __future__ import annotations

import pytest

from agentflow.core.config import EngineConfig
from agentflow.core.engine import WorkflowEngine
from tests.conftest import LogRecorder


@pytest.fixture
def engine_factory(log_sink: LogRecorder):
    """Factory for engines that log into the shared recorder."""

    def _factory(graph, agent, decider=None, states=None, **config) -> WorkflowEngine:
        return WorkflowEngine(
            graph,
            on_agent_execute=agent,
            on_human_decision=decider,
            on_state_change=states.append if states is not None else None,
            on_log=log_sink,
            config=EngineConfig(**config),
        )

    return _factory
