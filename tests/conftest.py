"""Pytest configuration and fixtures for AgentFlow tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from agentflow.graph.models import (
    HumanDecisionOption,
    NodeData,
    NodeType,
    ShowCondition,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)


def node(node_id: str, node_type: NodeType | str, label: str | None = None, **data: Any) -> WorkflowNode:
    """Build a node; ``data`` takes NodeData field names."""
    return WorkflowNode(
        id=node_id,
        type=NodeType(node_type),
        data=NodeData(label=label or node_id.title(), **data),
    )


def edge(source: str, target: str, label: str | None = None) -> WorkflowEdge:
    """Build an edge with an id derived from its endpoints."""
    return WorkflowEdge(id=f"{source}->{target}", source=source, target=target, label=label)


def chain(*node_ids: str) -> list[WorkflowEdge]:
    """Edges connecting the given nodes one after another."""
    return [edge(a, b) for a, b in zip(node_ids, node_ids[1:])]


def option(
    option_id: str,
    next_node_id: str | None = None,
    show: str | None = None,
    show_value: str | None = None,
) -> HumanDecisionOption:
    """Build a decision option with an optional show condition."""
    show_condition = ShowCondition(type=show, value=show_value) if show else None
    return HumanDecisionOption(
        id=option_id,
        label=option_id.title(),
        next_node_id=next_node_id,
        show_condition=show_condition,
    )


def make_graph(
    nodes: Sequence[WorkflowNode],
    edges: Sequence[WorkflowEdge],
    graph_id: str = "wf-test",
    name: str = "Test Workflow",
    description: str = "Workflow used in tests",
) -> WorkflowGraph:
    """Build a workflow graph."""
    return WorkflowGraph(
        id=graph_id,
        name=name,
        description=description,
        nodes=list(nodes),
        edges=list(edges),
    )


def linear(*agent_ids: str) -> WorkflowGraph:
    """start -> one agent node per id -> end."""
    nodes = [node("start", "start")]
    nodes += [node(agent_id, "agent", agent_id=agent_id) for agent_id in agent_ids]
    nodes.append(node("end", "end"))
    return make_graph(nodes, chain("start", *agent_ids, "end"))


class ScriptedAgent:
    """Agent collaborator returning canned outputs per agent id.

    A list response is consumed one item per call, repeating the last one.
    An exception response is raised.
    """

    def __init__(
        self,
        responses: dict[str, str | list[str] | Exception] | None = None,
        default: str = "Step done",
    ) -> None:
        self._responses = {
            key: list(value) if isinstance(value, list) else value
            for key, value in (responses or {}).items()
        }
        self._default = default
        self.calls: list[tuple[str, str | None]] = []

    async def __call__(self, agent_id: str, previous_output: str | None) -> str:
        self.calls.append((agent_id, previous_output))
        response = self._responses.get(agent_id, self._default)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def agent_ids(self) -> list[str]:
        return [agent_id for agent_id, _ in self.calls]


class BlockingAgent:
    """Agent collaborator that waits until released."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: list[str] = []

    async def __call__(self, agent_id: str, previous_output: str | None) -> str:
        self.calls.append(agent_id)
        self.started.set()
        await self.release.wait()
        return f"{agent_id} done"


class ScriptedDecider:
    """Human-decision collaborator answering from a list, repeating the last answer."""

    def __init__(self, *answers: str) -> None:
        self._answers = list(answers)
        self.calls: list[tuple[str, str, list[str]]] = []

    async def __call__(
        self,
        node_id: str,
        question: str,
        options: list[HumanDecisionOption],
    ) -> str:
        self.calls.append((node_id, question, [o.id for o in options]))
        return self._answers.pop(0) if len(self._answers) > 1 else self._answers[0]


class LogRecorder:
    """Log sink keeping every (message, level) pair."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def __call__(self, message: str, level: str) -> None:
        self.records.append((message, level))

    def messages(self, level: str | None = None) -> list[str]:
        return [m for m, lvl in self.records if level is None or lvl == level]


@pytest.fixture
def log_sink() -> LogRecorder:
    """Collect engine log messages instead of printing them."""
    return LogRecorder()


@pytest.fixture
def agent() -> ScriptedAgent:
    """Agent answering "Step done" for every id."""
    return ScriptedAgent()


@pytest.fixture
def linear_graph() -> WorkflowGraph:
    """start -> coder -> reviewer -> end."""
    return linear("coder", "reviewer")
