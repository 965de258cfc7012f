#!/usr/bin/env python3
"""Human Decision Example.

Pauses at a human-decision node and asks on the terminal which way to
go. Options with a show condition only appear when they apply. Decisions
time out after 30 seconds and fall back to "approve".

Run:
    python examples/02_human_decision.py
"""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.prompt import Prompt

from agentflow import (
    EngineConfig,
    HumanDecisionOption,
    NodeData,
    NodeType,
    ShowCondition,
    WorkflowEdge,
    WorkflowEngine,
    WorkflowEvent,
    WorkflowGraph,
    WorkflowNode,
    configure_logging,
    log_sink,
)


console = Console()

_drafts = iter([
    "Draft ready\n// filepath: docs/intro.md\nerror: broken link in section 2",
    "Draft ready\n// filepath: docs/intro.md\nAll links verified",
])


async def writer(agent_id: str, previous_output: str | None) -> str:
    await asyncio.sleep(0.1)
    return next(_drafts, "Draft ready")


async def ask_terminal(node_id: str, question: str, options: list[HumanDecisionOption]) -> str:
    """Prompt without blocking the event loop."""
    console.print(f"\n[bold magenta]{question}[/]")
    choices = [option.id for option in options]
    return await asyncio.to_thread(Prompt.ask, "Choose", choices=choices, default=choices[0])


def build_graph() -> WorkflowGraph:
    options = (
        HumanDecisionOption(id="approve", label="Publish", next_node_id="end"),
        HumanDecisionOption(id="revise", label="Rewrite", next_node_id="writer"),
        HumanDecisionOption(
            id="fix-links",
            label="Fix links",
            next_node_id="writer",
            show_condition=ShowCondition(type="has-errors"),
        ),
    )
    return WorkflowGraph(
        id="docs-review",
        name="Docs Review",
        description="Write a document and let a human approve it",
        nodes=[
            WorkflowNode(id="start", type=NodeType.START, data=NodeData(label="Start")),
            WorkflowNode(
                id="writer",
                type=NodeType.AGENT,
                data=NodeData(label="Writer", agent_id="writer"),
            ),
            WorkflowNode(
                id="review",
                type=NodeType.HUMAN_DECISION,
                data=NodeData(
                    label="Review",
                    question="Publish this draft?",
                    options=options,
                    timeout=30,
                    default_option_id="approve",
                ),
            ),
            WorkflowNode(id="end", type=NodeType.END, data=NodeData(label="End")),
        ],
        edges=[
            WorkflowEdge(id="e1", source="start", target="writer"),
            WorkflowEdge(id="e2", source="writer", target="review"),
            WorkflowEdge(id="e3", source="review", target="end"),
        ],
    )


def on_event(event: WorkflowEvent) -> None:
    if event.type.value == "human:decided":
        console.print(f"[dim]decided:[/] {event.data['optionId']} -> {event.data['nextNodeId']}")


async def main() -> None:
    configure_logging(level="warn")
    engine = WorkflowEngine(
        build_graph(),
        on_agent_execute=writer,
        on_human_decision=ask_terminal,
        on_log=log_sink(),
        config=EngineConfig(max_steps=50),
    )
    engine.on("*", on_event)

    result = await engine.start()

    console.print(f"\n[bold cyan]Status:[/] {result.status.value}")
    console.print(f"[bold cyan]Path:[/] {' -> '.join(result.state.visited_nodes)}")
    for perf in engine.get_agent_performance():
        console.print(f"{perf.agent_id}: {perf.execution_count} run(s), {perf.success_rate:.0f}% success")


if __name__ == "__main__":
    asyncio.run(main())
