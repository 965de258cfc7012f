"""Workflow engine.

Interprets a :class:`~agentflow.graph.models.WorkflowGraph` node by node,
delegating agent execution and human decisions to caller-supplied
callbacks, and keeps a resumable, snapshot-able execution state.
"""

from __future__ import annotations

import asyncio
import inspect
import time
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from agentflow.analysis.metadata import StepMetadata, extract_metadata, is_successful_output
from agentflow.analysis.metrics import (
    AgentPerformance,
    AgentPerformanceTracker,
    WorkflowStatistics,
    calculate_metrics,
    calculate_statistics,
)
from agentflow.analysis.signals import detect_issues
from agentflow.conditions.evaluator import filter_options, first_matching_condition
from agentflow.core.config import EngineConfig, ParallelMode
from agentflow.core.events import EventBus, EventListener, WorkflowEvent, WorkflowEventType
from agentflow.core.hooks import Hook, HookContext, HookRegistry, HookType
from agentflow.core.state import (
    ExecutionStatus,
    HumanDecisionPending,
    WorkflowExecutionState,
    WorkflowRunResult,
    WorkflowSnapshot,
    WorkflowStepResult,
    utcnow,
)
from agentflow.errors.exceptions import (
    AgentExecutionError,
    EngineBusyError,
    HumanDecisionError,
    HumanDecisionTimeoutError,
    MissingAgentIdError,
    NodeNotFoundError,
    NoPendingDecisionError,
    SnapshotMismatchError,
    StartNodeNotFoundError,
    StepLimitExceededError,
)
from agentflow.graph.models import HumanDecisionOption, NodeType, WorkflowGraph, WorkflowNode
from agentflow.logging.config import get_logger
from agentflow.logging.logger import AgentFlowLogger


# Type aliases
AgentExecutor = Callable[[str, str | None], Awaitable[str]]
HumanDecider = Callable[[str, str, list[HumanDecisionOption]], Awaitable[str] | str]
StateListener = Callable[[WorkflowExecutionState], None]
LogSink = Callable[[str, str], None]

DEFAULT_QUESTION = "How should the workflow proceed?"


def build_decision_question(question: str, previous: WorkflowStepResult | None) -> str:
    """Prefix a decision question with a summary of the previous step."""
    if previous is None or previous.metadata is None:
        return question

    meta = previous.metadata
    parts: list[str] = []
    if meta.files_generated:
        parts.append(f"{len(meta.files_generated)} file(s) generated")
    if meta.errors_found:
        parts.append(f"{len(meta.errors_found)} error(s) found")
    if meta.summary:
        parts.append(f"Summary: {meta.summary}")

    if not parts:
        return question
    return f"**Previous step:** {', '.join(parts)}\n\n{question}"


def _elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)


class WorkflowEngine:
    """Directed-graph interpreter for agent workflows.

    Each engine owns one execution state. Runs are started with
    :meth:`start` and return a :class:`WorkflowRunResult`; fatal errors
    are reported there, through ``on_state_change`` and as events, never
    raised out of ``start()``.

    Example:
        >>> async def run_agent(agent_id: str, previous: str | None) -> str:
        ...     return f"{agent_id} done"
        >>>
        >>> engine = WorkflowEngine(graph, on_agent_execute=run_agent)
        >>> engine.on("node:completed", lambda e: print(e.node_name))
        >>> result = await engine.start()
        >>> print(result.status, result.state.visited_nodes)
    """

    def __init__(
        self,
        graph: WorkflowGraph,
        *,
        on_agent_execute: AgentExecutor,
        on_state_change: StateListener | None = None,
        on_human_decision: HumanDecider | None = None,
        on_log: LogSink | None = None,
        config: EngineConfig | None = None,
        logger: AgentFlowLogger | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            graph: Workflow to execute. Treated as read-only.
            on_agent_execute: ``(agent_id, previous_output) -> output`` coroutine.
            on_state_change: Receives a copy of the state after each transition.
            on_human_decision: ``(node_id, question, options) -> option_id``.
                Optional when decisions arrive via :meth:`submit_human_decision`.
            on_log: ``(message, level)`` sink. Defaults to the library logger.
            config: Engine configuration.
            logger: Logger used when no ``on_log`` sink is given.
        """
        self._graph = graph
        self._config = config or EngineConfig()
        self._on_agent_execute = on_agent_execute
        self._on_state_change = on_state_change
        self._on_human_decision = on_human_decision
        self._on_log = on_log
        self._logger = logger

        self._state = WorkflowExecutionState(workflow_id=graph.id)
        self._snapshots: deque[WorkflowSnapshot] = deque(maxlen=self._config.max_snapshots)
        self._events = EventBus(graph.id, on_listener_error=self._listener_failed)
        self._hooks = HookRegistry(on_hook_error=self._hook_failed)
        self._performance = AgentPerformanceTracker()

        self._task: asyncio.Future[None] | None = None
        self._decision_waiters: dict[str, asyncio.Future[str]] = {}
        self._last_exception: BaseException | None = None
        self._stop_requested = False
        self._steps = 0

    @property
    def graph(self) -> WorkflowGraph:
        """The workflow being executed."""
        return self._graph

    @property
    def config(self) -> EngineConfig:
        """Engine configuration."""
        return self._config

    @property
    def logger(self) -> AgentFlowLogger:
        """Logger used when no log sink is configured."""
        return self._logger or get_logger()

    @property
    def is_executing(self) -> bool:
        """Whether a run is currently in flight."""
        return self._task is not None and not self._task.done()

    # Public control API

    async def start(self) -> WorkflowRunResult:
        """Run the workflow from its start node with a fresh state."""
        return await self._run(self._execute_start)

    def pause(self) -> None:
        """Pause after the node currently executing finishes."""
        if self._state.status != ExecutionStatus.RUNNING:
            return
        self._state.status = ExecutionStatus.PAUSED
        self._notify()
        self._log("Workflow paused")
        self._events.emit(WorkflowEventType.WORKFLOW_PAUSED, self._state.current_node_id)

    async def resume(self) -> WorkflowRunResult:
        """Continue a paused run from ``current_node_id``."""
        node_id = self._state.current_node_id
        if self._state.status != ExecutionStatus.PAUSED or node_id is None:
            self._log("Nothing to resume", "debug")
            return self._result()

        self._state.status = ExecutionStatus.RUNNING
        self._notify()
        self._log("Workflow resumed")
        self._events.emit(WorkflowEventType.WORKFLOW_RESUMED, node_id)

        if self.is_executing:
            # The paused run has not yet left its node; it picks up on its own
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                if not self._stop_requested:
                    raise
            return self._result()
        return await self._run(lambda: self._walk(node_id))

    def stop(self) -> None:
        """Cancel any in-flight work and reset the state to idle."""
        self._stop_requested = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        for waiter in self._decision_waiters.values():
            if not waiter.done():
                waiter.cancel()
        self._decision_waiters.clear()

        self._state.status = ExecutionStatus.IDLE
        self._state.current_node_id = None
        self._state.human_decision_pending = None
        self._notify()
        self._log("Workflow stopped")
        self._events.emit(WorkflowEventType.WORKFLOW_STOPPED)

    async def jump_to_node(self, node_id: str) -> WorkflowRunResult:
        """Dispatch an arbitrary node directly, bypassing reachability.

        Raises:
            NodeNotFoundError: If the node does not exist.
            EngineBusyError: If a run is in flight.
        """
        node = self._lookup(node_id)
        return await self._run(lambda: self._jump(node))

    async def retry_node(self, node_id: str) -> WorkflowRunResult:
        """Delete a node's result and output, then dispatch it again.

        ``visited_nodes`` keeps its history, so the node appears twice.

        Raises:
            NodeNotFoundError: If the node does not exist.
            EngineBusyError: If a run is in flight.
        """
        node = self._lookup(node_id)
        if self.is_executing:
            raise EngineBusyError()

        self._state.node_results.pop(node.id, None)
        self._state.node_outputs.pop(node.id, None)
        self._state.retry_count += 1

        self._log(f"Retrying node {node.label}")
        self._events.emit(
            WorkflowEventType.AGENT_RETRY,
            node.id,
            node.label,
            retryCount=self._state.retry_count,
        )
        await self._hooks.run(
            HookType.ON_RETRY,
            self._hook_context(node, retry_count=self._state.retry_count),
        )
        return await self._run(lambda: self._jump(node))

    def submit_human_decision(self, option_id: str, node_id: str | None = None) -> None:
        """Resolve a pending human decision.

        Args:
            option_id: Chosen option id.
            node_id: Decision node to answer. Defaults to the pending one.

        Raises:
            NoPendingDecisionError: If no decision is waiting.
        """
        pending = self._state.human_decision_pending
        if node_id is None:
            if self._state.status != ExecutionStatus.WAITING_HUMAN or pending is None:
                raise NoPendingDecisionError()
            node_id = pending.node_id

        waiter = self._decision_waiters.get(node_id)
        if waiter is None or waiter.done():
            raise NoPendingDecisionError()
        waiter.set_result(option_id)

    # Snapshots

    def create_snapshot(self) -> WorkflowSnapshot:
        """Save a deep copy of the current state into the ring buffer."""
        snapshot = WorkflowSnapshot(
            id=f"snapshot-{uuid.uuid4().hex[:12]}",
            workflow_id=self._graph.id,
            state=self._state.copy_state(),
        )
        self._snapshots.append(snapshot)
        return snapshot

    def restore_snapshot(self, snapshot: WorkflowSnapshot) -> None:
        """Replace the current state with a snapshot's copy.

        Raises:
            SnapshotMismatchError: If the snapshot belongs to another workflow.
            EngineBusyError: If a run is in flight.
        """
        if snapshot.workflow_id != self._graph.id:
            self._log("Snapshot belongs to a different workflow", "error")
            raise SnapshotMismatchError(snapshot.workflow_id, self._graph.id)
        if self.is_executing:
            raise EngineBusyError()

        self._state = snapshot.state.copy_state()
        self._notify()
        self._log(f"Restored snapshot {snapshot.id}")

    def get_snapshots(self) -> list[WorkflowSnapshot]:
        """All retained snapshots, oldest first."""
        return list(self._snapshots)

    def get_last_snapshot(self) -> WorkflowSnapshot | None:
        """The most recent snapshot."""
        return self._snapshots[-1] if self._snapshots else None

    # Inspection

    def get_state(self) -> WorkflowExecutionState:
        """Deep copy of the execution state."""
        return self._state.copy_state()

    def get_statistics(self) -> WorkflowStatistics:
        """Progress summary of the current run."""
        return calculate_statistics(
            self._state.node_results.values(),
            executed_nodes=len(self._state.visited_nodes),
            total_nodes=len(self._graph.nodes),
        )

    def get_agent_performance(
        self,
        agent_id: str | None = None,
    ) -> AgentPerformance | list[AgentPerformance] | None:
        """Performance record of one agent, or all records."""
        if agent_id is not None:
            return self._performance.get(agent_id)
        return self._performance.all()

    # Extension points

    def on(self, event_type: WorkflowEventType | str, listener: EventListener) -> Callable[[], None]:
        """Subscribe to an event type or ``"*"``. Returns an unsubscribe function."""
        return self._events.on(event_type, listener)

    def register_hook(self, hook_type: HookType | str, hook: Hook) -> Callable[[], None]:
        """Register a lifecycle hook. Returns an unregister function."""
        return self._hooks.register(hook_type, hook)

    # Run management

    async def _run(self, body: Callable[[], Awaitable[Any]]) -> WorkflowRunResult:
        if self.is_executing:
            raise EngineBusyError()

        self._stop_requested = False
        self._last_exception = None
        self._steps = 0

        task = asyncio.ensure_future(body())
        self._task = task
        try:
            await task
        except asyncio.CancelledError:
            if not self._stop_requested:
                raise
        finally:
            if self._task is task:
                self._task = None
        return self._result()

    def _result(self) -> WorkflowRunResult:
        state = self._state.copy_state()
        failed = state.status == ExecutionStatus.ERROR
        return WorkflowRunResult(
            status=state.status,
            state=state,
            error=state.error if failed else None,
            exception=self._last_exception if failed else None,
        )

    async def _execute_start(self) -> None:
        self._state = WorkflowExecutionState(workflow_id=self._graph.id)

        self._log(
            "Workflow started",
            rich=lambda lg: lg.workflow_start(self._graph.name, len(self._graph.nodes)),
        )
        await self._hooks.run(HookType.BEFORE_WORKFLOW_START, self._hook_context())
        self._events.emit(WorkflowEventType.WORKFLOW_STARTED)
        self.create_snapshot()

        start_node = self._graph.start_node
        if start_node is None:
            await self._fail("No start node found", StartNodeNotFoundError())
            return

        self._state.status = ExecutionStatus.RUNNING
        self._state.current_node_id = start_node.id
        self._state.started_at = utcnow()
        self._notify()

        await self._walk(start_node.id)

    async def _jump(self, node: WorkflowNode) -> None:
        self._log(f"Jumping to node: {node.label}")
        self._state.status = ExecutionStatus.RUNNING
        self._state.current_node_id = node.id
        self._state.error = None
        self._notify()
        await self._walk(node.id)

    # Dispatch

    async def _walk(self, node_id: str | None, *, until_merge: bool = False) -> str | None:
        """Execute nodes one after another starting at ``node_id``.

        With ``until_merge`` the walk is a parallel branch: it stops at the
        first merge node it reaches and returns that node's id.
        """
        current = node_id
        after_parallel = False

        while current is not None and self._dispatching(in_branch=until_merge):
            node = self._graph.get_node(current)
            if node is None:
                await self._fail(f"Node '{current}' not found", NodeNotFoundError(current))
                return None

            # Merges reached through a nested parallel belong to that parallel
            if until_merge and node.type == NodeType.MERGE and not after_parallel:
                return current

            try:
                next_id = await self._execute_node(node)
            except Exception as e:
                await self._fail(f"Error in node {node.label}: {e}", e, node)
                return None

            after_parallel = node.type == NodeType.PARALLEL
            current = next_id

        if self._state.status == ExecutionStatus.PAUSED and current is not None and not until_merge:
            self._state.current_node_id = current
            self._notify()
        return None

    async def _execute_node(self, node: WorkflowNode) -> str | None:
        self._steps += 1
        if self._steps > self._config.max_steps:
            raise StepLimitExceededError(self._config.max_steps)

        self._log(f"Executing node: {node.label} ({node.type.value})")
        if self._on_log is None:
            self.logger.node_start(node.label, node.type.value)
        self._events.emit(
            WorkflowEventType.NODE_STARTED,
            node.id,
            node.label,
            nodeType=node.type.value,
        )

        self._state.current_node_id = node.id
        self._state.visited_nodes.append(node.id)
        self._notify()

        await self._hooks.run(HookType.BEFORE_NODE_EXECUTE, self._hook_context(node))
        started = time.perf_counter()

        handlers = {
            NodeType.START: self._run_start,
            NodeType.END: self._run_end,
            NodeType.AGENT: self._run_agent,
            NodeType.HUMAN_DECISION: self._run_human_decision,
            NodeType.CONDITION: self._run_condition,
            NodeType.PARALLEL: self._run_parallel,
            NodeType.MERGE: self._run_merge,
            NodeType.LOOP: self._run_loop,
            NodeType.DELAY: self._run_delay,
        }
        next_id = await handlers[node.type](node)

        await self._hooks.run(
            HookType.AFTER_NODE_EXECUTE,
            self._hook_context(
                node,
                output=self._state.node_outputs.get(node.id),
                duration=_elapsed_ms(started),
            ),
        )

        if next_id is None and node.type != NodeType.END and self._state.status.is_active:
            self._log(f"No next node found after {node.label}", "warn")
            await self._complete()
        return next_id

    async def _run_start(self, node: WorkflowNode) -> str | None:
        self._record(node, "Workflow started")
        self._events.emit(WorkflowEventType.NODE_COMPLETED, node.id, node.label, success=True)
        return self._graph.first_successor(node.id)

    async def _run_end(self, node: WorkflowNode) -> str | None:
        self._record(node, "Workflow completed successfully")
        self._events.emit(WorkflowEventType.NODE_COMPLETED, node.id, node.label, success=True)
        await self._complete(node)
        return None

    async def _run_agent(self, node: WorkflowNode) -> str | None:
        agent_id = node.data.agent_id
        if not agent_id:
            raise MissingAgentIdError(node.id)

        previous_output = self._previous_output(node.id)
        self._events.emit(WorkflowEventType.AGENT_STARTED, node.id, node.label, agentId=agent_id)
        await self._hooks.run(
            HookType.BEFORE_AGENT_CALL,
            self._hook_context(node, agent_id=agent_id, input=previous_output),
        )

        started = time.perf_counter()
        try:
            output = self._on_agent_execute(agent_id, previous_output)
            if inspect.isawaitable(output):
                output = await output
        except Exception as e:
            raise AgentExecutionError(
                f"Agent '{agent_id}' failed: {e}",
                agent_id=agent_id,
                node_id=node.id,
            ) from e
        if not isinstance(output, str):
            raise AgentExecutionError(
                f"Agent '{agent_id}' returned {type(output).__name__}, expected str",
                agent_id=agent_id,
                node_id=node.id,
            )
        duration = _elapsed_ms(started)

        result = self._record(
            node,
            output,
            success=is_successful_output(output),
            duration=duration,
            metadata=extract_metadata(output),
        )
        self._state.node_outputs[node.id] = output

        files = len(result.metadata.files_generated) if result.metadata else 0
        errors = len(result.metadata.errors_found) if result.metadata else 0
        self._performance.record(agent_id, duration, result.success, files)

        self._log(
            f"Agent {agent_id} completed: {files} file(s), {errors} error(s)",
            rich=lambda lg: lg.node_end(node.label, duration, success=result.success),
        )
        await self._hooks.run(
            HookType.AFTER_AGENT_CALL,
            self._hook_context(node, agent_id=agent_id, output=output, duration=duration),
        )
        self._events.emit(
            WorkflowEventType.AGENT_COMPLETED,
            node.id,
            node.label,
            agentId=agent_id,
            duration=duration,
            success=result.success,
            filesGenerated=files,
        )
        self._events.emit(
            WorkflowEventType.NODE_COMPLETED,
            node.id,
            node.label,
            success=result.success,
        )
        self.create_snapshot()
        self._notify()
        return self._graph.first_successor(node.id)

    async def _run_human_decision(self, node: WorkflowNode) -> str | None:
        previous = self._previous_result(node.id)
        all_options = list(node.data.options)
        options = filter_options(all_options, previous)
        question = build_decision_question(node.data.question or DEFAULT_QUESTION, previous)
        timeout = node.data.timeout or None

        self._state.status = ExecutionStatus.WAITING_HUMAN
        self._state.human_decision_pending = HumanDecisionPending(
            node_id=node.id,
            question=question,
            options=options,
            timeout_at=utcnow() + timedelta(seconds=timeout) if timeout else None,
            previous_result=previous,
        )
        self._notify()
        self._log(
            f"Waiting for human decision at {node.label}",
            rich=lambda lg: lg.human_waiting(node.label, len(options)),
        )
        self._events.emit(
            WorkflowEventType.HUMAN_WAITING,
            node.id,
            node.label,
            question=question,
            options=[option.id for option in options],
        )

        started = time.perf_counter()
        option_id = await self._await_decision(node, question, options, timeout)

        selected = next((o for o in all_options if o.id == option_id), None)
        if selected is not None and selected.next_node_id:
            next_id = selected.next_node_id
        else:
            next_id = self._graph.first_successor(node.id)

        if self._state.status == ExecutionStatus.WAITING_HUMAN:
            self._state.status = ExecutionStatus.RUNNING
        self._state.human_decision_pending = None
        self._state.node_outputs[node.id] = option_id
        self._record(node, option_id, duration=_elapsed_ms(started))
        self._notify()

        self._log(f"Decision at {node.label}: {option_id}")
        self._events.emit(
            WorkflowEventType.HUMAN_DECIDED,
            node.id,
            node.label,
            optionId=option_id,
            nextNodeId=next_id,
        )
        self._events.emit(WorkflowEventType.NODE_COMPLETED, node.id, node.label, success=True)
        return next_id

    async def _await_decision(
        self,
        node: WorkflowNode,
        question: str,
        options: list[HumanDecisionOption],
        timeout: float | None,
    ) -> str:
        """Wait for the decision callback or a submitted decision, whichever is first."""
        submitted: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._decision_waiters[node.id] = submitted
        waiters: set[asyncio.Future[Any]] = {submitted}
        if self._on_human_decision is not None:
            waiters.add(asyncio.ensure_future(self._ask(node.id, question, list(options))))

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if self._decision_waiters.get(node.id) is submitted:
                del self._decision_waiters[node.id]
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

        if not done:
            if node.data.default_option_id:
                self._log(
                    f"Decision at {node.label} timed out, using default option "
                    f"'{node.data.default_option_id}'",
                    "warn",
                )
                return node.data.default_option_id
            raise HumanDecisionTimeoutError(node.id, timeout or 0)

        winner = submitted if submitted in done else done.pop()
        try:
            return str(winner.result())
        except Exception as e:
            raise HumanDecisionError(
                f"Human decision for node '{node.id}' failed: {e}",
                node_id=node.id,
            ) from e

    async def _ask(self, node_id: str, question: str, options: list[HumanDecisionOption]) -> str:
        answer = self._on_human_decision(node_id, question, options)
        if inspect.isawaitable(answer):
            answer = await answer
        return answer

    async def _run_condition(self, node: WorkflowNode) -> str | None:
        output = self._previous_output(node.id)
        match = first_matching_condition(
            node.data.conditions,
            output,
            on_warning=lambda message: self._log(message, "warn"),
        )
        if match is None:
            return self._graph.first_successor(node.id)

        self._log(f"Condition matched: {match.display_name}", "debug")
        issues = detect_issues(output or "").issues
        if issues:
            self._log(f"Issues found: {', '.join(issues)}")
        return match.target

    async def _run_parallel(self, node: WorkflowNode) -> str | None:
        targets = [edge.target for edge in self._graph.outgoing_edges(node.id)]
        if not targets:
            return None

        if self._config.parallel_mode == ParallelMode.CONCURRENT:
            merges = await asyncio.gather(
                *(self._walk(target, until_merge=True) for target in targets)
            )
        else:
            merges = []
            for target in targets:
                merges.append(await self._walk(target, until_merge=True))

        # A pause requested inside a branch applies once every branch reached its merge
        if not self._dispatching(in_branch=True):
            return None
        return next((merge for merge in merges if merge is not None), None)

    async def _run_merge(self, node: WorkflowNode) -> str | None:
        return self._graph.first_successor(node.id)

    async def _run_loop(self, node: WorkflowNode) -> str | None:
        count = self._state.loop_iterations.get(node.id, 0)
        max_iterations = node.data.max_iterations
        if max_iterations is None:
            max_iterations = self._config.default_loop_iterations

        if count < max_iterations:
            self._state.loop_iterations[node.id] = count + 1
            self._log(f"Loop {node.label}: iteration {count + 1}/{max_iterations}", "debug")
            return self._graph.first_successor(node.id)

        self._log(f"Loop {node.label} finished after {count} iteration(s)", "debug")
        edges = self._graph.outgoing_edges(node.id)
        if len(edges) > 1:
            return edges[1].target
        return self._graph.first_successor(node.id)

    async def _run_delay(self, node: WorkflowNode) -> str | None:
        seconds = node.data.delay_seconds
        if seconds is None:
            seconds = self._config.default_delay_seconds
        self._log(f"Waiting {seconds} seconds...")
        await asyncio.sleep(seconds)
        return self._graph.first_successor(node.id)

    # State transitions

    def _record(
        self,
        node: WorkflowNode,
        output: str,
        *,
        success: bool = True,
        duration: int = 0,
        metadata: StepMetadata | None = None,
    ) -> WorkflowStepResult:
        result = WorkflowStepResult(
            node_id=node.id,
            node_name=node.label,
            node_type=node.type,
            output=output,
            success=success,
            duration=duration,
            metadata=metadata,
        )
        self._state.node_results[node.id] = result
        return result

    async def _complete(self, node: WorkflowNode | None = None) -> None:
        metrics = calculate_metrics(
            self._state.node_results.values(),
            total_nodes=len(self._graph.nodes),
            retry_count=self._state.retry_count,
        )
        self._state.status = ExecutionStatus.COMPLETED
        self._state.current_node_id = None
        self._state.completed_at = utcnow()
        self._state.metrics = metrics
        self._notify()

        self._log(
            f"Workflow completed - {metrics.files_generated} file(s), "
            f"{metrics.errors_detected} error(s), quality: {metrics.code_quality_score}%",
            rich=lambda lg: lg.workflow_end(metrics.total_duration, metrics.code_quality_score),
        )
        self._events.emit(
            WorkflowEventType.WORKFLOW_COMPLETED,
            node.id if node else None,
            node.label if node else None,
            metrics=metrics.model_dump(by_alias=True),
        )
        self.create_snapshot()
        await self._hooks.run(HookType.AFTER_WORKFLOW_COMPLETE, self._hook_context(node))

    async def _fail(
        self,
        message: str,
        error: BaseException,
        node: WorkflowNode | None = None,
    ) -> None:
        self._last_exception = error
        self._state.status = ExecutionStatus.ERROR
        self._state.error = message
        self._notify()

        if node is not None and self._on_log is None:
            self.logger.node_error(node.label, str(error))
        self._log(message, "error")

        if node is not None:
            self._events.emit(WorkflowEventType.NODE_FAILED, node.id, node.label, error=message)
        self._events.emit(WorkflowEventType.WORKFLOW_ERROR, error=message)
        await self._hooks.run(HookType.ON_ERROR, self._hook_context(node, error=error))

    # Helpers

    def _dispatching(self, *, in_branch: bool) -> bool:
        status = self._state.status
        return status.is_active or (in_branch and status == ExecutionStatus.PAUSED)

    def _lookup(self, node_id: str) -> WorkflowNode:
        node = self._graph.get_node(node_id)
        if node is None:
            self._log(f"Node '{node_id}' not found", "error")
            raise NodeNotFoundError(node_id)
        return node

    def _previous_output(self, node_id: str) -> str | None:
        source = self._graph.first_predecessor(node_id)
        return self._state.node_outputs.get(source) if source else None

    def _previous_result(self, node_id: str) -> WorkflowStepResult | None:
        source = self._graph.first_predecessor(node_id)
        return self._state.node_results.get(source) if source else None

    def _hook_context(self, node: WorkflowNode | None = None, **fields: Any) -> HookContext:
        return HookContext(
            state=self._state.copy_state(),
            node_id=node.id if node else None,
            node_name=node.label if node else None,
            **fields,
        )

    def _notify(self) -> None:
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(self._state.copy_state())
        except Exception as e:
            self._log(f"State change callback failed: {e}", "warn")

    def _log(
        self,
        message: str,
        level: str = "info",
        *,
        rich: Callable[[AgentFlowLogger], None] | None = None,
    ) -> None:
        """Send a message to the sink, or to the library logger.

        ``rich`` renders the message with a dedicated logger helper when no
        sink is configured.
        """
        if self._on_log is not None:
            self._on_log(f"{self._config.log_prefix} {message}", level)
        elif rich is not None:
            rich(self.logger)
        else:
            self.logger.log(f"{self._config.log_prefix} {message}", level)

    def _listener_failed(self, event: WorkflowEvent, error: Exception) -> None:
        self._log(f"Event listener for {event.type.value} failed: {error}", "warn")

    def _hook_failed(self, hook_type: HookType, error: Exception) -> None:
        self._log(f"Hook {hook_type.value} failed: {error}", "warn")
