"""Unit tests for the workflow event bus."""

from __future__ import annotations

import pytest

from agentflow.core.events import EventBus, WorkflowEvent, WorkflowEventType


class TestEventBus:
    """Tests for EventBus."""

    def test_emit_to_listener(self) -> None:
        """Listeners receive events with workflow id and data."""
        bus = EventBus("wf-1")
        received: list[WorkflowEvent] = []
        bus.on(WorkflowEventType.NODE_STARTED, received.append)

        bus.emit(WorkflowEventType.NODE_STARTED, "coder", "Coder", nodeType="agent")

        assert len(received) == 1
        event = received[0]
        assert event.workflow_id == "wf-1"
        assert event.node_id == "coder"
        assert event.node_name == "Coder"
        assert event.data == {"nodeType": "agent"}
        assert event.timestamp.tzinfo is not None

    def test_other_types_not_delivered(self) -> None:
        """Listeners only get their own type."""
        bus = EventBus("wf-1")
        received: list[WorkflowEvent] = []
        bus.on(WorkflowEventType.NODE_FAILED, received.append)

        bus.emit(WorkflowEventType.NODE_STARTED)

        assert received == []

    def test_specific_before_wildcard(self) -> None:
        """Type listeners run before wildcard listeners, in registration order."""
        bus = EventBus("wf-1")
        order: list[str] = []
        bus.on("*", lambda e: order.append("wild-1"))
        bus.on("node:completed", lambda e: order.append("specific-1"))
        bus.on("*", lambda e: order.append("wild-2"))
        bus.on(WorkflowEventType.NODE_COMPLETED, lambda e: order.append("specific-2"))

        bus.emit(WorkflowEventType.NODE_COMPLETED)

        assert order == ["specific-1", "specific-2", "wild-1", "wild-2"]

    def test_unsubscribe(self) -> None:
        """The returned function removes the listener."""
        bus = EventBus("wf-1")
        received: list[WorkflowEvent] = []
        unsubscribe = bus.on("*", received.append)

        unsubscribe()
        unsubscribe()
        bus.emit(WorkflowEventType.WORKFLOW_STARTED)

        assert received == []

    def test_failing_listener_isolated(self) -> None:
        """A raising listener is reported and the rest still run."""
        failures: list[tuple[WorkflowEventType, str]] = []
        bus = EventBus("wf-1", on_listener_error=lambda e, err: failures.append((e.type, str(err))))
        received: list[WorkflowEvent] = []

        def broken(event: WorkflowEvent) -> None:
            raise RuntimeError("listener bug")

        bus.on(WorkflowEventType.WORKFLOW_STARTED, broken)
        bus.on(WorkflowEventType.WORKFLOW_STARTED, received.append)

        bus.emit(WorkflowEventType.WORKFLOW_STARTED)

        assert len(received) == 1
        assert failures == [(WorkflowEventType.WORKFLOW_STARTED, "listener bug")]

    def test_unknown_event_type(self) -> None:
        """Subscribing to an unknown type raises."""
        with pytest.raises(ValueError):
            EventBus("wf-1").on("node:exploded", lambda e: None)

    def test_listener_count_and_clear(self) -> None:
        """Listeners can be counted and cleared."""
        bus = EventBus("wf-1")
        bus.on("*", lambda e: None)
        bus.on(WorkflowEventType.NODE_STARTED, lambda e: None)

        assert bus.listener_count() == 2
        assert bus.listener_count(WorkflowEventType.NODE_STARTED) == 1

        bus.clear(WorkflowEventType.NODE_STARTED)
        assert bus.listener_count() == 1

        bus.clear()
        assert bus.listener_count() == 0
