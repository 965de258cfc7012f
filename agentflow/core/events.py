"""Workflow event bus for observability."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Literal

from agentflow.core.state import utcnow


class WorkflowEventType(str, Enum):
    """Events published by the engine."""

    # Workflow lifecycle
    WORKFLOW_STARTED = "workflow:started"
    WORKFLOW_COMPLETED = "workflow:completed"
    WORKFLOW_ERROR = "workflow:error"
    WORKFLOW_PAUSED = "workflow:paused"
    WORKFLOW_RESUMED = "workflow:resumed"
    WORKFLOW_STOPPED = "workflow:stopped"

    # Node lifecycle
    NODE_STARTED = "node:started"
    NODE_COMPLETED = "node:completed"
    NODE_FAILED = "node:failed"

    # Human decisions
    HUMAN_WAITING = "human:waiting"
    HUMAN_DECIDED = "human:decided"

    # Agent calls
    AGENT_STARTED = "agent:started"
    AGENT_COMPLETED = "agent:completed"
    AGENT_RETRY = "agent:retry"


WILDCARD: Literal["*"] = "*"


@dataclass
class WorkflowEvent:
    """Event passed to listeners."""

    type: WorkflowEventType
    workflow_id: str
    timestamp: datetime = field(default_factory=utcnow)
    node_id: str | None = None
    node_name: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


# Type aliases
EventListener = Callable[[WorkflowEvent], None]
EventKey = WorkflowEventType | Literal["*"]


class EventBus:
    """In-process publish/subscribe for workflow events.

    Listeners are plain synchronous callables. Type-specific listeners run
    before wildcard listeners, each group in registration order. A failing
    listener is reported through ``on_listener_error`` and never interrupts
    the others.

    Example:
        >>> bus = EventBus(workflow_id="wf-1")
        >>> unsubscribe = bus.on("*", lambda event: print(event.type.value))
        >>> bus.emit(WorkflowEventType.WORKFLOW_STARTED)
        workflow:started
        >>> unsubscribe()
    """

    def __init__(
        self,
        workflow_id: str,
        on_listener_error: Callable[[WorkflowEvent, Exception], None] | None = None,
    ) -> None:
        self._workflow_id = workflow_id
        self._listeners: dict[EventKey, list[EventListener]] = {}
        self._on_listener_error = on_listener_error

    def on(self, event_type: WorkflowEventType | str, listener: EventListener) -> Callable[[], None]:
        """Register a listener for one event type or ``"*"``.

        Returns:
            A function that removes the listener again.
        """
        key: EventKey = WILDCARD if event_type == WILDCARD else WorkflowEventType(event_type)
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners and listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def emit(
        self,
        event_type: WorkflowEventType,
        node_id: str | None = None,
        node_name: str | None = None,
        **data: Any,
    ) -> WorkflowEvent:
        """Publish an event to its listeners, then to wildcard listeners."""
        event = WorkflowEvent(
            type=event_type,
            workflow_id=self._workflow_id,
            node_id=node_id,
            node_name=node_name,
            data=data,
        )

        listeners = [
            *self._listeners.get(event_type, []),
            *self._listeners.get(WILDCARD, []),
        ]
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                if self._on_listener_error is not None:
                    self._on_listener_error(event, e)
        return event

    def listener_count(self, event_type: EventKey | None = None) -> int:
        """Number of registered listeners (all keys when None)."""
        if event_type is None:
            return sum(len(v) for v in self._listeners.values())
        return len(self._listeners.get(event_type, []))

    def clear(self, event_type: EventKey | None = None) -> None:
        """Remove listeners for one key, or all of them."""
        if event_type is None:
            self._listeners.clear()
        elif event_type in self._listeners:
            self._listeners[event_type].clear()
