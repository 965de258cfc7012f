"""Lifecycle hooks around workflow and node execution."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from agentflow.core.state import WorkflowExecutionState


class HookType(str, Enum):
    """Points at which hooks run."""

    BEFORE_WORKFLOW_START = "beforeWorkflowStart"
    AFTER_WORKFLOW_COMPLETE = "afterWorkflowComplete"
    BEFORE_NODE_EXECUTE = "beforeNodeExecute"
    AFTER_NODE_EXECUTE = "afterNodeExecute"
    BEFORE_AGENT_CALL = "beforeAgentCall"
    AFTER_AGENT_CALL = "afterAgentCall"
    ON_ERROR = "onError"
    ON_RETRY = "onRetry"


@dataclass
class HookContext:
    """Context passed to hooks. ``state`` is a copy."""

    state: WorkflowExecutionState
    node_id: str | None = None
    node_name: str | None = None
    agent_id: str | None = None
    input: str | None = None
    output: str | None = None
    error: BaseException | None = None
    duration: int | None = None
    retry_count: int | None = None


Hook = Callable[[HookContext], Awaitable[None] | None]


class HookRegistry:
    """Ordered, per-type hook lists.

    Hooks may be sync or async; they are awaited one after another in
    registration order. A failing hook is reported through ``on_hook_error``
    and the remaining hooks still run.

    Example:
        >>> hooks = HookRegistry()
        >>> async def audit(ctx: HookContext) -> None:
        ...     print(ctx.node_name, ctx.duration)
        >>> remove = hooks.register(HookType.AFTER_NODE_EXECUTE, audit)
    """

    def __init__(
        self,
        on_hook_error: Callable[[HookType, Exception], None] | None = None,
    ) -> None:
        self._hooks: dict[HookType, list[Hook]] = {}
        self._on_hook_error = on_hook_error

    def register(self, hook_type: HookType | str, hook: Hook) -> Callable[[], None]:
        """Register a hook.

        Returns:
            A function that unregisters the hook.
        """
        key = HookType(hook_type)
        self._hooks.setdefault(key, []).append(hook)

        def unregister() -> None:
            hooks = self._hooks.get(key)
            if hooks and hook in hooks:
                hooks.remove(hook)

        return unregister

    def has_hooks(self, hook_type: HookType) -> bool:
        """Whether any hook is registered for a type."""
        return bool(self._hooks.get(hook_type))

    async def run(self, hook_type: HookType, context: HookContext) -> None:
        """Run all hooks of one type."""
        for hook in list(self._hooks.get(hook_type, [])):
            try:
                result = hook(context)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                if self._on_hook_error is not None:
                    self._on_hook_error(hook_type, e)

    def clear(self) -> None:
        """Remove all hooks."""
        self._hooks.clear()
