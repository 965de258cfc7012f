"""Process-wide logger used by engines that have no log sink."""

from __future__ import annotations

from collections.abc import Callable

from rich.console import Console

from agentflow.logging.logger import LogLevel, AgentFlowLogger


_logger: AgentFlowLogger | None = None


def get_logger() -> AgentFlowLogger:
    """Get the global logger, creating an INFO-level one on first use."""
    global _logger
    if _logger is None:
        _logger = AgentFlowLogger()
    return _logger


def set_logger(logger: AgentFlowLogger) -> AgentFlowLogger:
    """Install a preconfigured logger as the global one."""
    global _logger
    _logger = logger
    return logger


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    enabled: bool = True,
    show_timestamps: bool = True,
    show_level: bool = True,
    console: Console | None = None,
) -> AgentFlowLogger:
    """Replace the global logger.

    ``level`` accepts engine sink names, so ``"warn"`` works as well as
    ``"warning"``.

    Example:
        >>> configure_logging(level="debug", show_timestamps=False)
        >>> engine = WorkflowEngine(graph, on_agent_execute=run_agent)
    """
    if isinstance(level, str):
        level = LogLevel.from_sink_level(level)

    return set_logger(
        AgentFlowLogger(
            level=level,
            console=console,
            enabled=enabled,
            show_timestamps=show_timestamps,
            show_level=show_level,
        )
    )


def disable_logging() -> None:
    """Silence the global logger."""
    get_logger().enabled = False


def enable_logging() -> None:
    """Re-enable the global logger."""
    get_logger().enabled = True


def log_sink(logger: AgentFlowLogger | None = None) -> Callable[[str, str], None]:
    """Build an engine ``on_log`` sink that writes to a logger.

    Without ``logger`` the sink resolves the global logger on every call,
    so later :func:`configure_logging` calls still apply.
    """

    def sink(message: str, level: str) -> None:
        (logger or get_logger()).log(message, level)

    return sink
