"""AgentFlow logger implementation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from rich.console import Console


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Get numeric rank for comparison."""
        ranks = {"debug": 0, "info": 1, "warning": 2, "error": 3}
        return ranks[self.value]

    @classmethod
    def from_sink_level(cls, level: str) -> LogLevel:
        """Map a log-sink level name ("warn" included) onto a LogLevel."""
        normalized = level.lower()
        if normalized == "warn":
            return cls.WARNING
        return cls(normalized)


class AgentFlowLogger:
    """Structured logger for AgentFlow.

    Provides Rich-formatted logging for workflow execution tracking.

    Example:
        >>> logger = AgentFlowLogger(level=LogLevel.DEBUG)
        >>> logger.info("Processing started", node="planner")
        >>> logger.node_start("planner", "agent")
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        console: Console | None = None,
        show_timestamps: bool = True,
        show_level: bool = True,
        enabled: bool = True,
    ) -> None:
        """Initialize logger.

        Args:
            level: Minimum log level to display.
            console: Rich console instance (created if None).
            show_timestamps: Whether to show timestamps.
            show_level: Whether to show log level.
            enabled: Whether logging is enabled.
        """
        self._level = level
        self._console = console or Console()
        self._show_timestamps = show_timestamps
        self._show_level = show_level
        self._enabled = enabled

    @property
    def level(self) -> LogLevel:
        """Current log level."""
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        """Set log level."""
        self._level = value

    @property
    def enabled(self) -> bool:
        """Whether logging is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        """Enable or disable logging."""
        self._enabled = value

    def _should_log(self, level: LogLevel) -> bool:
        """Check if message should be logged."""
        return self._enabled and level.rank >= self._level.rank

    def _format_prefix(self, level: LogLevel) -> str:
        """Format log prefix with timestamp and level."""
        parts = []

        if self._show_timestamps:
            timestamp = datetime.now().strftime("%H:%M:%S")
            parts.append(f"[dim]{timestamp}[/]")

        if self._show_level:
            level_colors = {
                LogLevel.DEBUG: "dim",
                LogLevel.INFO: "blue",
                LogLevel.WARNING: "yellow",
                LogLevel.ERROR: "red bold",
            }
            color = level_colors.get(level, "white")
            parts.append(f"[{color}]{level.value.upper():7}[/]")

        return " ".join(parts)

    def _log(self, level: LogLevel, message: str, **context: Any) -> None:
        """Internal log method."""
        if not self._should_log(level):
            return

        prefix = self._format_prefix(level)

        if context:
            context_str = " ".join(f"{k}={v}" for k, v in context.items())
            message = f"{message} {context_str}"

        # Engine messages carry literal brackets ("[Workflow]"), keep markup off for the body
        self._console.print(prefix, end=" " if prefix else "")
        self._console.print(message, markup=False, highlight=False)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message, **context)

    def log(self, message: str, level: str = "info") -> None:
        """Log with a sink-style level name ("debug", "info", "warn", "error")."""
        self._log(LogLevel.from_sink_level(level), message)

    # Workflow-specific logging methods

    def workflow_start(self, workflow_name: str, node_count: int) -> None:
        """Log workflow start."""
        if not self._should_log(LogLevel.INFO):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.INFO)} "
            f"[bold cyan]◆ Workflow[/] {workflow_name} starting with {node_count} nodes"
        )

    def workflow_end(self, duration_ms: int, quality_score: int) -> None:
        """Log workflow completion."""
        if not self._should_log(LogLevel.INFO):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.INFO)} "
            f"[bold cyan]◆ Workflow[/] completed ({duration_ms}ms | quality {quality_score}%)"
        )

    def node_start(self, node_name: str, node_type: str) -> None:
        """Log node start."""
        if not self._should_log(LogLevel.DEBUG):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.DEBUG)} "
            f"  [dim]Node:[/] {node_name} ({node_type})"
        )

    def node_end(self, node_name: str, duration_ms: int, success: bool = True) -> None:
        """Log node completion."""
        if not self._should_log(LogLevel.INFO):
            return

        status = "[bold green]✓[/]" if success else "[bold yellow]![/]"
        self._console.print(
            f"{self._format_prefix(LogLevel.INFO)} "
            f"{status} {node_name} completed ({duration_ms}ms)"
        )

    def node_error(self, node_name: str, error: str) -> None:
        """Log node error."""
        if not self._should_log(LogLevel.ERROR):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.ERROR)} "
            f"[bold red]✗ {node_name}[/] failed: {error}"
        )

    def human_waiting(self, node_name: str, option_count: int) -> None:
        """Log a pending human decision."""
        if not self._should_log(LogLevel.INFO):
            return

        self._console.print(
            f"{self._format_prefix(LogLevel.INFO)} "
            f"[bold magenta]? {node_name}[/] waiting for decision ({option_count} options)"
        )
