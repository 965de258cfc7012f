"""Configuration for the workflow engine.

``EngineConfig`` is passed explicitly; ``EngineSettings`` reads the same
knobs from ``AGENTFLOW_*`` environment variables.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentflow.errors.exceptions import ConfigurationError
from agentflow.logging.config import configure_logging
from agentflow.logging.logger import AgentFlowLogger, LogLevel


class ParallelMode(str, Enum):
    """How branches of a parallel node are dispatched."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class EngineConfig(BaseModel):
    """Configuration for a WorkflowEngine.

    Example:
        >>> config = EngineConfig(
        ...     max_snapshots=20,
        ...     parallel_mode=ParallelMode.CONCURRENT,
        ... )
    """

    model_config = ConfigDict(frozen=True)

    max_snapshots: int = Field(
        default=10,
        ge=1,
        description="Capacity of the snapshot ring buffer (oldest evicted first)",
    )
    default_loop_iterations: int = Field(
        default=3,
        ge=0,
        description="Loop body repetitions when a loop node omits maxIterations",
    )
    default_delay_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Wait time when a delay node omits delaySeconds",
    )
    parallel_mode: ParallelMode = Field(
        default=ParallelMode.SEQUENTIAL,
        description=(
            "Run parallel branches one after another or concurrently; in concurrent "
            "mode simultaneous human decisions share one pending slot, answer each "
            "with submit_human_decision(option_id, node_id=...)"
        ),
    )
    max_steps: int = Field(
        default=10_000,
        ge=1,
        description="Maximum node dispatches per run (runaway loop guard)",
    )
    log_prefix: str = Field(
        default="[Workflow]",
        description="Prefix for every engine log message",
    )


class EngineSettings(BaseSettings):
    """Engine settings loaded from environment variables.

    Example:
        AGENTFLOW_MAX_SNAPSHOTS=20 AGENTFLOW_PARALLEL_MODE=concurrent
    """

    max_snapshots: int = 10
    default_loop_iterations: int = 3
    default_delay_seconds: float = 5.0
    parallel_mode: ParallelMode = ParallelMode.SEQUENTIAL
    max_steps: int = 10_000
    log_prefix: str = "[Workflow]"

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_timestamps: bool = True

    def to_engine_config(self) -> EngineConfig:
        """Build a validated EngineConfig from these settings.

        Raises:
            ConfigurationError: If a value is out of range.
        """
        try:
            return EngineConfig(
                max_snapshots=self.max_snapshots,
                default_loop_iterations=self.default_loop_iterations,
                default_delay_seconds=self.default_delay_seconds,
                parallel_mode=self.parallel_mode,
                max_steps=self.max_steps,
                log_prefix=self.log_prefix,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid engine settings: {e}") from e

    def apply_logging(self) -> AgentFlowLogger:
        """Configure the global logger from these settings."""
        return configure_logging(level=self.log_level, show_timestamps=self.log_timestamps)

    model_config = SettingsConfigDict(env_prefix="AGENTFLOW_", case_sensitive=False)


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached engine settings."""
    return EngineSettings()
