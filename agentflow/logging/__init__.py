"""Logging module for AgentFlow.

Provides structured logging with Rich console support.
"""

from agentflow.logging.logger import LogLevel, AgentFlowLogger
from agentflow.logging.config import (
    configure_logging,
    disable_logging,
    enable_logging,
    get_logger,
    log_sink,
    set_logger,
)

__all__ = [
    "LogLevel",
    "AgentFlowLogger",
    "get_logger",
    "set_logger",
    "configure_logging",
    "disable_logging",
    "enable_logging",
    "log_sink",
]
