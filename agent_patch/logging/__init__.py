"""Structured logging for agent_patch.

Quick Start:
    >>> from agent_patch.logging import configure_logging, LogConfig, LogLevel
    >>> configure_logging(LogConfig(level=LogLevel.DEBUG))

Correlating one patch application:
    >>> from agent_patch.logging import bind_context, clear_context
    >>> bind_context(patch_id="3f2a")
    >>> # ... every event now carries patch_id
    >>> clear_context()
"""
import structlog

from .config import (
    LogConfig,
    LogFormat,
    LogLevel,
    configure_logging,
    ensure_configured,
    is_configured,
)
from .context import bind_context, clear_context, get_context, unbind_context


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring defaults on first use.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Applied patch", files=2, fuzz=0)
    """
    ensure_configured()
    return structlog.get_logger(name)


__all__ = [
    # Configuration
    "LogConfig",
    "LogFormat",
    "LogLevel",
    "configure_logging",
    "is_configured",
    # Logger
    "get_logger",
    # Context management
    "bind_context",
    "unbind_context",
    "clear_context",
    "get_context",
]
