"""Logging configuration for agent_patch."""
import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog

from .processors import add_logger_name, inject_context, truncate_long_values


class LogLevel(str, Enum):
    """Log level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_int(self) -> int:
        """Convert to logging module integer level."""
        return getattr(logging, self.value)


class LogFormat(str, Enum):
    """Output format for logs."""
    PLAIN = "plain"  # Human-readable for terminals
    JSON = "json"    # One JSON object per line


@dataclass
class LogConfig:
    """Configuration for the logging framework.

    Attributes:
        level: Default log level for all loggers.
        format: Output format (PLAIN for console, JSON for machine consumption).
        log_file: Optional path to also write logs to a rotating file.
        max_bytes: Maximum size of log file before rotation (default 10MB).
        backup_count: Number of backup files to keep (default 5).
        module_levels: Per-module log level overrides.
        max_value_length: Longest string value kept in an event before clipping.
    """
    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.PLAIN
    log_file: Optional[Path] = None
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    module_levels: dict[str, LogLevel] = field(default_factory=dict)
    max_value_length: int = 500

    @classmethod
    def from_env(cls, prefix: str = "AGENT_PATCH_LOG_") -> "LogConfig":
        """Build a config from ``<prefix>LEVEL``, ``FORMAT`` and ``FILE``.

        Unset variables keep their defaults. Unknown level or format values
        raise ``ValueError``.
        """
        config = cls()
        level = os.environ.get(f"{prefix}LEVEL")
        if level:
            config.level = LogLevel(level.upper())
        fmt = os.environ.get(f"{prefix}FORMAT")
        if fmt:
            config.format = LogFormat(fmt.lower())
        log_file = os.environ.get(f"{prefix}FILE")
        if log_file:
            config.log_file = Path(log_file)
        return config


_configured: bool = False


def _get_processors(config: LogConfig) -> list:
    """Build the processor chain shared by structlog and foreign records."""
    return [
        structlog.contextvars.merge_contextvars,
        inject_context,
        add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        truncate_long_values(config.max_value_length),
    ]


def _get_renderer(config: LogConfig):
    """Get the appropriate renderer based on format."""
    if config.format == LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def _setup_stdlib_logging(config: LogConfig) -> None:
    """Route the ``agent_patch`` logger tree to stderr and optionally a file.

    Only the package logger is touched so that embedding applications keep
    control of the root logger.
    """
    package_logger = logging.getLogger("agent_patch")
    package_logger.setLevel(config.level.to_int())
    package_logger.propagate = False

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(config.level.to_int())
    package_logger.addHandler(console_handler)

    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
        )
        file_handler.setLevel(config.level.to_int())
        package_logger.addHandler(file_handler)

    for module_name, level in config.module_levels.items():
        logging.getLogger(module_name).setLevel(level.to_int())


def configure_logging(config: Optional[LogConfig] = None) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        config: Logging configuration. If None, uses ``LogConfig.from_env()``.

    Example:
        >>> from agent_patch.logging import configure_logging, LogConfig, LogFormat, LogLevel
        >>> configure_logging(LogConfig(level=LogLevel.DEBUG, format=LogFormat.JSON))
    """
    global _configured

    if config is None:
        config = LogConfig.from_env()

    _setup_stdlib_logging(config)

    processors = _get_processors(config)

    structlog.configure(
        processors=processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _get_renderer(config),
        ],
    )

    for handler in logging.getLogger("agent_patch").handlers:
        handler.setFormatter(formatter)

    _configured = True


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


def ensure_configured() -> None:
    """Configure logging from the environment if nobody has done so yet."""
    if not _configured:
        configure_logging()
