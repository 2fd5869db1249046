"""SchemaSmith structured logging framework.

This package provides structured logging with correlation ids, performance
timing and secret redaction for every other SchemaSmith package.

Classes:
    StructuredLogger: Main structured logging interface
    PerformanceLogger: Performance monitoring and timing
    LoggerFactory: Logger creation and configuration

Example:
    >>> from schemasmith.logging import get_logger, get_performance_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Operation started", operation="synthesize_ddl")
    >>>
    >>> perf_logger = get_performance_logger("database.executor")
    >>> with perf_logger.measure("execute"):
    ...     pass
"""

from .factory import (
    LoggerConfig,
    LoggerFactory,
    get_factory,
    get_logger,
    get_performance_logger,
)
from .formatters import JSONFormatter, TextFormatter, get_formatter, redact_secrets
from .performance import PerformanceLogger, TimingContext
from .structured import LogContext, StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerConfig",
    "LoggerFactory",
    "get_factory",
    "get_logger",
    "get_performance_logger",

    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    "redact_secrets",

    # Performance logging
    "PerformanceLogger",
    "TimingContext",

    # Structured logging
    "LogContext",
    "StructuredLogger",
]
