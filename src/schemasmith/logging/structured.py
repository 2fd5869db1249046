"""Structured logging implementation for SchemaSmith.

This module provides structured logging with task-local correlation ids
and operation start/success/failure events. Context is stored in a
``contextvars.ContextVar`` so each asyncio task sees only its own
correlation id.

Classes:
    StructuredLogger: Main structured logging interface
    LogContext: Task-local context for log correlation

Example:
    >>> logger = StructuredLogger("schemasmith.database.session")
    >>> logger.info("Opening pool", connection_id="connection_1", max_size=5)
"""

import contextvars
import logging
import time
import uuid
from typing import Any, Dict

import structlog


class LogContext:
    """Task-local context for log correlation and metadata.

    Example:
        >>> context = LogContext()
        >>> context.set("connection_id", "connection_1")
        >>> context.get_all()
        {'connection_id': 'connection_1'}
    """

    def __init__(self) -> None:
        self._var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
            f"schemasmith_log_context_{id(self)}"
        )

    def _current(self) -> Dict[str, Any]:
        return self._var.get({})

    def set(self, key: str, value: Any) -> None:
        """Set context value.

        Args:
            key: Context key
            value: Context value
        """
        updated = dict(self._current())
        updated[key] = value
        self._var.set(updated)

    def get(self, key: str, default: Any = None) -> Any:
        """Get context value, or ``default`` if absent."""
        return self._current().get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Get a copy of all context values."""
        return dict(self._current())


class StructuredLogger:
    """Structured logger with correlation ids.

    Attributes:
        name: Logger name

    Example:
        >>> logger = StructuredLogger("schemasmith.ddl.synthesizer")
        >>> logger.info("Synthesizing table", table="USERS")
        >>> logger.error("Catalog read failed", error="timeout")
    """

    def __init__(
        self,
        name: str,
        *,
        level: str = "INFO",
        enable_correlation: bool = True,
    ) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (typically module name)
            level: Initial log level
            enable_correlation: Whether to attach correlation ids
        """
        self.name = name
        self._enable_correlation = enable_correlation
        self._logger = structlog.get_logger(name)
        self._context = LogContext()

        self._stdlib_logger = logging.getLogger(name)
        self._stdlib_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    def _ensure_correlation_id(self) -> str:
        correlation_id = self._context.get("correlation_id")
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            self._context.set("correlation_id", correlation_id)
        return correlation_id

    def _prepare_event_dict(self, **kwargs: Any) -> Dict[str, Any]:
        """Prepare event dictionary with task-local context.

        Args:
            **kwargs: Event data

        Returns:
            Prepared event dictionary
        """
        event_dict = self._context.get_all()

        if self._enable_correlation:
            event_dict["correlation_id"] = self._ensure_correlation_id()

        event_dict.update(kwargs)
        return event_dict

    def get_level(self) -> str:
        """Get current logging level name."""
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **self._prepare_event_dict(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **self._prepare_event_dict(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **self._prepare_event_dict(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **self._prepare_event_dict(**kwargs))

    def exception(self, message: str, exc_info: bool = True, **kwargs: Any) -> None:
        """Log exception with traceback.

        Args:
            message: Log message
            exc_info: Whether to include exception info
            **kwargs: Additional structured data
        """
        self._logger.error(message, exc_info=exc_info, **self._prepare_event_dict(**kwargs))

    def log_operation_start(self, operation: str, **context: Any) -> Dict[str, Any]:
        """Log operation start with timing context.

        Args:
            operation: Operation name
            **context: Operation context

        Returns:
            Operation context for completion logging
        """
        operation_context = {
            "operation_id": str(uuid.uuid4()),
            "operation": operation,
            "start_time": time.time(),
            **context,
        }
        self.info("Operation started", **operation_context)
        return operation_context

    def log_operation_success(self, operation_context: Dict[str, Any], **results: Any) -> None:
        """Log successful operation completion.

        Args:
            operation_context: Context from log_operation_start
            **results: Operation results
        """
        duration_ms = (time.time() - operation_context["start_time"]) * 1000
        self.info(
            "Operation completed successfully",
            duration_ms=duration_ms,
            **operation_context,
            **results,
        )

    def log_operation_failure(
        self,
        operation_context: Dict[str, Any],
        error: Exception,
        **error_context: Any,
    ) -> None:
        """Log operation failure.

        Args:
            operation_context: Context from log_operation_start
            error: Exception that occurred
            **error_context: Additional error context
        """
        duration_ms = (time.time() - operation_context["start_time"]) * 1000
        self.error(
            "Operation failed",
            duration_ms=duration_ms,
            error=str(error),
            error_type=type(error).__name__,
            **operation_context,
            **error_context,
        )

    def __repr__(self) -> str:
        return (
            f"StructuredLogger("
            f"name={self.name!r}, "
            f"level={self.get_level()!r}, "
            f"correlation={self._enable_correlation})"
        )
