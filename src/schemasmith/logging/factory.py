"""Logger factory and configuration for SchemaSmith.

This module provides centralized logger creation and configuration of the
stdlib handlers and the structlog processor chain. Loggers can be created
before the system is configured; configuration only changes where events
go and how they are rendered.

Classes:
    LoggerFactory: Main logger factory and configuration manager
    LoggerConfig: Configuration for logger instances

Functions:
    get_logger: Convenience function for getting loggers
    get_performance_logger: Convenience function for performance loggers
    get_factory: Access the process-wide factory

Example:
    >>> from schemasmith.logging import get_factory, get_logger
    >>> get_factory().configure_from_config(LoggingConfig(level="INFO"))
    >>> logger = get_logger(__name__)
    >>> logger.info("Registry loaded", connections=3)
"""

import logging
import logging.handlers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional

import structlog

from ..config.models import LoggingConfig
from .formatters import get_formatter, redact_secrets
from .performance import PerformanceLogger
from .structured import StructuredLogger


@dataclass
class LoggerConfig:
    """Configuration for logger instances.

    Attributes:
        level: Log level
        format: Log format (json, text)
        console_output: Enable console output
        file_output: Enable file output
        file_path: Log file path
        max_file_size: Maximum file size before rotation
        backup_count: Number of backup files to keep
        correlation_ids: Enable correlation id tracking
    """

    level: str = "INFO"
    format: str = "json"
    console_output: bool = True
    file_output: bool = False
    file_path: Optional[str] = None
    max_file_size: int = 10485760  # 10MB
    backup_count: int = 5
    correlation_ids: bool = True


def redact_event(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor that masks password-like fields."""
    return redact_secrets(event_dict)


class LoggerFactory:
    """Factory for creating and configuring SchemaSmith loggers.

    Attributes:
        config: Default logger configuration
        initialized: Whether the logging system has been configured

    Example:
        >>> factory = LoggerFactory()
        >>> factory.configure_from_config(logging_config)
        >>> logger = factory.get_logger("schemasmith.database.session")
        >>> perf_logger = factory.get_performance_logger("database.executor")
    """

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        self.config = config or LoggerConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}
        self._handlers: List[logging.Handler] = []

    def configure_from_config(self, logging_config: LoggingConfig) -> None:
        """Configure factory from LoggingConfig instance.

        Args:
            logging_config: SchemaSmith logging configuration
        """
        self.config = LoggerConfig(
            level=logging_config.level,
            format=logging_config.format,
            console_output=logging_config.console_output,
            file_output=logging_config.file_path is not None,
            file_path=str(logging_config.file_path) if logging_config.file_path else None,
            max_file_size=logging_config.max_file_size,
            backup_count=logging_config.backup_count,
        )
        self._configure_logging_system()

    def _level(self) -> int:
        return getattr(logging, self.config.level.upper(), logging.INFO)

    def _configure_logging_system(self) -> None:
        self._configure_stdlib_logging()
        self._configure_structlog()
        self.initialized = True

    def _configure_stdlib_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self._level())

        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []

        if self.config.console_output:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(self._level())
            console_handler.setFormatter(get_formatter(self.config.format))
            self._handlers.append(console_handler)

        if self.config.file_output and self.config.file_path:
            file_path = Path(self.config.file_path)
            file_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(file_path),
                maxBytes=self.config.max_file_size,
                backupCount=self.config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(self._level())
            file_handler.setFormatter(get_formatter(self.config.format))
            self._handlers.append(file_handler)

        for handler in self._handlers:
            root_logger.addHandler(handler)

    def _configure_structlog(self) -> None:
        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_event,
        ]

        if self.config.format.lower() == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    def get_logger(self, name: str, *, level: Optional[str] = None) -> StructuredLogger:
        """Get or create a structured logger.

        Args:
            name: Logger name (typically module name)
            level: Override default log level

        Returns:
            StructuredLogger instance
        """
        cache_key = f"{name}_{level}"
        if cache_key not in self._loggers:
            self._loggers[cache_key] = StructuredLogger(
                name=name,
                level=level or self.config.level,
                enable_correlation=self.config.correlation_ids,
            )
        return self._loggers[cache_key]

    def get_performance_logger(
        self,
        name: str,
        *,
        auto_log: Optional[bool] = None,
    ) -> PerformanceLogger:
        """Get or create a performance logger.

        Args:
            name: Logger name
            auto_log: Whether to automatically log timing results

        Returns:
            PerformanceLogger instance
        """
        cache_key = f"{name}_{auto_log}"
        if cache_key not in self._performance_loggers:
            self._performance_loggers[cache_key] = PerformanceLogger(
                name=name,
                auto_log=auto_log if auto_log is not None else True,
                logger=self.get_logger(f"perf.{name}"),
            )
        return self._performance_loggers[cache_key]

    def shutdown(self) -> None:
        """Remove installed handlers and clear logger caches."""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        self._loggers.clear()
        self._performance_loggers.clear()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory("
            f"level={self.config.level!r}, "
            f"format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


# Global logger factory instance
_global_factory = LoggerFactory()


def get_logger(name: str, *, level: Optional[str] = None) -> StructuredLogger:
    """Get or create a structured logger using global factory.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Session connected", connection_id="connection_1")
    """
    return _global_factory.get_logger(name, level=level)


def get_performance_logger(
    name: str,
    *,
    auto_log: Optional[bool] = None,
) -> PerformanceLogger:
    """Get or create a performance logger using global factory.

    Example:
        >>> perf_logger = get_performance_logger("database.executor")
        >>> with perf_logger.measure("execute"):
        ...     ...
    """
    return _global_factory.get_performance_logger(name, auto_log=auto_log)


def get_factory() -> LoggerFactory:
    """Get the global logger factory instance."""
    return _global_factory
