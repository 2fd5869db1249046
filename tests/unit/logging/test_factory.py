"""Tests for logger factory module."""

import logging
import logging.handlers

from schemasmith.config.models import LoggingConfig
from schemasmith.logging.factory import (
    LoggerConfig,
    LoggerFactory,
    get_factory,
    get_logger,
    get_performance_logger,
)
from schemasmith.logging.performance import PerformanceLogger
from schemasmith.logging.structured import StructuredLogger


class TestLoggerConfig:
    """Test cases for LoggerConfig dataclass."""

    def test_logger_config_defaults(self):
        """Test LoggerConfig default values."""
        config = LoggerConfig()

        assert config.level == "INFO"
        assert config.format == "json"
        assert config.console_output is True
        assert config.file_output is False
        assert config.file_path is None
        assert config.correlation_ids is True


class TestLoggerFactory:
    """Test cases for LoggerFactory class."""

    def test_factory_initialization(self):
        """Test factory starts unconfigured."""
        factory = LoggerFactory()

        assert factory.initialized is False
        assert factory.config.level == "INFO"

    def test_configure_from_logging_config(self, logger_factory, sample_logging_config):
        """Test configuration from the pydantic model."""
        logger_factory.configure_from_config(sample_logging_config)

        assert logger_factory.initialized is True
        assert logger_factory.config.file_output is True
        assert logger_factory.config.file_path == str(sample_logging_config.file_path)
        assert logger_factory.config.backup_count == 3

        root_handlers = logging.getLogger().handlers
        assert any(
            isinstance(handler, logging.handlers.RotatingFileHandler)
            for handler in root_handlers
        )

    def test_reconfigure_replaces_handlers(self, logger_factory):
        """Test configuring twice does not stack handlers."""
        logger_factory.configure_from_config(LoggingConfig(console_output=True))
        logger_factory.configure_from_config(LoggingConfig(console_output=True))

        assert len(logger_factory._handlers) == 1

    def test_get_logger_caching(self, logger_factory):
        """Test loggers are cached by name and level."""
        first = logger_factory.get_logger("schemasmith.test")
        second = logger_factory.get_logger("schemasmith.test")
        other = logger_factory.get_logger("schemasmith.test", level="DEBUG")

        assert isinstance(first, StructuredLogger)
        assert first is second
        assert first is not other

    def test_get_performance_logger(self, logger_factory):
        """Test performance loggers are cached and share a structured logger."""
        perf_logger = logger_factory.get_performance_logger("database.executor")

        assert isinstance(perf_logger, PerformanceLogger)
        assert logger_factory.get_performance_logger("database.executor") is perf_logger
        assert perf_logger.logger is logger_factory.get_logger("perf.database.executor")

    def test_shutdown(self, logger_factory):
        """Test shutdown removes handlers and clears caches."""
        logger_factory.configure_from_config(LoggingConfig(console_output=True))
        logger_factory.get_logger("schemasmith.test")

        logger_factory.shutdown()

        assert logger_factory.initialized is False
        assert logger_factory._handlers == []
        assert logger_factory._loggers == {}

    def test_file_output_creates_directory(self, logger_factory, tmp_path):
        """Test the log directory is created on demand."""
        log_path = tmp_path / "nested" / "schemasmith.log"
        logger_factory.configure_from_config(LoggingConfig(file_path=log_path, console_output=False))

        assert log_path.parent.exists()


class TestGlobalFunctions:
    """Test cases for module level convenience functions."""

    def test_get_logger_global(self):
        """Test the global factory caches loggers."""
        assert get_logger("schemasmith.global") is get_logger("schemasmith.global")

    def test_get_performance_logger_global(self):
        """Test global performance logger lookup."""
        assert isinstance(get_performance_logger("global"), PerformanceLogger)

    def test_configure_from_system_logging_config(self):
        """Test the factory accepts the system logging section."""
        get_factory().configure_from_config(
            LoggingConfig(level="warning", format="text", console_output=False)
        )

        assert get_factory().config.level == "WARNING"
        assert logging.getLogger().level == logging.WARNING
