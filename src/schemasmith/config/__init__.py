"""SchemaSmith configuration management.

This package provides type-safe configuration models for connections and
for the system-wide settings.

Classes:
    BaseConfig: Base configuration class
    ConnectionConfig: One registered database connection
    SystemConfig: System-wide configuration
    LoggingConfig: Logging configuration

Example:
    >>> from schemasmith.config import SystemConfig
    >>> config = SystemConfig.from_file("schemasmith.yaml")
"""

from .models import (
    REDACTION_MARKER,
    BaseConfig,
    ConnectionConfig,
    HealthConfig,
    LoggingConfig,
    PoolConfig,
    StorageConfig,
    SystemConfig,
    VaultConfig,
    format_validation_errors,
)

__all__ = [
    "REDACTION_MARKER",
    "BaseConfig",
    "ConnectionConfig",
    "HealthConfig",
    "LoggingConfig",
    "PoolConfig",
    "StorageConfig",
    "SystemConfig",
    "VaultConfig",
    "format_validation_errors",
]
