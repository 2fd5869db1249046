"""Configuration models for SchemaSmith.

This module defines the Pydantic models for every configuration object in
SchemaSmith: the per-connection records managed by the registry and the
system-wide settings that wire the vault, storage, health monitor and
logging together.

Classes:
    BaseConfig: Base configuration class
    PoolConfig: Connection pool configuration
    ConnectionConfig: One registered database connection
    VaultConfig: Credential vault key location
    StorageConfig: Registry persistence location
    HealthConfig: Health monitor schedule
    LoggingConfig: Logging configuration
    SystemConfig: System-wide configuration

Example:
    >>> config = ConnectionConfig(
    ...     name="Inventory",
    ...     engine="firebird",
    ...     host="db.example.com",
    ...     database="/data/inventory.fdb",
    ...     username="SYSDBA",
    ...     password="masterkey",
    ... )
    >>> config.redacted()["password"]
    '***'
"""

import os
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    field_validator,
    model_validator,
)

from ..core.exceptions import ConfigurationError, ErrorCodes

REDACTION_MARKER = "***"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class BaseConfig(BaseModel):
    """Base configuration class with common functionality.

    Provides environment variable resolution and secret masking for
    configuration objects. Models holding caller-supplied data set
    ``resolve_environment`` to False so their values are taken literally.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
        use_enum_values=True,
    )

    resolve_environment: ClassVar[bool] = True

    @model_validator(mode="before")
    @classmethod
    def resolve_environment_variables(cls, values: Any) -> Any:
        """Resolve environment variables in configuration values.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.

        Args:
            values: Configuration values

        Returns:
            Values with environment variables resolved
        """
        if not cls.resolve_environment:
            return values

        def replace_env_var(match: "re.Match[str]") -> str:
            var_spec = match.group(1)
            if ":" in var_spec:
                var_name, default = var_spec.split(":", 1)
            else:
                var_name, default = var_spec, ""
            return os.getenv(var_name, default)

        def resolve_value(value: Any) -> Any:
            if isinstance(value, str):
                return _ENV_PATTERN.sub(replace_env_var, value)
            if isinstance(value, dict):
                return {k: resolve_value(v) for k, v in value.items()}
            if isinstance(value, list):
                return [resolve_value(item) for item in value]
            return value

        if isinstance(values, dict):
            return {key: resolve_value(value) for key, value in values.items()}
        return values

    def to_dict(self, *, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Args:
            mask_secrets: Whether to mask secret values

        Returns:
            Dictionary representation of configuration
        """
        data = self.model_dump()

        def convert(value: Any) -> Any:
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            if isinstance(value, list):
                return [convert(item) for item in value]
            if isinstance(value, SecretStr):
                return REDACTION_MARKER if mask_secrets else value.get_secret_value()
            if isinstance(value, Path):
                return str(value)
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, timedelta):
                return value.total_seconds()
            return value

        return convert(data)


class PoolConfig(BaseConfig):
    """Connection pool configuration.

    Attributes:
        min_size: Connections opened when the pool is created
        max_size: Upper bound on physical connections per session
        acquire_timeout: Seconds to wait for a free connection
        idle_timeout: Seconds before an idle connection is closed
        max_lifetime: Seconds before a connection is recycled
        maintenance_interval: Seconds between pool maintenance passes
    """

    min_size: int = Field(1, ge=0, description="Minimum pool size")
    max_size: PositiveInt = Field(5, description="Maximum pool size")
    acquire_timeout: PositiveFloat = Field(30.0, description="Acquire timeout in seconds")
    idle_timeout: PositiveInt = Field(300, description="Idle timeout in seconds")
    max_lifetime: PositiveInt = Field(3600, description="Connection lifetime in seconds")
    maintenance_interval: PositiveInt = Field(60, description="Maintenance interval in seconds")

    @model_validator(mode="after")
    def validate_sizes(self) -> "PoolConfig":
        """Ensure max_size >= min_size."""
        if self.max_size < self.min_size:
            raise ValueError(
                f"max_size ({self.max_size}) must be >= min_size ({self.min_size})"
            )
        return self


class ConnectionConfig(BaseConfig):
    """A registered database connection.

    The password is held in memory as a ``SecretStr`` and only ever leaves
    the process encrypted by the credential vault. ``id`` is assigned once
    when the connection is added and cannot be reassigned afterwards.

    Attributes:
        id: Immutable connection identifier
        name: Display name
        engine: Catalog dialect (firebird or mssql)
        host: Server host name (accepts ``server`` as an alias)
        database: Database name or path
        username: Login name
        password: Login password
        port: Server port (dialect default when omitted)
        options: Engine-specific connection options
        is_active: Whether the connection currently has a live session
        last_connected: Timestamp of the last successful connect
        version: Engine version discovered on connect
        edition: Engine edition discovered on connect
        connect_timeout: Seconds allowed to open a connection
        query_timeout: Default per-statement timeout in seconds
    """

    # User input and registry records; ${...} is literal text here
    resolve_environment: ClassVar[bool] = False

    id: Optional[str] = Field(None, frozen=True, description="Connection identifier")
    name: str = Field(..., description="Display name")
    engine: Literal["firebird", "mssql"] = Field("firebird", description="Catalog dialect")
    host: str = Field(
        ...,
        validation_alias=AliasChoices("host", "server"),
        description="Server host",
    )
    database: str = Field(..., description="Database name or path")
    username: Optional[str] = Field(None, description="Login name")
    password: Optional[SecretStr] = Field(None, description="Login password")
    port: Optional[PositiveInt] = Field(None, description="Server port")
    options: Dict[str, Any] = Field(default_factory=dict, description="Engine options")
    is_active: bool = Field(False, description="Live session flag")
    last_connected: Optional[datetime] = Field(None, description="Last connect time")
    version: Optional[str] = Field(None, description="Engine version")
    edition: Optional[str] = Field(None, description="Engine edition")
    connect_timeout: PositiveFloat = Field(30.0, description="Connect timeout in seconds")
    query_timeout: Optional[PositiveFloat] = Field(None, description="Query timeout in seconds")

    @field_validator("name", "host", "database")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Reject blank required fields.

        Raises:
            ValueError: If the value is empty or whitespace
        """
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @property
    def password_value(self) -> str:
        """Plaintext password, or an empty string when none is set."""
        return self.password.get_secret_value() if self.password else ""

    def redacted(self) -> Dict[str, Any]:
        """Return a caller-safe view with the password replaced by a marker.

        Returns:
            Dictionary with ``password`` set to the redaction marker, or None
            when no password is stored
        """
        data = self.model_dump(mode="json", exclude={"password"})
        data["password"] = REDACTION_MARKER if self.password_value else None
        return data

    def to_record(self, encrypted_password: str) -> Dict[str, Any]:
        """Build the persisted record for this connection.

        Args:
            encrypted_password: Vault ciphertext, or an empty string

        Returns:
            JSON-serializable record without any plaintext secret
        """
        data = self.model_dump(mode="json", exclude={"password", "is_active"})
        data["password"] = encrypted_password
        return data


class VaultConfig(BaseConfig):
    """Credential vault configuration.

    Attributes:
        key_path: File holding the raw master key bytes
    """

    key_path: Path = Field(Path("data/master.key"), description="Master key file")


class StorageConfig(BaseConfig):
    """Registry persistence configuration.

    Attributes:
        connections_path: JSON file holding the connection records
    """

    connections_path: Path = Field(
        Path("data/connections.json"), description="Connection registry file"
    )


class HealthConfig(BaseConfig):
    """Health monitor configuration.

    Attributes:
        enabled: Whether the recurring health sweep runs
        interval: Seconds between sweeps
        ping_timeout: Per-session timeout for lock acquisition and ping
    """

    enabled: bool = Field(True, description="Enable recurring health checks")
    interval: PositiveFloat = Field(60.0, description="Seconds between sweeps")
    ping_timeout: PositiveFloat = Field(5.0, description="Per-ping timeout in seconds")


class LoggingConfig(BaseConfig):
    """Logging configuration.

    Attributes:
        level: Log level
        format: Log format (json, text)
        file_path: Log file path
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        console_output: Enable console output
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )
    format: Literal["json", "text"] = Field("json", description="Log format")
    file_path: Optional[Path] = Field(None, description="Log file path")
    max_file_size: PositiveInt = Field(10485760, description="Max file size in bytes (10MB)")
    backup_count: int = Field(5, ge=0, description="Number of backup files")
    console_output: bool = Field(True, description="Enable console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class SystemConfig(BaseConfig):
    """System-wide configuration.

    Attributes:
        app_name: Application name
        environment: Deployment environment
        vault: Credential vault configuration
        storage: Registry persistence configuration
        health: Health monitor configuration
        pool: Default pool configuration for every session
        logging: Logging configuration

    Example:
        >>> config = SystemConfig.from_file("schemasmith.yaml")
        >>> config.storage.connections_path
        PosixPath('data/connections.json')
    """

    app_name: str = Field("SchemaSmith", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        "development", description="Deployment environment"
    )
    vault: VaultConfig = Field(default_factory=VaultConfig, description="Vault config")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage config")
    health: HealthConfig = Field(default_factory=HealthConfig, description="Health config")
    pool: PoolConfig = Field(default_factory=PoolConfig, description="Pool config")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging config")

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SystemConfig":
        """Build configuration from a dictionary.

        Raises:
            ConfigurationError: If the data fails validation
        """
        try:
            return cls.model_validate(data)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid system configuration: {e}",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                cause=e,
            ) from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SystemConfig":
        """Load configuration from a YAML file.

        Args:
            path: YAML file path

        Returns:
            Validated system configuration

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                code=ErrorCodes.CONFIG_NOT_FOUND,
                context={"path": str(config_path)},
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot read configuration file: {e}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(config_path)},
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration file must contain a mapping",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(config_path)},
            )

        return cls.from_dict(data)


def format_validation_errors(error: Any) -> List[str]:
    """Flatten a pydantic ValidationError into ``field: message`` strings."""
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "config"
        messages.append(f"{location}: {item.get('msg', 'invalid value')}")
    return messages
