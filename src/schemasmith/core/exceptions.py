"""SchemaSmith exception hierarchy.

This module defines the exception hierarchy shared by the session manager,
query executor, metadata reader and DDL synthesizer. Every exception carries
a machine-distinguishable kind, an error code, free-form context and an
optional cause so the service boundary can turn it into a uniform envelope.

Classes:
    ErrorKind: Kinds reported to callers in error envelopes
    SchemaSmithException: Base exception for all SchemaSmith operations
    ConfigurationError: Invalid or missing configuration
    NotFoundError: Unknown connection id or catalog object
    DatabaseConnectionError: Engine unreachable or authentication rejected
    NotConnectedError: Operation attempted on a disconnected session
    QueryError: Engine rejected a statement
    DecryptionError: Corrupt or foreign-key-encrypted secret
    PersistenceError: Durable store write failure

Example:
    >>> try:
    ...     await manager.connect("connection_1")
    ... except DatabaseConnectionError as e:
    ...     logger.error("Connection failed", error_code=e.code, context=e.context)
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Error kinds reported in error envelopes."""

    INVALID_CONFIG = "InvalidConfig"
    NOT_FOUND = "NotFound"
    CONNECTION_REFUSED = "ConnectionRefused"
    NOT_CONNECTED = "NotConnected"
    QUERY_FAILED = "QueryFailed"
    DECRYPTION_FAILED = "DecryptionFailed"
    PERSISTENCE_FAILED = "PersistenceFailed"
    INTERNAL = "Internal"


class SchemaSmithException(Exception):
    """Base exception for all SchemaSmith operations.

    Attributes:
        kind: Error kind reported to callers
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise SchemaSmithException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"connection_id": "connection_1"}
        ... )
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize SchemaSmith exception.

        Args:
            message: Human-readable error description
            code: Unique error code for categorization (defaults to class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[Exception] = cause

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(SchemaSmithException):
    """Configuration related errors.

    Raised when a connection configuration or request is missing required
    fields, names an unsupported engine, or fails validation.
    """

    kind = ErrorKind.INVALID_CONFIG


class ValidationError(ConfigurationError):
    """Data validation errors.

    Raised when input data fails validation rules, such as an unsafe SQL
    identifier or an unsupported column type.
    """


class NotFoundError(SchemaSmithException):
    """Unknown connection id or catalog object."""

    kind = ErrorKind.NOT_FOUND


class DatabaseConnectionError(SchemaSmithException):
    """Database connection establishment errors.

    Raised when the engine is unreachable, rejects authentication, or a
    liveness check fails while opening a pool.
    """

    kind = ErrorKind.CONNECTION_REFUSED


class NotConnectedError(SchemaSmithException):
    """Operation attempted on a session without a live pool."""

    kind = ErrorKind.NOT_CONNECTED


class QueryError(SchemaSmithException):
    """SQL statement execution errors.

    Carries the engine's own error code and, when the engine message
    provides them, the line and routine where the failure happened.
    """

    kind = ErrorKind.QUERY_FAILED

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        engine_code: Optional[Any] = None,
        line: Optional[int] = None,
        procedure: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code, context=context, cause=cause)
        self.engine_code = engine_code
        self.line = line
        self.procedure = procedure

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "engine_code": self.engine_code,
                "line": self.line,
                "procedure": self.procedure,
            }
        )
        return data


class MetadataError(QueryError):
    """Catalog introspection query failures."""


class SecurityError(SchemaSmithException):
    """Credential vault errors."""

    kind = ErrorKind.DECRYPTION_FAILED


class DecryptionError(SecurityError):
    """Raised when a stored secret cannot be authenticated or decrypted."""


class PersistenceError(SchemaSmithException):
    """Raised when a durable store (registry file, key file) cannot be written."""

    kind = ErrorKind.PERSISTENCE_FAILED


class ErrorCodes:
    """Common error codes for SchemaSmith exceptions."""

    # Configuration errors
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    ENGINE_UNSUPPORTED = "ENGINE_UNSUPPORTED"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"

    # Lookup errors
    CONNECTION_NOT_FOUND = "CONNECTION_NOT_FOUND"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    OBJECT_EXISTS = "OBJECT_EXISTS"

    # Connection errors
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    AUTH_FAILED = "AUTH_FAILED"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    NOT_CONNECTED = "NOT_CONNECTED"
    PING_FAILED = "PING_FAILED"

    # Query errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"
    METADATA_EXTRACTION_FAILED = "METADATA_EXTRACTION_FAILED"
    OPERATION_TIMEOUT = "OPERATION_TIMEOUT"

    # Vault errors
    DECRYPTION_FAILED = "DECRYPTION_FAILED"
    KEY_INVALID = "KEY_INVALID"
    KEY_PERSIST_FAILED = "KEY_PERSIST_FAILED"

    # Persistence errors
    REGISTRY_WRITE_FAILED = "REGISTRY_WRITE_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


def create_error_from_exception(
    exc: Exception,
    message: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> SchemaSmithException:
    """Create SchemaSmith exception from generic exception.

    Args:
        exc: Original exception to convert
        message: Override message (uses original if not provided)
        code: Error code to assign
        context: Additional context information

    Returns:
        Appropriate SchemaSmith exception type

    Example:
        >>> try:
        ...     path.write_text(data)
        ... except OSError as e:
        ...     raise create_error_from_exception(e, code=ErrorCodes.REGISTRY_WRITE_FAILED)
    """
    if isinstance(exc, SchemaSmithException):
        return exc

    error_message = message or str(exc) or type(exc).__name__
    error_context = context or {}

    exception_mapping = {
        ConnectionRefusedError: DatabaseConnectionError,
        OSError: PersistenceError,
        KeyError: NotFoundError,
        ValueError: ValidationError,
        TypeError: ValidationError,
    }

    exception_class = SchemaSmithException
    for source_type, target_type in exception_mapping.items():
        if isinstance(exc, source_type):
            exception_class = target_type
            break

    return exception_class(
        error_message,
        code=code or ErrorCodes.INTERNAL_ERROR,
        context=error_context,
        cause=exc,
    )
