"""SchemaSmith core infrastructure.

This package provides the foundational pieces shared by every other
package: lifecycle base classes, the exception hierarchy and utilities.

Modules:
    base: Lifecycle base classes
    exceptions: Exception hierarchy and error kinds
    utils: Validation, timestamp and file helpers

Example:
    >>> from schemasmith.core import AsyncComponent
    >>> from schemasmith.core.exceptions import NotFoundError
    >>> from schemasmith.core.utils import atomic_write
"""

from .base import AsyncComponent, BaseComponent
from .exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DecryptionError,
    ErrorCodes,
    ErrorKind,
    MetadataError,
    NotConnectedError,
    NotFoundError,
    PersistenceError,
    QueryError,
    SchemaSmithException,
    SecurityError,
    ValidationError,
    create_error_from_exception,
)
from .utils import (
    ValidationUtils,
    atomic_write,
    generate_connection_id,
    utc_now,
)

__all__ = [
    # Base classes
    "AsyncComponent",
    "BaseComponent",

    # Exceptions
    "ConfigurationError",
    "DatabaseConnectionError",
    "DecryptionError",
    "ErrorCodes",
    "ErrorKind",
    "MetadataError",
    "NotConnectedError",
    "NotFoundError",
    "PersistenceError",
    "QueryError",
    "SchemaSmithException",
    "SecurityError",
    "ValidationError",
    "create_error_from_exception",

    # Utilities
    "ValidationUtils",
    "atomic_write",
    "generate_connection_id",
    "utc_now",
]
