"""Utility functions for SchemaSmith operations.

This module provides identifier validation, timestamps and file helpers
used by the registry, the vault and the DDL operation builders.

Functions:
    utc_now: Timezone-aware current timestamp
    generate_connection_id: Create a new immutable connection id
    atomic_write: Replace a file without exposing partial contents

Example:
    >>> ValidationUtils.validate_sql_identifier("ORDER_LINES")
    True
"""

import os
import re
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


class ValidationUtils:
    """Utility class for validation operations."""

    # Firebird and T-SQL both accept $ after the first character
    SQL_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")
    SQL_IDENTIFIER_MAX_LENGTH = 63

    RESERVED_WORDS = frozenset(
        {
            "select", "insert", "update", "delete", "from", "where", "join",
            "inner", "outer", "left", "right", "on", "group", "order", "by",
            "having", "union", "all", "distinct", "as", "and", "or", "not",
            "in", "exists", "null", "true", "false", "table", "index", "view",
            "database", "schema", "primary", "foreign", "key", "constraint",
            "create", "alter", "drop", "truncate", "grant", "revoke", "user",
            "procedure", "function", "trigger", "sequence", "package",
        }
    )

    @classmethod
    def validate_sql_identifier(cls, identifier: str) -> bool:
        """Validate a SQL identifier that will be interpolated into DDL.

        Identifiers cannot be bound as parameters, so anything built from
        user input must pass this check before it reaches a statement.

        Args:
            identifier: String to validate as SQL identifier

        Returns:
            True if SQL identifier is valid
        """
        if not identifier or len(identifier) > cls.SQL_IDENTIFIER_MAX_LENGTH:
            return False

        if not cls.SQL_IDENTIFIER_PATTERN.match(identifier):
            return False

        return identifier.lower() not in cls.RESERVED_WORDS


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_connection_id() -> str:
    """Generate a new connection id.

    Returns:
        Identifier of the form ``connection_<uuid4>``
    """
    return f"connection_{uuid.uuid4()}"


def atomic_write(path: Path, data: bytes, *, permissions: Optional[int] = None) -> None:
    """Write ``data`` to ``path`` through a temporary file and ``os.replace``.

    Readers never observe a partially written file. ``permissions`` is
    applied to the temporary file before the rename on POSIX systems.

    Args:
        path: Destination file
        data: File contents
        permissions: Optional mode bits, e.g. ``0o600``

    Raises:
        OSError: If the directory or file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if permissions is not None and os.name == "posix":
            os.chmod(temp_name, permissions)
        os.replace(temp_name, path)
    except OSError:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise

