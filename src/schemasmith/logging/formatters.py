"""Log formatters for SchemaSmith logging system.

This module provides the JSON and text formatters attached to the stdlib
handlers created by the logger factory. Both formatters mask the values of
password-like fields before writing anything out.

Classes:
    JSONFormatter: JSON format for structured logging
    TextFormatter: Human-readable text format

Functions:
    get_formatter: Formatter lookup by name
    redact_secrets: Mask password-like keys in a mapping

Example:
    >>> formatter = JSONFormatter()
    >>> handler.setFormatter(formatter)
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional

REDACTED = "***"

SECRET_KEYS = frozenset({"password", "pwd", "secret", "master_key", "token", "credentials"})

_STANDARD_RECORD_FIELDS = frozenset(
    {
        "name", "msg", "args", "levelname", "levelno", "pathname",
        "filename", "module", "lineno", "funcName", "created",
        "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "message", "exc_info", "exc_text",
        "stack_info", "taskName",
    }
)


def is_secret_key(key: str) -> bool:
    """Check whether a field name holds a credential."""
    lowered = key.lower()
    return lowered in SECRET_KEYS or lowered.endswith("_password")


def redact_secrets(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` with password-like values masked.

    Nested mappings are redacted recursively.

    Example:
        >>> redact_secrets({"user": "SYSDBA", "password": "masterkey"})
        {'user': 'SYSDBA', 'password': '***'}
    """
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if is_secret_key(str(key)) and value not in (None, ""):
            result[key] = REDACTED
        elif isinstance(value, Mapping):
            result[key] = redact_secrets(value)
        else:
            result[key] = value
    return result


def _extra_fields(record: logging.LogRecord, exclude: Iterable[str] = ()) -> Dict[str, Any]:
    excluded = set(exclude)
    extras = {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_FIELDS and key not in excluded
    }
    return redact_secrets(extras)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured log output.

    Example:
        {
            "timestamp": "2026-03-07T10:30:45.123456",
            "level": "INFO",
            "logger": "schemasmith.database.session",
            "message": "Session connected",
            "connection_id": "connection_6f1c...",
            "duration_ms": 245.7
        }
    """

    def __init__(
        self,
        *,
        timestamp_format: str = "iso",
        include_module: bool = False,
        include_line_number: bool = False,
        exclude_fields: Optional[list] = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            timestamp_format: Timestamp format ("iso" or "unix")
            include_module: Include module name
            include_line_number: Include line number
            exclude_fields: List of fields to exclude from output
        """
        super().__init__()
        self.timestamp_format = timestamp_format
        self.include_module = include_module
        self.include_line_number = include_line_number
        self.exclude_fields = set(exclude_fields or [])

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: Dict[str, Any] = {"message": record.getMessage()}

        if "timestamp" not in self.exclude_fields:
            if self.timestamp_format == "unix":
                log_data["timestamp"] = record.created
            else:
                log_data["timestamp"] = datetime.fromtimestamp(record.created).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name

        if self.include_module:
            log_data["module"] = record.module
        if self.include_line_number:
            log_data["line"] = record.lineno

        if record.exc_info and "exception" not in self.exclude_fields:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(_extra_fields(record, self.exclude_fields))

        return json.dumps(log_data, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """Human-readable text formatter.

    Example:
        2026-03-07 10:30:45.123 [INFO] schemasmith.database.session: Session connected (connection_id=connection_6f1c...)
    """

    COLOR_CODES = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def __init__(
        self,
        *,
        include_extras: bool = True,
        colors: bool = False,
        max_line_length: Optional[int] = None,
    ) -> None:
        """Initialize text formatter.

        Args:
            include_extras: Include extra fields in output
            colors: Enable colored level names
            max_line_length: Maximum line length (truncate if longer)
        """
        super().__init__()
        self.include_extras = include_extras
        self.colors = colors
        self.max_line_length = max_line_length

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text.

        Args:
            record: Log record to format

        Returns:
            Formatted log string
        """
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond:06d}"[:3]

        level = record.levelname
        if self.colors and level in self.COLOR_CODES:
            level = f"{self.COLOR_CODES[level]}[{level}]{self.COLOR_CODES['RESET']}"
        else:
            level = f"[{level}]"

        parts = [timestamp, level, f"{record.name}:", record.getMessage()]

        if self.include_extras:
            extras = [
                f"{key}={value}" if isinstance(value, str) else f"{key}={value!r}"
                for key, value in _extra_fields(record).items()
            ]
            if extras:
                parts.append("(" + ", ".join(extras) + ")")

        formatted = " ".join(parts)

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        if self.max_line_length and len(formatted) > self.max_line_length:
            formatted = formatted[: self.max_line_length - 3] + "..."

        return formatted


def get_formatter(format_type: str, **kwargs: Any) -> logging.Formatter:
    """Get formatter instance by type.

    Args:
        format_type: Formatter type ('json' or 'text')
        **kwargs: Additional formatter arguments

    Returns:
        Logging formatter instance

    Raises:
        ValueError: If format_type is not supported
    """
    format_type = format_type.lower()

    if format_type == "json":
        return JSONFormatter(**kwargs)
    if format_type == "text":
        return TextFormatter(**kwargs)
    raise ValueError(f"Unsupported formatter type: {format_type}")
