"""Uniform response envelope returned by every service operation."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..core.exceptions import ErrorKind, QueryError, SchemaSmithException


class ErrorDetail(BaseModel):
    """Machine-distinguishable error carried by a failed envelope.

    Attributes:
        kind: Error kind callers branch on
        message: Human-readable description
        code: SchemaSmith error code
        engine_code: Engine error number for query failures
        line: Line reported by the engine for query failures
        procedure: Routine reported by the engine for query failures
    """

    kind: ErrorKind
    message: str
    code: Optional[str] = None
    engine_code: Optional[Any] = None
    line: Optional[int] = None
    procedure: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: SchemaSmithException) -> "ErrorDetail":
        detail = cls(kind=exc.kind, message=exc.message, code=exc.code)
        if isinstance(exc, QueryError):
            detail.engine_code = exc.engine_code
            detail.line = exc.line
            detail.procedure = exc.procedure
        return detail


class Envelope(BaseModel):
    """``{success, data, message, error}`` result of one operation.

    Example:
        >>> Envelope.ok({"rows": []}).to_dict()
        {'success': True, 'data': {'rows': []}}
        >>> Envelope.failure(NotConnectedError("Connection is not active")).error.kind
        <ErrorKind.NOT_CONNECTED: 'NotConnected'>
    """

    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[ErrorDetail] = Field(default=None)

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "Envelope":
        return cls(success=True, data=data, message=message)

    @classmethod
    def failure(cls, exc: SchemaSmithException) -> "Envelope":
        return cls(success=False, message=exc.message, error=ErrorDetail.from_exception(exc))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dictionary without empty fields."""
        return self.model_dump(mode="json", exclude_none=True)
