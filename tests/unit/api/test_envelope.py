"""Unit tests for the response envelope."""

from schemasmith.api.envelope import Envelope, ErrorDetail
from schemasmith.core.exceptions import (
    ErrorKind,
    NotConnectedError,
    QueryError,
    ValidationError,
)


class TestErrorDetail:
    """Test ErrorDetail.from_exception."""

    def test_plain_error(self):
        """Test kind, message and code are copied."""
        detail = ErrorDetail.from_exception(ValidationError("Bad name", code="INVALID_IDENTIFIER"))

        assert detail.kind is ErrorKind.INVALID_CONFIG
        assert detail.message == "Bad name"
        assert detail.code == "INVALID_IDENTIFIER"
        assert detail.engine_code is None

    def test_query_error_details(self):
        """Test engine details are carried for query failures."""
        error = QueryError("Token unknown", engine_code=-104, line=3, procedure="SP_X")

        detail = ErrorDetail.from_exception(error)

        assert detail.kind is ErrorKind.QUERY_FAILED
        assert detail.engine_code == -104
        assert detail.line == 3
        assert detail.procedure == "SP_X"


class TestEnvelope:
    """Test Envelope construction and serialization."""

    def test_ok(self):
        """Test successful envelopes carry data and no error."""
        envelope = Envelope.ok({"rows": []}, "Done")

        assert envelope.success is True
        assert envelope.to_dict() == {"success": True, "data": {"rows": []}, "message": "Done"}

    def test_failure(self):
        """Test failed envelopes serialize the kind as its name."""
        envelope = Envelope.failure(NotConnectedError("Connection is not active"))

        assert envelope.success is False
        assert envelope.data is None
        assert envelope.to_dict() == {
            "success": False,
            "message": "Connection is not active",
            "error": {
                "kind": "NotConnected",
                "message": "Connection is not active",
                "code": "NotConnectedError",
            },
        }
