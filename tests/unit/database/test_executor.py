"""Unit tests for the query executor."""

import pytest

from schemasmith.core.exceptions import (
    ErrorCodes,
    ErrorKind,
    NotConnectedError,
    NotFoundError,
    QueryError,
)
from schemasmith.database.executor import QueryExecutor
from schemasmith.database.models import StatementResult


@pytest.fixture
def executor(registry, dialects):
    return QueryExecutor(registry, dialects)


@pytest.fixture
async def connected_id(session_manager, add_connection):
    connection_id = await add_connection()
    await session_manager.connect(connection_id)
    yield connection_id
    await session_manager.close_all()


class TestQueryExecutor:
    """Test QueryExecutor.execute."""

    @pytest.mark.asyncio
    async def test_unknown_connection(self, executor):
        """Test unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await executor.execute("connection_missing", "SELECT 1 FROM RDB$DATABASE")

    @pytest.mark.asyncio
    async def test_not_connected(self, executor, add_connection):
        """Test a registered but disconnected session is rejected."""
        connection_id = await add_connection()

        with pytest.raises(NotConnectedError) as exc_info:
            await executor.execute(connection_id, "SELECT 1 FROM RDB$DATABASE")

        assert exc_info.value.kind is ErrorKind.NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_rows_and_columns(self, executor, connected_id, fake_dialect):
        """Test rows, row count and column descriptors."""
        fake_dialect.responses["FROM USERS"] = [
            {"ID": 1, "NAME": "ada"},
            {"ID": 2, "NAME": "grace"},
        ]

        result = await executor.execute(
            connected_id, "SELECT ID, NAME FROM USERS WHERE ID > ?", [0]
        )

        assert result.row_count == 2
        assert result.rows[1]["NAME"] == "grace"
        assert result.columns == [
            {"name": "ID", "type": "VARCHAR"},
            {"name": "NAME", "type": "VARCHAR"},
        ]
        assert result.elapsed_ms >= 0
        assert fake_dialect.statements[-1] == ("SELECT ID, NAME FROM USERS WHERE ID > ?", [0])

    @pytest.mark.asyncio
    async def test_statement_without_result_set(self, executor, connected_id):
        """Test statements without rows report an empty result."""
        result = await executor.execute(connected_id, "UPDATE USERS SET NAME = 'x'")

        assert result.rows == []
        assert result.columns == []
        assert result.row_count == 0

    @pytest.mark.asyncio
    async def test_driver_error_described(self, executor, connected_id, fake_dialect):
        """Test driver errors become QueryError with engine details."""
        fake_dialect.errors["usp_orders"] = RuntimeError(
            "Error in procedure 'USP_ORDERS' at line 12: column unknown"
        )

        with pytest.raises(QueryError) as exc_info:
            await executor.execute(connected_id, "EXECUTE PROCEDURE usp_orders")

        error = exc_info.value
        assert error.kind is ErrorKind.QUERY_FAILED
        assert error.code == ErrorCodes.QUERY_EXECUTION_FAILED
        assert error.procedure == "USP_ORDERS"
        assert error.line == 12

    @pytest.mark.asyncio
    async def test_timeout_cancels_statement(self, executor, connected_id, fake_dialect):
        """Test a timed out statement is cancelled and reported."""
        fake_dialect.delay = 0.5

        with pytest.raises(QueryError) as exc_info:
            await executor.execute(connected_id, "SELECT * FROM BIG_TABLE", timeout=0.05)

        assert exc_info.value.code == ErrorCodes.OPERATION_TIMEOUT
        assert any(conn.cancelled for conn in fake_dialect.connections)

    @pytest.mark.asyncio
    async def test_touches_session(self, executor, connected_id, registry):
        """Test a successful statement records last use."""
        before = registry.get(connected_id).last_used

        await executor.execute(connected_id, "SELECT 1 FROM RDB$DATABASE")

        assert registry.get(connected_id).last_used >= before


class TestColumnInference:
    """Test column descriptors without a driver description."""

    def test_columns_from_values(self):
        """Test types are inferred from the first row."""
        result = StatementResult(rows=[{"ID": 1, "NAME": None}], description=None)

        assert QueryExecutor._columns(result) == [
            {"name": "ID", "type": "int"},
            {"name": "NAME", "type": "null"},
        ]

    def test_no_rows_no_description(self):
        """Test empty results have no columns."""
        assert QueryExecutor._columns(StatementResult()) == []
