"""Query execution against registered sessions.

The executor resolves a connection id to its live pool, borrows a
connection, runs one statement through the session's dialect and
normalizes the outcome into a :class:`QueryResult`.

Example:
    >>> executor = QueryExecutor(registry, dialects)
    >>> result = await executor.execute("connection_1", "SELECT * FROM USERS WHERE ID = ?", [1])
    >>> result.columns
    [{'name': 'ID', 'type': 'int'}, {'name': 'NAME', 'type': 'str'}]
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from ..core.exceptions import (
    ErrorCodes,
    NotConnectedError,
    QueryError,
    SchemaSmithException,
)
from ..logging import get_logger, get_performance_logger
from .dialects.base import Dialect
from .dialects.registry import DialectRegistry
from .models import QueryResult, Session, StatementResult
from .registry import ConnectionRegistry


def _value_type(value: Any) -> str:
    return "null" if value is None else type(value).__name__


class QueryExecutor:
    """Runs parameterized statements on a session's pool.

    Concurrent calls for the same id are not serialized here; each borrows
    its own physical connection from the pool.
    """

    def __init__(self, registry: ConnectionRegistry, dialects: DialectRegistry) -> None:
        self.registry = registry
        self.dialects = dialects
        self.logger = get_logger("database.executor")
        self.perf_logger = get_performance_logger("database.executor")

    def session_for(self, connection_id: str) -> Session:
        """Return the connected session for ``connection_id``.

        Raises:
            NotFoundError: If the id is unknown
            NotConnectedError: If the session has no live pool
        """
        session = self.registry.get(connection_id)
        if not session.is_connected:
            raise NotConnectedError(
                f"Connection is not active: {connection_id}",
                code=ErrorCodes.NOT_CONNECTED,
                context={"connection_id": connection_id},
            )
        return session

    def dialect_for(self, connection_id: str) -> Dialect:
        return self.dialects.get(self.registry.get(connection_id).config.engine)

    async def execute(
        self,
        connection_id: str,
        statement: str,
        parameters: Optional[Sequence[Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> QueryResult:
        """Execute one statement.

        Args:
            connection_id: Registered connection id
            statement: SQL text with ``?`` placeholders
            parameters: Values bound to the placeholders
            timeout: Seconds before the statement is cancelled (defaults to
                the connection's ``query_timeout``)

        Returns:
            Normalized result with rows, row count, columns and elapsed time

        Raises:
            NotFoundError: If the id is unknown
            NotConnectedError: If the session has no live pool
            QueryError: If the engine rejects the statement or it times out
        """
        session = self.session_for(connection_id)
        dialect = self.dialects.get(session.config.engine)
        pool = session.pool
        if pool is None or getattr(pool, "is_closed", False):
            raise NotConnectedError(
                f"Connection is not active: {connection_id}",
                code=ErrorCodes.NOT_CONNECTED,
                context={"connection_id": connection_id},
            )

        if timeout is None:
            timeout = session.config.query_timeout

        async with dialect.acquire(pool) as conn:
            with self.perf_logger.measure("execute", connection_id=connection_id) as timer:
                result = await self._run(dialect, conn, statement, parameters, timeout)

        session.touch()
        columns = self._columns(result)
        if result.description is not None or result.rows:
            row_count = len(result.rows)
        else:
            row_count = max(result.rowcount, 0)

        return QueryResult(
            rows=result.rows,
            row_count=row_count,
            columns=columns,
            elapsed_ms=timer.duration_ms or 0.0,
        )

    async def _run(
        self,
        dialect: Dialect,
        conn: Any,
        statement: str,
        parameters: Optional[Sequence[Any]],
        timeout: Optional[float],
    ) -> StatementResult:
        params = list(parameters) if parameters is not None else None
        try:
            if timeout:
                return await asyncio.wait_for(dialect.run(conn, statement, params), timeout=timeout)
            return await dialect.run(conn, statement, params)
        except asyncio.TimeoutError as e:
            await self._cancel(dialect, conn)
            raise QueryError(
                f"Statement timed out after {timeout}s",
                code=ErrorCodes.OPERATION_TIMEOUT,
                context={"timeout": timeout},
                cause=e,
            ) from e
        except asyncio.CancelledError:
            await self._cancel(dialect, conn)
            raise
        except SchemaSmithException:
            raise
        except Exception as e:
            error = dialect.describe_error(e, statement)
            self.logger.warning(
                "Statement rejected by engine",
                engine=dialect.name,
                engine_code=error.engine_code,
                error=error.message,
            )
            raise error from e

    async def _cancel(self, dialect: Dialect, conn: Any) -> None:
        try:
            await asyncio.shield(dialect.cancel(conn))
        except Exception as e:
            self.logger.warning("Driver cancel hook failed", engine=dialect.name, error=str(e))

    @staticmethod
    def _columns(result: StatementResult) -> List[Dict[str, str]]:
        if result.description is not None:
            return [{"name": name, "type": type_name} for name, type_name in result.description]
        if not result.rows:
            return []
        first = result.rows[0]
        return [{"name": name, "type": _value_type(value)} for name, value in first.items()]
