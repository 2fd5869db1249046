"""Dialect capability set shared by every supported engine.

A dialect knows how to open and close physical connections, run one
statement, check liveness, read server details, cancel an in-flight
statement and turn driver errors into :class:`QueryError`. Session and
synthesis logic is written once against this interface.

Classes:
    Dialect: Abstract base for engine dialects
"""

import asyncio
import re
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, ClassVar, List, Optional, Sequence

from ...config.models import ConnectionConfig, PoolConfig
from ...core.exceptions import (
    DatabaseConnectionError,
    ErrorCodes,
    QueryError,
    SchemaSmithException,
)
from ...ddl.profiles import DDLProfile
from ...logging import get_logger
from ...metadata.queries import CatalogQueries
from ..models import ServerInfo, StatementResult
from ..pool import ConnectionPool

_PROCEDURE_PATTERN = re.compile(r"procedure '([^']+)'", re.IGNORECASE)
_LINE_PATTERN = re.compile(r"\bline:? (\d+)", re.IGNORECASE)


class Dialect(ABC):
    """Abstract base class for engine dialects.

    Subclasses implement the driver specific hooks (``connect``,
    ``close_connection``, ``run``, ``cancel``, ``server_info``); pooling,
    probing and error description are shared.

    Attributes:
        name: Engine identifier used in ``ConnectionConfig.engine``
        display_name: Human readable engine name
        default_port: Port used when the config does not name one
        ping_query: Trivial statement used as a liveness check
        catalog: Introspection queries for this engine
        profile: DDL rendering profile for this engine
    """

    name: ClassVar[str] = "unknown"
    display_name: ClassVar[str] = "Unknown"
    default_port: ClassVar[int] = 0
    ping_query: ClassVar[str] = "SELECT 1"

    def __init__(self, catalog: CatalogQueries, profile: DDLProfile) -> None:
        self.catalog = catalog
        self.profile = profile
        self.logger = get_logger(f"dialect.{self.name}")

    def port_for(self, config: ConnectionConfig) -> int:
        return config.port or self.default_port

    async def open_pool(self, config: ConnectionConfig, pool_config: PoolConfig) -> ConnectionPool:
        """Open a pool for ``config`` with ``min_size`` live connections.

        Raises:
            DatabaseConnectionError: If the engine is unreachable or rejects
                the credentials
        """
        pool = ConnectionPool.from_config(
            f"{self.name}.{config.id or config.name}",
            lambda: self._connect_with_timeout(config),
            self.close_connection,
            pool_config,
        )
        await pool.initialize()
        return pool

    async def close_pool(self, pool: ConnectionPool) -> None:
        await pool.close()

    async def _connect_with_timeout(self, config: ConnectionConfig) -> Any:
        try:
            return await asyncio.wait_for(self.connect(config), timeout=config.connect_timeout)
        except asyncio.TimeoutError as e:
            raise DatabaseConnectionError(
                f"Timed out connecting to {config.host} after {config.connect_timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context={"host": config.host, "engine": self.name},
                cause=e,
            ) from e

    @asynccontextmanager
    async def acquire(self, pool: ConnectionPool) -> AsyncIterator[Any]:
        """Borrow a connection from ``pool``.

        Raises:
            DatabaseConnectionError: If no connection can be obtained
        """
        async with pool.acquire() as conn:
            yield conn

    async def ping(self, conn: Any, timeout: Optional[float] = None) -> None:
        """Issue the liveness check on ``conn``.

        Raises:
            DatabaseConnectionError: If the ping fails or times out
        """
        try:
            if timeout is None:
                await self.run(conn, self.ping_query)
            else:
                await asyncio.wait_for(self.run(conn, self.ping_query), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise DatabaseConnectionError(
                f"Liveness check timed out after {timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context={"engine": self.name},
                cause=e,
            ) from e
        except SchemaSmithException as e:
            if isinstance(e, DatabaseConnectionError):
                raise
            raise DatabaseConnectionError(
                f"Liveness check failed: {e.message}",
                code=ErrorCodes.PING_FAILED,
                context={"engine": self.name},
                cause=e,
            ) from e
        except Exception as e:
            raise DatabaseConnectionError(
                f"Liveness check failed: {e}",
                code=ErrorCodes.PING_FAILED,
                context={"engine": self.name},
                cause=e,
            ) from e

    def describe_error(self, exc: BaseException, statement: Optional[str] = None) -> QueryError:
        """Convert a driver error into a :class:`QueryError`.

        The engine error code, line and routine name are extracted when the
        driver or its message provides them.
        """
        message = str(exc) or type(exc).__name__
        procedure_match = _PROCEDURE_PATTERN.search(message)
        line_match = _LINE_PATTERN.search(message)

        return QueryError(
            message,
            code=ErrorCodes.QUERY_EXECUTION_FAILED,
            context={"engine": self.name, "statement": (statement or "")[:200]},
            cause=exc if isinstance(exc, Exception) else None,
            engine_code=self.engine_error_code(exc),
            line=int(line_match.group(1)) if line_match else None,
            procedure=procedure_match.group(1) if procedure_match else None,
        )

    def engine_error_code(self, exc: BaseException) -> Optional[Any]:
        """Engine specific error number, when the driver exposes one."""
        return None

    def supported_types(self) -> List[str]:
        return list(self.profile.supported_type_names())

    @abstractmethod
    async def connect(self, config: ConnectionConfig) -> Any:
        """Open one physical connection."""

    @abstractmethod
    async def close_connection(self, conn: Any) -> None:
        """Close one physical connection."""

    @abstractmethod
    async def run(
        self, conn: Any, statement: str, parameters: Optional[Sequence[Any]] = None
    ) -> StatementResult:
        """Execute one statement with bound ``?`` parameters.

        Raises:
            Exception: The driver's own error; callers use
                :meth:`describe_error` to structure it
        """

    @abstractmethod
    async def cancel(self, conn: Any) -> None:
        """Ask the driver to abort the statement running on ``conn``."""

    @abstractmethod
    async def server_info(self, conn: Any) -> ServerInfo:
        """Read engine version and edition."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
