"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the SchemaSmith test suite. No test needs a live database: sessions run
against :class:`FakeDialect`, which keeps the real pooling and probing code
paths, and catalog tests use :class:`StubExecutor`.
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence, Tuple

import pytest
import structlog

from schemasmith.config.models import (
    ConnectionConfig,
    HealthConfig,
    PoolConfig,
    StorageConfig,
    VaultConfig,
)
from schemasmith.database.dialects.base import Dialect
from schemasmith.database.dialects.registry import DialectRegistry
from schemasmith.database.models import QueryResult, ServerInfo, StatementResult
from schemasmith.database.registry import ConnectionRegistry
from schemasmith.database.session import SessionManager
from schemasmith.ddl.profiles import FIREBIRD_PROFILE
from schemasmith.metadata.queries import FirebirdCatalog
from schemasmith.security.vault import CredentialVault

# Configure test logging to suppress noise during tests
structlog.configure(
    processors=[structlog.testing.LogCapture()],
    logger_factory=structlog.testing.ReturnLoggerFactory(),
    cache_logger_on_first_use=False,
)


class FakeConnection:
    """Physical connection handed out by :class:`FakeDialect`."""

    def __init__(self, number: int) -> None:
        self.number = number
        self.closed = False
        self.cancelled = False


class FakeDialect(Dialect):
    """In-memory Firebird dialect.

    Set ``reachable`` to False to make new connections and every statement
    fail as if the server went away. ``responses`` maps a statement
    substring to the rows it returns; ``errors`` maps a substring to the
    exception it raises.
    """

    name = "firebird"
    display_name = "Fake Firebird"
    default_port = 3050
    ping_query = "SELECT 1 FROM RDB$DATABASE"

    def __init__(self) -> None:
        super().__init__(FirebirdCatalog(), FIREBIRD_PROFILE)
        self.reachable = True
        self.responses: Dict[str, List[Dict[str, Any]]] = {}
        self.errors: Dict[str, Exception] = {}
        self.statements: List[Tuple[str, Optional[Sequence[Any]]]] = []
        self.connections: List[FakeConnection] = []
        self.delay: float = 0.0

    async def connect(self, config: ConnectionConfig) -> FakeConnection:
        if not self.reachable:
            raise ConnectionRefusedError(f"Connection refused by {config.host}")
        conn = FakeConnection(len(self.connections) + 1)
        self.connections.append(conn)
        return conn

    async def close_connection(self, conn: FakeConnection) -> None:
        conn.closed = True

    async def run(
        self, conn: FakeConnection, statement: str, parameters: Optional[Sequence[Any]] = None
    ) -> StatementResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.reachable:
            raise ConnectionResetError("Server closed the connection")
        self.statements.append((statement, parameters))
        for needle, error in self.errors.items():
            if needle in statement:
                raise error
        for needle, rows in self.responses.items():
            if needle in statement:
                names = list(rows[0]) if rows else []
                return StatementResult(
                    rows=[dict(row) for row in rows],
                    description=[(name, "VARCHAR") for name in names],
                    rowcount=len(rows),
                )
        return StatementResult(rows=[], description=None, rowcount=0)

    async def cancel(self, conn: FakeConnection) -> None:
        conn.cancelled = True

    async def server_info(self, conn: FakeConnection) -> ServerInfo:
        return ServerInfo(version="4.0.2", edition=self.display_name)


class StubExecutor:
    """Query executor double answering catalog queries from a table.

    Responses are keyed by the exact ``(sql, params)`` a catalog method
    returns, so tests register them with ``respond(catalog.columns("T"), rows)``.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.responses: Dict[Tuple[str, Tuple[Any, ...]], List[Dict[str, Any]]] = {}
        self.errors: Dict[Tuple[str, Tuple[Any, ...]], Exception] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    @property
    def catalog(self) -> Any:
        return self.dialect.catalog

    def respond(self, query: Tuple[str, List[Any]], rows: List[Dict[str, Any]]) -> None:
        sql, params = query
        self.responses[(sql, tuple(params))] = rows

    def fail(self, query: Tuple[str, List[Any]], error: Exception) -> None:
        sql, params = query
        self.errors[(sql, tuple(params))] = error

    def dialect_for(self, connection_id: str) -> Dialect:
        return self.dialect

    async def execute(
        self,
        connection_id: str,
        statement: str,
        parameters: Optional[Sequence[Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> QueryResult:
        key = (statement, tuple(parameters or ()))
        self.calls.append(key)
        if key in self.errors:
            raise self.errors[key]
        rows = [dict(row) for row in self.responses.get(key, [])]
        return QueryResult(rows=rows, row_count=len(rows), columns=[], elapsed_ms=0.0)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fake_dialect() -> FakeDialect:
    return FakeDialect()


@pytest.fixture
def dialects(fake_dialect: FakeDialect) -> DialectRegistry:
    registry = DialectRegistry()
    registry.register(fake_dialect)
    return registry


@pytest.fixture
def vault(temp_dir: Path) -> CredentialVault:
    return CredentialVault(VaultConfig(key_path=temp_dir / "master.key"))


@pytest.fixture
def registry(vault: CredentialVault, temp_dir: Path) -> ConnectionRegistry:
    return ConnectionRegistry(vault, StorageConfig(connections_path=temp_dir / "connections.json"))


@pytest.fixture
def pool_config() -> PoolConfig:
    return PoolConfig(min_size=1, max_size=2, acquire_timeout=1.0)


@pytest.fixture
def health_config() -> HealthConfig:
    return HealthConfig(enabled=False, interval=0.05, ping_timeout=0.5)


@pytest.fixture
def session_manager(
    registry: ConnectionRegistry,
    dialects: DialectRegistry,
    pool_config: PoolConfig,
    health_config: HealthConfig,
) -> Generator[SessionManager, None, None]:
    yield SessionManager(registry, dialects, pool_config, health_config)


@pytest.fixture
def connection_data() -> Dict[str, Any]:
    """Raw connection fields as a caller would submit them."""
    return {
        "name": "Sales",
        "engine": "firebird",
        "host": "db.example.com",
        "database": "/data/sales.fdb",
        "username": "SYSDBA",
        "password": "masterkey",
    }


@pytest.fixture
def add_connection(
    session_manager: SessionManager, connection_data: Dict[str, Any]
) -> Callable[..., Any]:
    """Register a connection and return its id."""

    async def add(**overrides: Any) -> str:
        config = await session_manager.add_connection({**connection_data, **overrides})
        return config.id

    return add


@pytest.fixture
def stub_executor(fake_dialect: FakeDialect) -> StubExecutor:
    return StubExecutor(fake_dialect)


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, isolated)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (live database required)"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(config.rootdir) / "tests")
        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)
        elif test_path.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
