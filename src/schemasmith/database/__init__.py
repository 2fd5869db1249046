"""SchemaSmith database layer.

This package owns everything that touches a live engine: the connection
registry and its persistence, per-session pools, the session lifecycle,
the health sweep and statement execution.

Key Features:
- Encrypted, atomically persisted connection registry
- One connection pool per connected session
- Idempotent connect and disconnect with per-id serialization
- Concurrent health pings that demote failing sessions
- Parameterized statement execution with timeout and cancellation

Supported Engines:
- Firebird (firebird-driver)
- Microsoft SQL Server (aioodbc)
"""

from .dialects import Dialect, DialectRegistry, FirebirdDialect, TransactSqlDialect
from .executor import QueryExecutor
from .health import HealthMonitor
from .models import HealthReport, QueryResult, ServerInfo, Session, SessionState, StatementResult
from .pool import ConnectionPool
from .registry import ConnectionRegistry
from .session import SessionManager

__all__ = [
    "ConnectionPool",
    "ConnectionRegistry",
    "Dialect",
    "DialectRegistry",
    "FirebirdDialect",
    "HealthMonitor",
    "HealthReport",
    "QueryExecutor",
    "QueryResult",
    "ServerInfo",
    "Session",
    "SessionManager",
    "SessionState",
    "StatementResult",
    "TransactSqlDialect",
]
