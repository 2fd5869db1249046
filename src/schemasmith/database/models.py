"""Runtime models for sessions and query results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..config.models import ConnectionConfig
from ..core.exceptions import ConfigurationError, ErrorCodes
from ..core.utils import utc_now
from .pool import ConnectionPool


class SessionState(str, Enum):
    """Lifecycle state of a session.

    ``CONNECTING`` is transient and only visible to the task that set it.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class StatementResult:
    """Raw outcome of one statement as returned by a dialect.

    Attributes:
        rows: Rows as dictionaries keyed by column name
        description: ``(name, type_name)`` pairs from the driver, when it
            supplies a result descriptor
        rowcount: Driver-reported affected row count, -1 when unknown
    """

    rows: List[Dict[str, Any]] = field(default_factory=list)
    description: Optional[List[Tuple[str, str]]] = None
    rowcount: int = -1


@dataclass
class QueryResult:
    """Normalized query result, independent of the driver."""

    rows: List[Dict[str, Any]]
    row_count: int
    columns: List[Dict[str, str]]
    elapsed_ms: float
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": self.rows,
            "row_count": self.row_count,
            "columns": self.columns,
            "elapsed_ms": self.elapsed_ms,
            "warnings": self.warnings,
        }


@dataclass
class ServerInfo:
    """Engine details discovered on connect.

    Attributes:
        version: Engine version string
        edition: Engine edition or product name
        product_level: Service pack or release level, when reported
        details: Additional engine specific values
    """

    version: Optional[str] = None
    edition: Optional[str] = None
    product_level: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "edition": self.edition,
            "product_level": self.product_level,
            **self.details,
        }


@dataclass
class Session:
    """Runtime state of one registered connection.

    A session exclusively owns its pool. ``is_connected`` is true only
    while the state is connected and a pool handle is present.
    """

    config: ConnectionConfig
    pool: Optional[ConnectionPool] = None
    state: SessionState = SessionState.DISCONNECTED
    last_used: Optional[datetime] = None
    last_ping: Optional[datetime] = None

    @property
    def id(self) -> str:
        """Registry id of the connection.

        Raises:
            ConfigurationError: If the config was never registered
        """
        if self.config.id is None:
            raise ConfigurationError(
                "Session config has no connection id",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"name": self.config.name},
            )
        return self.config.id

    @property
    def is_connected(self) -> bool:
        return self.state is SessionState.CONNECTED and self.pool is not None

    def touch(self) -> None:
        self.last_used = utc_now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.config.redacted(),
            "is_connected": self.is_connected,
            "state": self.state.value,
            "last_used": self.last_used.isoformat() if self.last_used else None,
            "last_ping": self.last_ping.isoformat() if self.last_ping else None,
            "pool": self.pool.get_stats() if self.pool is not None else None,
        }


@dataclass
class HealthReport:
    """Outcome of one health sweep.

    Attributes:
        healthy: Ids whose ping succeeded
        demoted: Id to failure message for sessions dropped to disconnected
        skipped: Ids whose lock could not be taken within the timeout
    """

    healthy: List[str] = field(default_factory=list)
    demoted: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthy": list(self.healthy),
            "demoted": dict(self.demoted),
            "skipped": list(self.skipped),
        }
