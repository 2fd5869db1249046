"""Firebird dialect built on ``firebird-driver``.

The driver is synchronous, so every call runs in a worker thread via
``asyncio.to_thread``; a single physical connection is only ever used by
the task that borrowed it from the pool.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...config.models import ConnectionConfig
from ...core.exceptions import DatabaseConnectionError, ErrorCodes
from ...ddl.profiles import FIREBIRD_PROFILE
from ...metadata.queries import FirebirdCatalog
from ..models import ServerInfo, StatementResult
from .base import Dialect

SERVER_INFO_QUERY = """
SELECT rdb$get_context('SYSTEM', 'ENGINE_VERSION') AS ENGINE_VERSION,
       MON$ODS_MAJOR AS ODS_MAJOR,
       MON$ODS_MINOR AS ODS_MINOR,
       MON$SQL_DIALECT AS SQL_DIALECT
FROM MON$DATABASE
"""


def _read_value(value: Any) -> Any:
    # BLOB columns above the driver's stream threshold arrive as readers
    if hasattr(value, "read") and callable(value.read):
        try:
            return value.read()
        finally:
            close = getattr(value, "close", None)
            if callable(close):
                close()
    return value


def _type_name(type_code: Any) -> str:
    return getattr(type_code, "__name__", str(type_code))


class FirebirdDialect(Dialect):
    """Dialect for Firebird servers (``RDB$`` catalog)."""

    name = "firebird"
    display_name = "Firebird"
    default_port = 3050
    ping_query = "SELECT 1 AS TEST FROM RDB$DATABASE"

    def __init__(self) -> None:
        super().__init__(FirebirdCatalog(), FIREBIRD_PROFILE)

    def build_dsn(self, config: ConnectionConfig) -> str:
        return f"{config.host}/{self.port_for(config)}:{config.database}"

    def connect_arguments(self, config: ConnectionConfig) -> Dict[str, Any]:
        options = config.options
        arguments: Dict[str, Any] = {
            "user": config.username,
            "password": config.password_value,
            "charset": options.get("charset", "UTF8"),
        }
        if options.get("role"):
            arguments["role"] = options["role"]
        return arguments

    async def connect(self, config: ConnectionConfig) -> Any:
        from firebird import driver

        dsn = self.build_dsn(config)
        try:
            return await asyncio.to_thread(driver.connect, dsn, **self.connect_arguments(config))
        except driver.DatabaseError as e:
            raise DatabaseConnectionError(
                f"Firebird connection failed: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={"host": config.host, "database": config.database},
                cause=e,
            ) from e

    async def close_connection(self, conn: Any) -> None:
        await asyncio.to_thread(conn.close)

    def _run_sync(
        self, conn: Any, statement: str, parameters: Optional[Sequence[Any]]
    ) -> StatementResult:
        cursor = conn.cursor()
        try:
            cursor.execute(statement, list(parameters or []))
            description: Optional[List[Tuple[str, str]]] = None
            rows: List[Dict[str, Any]] = []

            if cursor.description:
                description = [(item[0], _type_name(item[1])) for item in cursor.description]
                names = [name for name, _ in description]
                for record in cursor.fetchall():
                    rows.append({name: _read_value(value) for name, value in zip(names, record)})

            rowcount = getattr(cursor, "affected_rows", -1)
            conn.commit()
            return StatementResult(rows=rows, description=description, rowcount=rowcount)
        except BaseException:
            if not conn.is_closed():
                conn.rollback()
            raise
        finally:
            cursor.close()

    async def run(
        self, conn: Any, statement: str, parameters: Optional[Sequence[Any]] = None
    ) -> StatementResult:
        return await asyncio.to_thread(self._run_sync, conn, statement, parameters)

    async def cancel(self, conn: Any) -> None:
        cancel_operation = getattr(conn, "cancel_operation", None)
        if cancel_operation is None:
            self.logger.warning("Driver connection has no cancel hook")
            return
        await asyncio.to_thread(cancel_operation)

    async def server_info(self, conn: Any) -> ServerInfo:
        result = await self.run(conn, SERVER_INFO_QUERY)
        row = result.rows[0] if result.rows else {}
        return ServerInfo(
            version=row.get("ENGINE_VERSION"),
            edition=self.display_name,
            details={
                "ods_version": f"{row.get('ODS_MAJOR')}.{row.get('ODS_MINOR')}",
                "sql_dialect": row.get("SQL_DIALECT"),
            },
        )

    def engine_error_code(self, exc: BaseException) -> Optional[Any]:
        sqlcode = getattr(exc, "sqlcode", None)
        if sqlcode:
            return sqlcode
        gds_codes = getattr(exc, "gds_codes", None)
        return gds_codes[0] if gds_codes else None
