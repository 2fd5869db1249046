"""Microsoft SQL Server dialect built on ``aioodbc``."""

import asyncio
import weakref
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...config.models import ConnectionConfig
from ...core.exceptions import DatabaseConnectionError, ErrorCodes
from ...ddl.profiles import TRANSACT_SQL_PROFILE
from ...metadata.queries import TransactSqlCatalog
from ..models import ServerInfo, StatementResult
from .base import Dialect

DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"

SERVER_INFO_QUERY = """
SELECT CAST(SERVERPROPERTY('ProductVersion') AS NVARCHAR(128)) AS PRODUCT_VERSION,
       CAST(SERVERPROPERTY('Edition') AS NVARCHAR(128)) AS EDITION,
       CAST(SERVERPROPERTY('ProductLevel') AS NVARCHAR(128)) AS PRODUCT_LEVEL,
       @@SERVERNAME AS SERVER_NAME
"""


def _odbc_value(value: Any) -> str:
    text = str(value)
    if any(ch in text for ch in ";{}="):
        return "{" + text.replace("}", "}}") + "}"
    return text


def _yes_no(value: Any) -> str:
    if isinstance(value, str):
        return "yes" if value.lower() in ("yes", "true", "1", "mandatory") else "no"
    return "yes" if value else "no"


class TransactSqlDialect(Dialect):
    """Dialect for SQL Server (``sys.*`` catalog)."""

    name = "mssql"
    display_name = "Microsoft SQL Server"
    default_port = 1433
    ping_query = "SELECT 1 AS TEST"

    def __init__(self) -> None:
        super().__init__(TransactSqlCatalog(), TRANSACT_SQL_PROFILE)
        self._active_cursors: "weakref.WeakKeyDictionary[Any, Any]" = weakref.WeakKeyDictionary()

    def build_dsn(self, config: ConnectionConfig) -> str:
        options = config.options
        parts = [
            f"DRIVER={{{options.get('driver', DEFAULT_DRIVER)}}}",
            f"SERVER={config.host},{self.port_for(config)}",
            f"DATABASE={_odbc_value(config.database)}",
        ]
        if config.username:
            parts.append(f"UID={_odbc_value(config.username)}")
            parts.append(f"PWD={{{config.password_value.replace('}', '}}')}}}")
        else:
            parts.append("Trusted_Connection=yes")
        parts.append(f"Encrypt={_yes_no(options.get('encrypt', True))}")
        parts.append(
            f"TrustServerCertificate={_yes_no(options.get('trust_server_certificate', False))}"
        )
        if options.get("application_name"):
            parts.append(f"APP={_odbc_value(options['application_name'])}")
        return ";".join(parts)

    async def connect(self, config: ConnectionConfig) -> Any:
        import aioodbc
        import pyodbc

        try:
            return await aioodbc.connect(
                dsn=self.build_dsn(config),
                autocommit=True,
                timeout=int(config.connect_timeout),
            )
        except pyodbc.Error as e:
            raise DatabaseConnectionError(
                f"SQL Server connection failed: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={"host": config.host, "database": config.database},
                cause=e,
            ) from e

    async def close_connection(self, conn: Any) -> None:
        await conn.close()

    async def run(
        self, conn: Any, statement: str, parameters: Optional[Sequence[Any]] = None
    ) -> StatementResult:
        cursor = await conn.cursor()
        self._active_cursors[conn] = cursor
        try:
            await cursor.execute(statement, *(parameters or ()))
            description: Optional[List[Tuple[str, str]]] = None
            rows: List[Dict[str, Any]] = []

            if cursor.description:
                description = [
                    (item[0], getattr(item[1], "__name__", str(item[1])))
                    for item in cursor.description
                ]
                names = [name for name, _ in description]
                for record in await cursor.fetchall():
                    rows.append(dict(zip(names, record)))

            return StatementResult(rows=rows, description=description, rowcount=cursor.rowcount)
        finally:
            self._active_cursors.pop(conn, None)
            await cursor.close()

    async def cancel(self, conn: Any) -> None:
        cursor = self._active_cursors.get(conn)
        if cursor is None:
            return
        # pyodbc's Cursor.cancel is safe to call from another thread
        raw_cursor = getattr(cursor, "_impl", cursor)
        await asyncio.to_thread(raw_cursor.cancel)

    async def server_info(self, conn: Any) -> ServerInfo:
        result = await self.run(conn, SERVER_INFO_QUERY)
        row = result.rows[0] if result.rows else {}
        return ServerInfo(
            version=row.get("PRODUCT_VERSION"),
            edition=row.get("EDITION"),
            product_level=row.get("PRODUCT_LEVEL"),
            details={"server_name": row.get("SERVER_NAME")},
        )

    def engine_error_code(self, exc: BaseException) -> Optional[Any]:
        # pyodbc errors carry (sqlstate, message)
        args = getattr(exc, "args", ())
        if args and isinstance(args[0], str) and len(args) > 1:
            return args[0]
        return None
