"""Session manager: connection lifecycle on top of the registry.

State machine per session::

    disconnected -> connecting -> connected -> disconnected

``connecting`` only exists while the per-id lock is held; any failure
while connecting closes the partially opened pool and returns the session
to ``disconnected``. Failed health pings demote a session straight to
``disconnected``; a later ``connect`` starts from scratch.

Example:
    >>> manager = SessionManager(registry, dialects, pool_config)
    >>> config = await manager.add_connection(ConnectionConfig(...))
    >>> await manager.connect(config.id)
    >>> await manager.disconnect(config.id)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config.models import ConnectionConfig, HealthConfig, PoolConfig, format_validation_errors
from ..core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    ErrorCodes,
    PersistenceError,
    SchemaSmithException,
)
from ..core.utils import generate_connection_id, utc_now
from ..logging import get_logger
from .dialects.base import Dialect
from .dialects.registry import DialectRegistry
from .models import HealthReport, ServerInfo, Session, SessionState
from .registry import ConnectionRegistry


class SessionManager:
    """Owns the open/close lifecycle of every session's pool.

    At most one live pool exists per connection id. Mutating operations on
    one id are serialized by the registry's per-id lock.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        dialects: DialectRegistry,
        pool_config: Optional[PoolConfig] = None,
        health_config: Optional[HealthConfig] = None,
    ) -> None:
        self.registry = registry
        self.dialects = dialects
        self.pool_config = pool_config or PoolConfig()
        self.health_config = health_config or HealthConfig()
        self.logger = get_logger("database.session")

    @asynccontextmanager
    async def _locked(self, connection_id: str) -> AsyncIterator[Session]:
        """Hold the per-id lock and yield the session registered under it.

        The session is looked up again once the lock is held, so a caller
        queued behind ``remove`` never acts on a deleted session.

        Raises:
            NotFoundError: If the id is unknown or was removed while waiting
        """
        self.registry.get(connection_id)
        async with self.registry.lock_for(connection_id):
            yield self.registry.get(connection_id)

    def validate_config(self, config: Any) -> ConnectionConfig:
        """Validate a connection config or raw mapping.

        Raises:
            ConfigurationError: If required fields are missing or the engine
                is not supported
        """
        if not isinstance(config, ConnectionConfig):
            try:
                config = ConnectionConfig.model_validate(config)
            except PydanticValidationError as e:
                raise ConfigurationError(
                    "Invalid connection configuration: " + "; ".join(format_validation_errors(e)),
                    code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                    cause=e,
                ) from e
        self.dialects.get(config.engine)
        return config

    async def _open_and_ping(self, dialect: Dialect, config: ConnectionConfig) -> Any:
        """Open a pool, ping it and read server details.

        Returns:
            ``(pool, server_info)``

        Raises:
            DatabaseConnectionError: If opening or probing fails; the pool is
                closed before the error propagates
        """
        pool = await dialect.open_pool(config, self.pool_config)
        try:
            async with dialect.acquire(pool) as conn:
                await dialect.ping(conn)
                info = await self._read_server_info(dialect, conn)
        except BaseException:
            await self._close_pool_quietly(dialect, pool, config.id)
            raise
        return pool, info

    async def _read_server_info(self, dialect: Dialect, conn: Any) -> ServerInfo:
        try:
            return await dialect.server_info(conn)
        except Exception as e:
            # Missing monitoring privileges must not fail the connect
            self.logger.warning("Could not read server info", engine=dialect.name, error=str(e))
            return ServerInfo()

    async def _close_pool_quietly(self, dialect: Dialect, pool: Any, connection_id: Optional[str]) -> None:
        try:
            await dialect.close_pool(pool)
        except Exception as e:
            self.logger.error("Error closing pool", connection_id=connection_id, error=str(e))

    async def test_connection(self, config: Any) -> Dict[str, Any]:
        """Open a transient pool, ping it and close it.

        The registry is not touched.

        Returns:
            Engine details (version, edition, product level)

        Raises:
            ConfigurationError: If the config is invalid
            DatabaseConnectionError: If the engine is unreachable or rejects
                the credentials
        """
        config = self.validate_config(config)
        dialect = self.dialects.get(config.engine)
        op = self.logger.log_operation_start("test_connection", engine=config.engine, host=config.host)

        try:
            pool, info = await self._open_and_ping(dialect, config)
        except SchemaSmithException as e:
            self.logger.log_operation_failure(op, e)
            raise
        except Exception as e:
            self.logger.log_operation_failure(op, e)
            raise DatabaseConnectionError(
                f"Connection test failed: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={"host": config.host, "engine": config.engine},
                cause=e,
            ) from e

        await self._close_pool_quietly(dialect, pool, config.id)
        self.logger.log_operation_success(op, version=info.version)
        return {"engine": config.engine, **info.to_dict()}

    async def add_connection(self, config: Any) -> ConnectionConfig:
        """Test a config and register it under a new id.

        Returns:
            The registered config (password redacted by callers)

        Raises:
            ConfigurationError: If the config is invalid
            DatabaseConnectionError: If the connection test fails
        """
        config = self.validate_config(config)
        info = await self.test_connection(config)

        config = config.model_copy(
            update={
                "id": generate_connection_id(),
                "is_active": False,
                "version": info.get("version"),
                "edition": info.get("edition"),
            }
        )
        await self.registry.upsert(config)
        await self.registry.save()
        self.logger.info("Connection added", connection_id=config.id, engine=config.engine)
        return config

    async def connect(self, connection_id: str) -> Session:
        """Open the session's pool if it is not already open.

        Raises:
            NotFoundError: If the id is unknown
            DatabaseConnectionError: If the pool cannot be opened or pinged
        """
        async with self._locked(connection_id) as session:
            if session.is_connected:
                return session

            config = session.config
            dialect = self.dialects.get(config.engine)
            session.state = SessionState.CONNECTING

            try:
                pool, info = await self._open_and_ping(dialect, config)
            except BaseException as e:
                session.state = SessionState.DISCONNECTED
                session.pool = None
                if isinstance(e, SchemaSmithException) or not isinstance(e, Exception):
                    self.logger.warning("Connect failed", connection_id=connection_id, error=str(e))
                    raise
                raise DatabaseConnectionError(
                    f"Failed to connect: {e}",
                    code=ErrorCodes.CONNECTION_REFUSED,
                    context={"connection_id": connection_id},
                    cause=e,
                ) from e

            now = utc_now()
            session.config = config.model_copy(
                update={
                    "is_active": True,
                    "last_connected": now,
                    "version": info.version or config.version,
                    "edition": info.edition or config.edition,
                }
            )
            session.pool = pool
            session.last_ping = now
            session.last_used = now
            session.state = SessionState.CONNECTED

        self.logger.info("Session connected", connection_id=connection_id, version=info.version)
        await self.registry.save()
        return session

    async def disconnect(self, connection_id: str) -> Session:
        """Close the session's pool. Disconnecting twice is a no-op.

        Raises:
            NotFoundError: If the id is unknown
        """
        async with self._locked(connection_id) as session:
            was_connected = await self._disconnect_locked(session)
        if was_connected:
            await self.registry.save()
        return session

    async def _disconnect_locked(self, session: Session) -> bool:
        pool = session.pool
        was_connected = pool is not None
        session.pool = None
        session.state = SessionState.DISCONNECTED
        session.config = session.config.model_copy(update={"is_active": False})

        if pool is not None:
            dialect = self.dialects.get(session.config.engine)
            await self._close_pool_quietly(dialect, pool, session.id)
            self.logger.info("Session disconnected", connection_id=session.id)
        return was_connected

    async def remove(self, connection_id: str) -> None:
        """Disconnect and delete a registered connection.

        The pool is closed before the registry entry is removed.

        Raises:
            NotFoundError: If the id is unknown
        """
        async with self._locked(connection_id) as session:
            await self._disconnect_locked(session)
            await self.registry.remove(connection_id)
        await self.registry.save()
        self.logger.info("Connection removed", connection_id=connection_id)

    async def health_check(self) -> HealthReport:
        """Ping every connected session concurrently.

        Each session's lock and ping are bounded by the health ping
        timeout. Failing sessions are demoted to disconnected; failures are
        reported, never raised.
        """
        report = HealthReport()
        sessions = [s for s in self.registry.sessions() if s.is_connected]
        if not sessions:
            return report

        outcomes = await asyncio.gather(
            *(self._check_session(session) for session in sessions),
            return_exceptions=True,
        )

        demoted_any = False
        for session, outcome in zip(sessions, outcomes):
            if isinstance(outcome, BaseException):
                report.demoted[session.id] = str(outcome)
                demoted_any = True
            elif outcome is None:
                report.skipped.append(session.id)
            elif outcome is True:
                report.healthy.append(session.id)
            else:
                report.demoted[session.id] = str(outcome)
                demoted_any = True

        if demoted_any:
            await self.registry.save()

        self.logger.info(
            "Health check completed",
            healthy=len(report.healthy),
            demoted=len(report.demoted),
            skipped=len(report.skipped),
        )
        return report

    async def _check_session(self, session: Session) -> Any:
        """Ping one session.

        Returns:
            True when healthy, None when the lock was busy, otherwise the
            failure message after demoting the session
        """
        timeout = self.health_config.ping_timeout
        lock = self.registry.lock_for(session.id)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

        try:
            if session.id not in self.registry:
                return None
            if not session.is_connected:
                return True
            dialect = self.dialects.get(session.config.engine)
            try:
                async with dialect.acquire(session.pool) as conn:
                    await dialect.ping(conn, timeout=timeout)
            except Exception as e:
                self.logger.warning("Health ping failed, demoting session", connection_id=session.id, error=str(e))
                await self._disconnect_locked(session)
                return str(e) or type(e).__name__
            session.last_ping = utc_now()
            return True
        finally:
            lock.release()

    async def close_all(self) -> None:
        """Disconnect every session. Used at shutdown."""
        sessions = [s for s in self.registry.sessions() if s.pool is not None]
        for session in sessions:
            async with self.registry.lock_for(session.id):
                if session.id in self.registry:
                    await self._disconnect_locked(session)
        if sessions:
            await self.registry.save()
        self.logger.info("All sessions closed", closed=len(sessions))

    def list_connections(self) -> List[Dict[str, Any]]:
        return self.registry.all()

    def list_active_connections(self) -> List[Dict[str, Any]]:
        return [s.to_dict() for s in self.registry.sessions() if s.is_connected]

    async def rotate_master_key(self) -> Dict[str, Any]:
        """Rotate the vault key and re-encrypt every stored password.

        The old key is retired only after the registry has been saved under
        the new key.

        Raises:
            PersistenceError: If the new key or the registry cannot be written
        """
        vault = self.registry.vault
        vault.rotate()
        saved = await self.registry.reencrypt_all()
        if not saved:
            raise PersistenceError(
                "Registry could not be re-encrypted; previous key retained",
                code=ErrorCodes.REGISTRY_WRITE_FAILED,
            )
        vault.retire_previous_keys()
        self.logger.info("Master key rotated", connections=len(self.registry))
        return {"rotated": True, "connections": len(self.registry)}
