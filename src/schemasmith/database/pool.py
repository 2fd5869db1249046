"""
Connection pool implementation for SchemaSmith dialects.

Provides async connection pooling with resource management, periodic
maintenance and statistics. The pool is driver agnostic: a dialect hands it
coroutine functions that open and close one physical connection.
"""

import asyncio
import time
import weakref
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Set

from ..config.models import PoolConfig
from ..core.exceptions import DatabaseConnectionError, ErrorCodes
from ..logging import get_logger

ConnectFn = Callable[[], Awaitable[Any]]
CloseFn = Callable[[Any], Awaitable[None]]


class PooledConnection:
    """Wrapper for pooled database connections with metadata."""

    def __init__(self, connection: Any, pool: "ConnectionPool"):
        self.connection = connection
        self.pool = weakref.ref(pool)
        self.created_at = datetime.now()
        self.last_used = datetime.now()
        self.use_count = 0
        self.is_healthy = True
        self.is_in_use = False
        self.connection_id = id(connection)

    def mark_used(self) -> None:
        self.last_used = datetime.now()
        self.use_count += 1
        self.is_in_use = True

    def mark_returned(self) -> None:
        self.is_in_use = False

    def get_age(self) -> timedelta:
        return datetime.now() - self.created_at

    def get_idle_time(self) -> timedelta:
        return datetime.now() - self.last_used


class ConnectionPool:
    """Async connection pool bounded by ``max_size``.

    Concurrent callers receive distinct physical connections up to
    ``max_size``; further callers wait up to ``acquire_timeout`` seconds.
    A connection whose borrower was cancelled is closed instead of being
    returned, since its statement may still be running server side.
    """

    def __init__(
        self,
        name: str,
        connect: ConnectFn,
        close: CloseFn,
        min_size: int = 1,
        max_size: int = 5,
        acquire_timeout: float = 30.0,
        idle_timeout: int = 300,
        max_lifetime: int = 3600,
        maintenance_interval: int = 60,
    ):
        self.name = name
        self._connect = connect
        self._close = close
        self.min_size = min_size
        self.max_size = max_size
        self.acquire_timeout = acquire_timeout
        self.idle_timeout = idle_timeout
        self.max_lifetime = max_lifetime
        self.maintenance_interval = maintenance_interval

        self._pool: "asyncio.Queue[PooledConnection]" = asyncio.Queue(maxsize=max_size)
        self._connections: Set[PooledConnection] = set()
        # Open connections plus slots reserved by in-flight creations
        self._total_connections = 0
        self._lock = asyncio.Lock()
        self._closed = False

        self._maintenance_task: Optional[asyncio.Task] = None
        self._last_maintenance = datetime.now()

        self._stats = {
            "total_created": 0,
            "total_closed": 0,
            "total_acquired": 0,
            "total_released": 0,
            "pool_exhausted_count": 0,
            "average_wait_time": 0.0,
            "max_wait_time": 0.0,
        }

        self.logger = get_logger(f"pool.{name}")

    @classmethod
    def from_config(
        cls, name: str, connect: ConnectFn, close: CloseFn, config: PoolConfig
    ) -> "ConnectionPool":
        return cls(
            name,
            connect,
            close,
            min_size=config.min_size,
            max_size=config.max_size,
            acquire_timeout=config.acquire_timeout,
            idle_timeout=config.idle_timeout,
            max_lifetime=config.max_lifetime,
            maintenance_interval=config.maintenance_interval,
        )

    async def initialize(self) -> None:
        """Open ``min_size`` connections and start the maintenance task.

        Raises:
            DatabaseConnectionError: If a connection cannot be opened; every
                connection opened so far is closed first
        """
        self.logger.info("Initializing connection pool", min_size=self.min_size, max_size=self.max_size)

        try:
            for _ in range(self.min_size):
                async with self._lock:
                    self._total_connections += 1
                pooled_conn = await self._create_connection()
                self._pool.put_nowait(pooled_conn)
        except BaseException:
            await self.close()
            raise

        self._maintenance_task = asyncio.create_task(self._maintenance_loop())
        self.logger.info("Connection pool initialized", initial_connections=self.min_size)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Any]:
        """Borrow a connection for the duration of the ``async with`` block.

        Raises:
            DatabaseConnectionError: If the pool is closed, exhausted or a
                new connection cannot be opened
        """
        if self._closed:
            raise DatabaseConnectionError(
                "Connection pool is closed",
                code=ErrorCodes.NOT_CONNECTED,
                context={"pool": self.name},
            )

        start_time = time.perf_counter()
        pooled_conn = await self._get_or_create_connection()
        self._update_wait_stats(time.perf_counter() - start_time)
        pooled_conn.mark_used()
        self._stats["total_acquired"] += 1

        try:
            yield pooled_conn.connection
        except (asyncio.CancelledError, DatabaseConnectionError):
            pooled_conn.is_healthy = False
            raise
        finally:
            await self._release_connection(pooled_conn)

    async def _get_or_create_connection(self) -> PooledConnection:
        while True:
            try:
                pooled_conn = self._pool.get_nowait()
            except asyncio.QueueEmpty:
                pooled_conn = None

            if pooled_conn is not None:
                if self._should_close_connection(pooled_conn):
                    await self._close_connection(pooled_conn)
                    continue
                return pooled_conn

            async with self._lock:
                can_create = self._total_connections < self.max_size
                if can_create:
                    self._total_connections += 1

            if can_create:
                return await self._create_connection()

            self._stats["pool_exhausted_count"] += 1
            self.logger.warning(
                "Connection pool exhausted, waiting",
                active_connections=self._total_connections,
                max_size=self.max_size,
            )
            try:
                pooled_conn = await asyncio.wait_for(self._pool.get(), timeout=self.acquire_timeout)
            except asyncio.TimeoutError as e:
                raise DatabaseConnectionError(
                    f"Connection pool exhausted after {self.acquire_timeout}s timeout",
                    code=ErrorCodes.POOL_EXHAUSTED,
                    context={
                        "pool": self.name,
                        "pool_size": self.max_size,
                        "timeout": self.acquire_timeout,
                    },
                ) from e

            if self._should_close_connection(pooled_conn):
                await self._close_connection(pooled_conn)
                continue
            return pooled_conn

    async def _create_connection(self) -> PooledConnection:
        """Open a connection into a slot already reserved by the caller."""
        start_time = time.perf_counter()
        try:
            raw_connection = await self._connect()
        except asyncio.CancelledError:
            self._total_connections -= 1
            raise
        except DatabaseConnectionError:
            self._total_connections -= 1
            raise
        except Exception as e:
            self._total_connections -= 1
            self.logger.error("Failed to create connection", pool=self.name, error=str(e))
            raise DatabaseConnectionError(
                f"Failed to create database connection: {e}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={"pool": self.name},
                cause=e,
            ) from e

        pooled_conn = PooledConnection(raw_connection, self)
        self._connections.add(pooled_conn)
        self._stats["total_created"] += 1

        self.logger.debug(
            "New connection created",
            connection_id=pooled_conn.connection_id,
            creation_time_ms=(time.perf_counter() - start_time) * 1000,
            total_connections=self._total_connections,
        )
        return pooled_conn

    async def _release_connection(self, pooled_conn: PooledConnection) -> None:
        pooled_conn.mark_returned()
        self._stats["total_released"] += 1

        if self._closed or not pooled_conn.is_healthy or self._should_close_connection(pooled_conn):
            await self._close_connection(pooled_conn)
            return

        try:
            self._pool.put_nowait(pooled_conn)
        except asyncio.QueueFull:
            await self._close_connection(pooled_conn)

    async def _close_connection(self, pooled_conn: PooledConnection) -> None:
        """Close a pooled connection and remove it from tracking.

        Driver close errors are logged; the slot is released either way.
        """
        if pooled_conn not in self._connections:
            return
        self._connections.discard(pooled_conn)
        async with self._lock:
            self._total_connections -= 1
        self._stats["total_closed"] += 1

        try:
            await self._close(pooled_conn.connection)
        except Exception as e:
            self.logger.warning(
                "Error closing connection",
                connection_id=pooled_conn.connection_id,
                error=str(e),
            )
            return

        self.logger.debug(
            "Connection closed",
            connection_id=pooled_conn.connection_id,
            age_seconds=pooled_conn.get_age().total_seconds(),
            use_count=pooled_conn.use_count,
        )

    def _should_close_connection(self, pooled_conn: PooledConnection) -> bool:
        if pooled_conn.get_age().total_seconds() > self.max_lifetime:
            return True
        return self._total_connections > self.max_size

    async def _maintenance_loop(self) -> None:
        while not self._closed:
            try:
                await asyncio.sleep(self.maintenance_interval)
                await self._perform_maintenance()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Error in pool maintenance loop", error=str(e))

    async def _perform_maintenance(self) -> None:
        """Close idle or expired connections sitting in the queue."""
        self._last_maintenance = datetime.now()
        keep = []
        expired = []

        while True:
            try:
                pooled_conn = self._pool.get_nowait()
            except asyncio.QueueEmpty:
                break
            too_idle = pooled_conn.get_idle_time().total_seconds() > self.idle_timeout
            surplus = len(keep) >= self.min_size
            if self._should_close_connection(pooled_conn) or (too_idle and surplus):
                expired.append(pooled_conn)
            else:
                keep.append(pooled_conn)

        for pooled_conn in keep:
            self._pool.put_nowait(pooled_conn)

        for pooled_conn in expired:
            await self._close_connection(pooled_conn)

        if expired:
            self.logger.debug("Closed idle or expired connections", count=len(expired))

    def _update_wait_stats(self, wait_time: float) -> None:
        self._stats["max_wait_time"] = max(self._stats["max_wait_time"], wait_time)
        total_acquired = self._stats["total_acquired"] + 1
        current_avg = self._stats["average_wait_time"]
        self._stats["average_wait_time"] = (
            (current_avg * (total_acquired - 1) + wait_time) / total_acquired
        )

    async def close(self) -> None:
        """Close the pool and every connection it owns.

        Connections still borrowed are closed when they are returned.
        """
        if self._closed:
            return

        self.logger.info("Closing connection pool", pool=self.name)
        self._closed = True

        if self._maintenance_task:
            self._maintenance_task.cancel()
            try:
                await self._maintenance_task
            except asyncio.CancelledError:
                pass

        while True:
            try:
                pooled_conn = self._pool.get_nowait()
            except asyncio.QueueEmpty:
                break
            await self._close_connection(pooled_conn)

        self.logger.info(
            "Connection pool closed",
            total_created=self._stats["total_created"],
            total_closed=self._stats["total_closed"],
        )

    @property
    def is_closed(self) -> bool:
        return self._closed

    def get_stats(self) -> Dict[str, Any]:
        """Get connection pool statistics."""
        return {
            "total_connections": self._total_connections,
            "active_connections": sum(1 for conn in self._connections if conn.is_in_use),
            "idle_connections": self._pool.qsize(),
            "min_size": self.min_size,
            "max_size": self.max_size,
            "is_closed": self._closed,
            "last_maintenance": self._last_maintenance.isoformat(),
            **self._stats,
        }
