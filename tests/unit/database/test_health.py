"""Unit tests for health checks and the health monitor."""

import asyncio

import pytest

from schemasmith.config.models import HealthConfig
from schemasmith.database.health import HealthMonitor
from schemasmith.database.models import SessionState


class TestHealthCheck:
    """Test SessionManager.health_check."""

    @pytest.mark.asyncio
    async def test_no_sessions(self, session_manager):
        """Test an empty registry yields an empty report."""
        report = await session_manager.health_check()

        assert report.to_dict() == {"healthy": [], "demoted": {}, "skipped": []}

    @pytest.mark.asyncio
    async def test_healthy_sessions(self, session_manager, add_connection, registry):
        """Test reachable sessions stay connected."""
        connection_id = await add_connection()
        await session_manager.connect(connection_id)

        report = await session_manager.health_check()

        assert report.healthy == [connection_id]
        assert registry.get(connection_id).is_connected
        await session_manager.close_all()

    @pytest.mark.asyncio
    async def test_unreachable_sessions_demoted(self, session_manager, add_connection, registry, fake_dialect):
        """Test failing pings demote connected sessions only."""
        connected = await add_connection()
        idle = await add_connection(name="Idle")
        await session_manager.connect(connected)
        fake_dialect.reachable = False

        report = await session_manager.health_check()

        assert list(report.demoted) == [connected]
        assert report.healthy == []
        assert registry.get(connected).state is SessionState.DISCONNECTED
        assert registry.get(connected).config.is_active is False
        assert registry.get(idle).state is SessionState.DISCONNECTED
        assert idle not in report.demoted

    @pytest.mark.asyncio
    async def test_busy_session_skipped(self, session_manager, add_connection, registry):
        """Test a session whose lock is held is skipped, not demoted."""
        session_manager.health_config = HealthConfig(ping_timeout=0.05)
        connection_id = await add_connection()
        await session_manager.connect(connection_id)

        async with registry.lock_for(connection_id):
            report = await session_manager.health_check()

        assert report.skipped == [connection_id]
        assert registry.get(connection_id).is_connected
        await session_manager.close_all()

    @pytest.mark.asyncio
    async def test_session_removed_during_sweep_skipped(
        self, session_manager, add_connection, registry, fake_dialect
    ):
        """Test a session removed while the sweep waits for its lock is skipped."""
        connection_id = await add_connection()
        await session_manager.connect(connection_id)
        lock = registry.lock_for(connection_id)
        await lock.acquire()
        remove = asyncio.create_task(session_manager.remove(connection_id))
        await asyncio.sleep(0.01)
        sweep = asyncio.create_task(session_manager.health_check())
        await asyncio.sleep(0.01)
        lock.release()

        await remove
        report = await sweep

        assert report.skipped == [connection_id]
        assert report.demoted == {}
        assert all(conn.closed for conn in fake_dialect.connections)

    @pytest.mark.asyncio
    async def test_demoted_session_reconnects(self, session_manager, add_connection, fake_dialect):
        """Test a demoted session can be connected again."""
        connection_id = await add_connection()
        await session_manager.connect(connection_id)
        fake_dialect.reachable = False
        await session_manager.health_check()

        fake_dialect.reachable = True
        session = await session_manager.connect(connection_id)

        assert session.is_connected
        await session_manager.close_all()


class TestHealthMonitor:
    """Test the recurring health monitor."""

    @pytest.mark.asyncio
    async def test_disabled_monitor_does_not_run(self, session_manager):
        """Test a disabled monitor starts no task."""
        monitor = HealthMonitor(HealthConfig(enabled=False), session_manager)

        async with monitor:
            assert monitor.is_initialized
            assert not monitor.is_running

    @pytest.mark.asyncio
    async def test_run_once(self, session_manager, add_connection):
        """Test a manual sweep stores its report."""
        connection_id = await add_connection()
        await session_manager.connect(connection_id)
        monitor = HealthMonitor(HealthConfig(enabled=False), session_manager)

        report = await monitor.run_once()

        assert monitor.last_report is report
        assert report.healthy == [connection_id]
        await session_manager.close_all()

    @pytest.mark.asyncio
    async def test_periodic_sweeps(self, session_manager, add_connection, fake_dialect, registry):
        """Test the background loop demotes a failing session."""
        connection_id = await add_connection()
        await session_manager.connect(connection_id)
        monitor = HealthMonitor(HealthConfig(interval=0.02, ping_timeout=0.5), session_manager)

        await monitor.initialize()
        assert monitor.is_running
        fake_dialect.reachable = False
        for _ in range(50):
            await asyncio.sleep(0.02)
            if not registry.get(connection_id).is_connected:
                break
        await monitor.cleanup()

        assert not registry.get(connection_id).is_connected
        assert not monitor.is_running
