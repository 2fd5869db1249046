"""Recurring health sweep over connected sessions."""

import asyncio
from typing import Optional

from ..config.models import HealthConfig
from ..core.base import AsyncComponent
from ..logging import get_logger
from .models import HealthReport
from .session import SessionManager


class HealthMonitor(AsyncComponent[HealthConfig]):
    """Runs :meth:`SessionManager.health_check` every ``interval`` seconds.

    Example:
        >>> monitor = HealthMonitor(HealthConfig(interval=30), manager)
        >>> await monitor.initialize()
        >>> monitor.last_report
    """

    component_name = "HealthMonitor"

    def __init__(self, config: HealthConfig, manager: SessionManager) -> None:
        super().__init__(config)
        self.manager = manager
        self.last_report: Optional[HealthReport] = None
        self._task: Optional[asyncio.Task] = None
        self.logger = get_logger("database.health")

    async def _async_initialize(self) -> None:
        if not self.config.enabled:
            self.logger.info("Health monitor disabled")
            return
        self._task = asyncio.create_task(self._health_check_loop())
        self.logger.info("Health monitor started", interval=self.config.interval)

    async def _async_cleanup(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Health monitor stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> HealthReport:
        """Run one sweep immediately and remember its report."""
        self.last_report = await self.manager.health_check()
        return self.last_report

    async def _health_check_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.config.interval)
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Error in health check loop", error=str(e))
