"""
In-process periodic job runner.

Deployments without an external cron can let the server run the maintenance
jobs itself: every ``SCHEDULER_INTERVAL_SECONDS`` a fresh session is opened
and ``MaintenanceService.run_all`` executes once. A failing tick is logged and
the loop carries on with the next one.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gclub.core.database.repositories import build_sql_repos_from_session
from gclub.core.logging_config import get_logger
from gclub.core.models.io.jobs import JobRunResult
from gclub.server.services.maintenance import MaintenanceService
from gclub.server.services.notifications import NotificationService

logger = get_logger(__name__)


class MaintenanceScheduler:
    """Runs the maintenance jobs on a fixed interval.

    Attributes:
        session_factory: Opens one session per tick
        interval: Seconds between ticks
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], interval: int) -> None:
        self.session_factory = session_factory
        self.interval = max(1, interval)
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> JobRunResult:
        async with self.session_factory() as session:
            repos = build_sql_repos_from_session(session=session)
            return await MaintenanceService(repos, NotificationService(repos)).run_all()

    async def _loop(self) -> None:
        logger.info(f"Maintenance scheduler started. Interval: {self.interval}s")
        tick = 0
        while not self._stopping.is_set():
            tick += 1
            try:
                result = await self.run_once()
                logger.debug(f"Scheduler tick #{tick} finished: {result.model_dump(exclude_none=True)}")
            except Exception as exc:
                logger.error(f"Scheduler tick #{tick} failed: {exc}", exc_info=True)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
        logger.info("Maintenance scheduler stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stopping.set()
        try:
            await self._task
        finally:
            self._task = None
