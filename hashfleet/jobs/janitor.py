"""
Crash recovery for jobs orphaned by dead workers.

A job is orphaned when it sits in ``processing`` and the liveness marker of
its owning worker has expired. The janitor requeues such jobs up to
``max_retries`` times and then fails them terminally.
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import redis.asyncio

from ..core.config import Settings
from ..core.constants import DATA_LOST_ERROR, MAX_RETRIES_ERROR
from ..storage.redis_client import create_redis_client, close_redis_client
from .liveness import LivenessRegistry
from .models import JobRecord
from .store import JobStore

logger = logging.getLogger(__name__)


@dataclass
class JanitorReport:
    """Outcome of one scan."""
    scanned: int = 0
    orphaned: int = 0
    requeued: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Janitor:
    """Periodic orphan detector."""

    def __init__(self, settings: Settings, client: Optional[redis.asyncio.Redis] = None):
        self.settings = settings
        self.client = client
        self._owns_client = client is None
        self.store: Optional[JobStore] = None
        self.liveness: Optional[LivenessRegistry] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

        if client is not None:
            self._bind(client)

    def _bind(self, client: redis.asyncio.Redis):
        self.client = client
        self.store = JobStore(client)
        self.liveness = LivenessRegistry(client, self.settings.heartbeat_ttl)

    async def scan(self) -> JanitorReport:
        """
        Recover every orphan found in a single pass.

        Processing records are read before the live set: a worker always
        heartbeats before its first claim, so any claim observed here
        belongs to a worker whose marker is already visible.
        """
        report = JanitorReport()
        processing = await self.store.iter_processing()
        report.scanned = len(processing)
        if not processing:
            return report

        live_workers = await self.liveness.list_live()

        for record in processing:
            if record.worker_id and record.worker_id in live_workers:
                continue
            report.orphaned += 1
            await self._recover(record, report)

        if report.orphaned:
            logger.info(
                f"Janitor scan: {report.orphaned} orphaned, {report.requeued} requeued, "
                f"{report.failed} failed, {report.skipped} skipped"
            )
        return report

    async def _recover(self, record: JobRecord, report: JanitorReport):
        owner = record.worker_id or "<none>"
        if record.retries >= self.settings.max_retries:
            if await self.store.fail_orphan(record, MAX_RETRIES_ERROR):
                report.failed += 1
                logger.warning(f"Job {record.job_id} orphaned by {owner}: max retries exceeded")
                return
        elif not record.has_payload:
            if await self.store.fail_orphan(record, DATA_LOST_ERROR):
                report.failed += 1
                logger.warning(f"Job {record.job_id} orphaned by {owner}: payload lost")
                return
        elif await self.store.requeue_orphan(record):
            report.requeued += 1
            logger.warning(
                f"Job {record.job_id} orphaned by {owner}: requeued (retry {record.retries + 1})"
            )
            return
        report.skipped += 1

    async def start(self):
        if self._running:
            logger.warning("Janitor already running")
            return
        if self.client is None:
            self._bind(create_redis_client(self.settings))
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Janitor started (interval={self.settings.janitor_interval}s)")

    async def stop(self):
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._owns_client:
            await close_redis_client(self.client)
        logger.info("Janitor stopped")

    async def _loop(self):
        while self._running:
            try:
                await self.scan()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in janitor scan: {e}")
            await asyncio.sleep(self.settings.janitor_interval)
