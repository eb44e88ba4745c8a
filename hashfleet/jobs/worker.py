"""
Hash worker process.

A worker pops one queue entry at a time, claims the job record, executes the
hash and records the outcome. A background task refreshes the worker's
liveness marker so the janitor can tell a busy worker from a dead one.
"""

import asyncio
import logging
import signal
from typing import Optional

import redis
import redis.asyncio

from ..core.config import Settings
from ..core.constants import DATA_LOST_ERROR, SHUTDOWN_ERROR
from ..core.exceptions import ExecutionError, StoreError
from ..storage.redis_client import create_redis_client, close_redis_client
from ..utils.timezone_utils import utc_now
from . import executors
from .liveness import LivenessRegistry
from .models import QueueEntry
from .queue import JobQueue
from .store import JobStore

logger = logging.getLogger(__name__)


class HashWorker:
    """
    Single-job-at-a-time queue consumer.

    The worker uses two Redis connections: ``listener`` is parked in BRPOP
    while idle, ``client`` carries record writes and heartbeats so liveness
    keeps flowing during the blocking pop.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[redis.asyncio.Redis] = None,
        listener: Optional[redis.asyncio.Redis] = None,
    ):
        self.settings = settings
        self.worker_id = settings.worker_id
        self.client = client
        self.listener = listener
        self._owns_clients = client is None and listener is None

        self.store: Optional[JobStore] = None
        self.queue: Optional[JobQueue] = None
        self.liveness: Optional[LivenessRegistry] = None

        self._running = False
        self._shutting_down = False
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._main_task: Optional[asyncio.Task] = None
        self.current_job_id: Optional[str] = None

        self.stats = {
            'jobs_completed': 0,
            'jobs_failed': 0,
            'start_time': None,
        }

    @property
    def is_processing(self) -> bool:
        return self.current_job_id is not None

    async def start(self):
        """Open connections, announce liveness and start heartbeating."""
        if self._running:
            logger.warning(f"Worker {self.worker_id} already running")
            return

        if self.client is None:
            self.client = create_redis_client(self.settings)
        if self.listener is None:
            # No socket timeout: BRPOP with timeout 0 may block for hours
            self.listener = create_redis_client(self.settings, socket_timeout=None)

        self.store = JobStore(self.client)
        self.queue = JobQueue(self.listener)
        self.liveness = LivenessRegistry(self.client, self.settings.heartbeat_ttl)

        self._running = True
        self.stats['start_time'] = utc_now()

        await self._send_heartbeat()
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())

        logger.info(f"Worker {self.worker_id} started, waiting for jobs...")

    async def run(self):
        """Process jobs until shutdown is requested."""
        await self.start()
        self._main_task = asyncio.current_task()
        try:
            while self._running:
                try:
                    await self.run_once()
                except Exception as e:
                    if not self._running:
                        break
                    logger.error(f"{self.worker_id}: Error in worker loop: {e}")
                    await asyncio.sleep(self.settings.worker_error_backoff)
        except asyncio.CancelledError:
            logger.info(f"{self.worker_id}: Worker loop cancelled")
        finally:
            await self.shutdown()

    async def run_once(self, timeout: float = 0) -> bool:
        """
        Wait for one entry and process it.

        Returns:
            True if a job was processed, False on timeout or a dropped entry
        """
        entry = await self.queue.blocking_dequeue(timeout=timeout)
        if entry is None:
            return False
        if not self._running:
            # Popped during shutdown and never claimed: hand it to another worker
            await self._return_to_queue(entry)
            return False
        await self.process_job(entry)
        return True

    async def process_job(self, entry: QueueEntry) -> bool:
        """
        Run one job through processing to done or failed.

        Entries whose record cannot be claimed (missing, already owned or
        finished) are dropped. If the task is cancelled mid-job,
        ``current_job_id`` is left set so :meth:`shutdown` fails the job.

        Returns:
            True if the job finished as done
        """
        job_id = entry.job_id
        self.current_job_id = job_id
        logger.info(f"{self.worker_id}: Processing job {job_id} (retries={entry.retries})")
        try:
            claimed = await self._claim(entry)
        except redis.RedisError:
            self.current_job_id = None
            raise
        if not claimed:
            self.current_job_id = None
            reason = await self._describe_unclaimable(job_id)
            logger.warning(f"{self.worker_id}: Dropping stale entry for job {job_id}: {reason}")
            return False

        try:
            if entry.text is None:
                raise ExecutionError(DATA_LOST_ERROR)

            if self.settings.simulated_delay_ms > 0:
                await asyncio.sleep(self.settings.simulated_delay_ms / 1000)

            hash_value = executors.execute(entry.algorithm, entry.text)
            finished = await self.store.mark_done(job_id, self.worker_id, hash_value)
            if finished:
                self.stats['jobs_completed'] += 1
                logger.info(f"{self.worker_id}: Finished job {job_id}")
            else:
                # The janitor took the job back while we were still running
                logger.warning(
                    f"{self.worker_id}: Job {job_id} is no longer ours, discarding result"
                )
            self.current_job_id = None
            return finished

        except Exception as e:
            logger.error(f"{self.worker_id}: Error processing job {job_id}: {e}")
            try:
                if await self.store.mark_failed(job_id, self.worker_id, str(e) or "Unknown error"):
                    self.stats['jobs_failed'] += 1
            except redis.RedisError as mark_error:
                logger.error(f"Failed to mark job {job_id} as failed: {mark_error}")
            self.current_job_id = None
            return False

    async def _claim(self, entry: QueueEntry) -> bool:
        try:
            return await self.store.mark_processing(entry.job_id, self.worker_id)
        except redis.RedisError as e:
            # The entry is already off the queue and the record is still
            # queued, so nobody else would ever pick it up again.
            logger.error(f"{self.worker_id}: Could not claim job {entry.job_id}: {e}")
            await self._return_to_queue(entry)
            raise

    async def _return_to_queue(self, entry: QueueEntry):
        try:
            await JobQueue(self.client).enqueue(entry)
            logger.info(f"{self.worker_id}: Returned job {entry.job_id} to the queue")
        except redis.RedisError as e:
            logger.error(f"Failed to return job {entry.job_id} to the queue: {e}")

    async def _describe_unclaimable(self, job_id: str) -> str:
        try:
            record = await self.store.get(job_id)
        except StoreError as e:
            return str(e)
        if record is None:
            return "record missing"
        if record.status.is_terminal:
            return f"already {record.status.value}"
        return f"{record.status.value} by {record.worker_id or 'nobody'}"

    async def _send_heartbeat(self):
        try:
            await self.liveness.refresh(self.worker_id)
        except redis.RedisError as e:
            logger.error(f"Heartbeat error for worker {self.worker_id}: {e}")

    async def _heartbeat_loop(self):
        """Refresh the liveness marker until the worker stops."""
        while self._running:
            await asyncio.sleep(self.settings.heartbeat_interval)
            if self._running:
                await self._send_heartbeat()

    def request_shutdown(self, signame: str = "SIGTERM"):
        """Signal-handler entry point: stop claiming and unwind the loop."""
        if self._shutting_down or not self._running:
            return
        logger.info(f"{self.worker_id}: Received {signame}, shutting down...")
        self._running = False
        if self._main_task and not self._main_task.done():
            self._main_task.cancel()

    def install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)

    async def shutdown(self):
        """
        Fail the in-flight job, stop heartbeating and release connections.

        The in-flight job is failed outright instead of being left for the
        janitor, so it does not consume a retry.
        """
        if self._shutting_down:
            return
        self._shutting_down = True
        self._running = False

        if self.current_job_id:
            job_id = self.current_job_id
            logger.info(f"{self.worker_id}: Marking job {job_id} as failed due to shutdown")
            try:
                if await self.store.mark_failed(job_id, self.worker_id, SHUTDOWN_ERROR):
                    self.stats['jobs_failed'] += 1
                else:
                    logger.warning(f"{self.worker_id}: Job {job_id} was reassigned, leaving it")
            except redis.RedisError as e:
                logger.error(f"Error marking job {job_id} failed during shutdown: {e}")
            self.current_job_id = None

        if self._heartbeat_task:
            self._heartbeat_task.cancel()
            try:
                await self._heartbeat_task
            except asyncio.CancelledError:
                pass

        if self._owns_clients:
            await close_redis_client(self.listener)
            await close_redis_client(self.client)

        logger.info(
            f"Worker {self.worker_id} stopped "
            f"(completed={self.stats['jobs_completed']}, failed={self.stats['jobs_failed']})"
        )


async def run_worker(settings: Settings):
    """Run a worker with SIGTERM/SIGINT wired to graceful shutdown."""
    worker = HashWorker(settings)
    worker.install_signal_handlers()
    await worker.run()
    return worker
