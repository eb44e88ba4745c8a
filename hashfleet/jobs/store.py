"""
Job record store.

Records are Redis hashes at ``job:<id>``. Status changes go through
:meth:`JobStore._transition`: the record is WATCHed, its current status and
owner are checked against the transition table, and the new fields (plus an
optional queue push) are written in one MULTI/EXEC block. A write that would
break the table, or that races another writer, is skipped and reported as
``False``.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import redis
import redis.asyncio

from ..core.constants import JOB_KEY_PREFIX, QUEUE_KEY, job_key
from ..core.exceptions import StoreError
from ..utils.timezone_utils import isoformat_utc
from .models import JobRecord, JobStatus, QueueEntry, can_transition

logger = logging.getLogger(__name__)


class JobStore:
    """Read/write access to job records."""

    def __init__(self, client: redis.asyncio.Redis):
        self.client = client

    async def get(self, job_id: str) -> Optional[JobRecord]:
        """Load a record, or None when it does not exist."""
        data = await self.client.hgetall(job_key(job_id))
        if not data:
            return None
        return JobRecord.from_redis(job_id, data)

    async def get_many_raw(self, job_ids: Iterable[str]) -> List[Dict[str, str]]:
        """HGETALL for several jobs in one round trip (empty dict if missing)."""
        job_ids = list(job_ids)
        if not job_ids:
            return []
        pipe = self.client.pipeline(transaction=False)
        for job_id in job_ids:
            pipe.hgetall(job_key(job_id))
        return await pipe.execute()

    async def create(self, record: JobRecord, entry: QueueEntry) -> None:
        """Store a new queued record and enqueue it atomically."""
        pipe = self.client.pipeline(transaction=True)
        pipe.hset(job_key(record.job_id), mapping=record.to_redis())
        pipe.lpush(QUEUE_KEY, entry.to_json())
        await pipe.execute()
        logger.debug(f"Stored job {record.job_id} atomically")

    async def mark_processing(self, job_id: str, worker_id: str) -> bool:
        """
        Claim a queued job for a worker.

        Returns False when the record is missing or no longer ``queued``,
        e.g. a stale duplicate entry for a job another worker already owns.
        """
        now = isoformat_utc()
        return await self._transition(
            job_id,
            JobStatus.PROCESSING,
            {
                "status": JobStatus.PROCESSING.value,
                "workerId": worker_id,
                "startedAt": now,
                "updatedAt": now,
            },
            clear=("hash", "error"),
        )

    async def mark_done(self, job_id: str, worker_id: str, hash_value: str) -> bool:
        """Record a result. Only the worker that owns the job may do this."""
        now = isoformat_utc()
        return await self._transition(
            job_id,
            JobStatus.DONE,
            {
                "status": JobStatus.DONE.value,
                "hash": hash_value,
                "workerId": "",
                "finishedAt": now,
                "updatedAt": now,
            },
            owner=worker_id,
            clear=("error",),
        )

    async def mark_failed(self, job_id: str, worker_id: str, error: str) -> bool:
        now = isoformat_utc()
        return await self._transition(
            job_id,
            JobStatus.FAILED,
            {
                "status": JobStatus.FAILED.value,
                "error": error or "Unknown error",
                "workerId": "",
                "finishedAt": now,
                "updatedAt": now,
            },
            owner=worker_id,
            clear=("hash",),
        )

    async def iter_processing(self) -> List[JobRecord]:
        """Every record currently in ``processing``."""
        keys = [key async for key in self.client.scan_iter(match=f"{JOB_KEY_PREFIX}*")]
        if not keys:
            return []

        pipe = self.client.pipeline(transaction=False)
        for key in keys:
            pipe.hgetall(key)
        results = await pipe.execute()

        records = []
        for key, data in zip(keys, results):
            if not data or data.get("status") != JobStatus.PROCESSING.value:
                continue
            job_id = key[len(JOB_KEY_PREFIX):]
            try:
                records.append(JobRecord.from_redis(job_id, data))
            except StoreError as e:
                logger.warning(f"Skipping unreadable job record {key}: {e}")
        return records

    async def requeue_orphan(self, record: JobRecord) -> bool:
        """
        Move an orphaned job back to ``queued`` and push a fresh entry.

        The retry counter is incremented. Returns False when the record
        changed since it was read (another janitor or a worker got there
        first).
        """
        retries = record.retries + 1
        entry = record.to_queue_entry()
        entry.retries = retries
        mapping = {
            "status": JobStatus.QUEUED.value,
            "workerId": "",
            "retries": str(retries),
            "updatedAt": isoformat_utc(),
        }
        return await self._transition(
            record.job_id, JobStatus.QUEUED, mapping,
            owner=record.worker_id, clear=("hash", "error"), entry=entry,
        )

    async def fail_orphan(self, record: JobRecord, error: str) -> bool:
        """Terminally fail an orphaned job. Same concurrency rules as requeue."""
        now = isoformat_utc()
        mapping = {
            "status": JobStatus.FAILED.value,
            "error": error,
            "workerId": "",
            "finishedAt": now,
            "updatedAt": now,
        }
        return await self._transition(
            record.job_id, JobStatus.FAILED, mapping,
            owner=record.worker_id, clear=("hash",),
        )

    async def _transition(
        self,
        job_id: str,
        target: JobStatus,
        mapping: Dict[str, str],
        owner: Optional[str] = None,
        clear: Sequence[str] = (),
        entry: Optional[QueueEntry] = None,
    ) -> bool:
        """
        Apply ``mapping`` if the record may move to ``target``.

        Args:
            owner: required ``workerId`` of the current record, if any
            clear: fields removed in the same transaction
            entry: queue entry pushed in the same transaction
        """
        key = job_key(job_id)
        async with self.client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                status, worker_id = await pipe.hmget(key, ["status", "workerId"])
                try:
                    current = JobStatus(status)
                except ValueError:
                    await pipe.unwatch()
                    logger.debug(f"Job {job_id} has no readable status, not moving to {target.value}")
                    return False

                if not can_transition(current, target):
                    await pipe.unwatch()
                    logger.debug(f"Job {job_id}: {current.value} -> {target.value} not allowed")
                    return False
                if owner is not None and (worker_id or "") != owner:
                    await pipe.unwatch()
                    logger.debug(f"Job {job_id} is owned by {worker_id!r}, not {owner!r}")
                    return False

                pipe.multi()
                pipe.hset(key, mapping=mapping)
                if clear:
                    pipe.hdel(key, *clear)
                if entry is not None:
                    pipe.lpush(QUEUE_KEY, entry.to_json())
                await pipe.execute()
                return True
            except redis.WatchError:
                logger.debug(f"Job {job_id} modified concurrently, skipping")
                return False
