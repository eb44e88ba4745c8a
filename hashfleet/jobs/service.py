"""
Job submission, status and fleet observability.

This is the boundary the HTTP API and CLI talk to. Admission control lives
here: a job record is only ever created for a valid submission while the
queue is below its ceiling.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

import redis.asyncio

from ..core.config import Settings
from ..core.constants import job_key
from ..core.exceptions import AdmissionError, BackpressureError
from ..scaling.state import ScalerState
from ..utils.timezone_utils import isoformat_utc
from . import executors
from .liveness import LivenessRegistry
from .models import Algorithm, JobRecord, JobStatus, QueueEntry, ScalerStatus
from .queue import JobQueue
from .store import JobStore

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = {a.value for a in Algorithm}


def project_job(job_id: str, data: Dict[str, str]) -> Dict[str, Any]:
    """Status-specific view of a record for point lookups."""
    status = data.get("status")
    if status == JobStatus.DONE.value:
        return {
            "jobId": job_id,
            "status": status,
            "algorithm": data.get("algorithm"),
            "hash": data.get("hash"),
            "finishedAt": data.get("finishedAt"),
        }
    if status == JobStatus.PROCESSING.value:
        return {
            "jobId": job_id,
            "status": status,
            "workerId": data.get("workerId"),
            "retries": data.get("retries"),
        }
    return {
        "jobId": job_id,
        "status": status,
        "error": data.get("error"),
    }


def project_batch_item(job_id: str, data: Dict[str, str]) -> Dict[str, Any]:
    """View of a record for batched lookups; missing records read as unknown."""
    if not data:
        return {"jobId": job_id, "status": "unknown"}
    return {
        "jobId": job_id,
        "status": data.get("status"),
        "workerId": data.get("workerId"),
        "hash": data.get("hash"),
        "text": data.get("text"),
        "error": data.get("error"),
        "retries": data.get("retries"),
    }


class JobService:
    """Operations the fleet exposes to clients and administrators."""

    def __init__(self, client: redis.asyncio.Redis, settings: Settings):
        self.client = client
        self.settings = settings
        self.store = JobStore(client)
        self.queue = JobQueue(client)
        self.liveness = LivenessRegistry(client, settings.heartbeat_ttl)
        self.scaler_state = ScalerState(client, settings.scaler_status_ttl)

    def validate_submission(self, text: Any, algorithm: Any) -> None:
        """Raise AdmissionError for anything a worker should never see."""
        if not isinstance(text, str) or not text:
            raise AdmissionError("Text is required")
        if len(text.encode("utf-8")) > self.settings.max_text_bytes:
            raise AdmissionError(
                f"Text exceeds the {self.settings.max_text_bytes} byte limit"
            )
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise AdmissionError("Only sha256 and bcrypt algorithms are supported")

    async def submit(self, text: Any, algorithm: Any) -> str:
        """
        Create a queued job.

        Raises:
            AdmissionError: invalid text or algorithm
            BackpressureError: queue depth reached the ceiling

        Returns:
            The new job ID
        """
        self.validate_submission(text, algorithm)

        depth = await self.queue.depth()
        if depth >= self.settings.max_queue_depth:
            logger.warning(f"Rejecting submission: queue depth {depth} at ceiling")
            raise BackpressureError("System overloaded. Please try again later.")

        if not executors.is_executable(algorithm):
            logger.warning(f"Accepting {algorithm} job with no executor; it will fail when processed")

        job_id = str(uuid.uuid4())
        now = isoformat_utc()
        record = JobRecord(
            job_id=job_id,
            status=JobStatus.QUEUED,
            text=text,
            algorithm=algorithm,
            retries=0,
            created_at=now,
            updated_at=now,
        )
        entry = QueueEntry(job_id=job_id, text=text, algorithm=algorithm, created_at=now)
        await self.store.create(record, entry)

        logger.info(f"Job {job_id} queued")
        return job_id

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        data = await self.client.hgetall(job_key(job_id))
        if not data:
            return None
        return project_job(job_id, data)

    async def get_jobs(self, job_ids: Iterable[str]) -> List[Dict[str, Any]]:
        job_ids = list(job_ids)
        results = await self.store.get_many_raw(job_ids)
        return [project_batch_item(job_id, data) for job_id, data in zip(job_ids, results)]

    async def get_stats(self) -> Dict[str, Any]:
        """Live workers, queue depth and scaler status for dashboards."""
        active_workers = await self.liveness.count_live()
        queue_length = await self.queue.depth()
        status = await self.scaler_state.get_status()
        return {
            "activeWorkers": active_workers,
            "queueLength": queue_length,
            "scalerStatus": (status or ScalerStatus.IDLE).value,
        }

    async def clear_queue(self) -> None:
        await self.queue.clear()

    async def get_autoscaling(self) -> bool:
        return await self.scaler_state.autoscaling_enabled()

    async def set_autoscaling(self, enabled: bool) -> bool:
        return await self.scaler_state.set_autoscaling(enabled)
