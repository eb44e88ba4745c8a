"""
Data models for distributed job processing system.

A job lives in two places: the authoritative job record (a Redis hash at
``job:<id>``) and, while waiting for a worker, a denormalized queue entry
(a JSON string in ``queue:jobs``).
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.exceptions import StoreError


class JobStatus(str, Enum):
    """Job processing states."""
    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.FAILED)


class Algorithm(str, Enum):
    """Hash algorithms accepted at submission."""
    SHA256 = "sha256"
    BCRYPT = "bcrypt"


class ScalerStatus(str, Enum):
    """Externally visible state of the autoscaler."""
    IDLE = "idle"
    SCALING_UP = "scaling_up"
    SCALING_DOWN = "scaling_down"
    PAUSED = "paused"


# Allowed status edges; failed and done are terminal. The janitor's
# processing -> queued edge is the only way back.
TRANSITIONS = {
    JobStatus.QUEUED: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.DONE, JobStatus.FAILED, JobStatus.QUEUED},
    JobStatus.DONE: set(),
    JobStatus.FAILED: set(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    return target in TRANSITIONS[current]


def _parse_retries(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        retries = int(value)
    except (TypeError, ValueError):
        raise StoreError(f"Invalid retries value: {value!r}")
    if retries < 0:
        raise StoreError(f"Negative retries value: {retries}")
    return retries


@dataclass
class JobRecord:
    """Authoritative state for one job, stored as a Redis hash."""
    job_id: str
    status: JobStatus
    text: Optional[str] = None
    algorithm: Optional[str] = None
    worker_id: str = ""
    retries: int = 0
    hash: Optional[str] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    updated_at: Optional[str] = None

    # Python attribute -> Redis hash field
    FIELD_NAMES = {
        "text": "text",
        "algorithm": "algorithm",
        "worker_id": "workerId",
        "hash": "hash",
        "error": "error",
        "created_at": "createdAt",
        "started_at": "startedAt",
        "finished_at": "finishedAt",
        "updated_at": "updatedAt",
    }

    def to_redis(self) -> Dict[str, str]:
        """Convert to a flat string mapping for HSET, omitting unset fields."""
        data = {"status": self.status.value, "retries": str(self.retries)}
        for attr, field_name in self.FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is not None:
                data[field_name] = value
        return data

    @classmethod
    def from_redis(cls, job_id: str, data: Dict[str, str]) -> "JobRecord":
        """Create instance from an HGETALL result."""
        if not data:
            raise StoreError(f"Job {job_id} not found")
        try:
            status = JobStatus(data.get("status"))
        except ValueError:
            raise StoreError(f"Job {job_id} has invalid status {data.get('status')!r}")
        kwargs = {
            attr: data.get(field_name)
            for attr, field_name in cls.FIELD_NAMES.items()
        }
        kwargs["worker_id"] = kwargs["worker_id"] or ""
        return cls(
            job_id=job_id,
            status=status,
            retries=_parse_retries(data.get("retries")),
            **kwargs,
        )

    @property
    def has_payload(self) -> bool:
        return self.text is not None

    def to_queue_entry(self) -> "QueueEntry":
        return QueueEntry(
            job_id=self.job_id,
            text=self.text,
            algorithm=self.algorithm or "",
            retries=self.retries,
        )


@dataclass
class QueueEntry:
    """
    Denormalized copy of a job placed on the pending queue.

    ``text`` is None when the payload did not survive; the worker fails
    such jobs instead of hashing an empty string.
    """
    job_id: str
    text: Optional[str]
    algorithm: str
    retries: int = 0
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "jobId": self.job_id,
            "text": self.text,
            "algorithm": self.algorithm,
            "status": JobStatus.QUEUED.value,
            "retries": self.retries,
        }
        if self.created_at:
            data["createdAt"] = self.created_at
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueueEntry":
        job_id = data.get("jobId")
        if not job_id or not isinstance(job_id, str):
            raise ValueError("Queue entry is missing jobId")
        try:
            retries = _parse_retries(data.get("retries"))
        except StoreError as e:
            raise ValueError(str(e))
        text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise ValueError("Queue entry text must be a string")
        return cls(
            job_id=job_id,
            text=text,
            algorithm=data.get("algorithm") or "",
            retries=retries,
            created_at=data.get("createdAt"),
        )

    @classmethod
    def from_json(cls, raw: str) -> "QueueEntry":
        """Parse a queue payload; raises ValueError when malformed."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Queue entry is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise ValueError("Queue entry must be a JSON object")
        return cls.from_dict(data)
