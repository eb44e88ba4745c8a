"""
Distributed job processing for hashfleet.

This module provides the Redis-based job lifecycle:
- Job records and queue entries
- Single-job workers with TTL heartbeats
- Orphan recovery for jobs owned by dead workers
- Admission control and status lookups
"""

from .models import Algorithm, JobRecord, JobStatus, QueueEntry, ScalerStatus
from .queue import JobQueue
from .store import JobStore
from .liveness import LivenessRegistry
from .worker import HashWorker, run_worker
from .janitor import Janitor, JanitorReport
from .service import JobService

__all__ = [
    "Algorithm",
    "JobRecord",
    "JobStatus",
    "QueueEntry",
    "ScalerStatus",
    "JobQueue",
    "JobStore",
    "LivenessRegistry",
    "HashWorker",
    "run_worker",
    "Janitor",
    "JanitorReport",
    "JobService",
]
