"""
Pending job queue backed by a Redis list.

Producers LPUSH onto ``queue:jobs`` and workers BRPOP from the other end, so
the list behaves as a FIFO shared by every producer and consumer. BRPOP is
atomic: a popped entry is owned by exactly one worker.
"""

import logging
from typing import Optional

import redis.asyncio

from ..core.constants import QUEUE_KEY
from .models import QueueEntry

logger = logging.getLogger(__name__)


class JobQueue:
    """Durable FIFO of :class:`QueueEntry` payloads."""

    def __init__(self, client: redis.asyncio.Redis, key: str = QUEUE_KEY):
        self.client = client
        self.key = key

    async def enqueue(self, entry: QueueEntry) -> int:
        """Append an entry at the tail. Returns the new queue depth."""
        depth = await self.client.lpush(self.key, entry.to_json())
        logger.debug(f"Enqueued job {entry.job_id} (retries={entry.retries}, depth={depth})")
        return depth

    async def blocking_dequeue(self, timeout: float = 0) -> Optional[QueueEntry]:
        """
        Remove and return the oldest entry, waiting until one is available.

        Args:
            timeout: Seconds to wait; 0 waits indefinitely

        Returns:
            The entry, or None on timeout or when the popped payload was
            malformed (malformed payloads are logged and dropped)
        """
        result = await self.client.brpop([self.key], timeout=timeout)
        if not result:
            return None

        _, raw = result
        try:
            return QueueEntry.from_json(raw)
        except ValueError as e:
            logger.error(f"Dropping malformed queue entry {raw[:100]!r}: {e}")
            return None

    async def depth(self) -> int:
        return await self.client.llen(self.key)

    async def clear(self) -> bool:
        """Delete every pending entry. Job records are left untouched."""
        deleted = await self.client.delete(self.key)
        logger.info(f"Cleared job queue {self.key}")
        return bool(deleted)
