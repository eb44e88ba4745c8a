"""
Worker liveness registry.

Each worker owns one ``worker:heartbeat:<id>`` key with a short TTL and
refreshes it periodically. Expiry is the only death signal: nothing ever
deletes these keys explicitly.
"""

import logging
from typing import Set

import redis.asyncio

from ..core.constants import HEARTBEAT_KEY_PREFIX, HEARTBEAT_TTL_SECONDS, heartbeat_key

logger = logging.getLogger(__name__)


class LivenessRegistry:
    """TTL-based presence markers for workers."""

    def __init__(self, client: redis.asyncio.Redis, ttl_seconds: int = HEARTBEAT_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def refresh(self, worker_id: str) -> bool:
        """Create or extend the worker's presence marker."""
        result = await self.client.set(heartbeat_key(worker_id), "1", ex=self.ttl_seconds)
        return bool(result)

    async def list_live(self) -> Set[str]:
        """IDs of every worker whose marker has not expired."""
        live = set()
        async for key in self.client.scan_iter(match=f"{HEARTBEAT_KEY_PREFIX}*"):
            live.add(key[len(HEARTBEAT_KEY_PREFIX):])
        return live

    async def count_live(self) -> int:
        return len(await self.list_live())
