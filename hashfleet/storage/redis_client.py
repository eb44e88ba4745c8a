"""
Redis connection factory.

Redis is the only coordination medium of the fleet: it holds job records,
the pending queue, worker heartbeats and scaler state. Every component opens
its own client through this module.
"""

import logging
from typing import Optional

import redis
import redis.asyncio

from ..core.config import Settings

logger = logging.getLogger(__name__)


def create_redis_client(
    settings: Settings, socket_timeout: Optional[float] = 10
) -> redis.asyncio.Redis:
    """
    Create an asyncio Redis client for the configured server.

    Args:
        settings: Fleet settings
        socket_timeout: Per-command socket timeout. Pass ``None`` for
            connections that issue indefinite blocking pops.

    Returns:
        Client returning ``str`` values
    """
    return redis.asyncio.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,
        decode_responses=True,
        socket_connect_timeout=10,
        socket_timeout=socket_timeout,
        retry_on_timeout=socket_timeout is not None,
        health_check_interval=30,
    )


async def close_redis_client(client: Optional[redis.asyncio.Redis]) -> None:
    """Close a client, logging rather than raising on failure."""
    if client is None:
        return
    try:
        await client.aclose()
    except redis.RedisError as e:
        logger.error(f"Error disconnecting Redis: {e}")
