"""
Scaler status and the administrative autoscaling flag.

The status key carries a short TTL so a crashed autoscaler reverts to
"no status" instead of advertising stale state.
"""

import logging
from typing import Optional

import redis
import redis.asyncio

from ..core.constants import (
    AUTOSCALING_CONFIG_KEY,
    SCALER_STATUS_KEY,
    SCALER_STATUS_TTL_SECONDS,
)
from ..jobs.models import ScalerStatus

logger = logging.getLogger(__name__)


class ScalerState:
    """Shared scaler state in Redis."""

    def __init__(
        self,
        client: redis.asyncio.Redis,
        status_ttl: int = SCALER_STATUS_TTL_SECONDS,
    ):
        self.client = client
        self.status_ttl = status_ttl

    async def publish_status(self, status: ScalerStatus) -> bool:
        """Write the status; failures are logged and reported as False."""
        try:
            await self.client.set(SCALER_STATUS_KEY, status.value, ex=self.status_ttl)
            return True
        except redis.RedisError as e:
            logger.error(f"Error setting scaler status: {e}")
            return False

    async def get_status(self) -> Optional[ScalerStatus]:
        value = await self.client.get(SCALER_STATUS_KEY)
        if value is None:
            return None
        try:
            return ScalerStatus(value)
        except ValueError:
            logger.warning(f"Unknown scaler status {value!r}")
            return None

    async def autoscaling_enabled(self) -> bool:
        """Enabled unless explicitly set to ``false``."""
        value = await self.client.get(AUTOSCALING_CONFIG_KEY)
        return value != "false"

    async def set_autoscaling(self, enabled: bool) -> bool:
        await self.client.set(AUTOSCALING_CONFIG_KEY, "true" if enabled else "false")
        logger.info(f"Autoscaling {'enabled' if enabled else 'disabled'}")
        return enabled
