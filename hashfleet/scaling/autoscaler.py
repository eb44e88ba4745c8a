"""
Autoscaler control loop.

Every cycle recomputes the desired fleet size from the queue depth alone;
nothing is integrated across cycles. The only state carried between cycles
is the last known fleet size and the in-flight guard that keeps at most one
resize running against the fleet controller.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Optional

import redis.asyncio

from ..core.config import Settings
from ..core.exceptions import FleetControllerError
from ..jobs.liveness import LivenessRegistry
from ..jobs.models import ScalerStatus
from ..jobs.queue import JobQueue
from ..storage.redis_client import create_redis_client, close_redis_client
from .fleet import FleetController
from .state import ScalerState

logger = logging.getLogger(__name__)


def compute_desired_workers(
    queue_depth: int,
    min_workers: int,
    max_workers: int,
    jobs_per_worker: int,
) -> int:
    """
    Fleet size for a given backlog.

    ``ceil(depth / jobs_per_worker)`` capped at ``max_workers`` while there is
    backlog, ``min_workers`` once the queue is empty.
    """
    if queue_depth <= 0:
        return min_workers
    desired = min(math.ceil(queue_depth / jobs_per_worker), max_workers)
    return max(desired, min_workers)


@dataclass
class ScalingDecision:
    """What one cycle decided."""
    queue_depth: int
    current_workers: int
    desired_workers: int
    status: ScalerStatus
    target: Optional[int] = None  # replica count to converge to, None for no change


def decide(
    queue_depth: int,
    current_workers: int,
    min_workers: int,
    max_workers: int,
    jobs_per_worker: int,
) -> ScalingDecision:
    """
    Scale up whenever the backlog calls for more workers; scale down only
    on a fully drained queue, straight to ``min_workers``.
    """
    desired = compute_desired_workers(queue_depth, min_workers, max_workers, jobs_per_worker)

    if desired > current_workers:
        return ScalingDecision(queue_depth, current_workers, desired,
                               ScalerStatus.SCALING_UP, target=desired)
    if desired < current_workers and queue_depth == 0:
        return ScalingDecision(queue_depth, current_workers, desired,
                               ScalerStatus.SCALING_DOWN, target=min_workers)
    return ScalingDecision(queue_depth, current_workers, desired, ScalerStatus.IDLE)


class Autoscaler:
    """Periodic queue-depth driven fleet sizing."""

    def __init__(
        self,
        settings: Settings,
        fleet: FleetController,
        client: Optional[redis.asyncio.Redis] = None,
    ):
        self.settings = settings
        self.fleet = fleet
        self.client = client
        self._owns_client = client is None

        self.current_workers = settings.min_workers
        self.is_scaling = False
        self._converge_task: Optional[asyncio.Task] = None

        self._running = False
        self._task: Optional[asyncio.Task] = None

        self.queue: Optional[JobQueue] = None
        self.liveness: Optional[LivenessRegistry] = None
        self.state: Optional[ScalerState] = None
        if client is not None:
            self._bind(client)

    def _bind(self, client: redis.asyncio.Redis):
        self.client = client
        self.queue = JobQueue(client)
        self.liveness = LivenessRegistry(client, self.settings.heartbeat_ttl)
        self.state = ScalerState(client, self.settings.scaler_status_ttl)

    async def run_cycle(self) -> Optional[ScalingDecision]:
        """
        One control-loop iteration.

        Returns:
            The decision, or None when autoscaling is paused
        """
        if not await self.state.autoscaling_enabled():
            await self.state.publish_status(ScalerStatus.PAUSED)
            return None

        queue_depth = await self.queue.depth()
        live_workers = await self.liveness.count_live()
        if not self.is_scaling:
            # While a resize is in flight the registry lags the controller
            self.current_workers = live_workers

        logger.debug(f"Queue: {queue_depth}, Workers: {self.current_workers}")

        decision = decide(
            queue_depth,
            self.current_workers,
            self.settings.min_workers,
            self.settings.max_workers,
            self.settings.jobs_per_worker,
        )
        await self.state.publish_status(decision.status)

        if decision.target is not None:
            if self.is_scaling:
                logger.debug(f"Resize already in flight, not converging to {decision.target}")
            else:
                self._start_converge(decision.target)
        return decision

    def _start_converge(self, count: int):
        self.is_scaling = True
        self._converge_task = asyncio.create_task(self._converge(count))

    async def _converge(self, count: int):
        logger.info(f"Scaling workers to {count}...")
        try:
            if await self.fleet.converge(count):
                self.current_workers = count
                logger.info(f"Scaled to {count} workers")
            else:
                logger.error(f"Fleet controller failed to scale to {count} workers")
        except FleetControllerError as e:
            logger.error(f"Error scaling: {e}")
        except Exception as e:
            logger.error(f"Unexpected error scaling to {count} workers: {e}")
        finally:
            self.is_scaling = False

    async def wait_for_convergence(self):
        """Wait for an in-flight resize, if any, to finish."""
        if self._converge_task:
            await self._converge_task

    async def start(self):
        if self._running:
            logger.warning("Autoscaler already running")
            return
        if self.client is None:
            self._bind(create_redis_client(self.settings))
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Autoscaler started. Monitoring queue...")

    async def stop(self):
        if not self._running:
            return
        self._running = False
        for task in (self._task, self._converge_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        if self._owns_client:
            await close_redis_client(self.client)
        logger.info("Autoscaler stopped")

    async def _loop(self):
        while self._running:
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error checking queue: {e}")
            await asyncio.sleep(self.settings.autoscaler_interval)
