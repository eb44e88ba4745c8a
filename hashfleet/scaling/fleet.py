"""
Fleet controllers: the out-of-band mechanism that runs K worker replicas.

The autoscaler only ever asks for a replica count. How replicas are started
or stopped, and how long that takes, is up to the controller.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..core.constants import COMPOSE_PROJECT_DIR, COMPOSE_SERVICE
from ..core.exceptions import FleetControllerError

logger = logging.getLogger(__name__)


class FleetController(ABC):
    """Abstract base class for fleet controllers"""

    @abstractmethod
    async def converge(self, replicas: int) -> bool:
        """Ask for exactly ``replicas`` workers. Returns True on success."""
        pass


class DockerComposeFleetController(FleetController):
    """Scales a docker compose service in place."""

    def __init__(
        self,
        project_dir: str = COMPOSE_PROJECT_DIR,
        service: str = COMPOSE_SERVICE,
        timeout: float = 120.0,
    ):
        self.project_dir = project_dir
        self.service = service
        self.timeout = timeout

    def build_command(self, replicas: int) -> List[str]:
        return [
            "docker", "compose", "up", "-d",
            "--scale", f"{self.service}={replicas}",
            "--no-recreate",
        ]

    async def converge(self, replicas: int) -> bool:
        if replicas < 0:
            raise FleetControllerError(f"Invalid replica count: {replicas}")

        command = self.build_command(replicas)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=self.project_dir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            raise FleetControllerError(f"Cannot run {' '.join(command)}: {e}")

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise FleetControllerError(
                f"Scaling to {replicas} timed out after {self.timeout}s"
            )

        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            logger.error(f"docker compose exited with {process.returncode}: {message}")
            return False
        return True


class StaticFleetController(FleetController):
    """
    Records requested sizes without starting anything.

    For single-host runs where workers are started by hand; the autoscaler
    still publishes its decisions.
    """

    def __init__(self):
        self.requested: Optional[int] = None
        self.history: List[int] = []

    async def converge(self, replicas: int) -> bool:
        self.requested = replicas
        self.history.append(replicas)
        logger.info(f"Static fleet: {replicas} workers requested (no action taken)")
        return True


def create_fleet_controller(kind: str, project_dir: str = COMPOSE_PROJECT_DIR,
                            service: str = COMPOSE_SERVICE) -> FleetController:
    """Build a controller by name: ``compose`` or ``static``."""
    if kind == "compose":
        return DockerComposeFleetController(project_dir=project_dir, service=service)
    if kind == "static":
        return StaticFleetController()
    raise FleetControllerError(f"Unknown fleet controller: {kind}")
