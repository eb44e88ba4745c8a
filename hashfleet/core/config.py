"""
Runtime settings for every hashfleet component.

Settings are read from environment variables. Launch scripts call
``load_dotenv()`` first so a local ``.env`` file can provide them.
"""

import os
import socket
from dataclasses import dataclass, field
from typing import Optional

from . import constants
from .exceptions import ConfigurationError


def default_worker_id() -> str:
    return f"worker-{socket.gethostname()}-{os.getpid()}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    """Settings shared by the worker, janitor, autoscaler and API."""

    redis_host: str = constants.REDIS_HOST
    redis_port: int = constants.REDIS_PORT
    redis_db: int = constants.REDIS_DB
    redis_password: Optional[str] = None

    worker_id: str = field(default_factory=default_worker_id)
    simulated_delay_ms: int = constants.SIMULATED_DELAY_MS
    heartbeat_interval: float = constants.HEARTBEAT_INTERVAL_SECONDS
    heartbeat_ttl: int = constants.HEARTBEAT_TTL_SECONDS
    worker_error_backoff: float = constants.WORKER_ERROR_BACKOFF_SECONDS

    janitor_interval: float = constants.JANITOR_INTERVAL_SECONDS
    max_retries: int = constants.MAX_RETRIES

    autoscaler_interval: float = constants.AUTOSCALER_INTERVAL_SECONDS
    min_workers: int = constants.MIN_WORKERS
    max_workers: int = constants.MAX_WORKERS
    jobs_per_worker: int = constants.JOBS_PER_WORKER
    scaler_status_ttl: int = constants.SCALER_STATUS_TTL_SECONDS

    max_queue_depth: int = constants.MAX_QUEUE_DEPTH
    max_text_bytes: int = constants.MAX_TEXT_BYTES

    compose_project_dir: str = constants.COMPOSE_PROJECT_DIR
    compose_service: str = constants.COMPOSE_SERVICE

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Reject combinations that would break liveness or scaling."""
        if self.heartbeat_interval <= 0:
            raise ConfigurationError("HEARTBEAT_INTERVAL_S must be positive")
        if self.heartbeat_ttl <= self.heartbeat_interval:
            raise ConfigurationError(
                f"HEARTBEAT_TTL_S ({self.heartbeat_ttl}) must be greater than "
                f"HEARTBEAT_INTERVAL_S ({self.heartbeat_interval})"
            )
        if self.min_workers < 0:
            raise ConfigurationError("MIN_WORKERS cannot be negative")
        if self.max_workers < self.min_workers:
            raise ConfigurationError(
                f"MAX_WORKERS ({self.max_workers}) must be >= MIN_WORKERS ({self.min_workers})"
            )
        if self.jobs_per_worker < 1:
            raise ConfigurationError("JOBS_PER_WORKER must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("MAX_RETRIES cannot be negative")
        if self.simulated_delay_ms < 0:
            raise ConfigurationError("SIMULATED_DELAY_MS cannot be negative")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        return cls(
            redis_host=os.getenv("REDIS_HOST", constants.REDIS_HOST),
            redis_port=_env_int("REDIS_PORT", constants.REDIS_PORT),
            redis_db=_env_int("REDIS_DB", constants.REDIS_DB),
            redis_password=os.getenv("REDIS_PASSWORD") or None,
            worker_id=os.getenv("WORKER_ID") or default_worker_id(),
            simulated_delay_ms=_env_int("SIMULATED_DELAY_MS", constants.SIMULATED_DELAY_MS),
            heartbeat_interval=_env_float(
                "HEARTBEAT_INTERVAL_S", constants.HEARTBEAT_INTERVAL_SECONDS
            ),
            heartbeat_ttl=_env_int("HEARTBEAT_TTL_S", constants.HEARTBEAT_TTL_SECONDS),
            worker_error_backoff=_env_float(
                "WORKER_ERROR_BACKOFF_S", constants.WORKER_ERROR_BACKOFF_SECONDS
            ),
            janitor_interval=_env_float("JANITOR_INTERVAL_S", constants.JANITOR_INTERVAL_SECONDS),
            max_retries=_env_int("MAX_RETRIES", constants.MAX_RETRIES),
            autoscaler_interval=_env_float(
                "AUTOSCALER_INTERVAL_S", constants.AUTOSCALER_INTERVAL_SECONDS
            ),
            min_workers=_env_int("MIN_WORKERS", constants.MIN_WORKERS),
            max_workers=_env_int("MAX_WORKERS", constants.MAX_WORKERS),
            jobs_per_worker=_env_int("JOBS_PER_WORKER", constants.JOBS_PER_WORKER),
            scaler_status_ttl=_env_int(
                "SCALER_STATUS_TTL_S", constants.SCALER_STATUS_TTL_SECONDS
            ),
            max_queue_depth=_env_int("MAX_QUEUE_DEPTH", constants.MAX_QUEUE_DEPTH),
            max_text_bytes=_env_int("MAX_TEXT_BYTES", constants.MAX_TEXT_BYTES),
            compose_project_dir=os.getenv(
                "COMPOSE_PROJECT_DIR", constants.COMPOSE_PROJECT_DIR
            ),
            compose_service=os.getenv("COMPOSE_SERVICE", constants.COMPOSE_SERVICE),
        )
