"""System-wide constants"""

# Redis key layout
JOB_KEY_PREFIX = "job:"
QUEUE_KEY = "queue:jobs"
HEARTBEAT_KEY_PREFIX = "worker:heartbeat:"
SCALER_STATUS_KEY = "scaler:status"
AUTOSCALING_CONFIG_KEY = "config:autoscaling"

# Redis connection defaults
REDIS_HOST = "localhost"
REDIS_PORT = 6379
REDIS_DB = 0

# Worker liveness
HEARTBEAT_INTERVAL_SECONDS = 1.0
HEARTBEAT_TTL_SECONDS = 3  # must exceed the interval so one missed beat is tolerated
WORKER_ERROR_BACKOFF_SECONDS = 5.0
SIMULATED_DELAY_MS = 2000

# Crash recovery
JANITOR_INTERVAL_SECONDS = 5.0
MAX_RETRIES = 3
MAX_RETRIES_ERROR = "max retries exceeded"
DATA_LOST_ERROR = "data lost, cannot retry"
SHUTDOWN_ERROR = "Worker shutting down"

# Autoscaling
AUTOSCALER_INTERVAL_SECONDS = 0.5
MIN_WORKERS = 1
MAX_WORKERS = 10
JOBS_PER_WORKER = 2
SCALER_STATUS_TTL_SECONDS = 10

# Admission control
MAX_QUEUE_DEPTH = 5000
MAX_TEXT_BYTES = 5 * 1024 * 1024  # 5MB request ceiling

# Fleet controller
COMPOSE_PROJECT_DIR = "/project"
COMPOSE_SERVICE = "worker"


def job_key(job_id: str) -> str:
    return f"{JOB_KEY_PREFIX}{job_id}"


def heartbeat_key(worker_id: str) -> str:
    return f"{HEARTBEAT_KEY_PREFIX}{worker_id}"
