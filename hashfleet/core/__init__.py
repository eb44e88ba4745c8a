"""Core module exports"""

from .config import Settings
from .exceptions import (
    HashFleetError,
    ConfigurationError,
    AdmissionError,
    BackpressureError,
    ExecutionError,
    UnsupportedAlgorithmError,
    FleetControllerError,
    StoreError,
)

__all__ = [
    # Config
    "Settings",
    # Exceptions
    "HashFleetError",
    "ConfigurationError",
    "AdmissionError",
    "BackpressureError",
    "ExecutionError",
    "UnsupportedAlgorithmError",
    "FleetControllerError",
    "StoreError",
]
