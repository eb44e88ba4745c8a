"""Autoscaling of the worker fleet."""

from .autoscaler import Autoscaler, ScalingDecision, compute_desired_workers, decide
from .fleet import (
    FleetController,
    DockerComposeFleetController,
    StaticFleetController,
    create_fleet_controller,
)
from .state import ScalerState

__all__ = [
    "Autoscaler",
    "ScalingDecision",
    "compute_desired_workers",
    "decide",
    "FleetController",
    "DockerComposeFleetController",
    "StaticFleetController",
    "create_fleet_controller",
    "ScalerState",
]
