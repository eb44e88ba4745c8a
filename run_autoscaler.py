#!/usr/bin/env python3
"""
Start the autoscaler control loop.

Usage:
    python run_autoscaler.py [--fleet compose|static] [--log-level LEVEL]

Examples:
    # Scale the docker compose "worker" service (default)
    python run_autoscaler.py

    # Publish decisions only; workers are started by hand
    python run_autoscaler.py --fleet static
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from hashfleet.core.config import Settings
from hashfleet.core.exceptions import ConfigurationError
from hashfleet.scaling.autoscaler import Autoscaler
from hashfleet.scaling.fleet import create_fleet_controller
from hashfleet.utils.lifecycle import run_until_signalled
from hashfleet.utils.logging_config import setup_component_logging

load_dotenv()


async def run_autoscaler(settings: Settings, fleet_kind: str):
    fleet = create_fleet_controller(
        fleet_kind,
        project_dir=settings.compose_project_dir,
        service=settings.compose_service,
    )
    await run_until_signalled(Autoscaler(settings, fleet))


def main():
    parser = argparse.ArgumentParser(description='Run the hashfleet autoscaler')
    parser.add_argument('--fleet', default='compose', choices=['compose', 'static'],
                        help='How worker replicas are started and stopped')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args()

    logger = setup_component_logging('autoscaler', level=getattr(logging, args.log_level))

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(2)

    asyncio.run(run_autoscaler(settings, args.fleet))


if __name__ == "__main__":
    main()
