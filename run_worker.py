#!/usr/bin/env python3
"""
Start one hash worker.

The worker pulls jobs from Redis until it receives SIGTERM or SIGINT. Run
several copies (or let the autoscaler scale the compose service) for more
throughput.

Usage:
    python run_worker.py [--log-level LEVEL]
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from hashfleet.core.config import Settings
from hashfleet.core.exceptions import ConfigurationError
from hashfleet.jobs.worker import run_worker
from hashfleet.utils.logging_config import setup_component_logging

load_dotenv()


def main():
    parser = argparse.ArgumentParser(description='Run a hashfleet worker')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args()

    logger = setup_component_logging('worker', level=getattr(logging, args.log_level))

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(2)

    asyncio.run(run_worker(settings))


if __name__ == "__main__":
    main()
