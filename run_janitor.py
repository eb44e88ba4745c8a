#!/usr/bin/env python3
"""
Start the janitor that recovers jobs orphaned by crashed workers.

Usage:
    python run_janitor.py [--log-level LEVEL]
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from hashfleet.core.config import Settings
from hashfleet.core.exceptions import ConfigurationError
from hashfleet.jobs.janitor import Janitor
from hashfleet.utils.lifecycle import run_until_signalled
from hashfleet.utils.logging_config import setup_component_logging

load_dotenv()


async def run_janitor(settings: Settings):
    await run_until_signalled(Janitor(settings))


def main():
    parser = argparse.ArgumentParser(description='Run the hashfleet janitor')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args()

    logger = setup_component_logging('janitor', level=getattr(logging, args.log_level))

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(2)

    asyncio.run(run_janitor(settings))


if __name__ == "__main__":
    main()
