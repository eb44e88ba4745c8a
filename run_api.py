#!/usr/bin/env python3
"""
Script to run the job fleet HTTP API.

Usage:
    python run_api.py [--host HOST] [--port PORT] [--reload]

Examples:
    python run_api.py
    python run_api.py --host 0.0.0.0 --port 3000
    python run_api.py --reload  # For development
"""

import argparse
import logging

import uvicorn
from dotenv import load_dotenv

from hashfleet.utils.logging_config import setup_component_logging

load_dotenv()

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the API server."""
    parser = argparse.ArgumentParser(description='Run the hashfleet API')
    parser.add_argument('--host', default='0.0.0.0', help='Host to bind to')
    parser.add_argument('--port', type=int, default=3000, help='Port to bind to')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload for development')
    parser.add_argument('--log-level', default='info', choices=['debug', 'info', 'warning', 'error'],
                        help='Log level')

    args = parser.parse_args()

    setup_component_logging('api', level=getattr(logging, args.log_level.upper()))
    logger.info(f"Starting hashfleet API on {args.host}:{args.port}")

    uvicorn.run(
        "hashfleet.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        access_log=True
    )


if __name__ == "__main__":
    main()
