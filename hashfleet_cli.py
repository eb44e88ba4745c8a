#!/usr/bin/env python3
"""
hashfleet CLI - run and operate the job fleet.

Usage:
    hashfleet [OPTIONS] COMMAND [ARGS]...

Components:
    hashfleet worker
    hashfleet janitor
    hashfleet autoscaler --fleet compose
    hashfleet api --port 3000

Operations:
    hashfleet submit "hello world" --algorithm sha256
    hashfleet status <job-id> [<job-id> ...]
    hashfleet stats
    hashfleet scaling off
    hashfleet clear-queue
"""

from hashfleet.cli.main import cli

if __name__ == "__main__":
    cli()
