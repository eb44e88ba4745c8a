"""Command line interface for running and operating the fleet."""
