"""
hashfleet - self-scaling distributed text-hashing job fleet.

Workers pull jobs from a shared Redis list, a janitor recovers jobs orphaned
by crashed workers and an autoscaler resizes the worker fleet to match load.
"""

__version__ = "0.1.0"
