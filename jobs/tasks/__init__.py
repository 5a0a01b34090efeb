"""Scheduled task functions."""

from jobs.tasks.pool_discovery_task import run_pool_discovery
from jobs.tasks.token_scan_task import run_token_scan

__all__ = ["run_pool_discovery", "run_token_scan"]
