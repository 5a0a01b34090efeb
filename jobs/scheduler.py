"""
Job scheduler.

Registers the scan and pool discovery cycles on an AsyncIOScheduler.
A job that is still running when its next run is due is not started
again, missed runs are merged into one.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from collector.config.settings import Settings
from collector.services.token_collector.core import TokenCollector
from jobs.tasks.pool_discovery_task import run_pool_discovery
from jobs.tasks.token_scan_task import run_token_scan

SCAN_JOB_ID = "token_scan"
POOL_JOB_ID = "pool_discovery"

# Global scheduler reference for shutdown
scheduler_instance: AsyncIOScheduler | None = None


def create_scheduler(
    collector: TokenCollector, config: Settings
) -> AsyncIOScheduler:
    """
    Create scheduler with collector jobs.

    Args:
        collector: Shared token collector
        config: Collector settings (intervals)

    Returns:
        Configured, not yet started scheduler
    """
    global scheduler_instance

    scheduler = AsyncIOScheduler(
        job_defaults={"max_instances": 1, "coalesce": True},
    )

    scheduler.add_job(
        run_token_scan,
        "interval",
        seconds=config.scan_interval_seconds,
        args=[collector],
        id=SCAN_JOB_ID,
        name="Factory token scan",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        run_pool_discovery,
        "interval",
        minutes=config.pool_check_interval_minutes,
        args=[collector],
        id=POOL_JOB_ID,
        name="Pool discovery",
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        f"[Scheduler] Scan every {config.scan_interval_seconds}s, "
        f"pool discovery every {config.pool_check_interval_minutes}min"
    )

    scheduler_instance = scheduler
    return scheduler
