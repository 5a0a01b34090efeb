"""
Collector main entry point.

Starts the factory token collector:
1. Startup checks (chain height, database), exit 1 on failure
2. Initial scan and pool discovery cycles
3. Scheduler and health check server
4. Graceful shutdown on SIGINT/SIGTERM
"""

import asyncio
import signal
import sys

from loguru import logger

from collector.config.database import async_session_maker, engine
from collector.config.logging import setup_logging
from collector.config.settings import settings
from collector.services.chain.web3_client import Web3ChainClient
from collector.services.token_collector.core import TokenCollector
from collector.utils.exceptions import FatalStartupError
from jobs.health import (
    set_collector,
    set_scheduler,
    start_health_server,
    stop_health_server,
)
from jobs.scheduler import create_scheduler
from jobs.tasks.pool_discovery_task import run_pool_discovery
from jobs.tasks.token_scan_task import run_token_scan


async def shutdown_handler(
    collector: TokenCollector,
    timeout: float = settings.shutdown_timeout,
) -> None:
    """
    Stop running cycles and close connections.

    The engine is disposed only after running cycles have left at a
    checkpoint or the timeout expired.
    """
    logger.info("Graceful shutdown initiated...")
    collector.request_stop()

    from jobs.scheduler import scheduler_instance

    if scheduler_instance and scheduler_instance.running:
        scheduler_instance.shutdown(wait=False)
        logger.info("Scheduler stopped")

    if await collector.wait_idle(timeout):
        logger.info("Running cycles finished")

    await engine.dispose()
    logger.info("Database connections closed")


async def main() -> None:
    """Initialize and run the collector."""
    setup_logging()

    chain = Web3ChainClient(
        settings.rpc_url,
        backup_rpc_url=settings.rpc_backup_url,
        timeout=settings.rpc_timeout,
    )
    collector = TokenCollector(chain, async_session_maker, settings)

    try:
        await collector.startup_check()
    except FatalStartupError:
        chain.close()
        await engine.dispose()
        raise

    stop_event = asyncio.Event()

    def _on_signal() -> None:
        collector.request_stop()
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _on_signal)

    scheduler = create_scheduler(collector, settings)
    set_scheduler(scheduler)
    set_collector(collector)

    runner = None
    try:
        runner = await start_health_server(port=settings.health_check_port)
    except OSError as e:
        logger.warning(f"Failed to start health check server: {e}")

    try:
        logger.info("Running initial scan and pool discovery...")
        await run_token_scan(collector)
        if not stop_event.is_set():
            await run_pool_discovery(collector)

        if not stop_event.is_set():
            scheduler.start()
            logger.success("Collector started successfully")
            await stop_event.wait()
    finally:
        await shutdown_handler(collector)
        if runner:
            await stop_health_server(runner)
        chain.close()
        logger.info("Graceful shutdown complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Collector stopped by user (KeyboardInterrupt)")
    except FatalStartupError as e:
        logger.critical(f"Startup failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Collector crashed: {e}")
        sys.exit(1)
