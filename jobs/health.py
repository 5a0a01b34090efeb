"""
Health check server for the collector process.

/health reports scheduler jobs and whether a cycle is in flight,
/readiness turns green once the first scan cycle has finished,
/liveness answers while the event loop runs and /status exposes
the last scan and pool cycle summaries.
"""

import asyncio
from typing import Any

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

_scheduler: AsyncIOScheduler | None = None
_collector: Any = None


def set_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """Register the scheduler whose jobs are reported on /health."""
    global _scheduler
    _scheduler = scheduler


def set_collector(collector: Any) -> None:
    """
    Register the token collector.

    Args:
        collector: Object with a status() method returning a dict
    """
    global _collector
    _collector = collector


def _job_info(scheduler: AsyncIOScheduler) -> list[dict[str, Any]]:
    return [
        {
            "id": job.id,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
        }
        for job in scheduler.get_jobs()
    ]


async def health_handler(request: web.Request) -> web.Response:
    """Scheduler state plus in-flight cycles."""
    if _scheduler is None or _collector is None:
        return web.json_response(
            {"status": "unhealthy", "error": "Collector not initialized"},
            status=503,
        )

    state = _collector.status()
    running = _scheduler.running
    return web.json_response(
        {
            "status": "healthy" if running else "stopped",
            "scheduler_running": running,
            "scan_running": state["scan_running"],
            "pools_running": state["pools_running"],
            "stop_requested": state["stop_requested"],
            "jobs": _job_info(_scheduler),
        },
        status=200 if running else 503,
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """Ready once the scheduler runs and one scan cycle has finished."""
    last_scan = _collector.status()["last_scan"] if _collector else None
    ready = bool(_scheduler and _scheduler.running and last_scan is not None)

    return web.json_response(
        {"ready": ready, "last_scan_status": last_scan["status"] if last_scan else None},
        status=200 if ready else 503,
    )


async def liveness_handler(request: web.Request) -> web.Response:
    return web.json_response({"alive": True})


async def status_handler(request: web.Request) -> web.Response:
    if _collector is None:
        return web.json_response(
            {"status": "unavailable", "error": "Collector not initialized"},
            status=503,
        )

    return web.json_response({"status": "ok", **_collector.status()})


def create_health_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
    app.router.add_get("/status", status_handler)
    return app


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start the health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner to pass to stop_health_server
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    await web.TCPSite(runner, host, port).start()

    logger.info(
        f"Health check server listening on {host}:{port} "
        "(/health, /readiness, /liveness, /status)"
    )
    return runner


async def stop_health_server(runner: web.AppRunner, timeout: int = 5) -> None:
    """Clean up the health server, giving up after timeout seconds."""
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
