"""
Pool discovery background task.

Probes liquidity pools for tokens that were never checked,
a limited number per run. Should run every 30 minutes.
"""

import asyncio
from typing import Any

from loguru import logger

from collector.services.token_collector.core import TokenCollector


async def run_pool_discovery(
    collector: TokenCollector, limit: int | None = None
) -> dict[str, Any]:
    """
    Process pools for unchecked tokens.

    Args:
        collector: Shared token collector
        limit: Max tokens this run (settings default if None)

    Returns:
        Dict with discovery results
    """
    try:
        return await collector.run_pool_cycle(limit)
    except asyncio.CancelledError:
        logger.info("[Pool Task] Task cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Pool Task] Task failed: {e}")
        return {"status": "error", "error": str(e)}
