"""
Token scan background task.

Runs one scan cycle of the factory token collector:
1. Scan new blocks for TokenCreated events
2. Persist the tokens found
3. Probe pools for the tokens stored this cycle

Should run every minute.
"""

import asyncio
from typing import Any

from loguru import logger

from collector.services.token_collector.core import TokenCollector


async def run_token_scan(collector: TokenCollector) -> dict[str, Any]:
    """
    Main scan task.

    Args:
        collector: Shared token collector

    Returns:
        Dict with cycle results
    """
    try:
        results = await collector.run_scan_cycle()
    except asyncio.CancelledError:
        logger.info("[Scan Task] Task cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Scan Task] Task failed: {e}")
        return {"status": "error", "error": str(e)}

    if results.get("status") == "aborted":
        logger.warning(
            f"[Scan Task] Cycle aborted: {results.get('error')}, "
            f"will retry from block {results.get('cursor_before')}"
        )
    elif results.get("tokens"):
        logger.info(
            f"[Scan Task] {results['tokens']} tokens "
            f"({results['inserted']} new, {results['updated']} updated)"
        )

    return results
