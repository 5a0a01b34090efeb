"""
Rate-limited batch persistence.

Splits tokens into bounded batches and paces them with a backoff
delay that grows on failed batches and is capped at max_delay.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from loguru import logger

from collector.config.constants import (
    BATCH_BACKOFF_FACTOR,
    INITIAL_BATCH_DELAY,
    MAX_BATCH_DELAY,
    MAX_BATCH_SIZE,
)
from collector.utils.exceptions import CycleAborted

from .types import BatchReport, TokenCreation, WriteResult
from .writer import TokenWriter


class RateLimitedBatcher:
    """
    Batch writer with escalating backoff.

    The delay is never reset by a successful batch within one invocation:
    it only grows while the store keeps failing.
    """

    def __init__(
        self,
        writer: TokenWriter,
        max_batch_size: int = MAX_BATCH_SIZE,
        initial_delay: float = INITIAL_BATCH_DELAY,
        backoff_factor: float = BATCH_BACKOFF_FACTOR,
        max_delay: float = MAX_BATCH_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        """
        Initialize batcher.

        Args:
            writer: Two-tier token writer
            max_batch_size: Tokens per batch
            initial_delay: Delay between batches before any failure (seconds)
            backoff_factor: Delay multiplier applied after a failed batch
            max_delay: Delay cap (seconds)
            sleep: Async sleep function
            should_stop: Stop flag checked between batches
        """
        if max_batch_size <= 0:
            raise ValueError("max_batch_size must be positive")
        if backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

        self.writer = writer
        self.max_batch_size = max_batch_size
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self._sleep = sleep
        self._should_stop = should_stop or (lambda: False)

    def partition(
        self, tokens: Sequence[TokenCreation]
    ) -> list[list[TokenCreation]]:
        """Split tokens into consecutive batches of max_batch_size."""
        return [
            list(tokens[i:i + self.max_batch_size])
            for i in range(0, len(tokens), self.max_batch_size)
        ]

    def escalate(self, delay: float) -> float:
        """Next delay after a failed batch."""
        return min(delay * self.backoff_factor, self.max_delay)

    async def process(self, tokens: Sequence[TokenCreation]) -> BatchReport:
        """
        Persist tokens batch by batch.

        Every batch is attempted even if earlier ones failed.

        Returns:
            Aggregated BatchReport

        Raises:
            CycleAborted: If a stop was requested between batches
        """
        delay = min(self.initial_delay, self.max_delay)
        report = BatchReport(final_delay=delay)

        batches = self.partition(tokens)
        if not batches:
            return report

        logger.info(
            f"[Batcher] Persisting {len(tokens)} tokens in "
            f"{len(batches)} batches"
        )

        for index, batch in enumerate(batches):
            if index > 0:
                if self._should_stop():
                    raise CycleAborted(
                        f"Stop requested after {index}/{len(batches)} batches"
                    )
                report.delays.append(delay)
                await self._sleep(delay)

            try:
                result = await self.writer.write(batch)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"[Batcher] Batch {index + 1}/{len(batches)} failed: {e}"
                )
                result = WriteResult(failed=len(batch), bulk_failed=True)

            report.add(result)

            if result.bulk_failed:
                delay = self.escalate(delay)
                logger.warning(
                    f"[Batcher] Batch {index + 1}/{len(batches)} degraded "
                    f"({result.failed} failed), backoff now {delay:.2f}s"
                )

        report.final_delay = delay

        logger.info(
            f"[Batcher] Done: {report.inserted} new, {report.updated} updated, "
            f"{report.failed} failed in {report.batches} batches"
        )
        return report
