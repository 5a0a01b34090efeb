"""
Block range scanner.

Drives one scan cycle:
1. Determine range from the cursor (cold start scans a recent window only)
2. Query factory logs chunk by chunk
3. Decode events and resolve deployers
4. Persist all tokens of the cycle through the batcher
5. Advance the cursor unless the store was unreachable; tokens the
   store rejects one by one are logged and skipped
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import replace

from loguru import logger

from collector.config.chain_constants import TOKEN_CREATED_TOPIC
from collector.config.constants import (
    CHUNK_DELAY,
    CHUNK_FAILURE_BACKOFF,
    CHUNK_SIZE,
    COLD_START_WINDOW,
    MAX_BLOCKS_PER_SCAN,
)
from collector.services.chain.client import ChainClient, LogRecord
from collector.utils.exceptions import (
    CycleAborted,
    DecodeError,
    ProviderError,
    StoreError,
)
from collector.utils.security import mask_address

from .batcher import RateLimitedBatcher
from .cursor import CursorStore
from .deployer_resolver import DeployerResolver
from .event_decoder import decode_token_created
from .types import ScanResult, TokenCreation


class BlockRangeScanner:
    """Resumable chunked scanner for factory TokenCreated events."""

    def __init__(
        self,
        chain: ChainClient,
        resolver: DeployerResolver,
        cursor: CursorStore,
        batcher: RateLimitedBatcher,
        factory_address: str,
        event_topic: str = TOKEN_CREATED_TOPIC,
        chunk_size: int = CHUNK_SIZE,
        max_blocks_per_scan: int = MAX_BLOCKS_PER_SCAN,
        cold_start_window: int = COLD_START_WINDOW,
        chunk_delay: float = CHUNK_DELAY,
        chunk_failure_backoff: float = CHUNK_FAILURE_BACKOFF,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        if chunk_size <= 0 or max_blocks_per_scan <= 0:
            raise ValueError("chunk_size and max_blocks_per_scan must be positive")

        self.chain = chain
        self.resolver = resolver
        self.cursor = cursor
        self.batcher = batcher
        self.factory_address = factory_address.lower()
        self.event_topic = event_topic
        self.chunk_size = chunk_size
        self.max_blocks_per_scan = max_blocks_per_scan
        self.cold_start_window = cold_start_window
        self.chunk_delay = chunk_delay
        self.chunk_failure_backoff = chunk_failure_backoff
        self._sleep = sleep
        self._should_stop = should_stop or (lambda: False)

    def target_range(self, last_processed: int, current_height: int) -> tuple[int, int] | None:
        """
        Bounded range to scan this cycle.

        Returns:
            (from_block, to_block) inclusive, or None if up to date
        """
        from_block = last_processed + 1
        to_block = min(current_height, last_processed + self.max_blocks_per_scan)
        if from_block > to_block:
            return None
        return from_block, to_block

    def chunks(self, from_block: int, to_block: int) -> list[tuple[int, int]]:
        """Split an inclusive range into chunk_size sub-ranges."""
        return [
            (start, min(start + self.chunk_size - 1, to_block))
            for start in range(from_block, to_block + 1, self.chunk_size)
        ]

    async def _load_cursor(self, current_height: int) -> int:
        last = await self.cursor.load()
        if last is None:
            last = max(0, current_height - self.cold_start_window)
            logger.info(
                f"[Scanner] No cursor yet, cold start from block {last + 1} "
                f"({self.cold_start_window} blocks back from {current_height})"
            )
            await self.cursor.seed(last)
        return last

    async def _process_logs(
        self, logs: list[LogRecord], result: ScanResult
    ) -> list[TokenCreation]:
        tokens = []
        for log in logs:
            try:
                token = decode_token_created(log)
            except DecodeError as e:
                result.decode_failures += 1
                logger.warning(f"[Scanner] Skipping log: {e}")
                continue

            deployer = await self.resolver.resolve(
                token.transaction_hash, token.legacy_deployer
            )
            token = replace(token, deployer=deployer)

            logger.info(
                f"[Scanner] Found token {token.name} ({token.symbol}) at "
                f"{mask_address(token.contract_address)}, deployer "
                f"{mask_address(deployer) if deployer.startswith('0x') else deployer}"
            )
            tokens.append(token)
        return tokens

    async def scan(self) -> ScanResult:
        """
        Run one scan cycle.

        Returns:
            ScanResult with status "advanced", "up_to_date" or "aborted".
            On "aborted" the cursor is unchanged and the next cycle
            retries the same range.
        """
        try:
            current_height = await self.chain.current_height()
        except ProviderError as e:
            logger.error(f"[Scanner] Cannot read chain height: {e}")
            return ScanResult(status="aborted", error=str(e))

        try:
            last_processed = await self._load_cursor(current_height)
        except StoreError as e:
            logger.error(f"[Scanner] Cursor unavailable: {e}")
            return ScanResult(
                status="aborted", current_height=current_height, error=str(e)
            )

        result = ScanResult(
            status="up_to_date",
            current_height=current_height,
            cursor_before=last_processed,
            cursor_after=last_processed,
        )

        block_range = self.target_range(last_processed, current_height)
        if block_range is None:
            logger.debug(f"[Scanner] Up to date at block {last_processed}")
            return result

        from_block, to_block = block_range
        result.from_block, result.to_block = from_block, to_block

        if to_block < current_height:
            logger.info(
                f"[Scanner] {current_height - last_processed} blocks behind, "
                f"scanning {to_block - from_block + 1} this cycle"
            )

        chunks = self.chunks(from_block, to_block)
        logger.info(
            f"[Scanner] Scanning blocks {from_block}-{to_block} "
            f"in {len(chunks)} chunks"
        )

        try:
            for index, (chunk_start, chunk_end) in enumerate(chunks):
                if self._should_stop():
                    raise CycleAborted(
                        f"Stop requested before chunk {chunk_start}-{chunk_end}"
                    )

                try:
                    logs = await self.chain.get_logs(
                        self.factory_address,
                        self.event_topic,
                        chunk_start,
                        chunk_end,
                    )
                except ProviderError as e:
                    result.chunks_failed += 1
                    logger.warning(
                        f"[Scanner] Chunk {chunk_start}-{chunk_end} failed: {e}. "
                        f"Pausing {self.chunk_failure_backoff}s"
                    )
                    await self._sleep(self.chunk_failure_backoff)
                    continue

                result.chunks_ok += 1
                result.logs_seen += len(logs)
                if logs:
                    logger.info(
                        f"[Scanner] {len(logs)} TokenCreated events in "
                        f"blocks {chunk_start}-{chunk_end}"
                    )
                result.tokens.extend(await self._process_logs(logs, result))

                if index < len(chunks) - 1 and self.chunk_delay:
                    await self._sleep(self.chunk_delay)

            if self._should_stop():
                raise CycleAborted("Stop requested before persistence")

            report = await self.batcher.process(result.tokens)
            result.report = report

        except CycleAborted as e:
            logger.warning(f"[Scanner] Cycle aborted, cursor kept at {last_processed}: {e}")
            result.status = "aborted"
            result.error = str(e)
            return result
        except (StoreError, ProviderError) as e:
            logger.error(f"[Scanner] Persistence failed, cursor kept at {last_processed}: {e}")
            result.status = "aborted"
            result.error = str(e)
            return result

        if result.tokens and report.stored_count == 0:
            try:
                await self.batcher.writer.ping()
            except StoreError as e:
                logger.error(
                    f"[Scanner] Store unreachable, none of {len(result.tokens)} "
                    f"tokens stored, cursor kept at {last_processed}: {e}"
                )
                result.status = "aborted"
                result.error = str(e)
                return result

            logger.error(
                f"[Scanner] Store rejected all {len(result.tokens)} tokens in "
                f"blocks {from_block}-{to_block}, skipping them"
            )

        try:
            result.cursor_after = await self.cursor.advance(to_block)
        except StoreError as e:
            logger.error(f"[Scanner] Cursor not advanced: {e}")
            result.status = "aborted"
            result.error = str(e)
            return result

        result.status = "advanced"
        logger.success(
            f"[Scanner] Blocks {from_block}-{to_block} done: "
            f"{len(result.tokens)} tokens, {result.chunks_failed} failed chunks, "
            f"cursor at {result.cursor_after}"
        )
        return result
