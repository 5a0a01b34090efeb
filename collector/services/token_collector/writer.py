"""
Two-tier token writer.

Attempts a bulk upsert for a batch; when the bulk write fails it
falls back to single-token upserts and reports partial success.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from loguru import logger

from collector.config.constants import FALLBACK_ITEM_DELAY
from collector.utils.exceptions import StoreError
from collector.utils.security import mask_address

from .types import TokenCreation, UpsertCounts, WriteResult


class TokenStore(Protocol):
    """Storage capability used by the writer and pool discovery."""

    async def upsert_many(self, tokens: Sequence[TokenCreation]) -> UpsertCounts:
        ...

    async def upsert_one(self, token: TokenCreation) -> tuple[Any, bool]:
        ...

    async def find_unprocessed_for_pools(self, limit: int) -> list[str]:
        ...

    async def save_pools(self, contract_address: str, pools: Sequence[Any]) -> None:
        ...

    async def ping(self) -> None:
        ...


class TokenWriter:
    """Bulk write with single-item fallback."""

    def __init__(
        self,
        store: TokenStore,
        item_delay: float = FALLBACK_ITEM_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize writer.

        Args:
            store: Token store
            item_delay: Pause between single-token writes in seconds
            sleep: Async sleep function
        """
        self.store = store
        self.item_delay = item_delay
        self._sleep = sleep

    async def ping(self) -> None:
        """Raise StoreError if the store is unreachable."""
        await self.store.ping()

    async def write(self, batch: Sequence[TokenCreation]) -> WriteResult:
        """
        Write one batch of tokens.

        Returns:
            WriteResult with counts; bulk_failed marks use of the fallback path
        """
        if not batch:
            return WriteResult()

        try:
            counts = await self.store.upsert_many(batch)
        except StoreError as e:
            logger.error(
                f"[Writer] Bulk write of {len(batch)} tokens failed: {e}. "
                f"Falling back to single writes"
            )
            return await self._write_individually(batch)

        return WriteResult(
            inserted=counts.inserted,
            updated=counts.updated,
            stored=[token.contract_address for token in batch],
        )

    async def _write_individually(
        self, batch: Sequence[TokenCreation]
    ) -> WriteResult:
        result = WriteResult(bulk_failed=True)

        for index, token in enumerate(batch):
            if index > 0 and self.item_delay:
                await self._sleep(self.item_delay)

            try:
                _record, created = await self.store.upsert_one(token)
            except StoreError as e:
                result.failed += 1
                logger.warning(
                    f"[Writer] Token {mask_address(token.contract_address)} "
                    f"not stored: {e}"
                )
                continue

            if created:
                result.inserted += 1
            else:
                result.updated += 1
            result.stored.append(token.contract_address)

        logger.info(
            f"[Writer] Fallback complete: {result.stored_count} stored, "
            f"{result.failed} failed"
        )
        return result
