"""
Token storage service.

Database-backed token store used by the writer and pool discovery.
Every operation runs in its own committed transaction.
"""

from collections.abc import Sequence

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collector.models.token import Token
from collector.repositories.token_repository import TokenRepository
from collector.services.base_service import BaseService, transaction
from collector.services.token_collector.types import (
    PoolInfo,
    TokenCreation,
    UpsertCounts,
)
from collector.utils.exceptions import StoreError
from collector.utils.security import mask_address


class TokenStorageService(BaseService):
    """Idempotent token persistence keyed by contract address."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service."""
        super().__init__(session)
        self.repo = TokenRepository(session)

    @transaction
    async def upsert_many(self, tokens: Sequence[TokenCreation]) -> UpsertCounts:
        """
        Bulk upsert tokens in one transaction.

        Re-applying the same tokens reports zero inserts.

        Raises:
            StoreError: If the transaction failed (nothing is written)
        """
        inserted, updated = await self.repo.upsert_records(
            [token.to_record() for token in tokens]
        )
        logger.debug(
            f"[Storage] Bulk upsert: {inserted} inserted, {updated} updated"
        )
        return UpsertCounts(inserted=inserted, updated=updated)

    @transaction
    async def upsert_one(self, token: TokenCreation) -> tuple[Token, bool]:
        """
        Upsert a single token.

        Returns:
            (stored token, created)

        Raises:
            StoreError: If the write failed
        """
        return await self.repo.upsert_record(token.to_record())

    async def find_unprocessed_for_pools(self, limit: int) -> list[str]:
        """
        Addresses of tokens never probed for pools.

        Raises:
            StoreError: If the query failed
        """
        try:
            tokens = await self.repo.find_unchecked(limit)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot load unchecked tokens: {e}") from e
        return [t.contract_address for t in tokens]

    @transaction
    async def save_pools(
        self, contract_address: str, pools: Sequence[PoolInfo]
    ) -> None:
        """Persist discovered pools and the pool-checked marker."""
        token = await self.repo.set_pools(
            contract_address, [pool.to_dict() for pool in pools]
        )
        if token is None:
            logger.warning(
                f"[Storage] Cannot save pools, token "
                f"{mask_address(contract_address)} not stored"
            )

    async def ping(self) -> None:
        """
        Check store connectivity.

        Raises:
            StoreError: If the database is unreachable
        """
        try:
            await self.session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreError(f"Database unreachable: {e}") from e
