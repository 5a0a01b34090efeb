"""
Token repository.

Data access layer for Token model.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from collector.models.token import Token
from collector.repositories.base import BaseRepository

# Event fields overwritten when a token is seen again
UPDATABLE_FIELDS = ("name", "symbol", "decimals", "deployer", "transaction_hash")


class TokenRepository(BaseRepository[Token]):
    """Repository for factory tokens."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Token, session)

    async def get_by_address(self, contract_address: str) -> Token | None:
        """Get token by contract address (case-insensitive)."""
        return await self.get_by(contract_address=contract_address.lower())

    async def get_by_addresses(
        self, addresses: Sequence[str]
    ) -> dict[str, Token]:
        """
        Get tokens by contract addresses.

        Returns:
            Mapping of lowercase address to token
        """
        if not addresses:
            return {}

        stmt = select(Token).where(
            Token.contract_address.in_([a.lower() for a in addresses])
        )
        result = await self.session.execute(stmt)
        return {t.contract_address: t for t in result.scalars().all()}

    @staticmethod
    def apply_fields(token: Token, record: dict[str, Any]) -> bool:
        """
        Overwrite updatable fields of an existing token.

        block_number keeps the first block the token was seen in.

        Returns:
            True if any field changed
        """
        changed = False
        for field in UPDATABLE_FIELDS:
            if field in record and getattr(token, field) != record[field]:
                setattr(token, field, record[field])
                changed = True
        return changed

    async def upsert_records(
        self, records: Sequence[dict[str, Any]]
    ) -> tuple[int, int]:
        """
        Insert or update tokens keyed by contract address.

        Duplicate addresses within records collapse to the last one.
        Does not commit.

        Returns:
            (inserted, updated) counts
        """
        unique: dict[str, dict[str, Any]] = {}
        for record in records:
            address = record["contract_address"].lower()
            unique[address] = {**record, "contract_address": address}

        existing = await self.get_by_addresses(list(unique))

        inserted = updated = 0
        for address, record in unique.items():
            token = existing.get(address)
            if token is None:
                self.session.add(Token(**record))
                inserted += 1
            elif self.apply_fields(token, record):
                updated += 1

        await self.session.flush()
        return inserted, updated

    async def upsert_record(self, record: dict[str, Any]) -> tuple[Token, bool]:
        """
        Insert or update a single token.

        Returns:
            (token, created)
        """
        address = record["contract_address"].lower()
        token = await self.get_by_address(address)

        if token is None:
            token = await self.create(**{**record, "contract_address": address})
            return token, True

        if self.apply_fields(token, record):
            await self.session.flush()
        return token, False

    async def find_unchecked(self, limit: int) -> list[Token]:
        """
        Get tokens without the pool-checked marker.

        Args:
            limit: Max results

        Returns:
            Oldest unchecked tokens first
        """
        stmt = (
            select(Token)
            .where(Token.pools_checked_at.is_(None))
            .order_by(Token.id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_pools(
        self, contract_address: str, pools: list[dict[str, Any]]
    ) -> Token | None:
        """
        Store pool discovery result and mark the token as checked.

        Returns:
            Updated token or None if unknown
        """
        token = await self.get_by_address(contract_address)
        if token is None:
            return None

        token.pools = pools
        token.has_pool = bool(pools)
        token.pools_checked_at = datetime.now(UTC)
        await self.session.flush()
        return token
