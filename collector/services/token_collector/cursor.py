"""
Scan cursor store.

Session-bound access to the persisted scan position of one deployment.
"""

from typing import Protocol

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collector.repositories.scan_cursor_repository import ScanCursorRepository
from collector.utils.exceptions import StoreError


class CursorStore(Protocol):
    """Cursor capability used by the scanner."""

    async def load(self) -> int | None:
        ...

    async def seed(self, block: int) -> None:
        ...

    async def advance(self, block: int) -> int:
        ...


class ScanCursorStore:
    """
    Cursor store over the scan_cursors table.

    Every write is committed immediately.
    """

    def __init__(self, session: AsyncSession, deployment: str) -> None:
        """
        Initialize cursor store.

        Args:
            session: Database session
            deployment: Deployment identity (lowercase factory address)
        """
        self.session = session
        self.deployment = deployment.lower()
        self.repo = ScanCursorRepository(session)

    async def load(self) -> int | None:
        """Last processed block or None if the deployment was never scanned."""
        try:
            return await self.repo.get_last_processed_block(self.deployment)
        except SQLAlchemyError as e:
            raise StoreError(f"Cannot read scan cursor: {e}") from e

    async def seed(self, block: int) -> None:
        """Create the cursor at block (cold start)."""
        try:
            await self.repo.initialize(self.deployment, block)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(f"Cannot seed scan cursor: {e}") from e

        logger.info(f"[Cursor] Seeded {self.deployment} at block {block}")

    async def advance(self, block: int) -> int:
        """
        Move the cursor forward to block.

        Returns:
            Stored cursor value (unchanged if block is not ahead)
        """
        try:
            stored = await self.repo.advance(self.deployment, block)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreError(f"Cannot advance scan cursor: {e}") from e

        return stored
