"""
Scan cursor repository.

Data access layer for ScanCursor model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from collector.models.scan_cursor import ScanCursor
from collector.repositories.base import BaseRepository


class ScanCursorRepository(BaseRepository[ScanCursor]):
    """Repository for scan cursors."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ScanCursor, session)

    async def get_by_deployment(self, deployment: str) -> ScanCursor | None:
        """Get cursor row for a deployment."""
        return await self.get_by(deployment=deployment.lower())

    async def get_last_processed_block(self, deployment: str) -> int | None:
        """
        Get last processed block.

        Returns:
            Block number or None if the deployment has no cursor yet
        """
        cursor = await self.get_by_deployment(deployment)
        return cursor.last_processed_block if cursor else None

    async def initialize(self, deployment: str, block: int) -> ScanCursor:
        """
        Create the cursor if missing.

        An existing cursor is returned untouched.
        """
        cursor = await self.get_by_deployment(deployment)
        if cursor:
            return cursor

        return await self.create(
            deployment=deployment.lower(), last_processed_block=block
        )

    async def advance(self, deployment: str, block: int) -> int:
        """
        Move cursor forward.

        The cursor never moves backwards; a block at or behind
        the stored value is ignored.

        Returns:
            Stored block after the call
        """
        cursor = await self.get_by_deployment(deployment)
        if cursor is None:
            cursor = await self.create(
                deployment=deployment.lower(), last_processed_block=block
            )
            return cursor.last_processed_block

        if block > cursor.last_processed_block:
            cursor.last_processed_block = block
            await self.session.flush()

        return cursor.last_processed_block
