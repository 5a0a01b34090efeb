"""
Base repository.

Repositories flush but never commit; the owning service decides when
a unit of work ends.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from collector.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Lookup and insert helpers shared by the token and cursor repositories.

    Example:
        class TokenRepository(BaseRepository[Token]):
            def __init__(self, session: AsyncSession):
                super().__init__(Token, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by(self, **filters: Any) -> ModelType | None:
        """Return the row matching unique-column filters, or None."""
        result = await self.session.execute(select(self.model).filter_by(**filters))
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Insert a row and flush it.

        The row is refreshed so server defaults (id, timestamps) are
        loaded before the caller reads them.

        Args:
            **data: Column values

        Returns:
            Persisted row
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
