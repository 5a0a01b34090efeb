"""
Base service class.

Provides session management and the transaction helper shared by
database-backed services.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from collector.utils.exceptions import StoreError

# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()


def transaction(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success. On a database error rolls back and raises
    StoreError so callers never see driver exceptions.

    Usage:
        @transaction
        async def save(self, ...):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> T:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except SQLAlchemyError as e:
            await self.rollback()
            self.logger.error(f"Transaction failed in {func.__name__}: {e}")
            raise StoreError(f"{func.__name__} failed: {e}") from e

    return wrapper
