"""
Token model.

Tokens created by the factory, keyed by contract address,
with their liquidity pool information.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from collector.models.base import Base


class Token(Base):
    """
    Factory token.

    Pool data is filled in by pool discovery:
    - pools_checked_at is NULL until the token was probed once
    - has_pool tells whether any verified pool was found
    - pools holds the verified pools as a JSON list
    """

    __tablename__ = "tokens"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identification (normalized to lowercase)
    contract_address: Mapped[str] = mapped_column(
        String(42), nullable=False, unique=True, index=True
    )

    # Metadata from the TokenCreated event
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    symbol: Mapped[str] = mapped_column(Text, nullable=False, default="")
    decimals: Mapped[int] = mapped_column(Integer, nullable=False, default=18)

    # Resolved deployer address or "unknown"
    deployer: Mapped[str] = mapped_column(String(42), nullable=False, index=True)

    # First block the token was seen in
    block_number: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True
    )
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)

    # Pools
    has_pool: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    pools: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    pools_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Token(address={self.contract_address}, symbol={self.symbol}, "
            f"deployer={self.deployer}, has_pool={self.has_pool})>"
        )

    @property
    def pools_checked(self) -> bool:
        """Check if pool discovery already ran for this token."""
        return self.pools_checked_at is not None
