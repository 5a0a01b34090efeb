"""
Scan cursor model.

Tracks the last fully processed block per deployment.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from collector.models.base import Base


class ScanCursor(Base):
    """
    Persisted scan position.

    Used to:
    - Resume scanning after restart
    - Skip blocks that were already stored
    """

    __tablename__ = "scan_cursors"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Deployment identity (lowercase factory address)
    deployment: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )

    last_processed_block: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
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
            f"<ScanCursor(deployment={self.deployment}, "
            f"last_processed_block={self.last_processed_block})>"
        )
