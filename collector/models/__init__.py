"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from collector.models.base import Base
from collector.models.scan_cursor import ScanCursor
from collector.models.token import Token

__all__ = [
    "Base",
    "ScanCursor",
    "Token",
]
