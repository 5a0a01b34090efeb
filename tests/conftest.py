"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() before any collector import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RPC_URL", "https://mainnet.base.org")
os.environ.setdefault("LOG_FILE", "")

# Project root on PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import AsyncMock, MagicMock

from tests.fakes import (
    FakeChainClient,
    InMemoryCursorStore,
    InMemoryTokenStore,
    RecordingSleep,
)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def chain():
    """Scripted chain client at height 0."""
    return FakeChainClient()


@pytest.fixture
def token_store():
    """Empty in-memory token store."""
    return InMemoryTokenStore()


@pytest.fixture
def cursor_store():
    """Cursor store without a saved position."""
    return InMemoryCursorStore()


@pytest.fixture
def sleep():
    """Sleep replacement recording delays."""
    return RecordingSleep()
