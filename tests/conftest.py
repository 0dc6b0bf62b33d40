"""
Shared pytest fixtures and configuration for all tests.
"""
import logging
import os
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from hypothesis import Phase, Verbosity, settings

from sessionstore import MemoryStore, SessionId, SessionRecord, SqliteStore
from sessionstore.config import clear_settings_cache
from sessionstore.telemetry import reset_telemetry

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

# Fast profile: quick smoke tests
settings.register_profile(
    "fast",
    max_examples=20,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture(autouse=True)
def _isolate_globals() -> Generator[None, None, None]:
    """Reset cached settings, telemetry and package logging between tests."""
    package_logger = logging.getLogger("sessionstore")
    handlers = package_logger.handlers[:]
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    clear_settings_cache()
    reset_telemetry()
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate


@pytest.fixture
def memory_store() -> MemoryStore:
    """Fresh in-memory store."""
    return MemoryStore()


@pytest.fixture
def sqlite_connection() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite database usable from executor threads."""
    connection = sqlite3.connect(":memory:", check_same_thread=False)
    yield connection
    connection.close()


@pytest_asyncio.fixture
async def sqlite_store(sqlite_connection: sqlite3.Connection) -> SqliteStore:
    """SQLite store with its table created."""
    store = SqliteStore(sqlite_connection)
    await store.migrate()
    return store


@pytest.fixture
def mock_pg_pool() -> MagicMock:
    """Create a mock asyncpg pool for unit tests."""
    mock = MagicMock()
    mock.execute = AsyncMock(return_value="INSERT 0 1")
    mock.fetchrow = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_redis() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    mock = MagicMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.ping = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def session_id() -> SessionId:
    return SessionId.generate()


@pytest.fixture
def future_expiration() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=1)


@pytest.fixture
def past_expiration() -> datetime:
    return datetime.now(timezone.utc) - timedelta(seconds=1)


@pytest.fixture
def sample_record(session_id: SessionId, future_expiration: datetime) -> SessionRecord:
    """A record that is valid for the next hour."""
    return SessionRecord(
        id=session_id,
        expiration_time=future_expiration,
        data={"user": 1, "roles": ["admin"], "cart": {"items": 2}},
    )
