"""
Pluggable session persistence.

This package provides one storage contract (SessionStore) for saving,
loading and deleting session records, with interchangeable backends:
in-process memory, SQLite, PostgreSQL and Redis.
"""

from sessionstore.errors import (
    ErrorCode,
    InvalidTableNameError,
    SessionBackendError,
    SessionIdError,
    SessionSerializationError,
    SessionStoreError,
)
from sessionstore.factory import create_session_store
from sessionstore.ids import SessionId
from sessionstore.memory_store import MemoryStore
from sessionstore.models import Session, SessionRecord
from sessionstore.redis_store import RedisStore
from sessionstore.sql import DEFAULT_TABLE_NAME, PostgresStore, SqliteStore
from sessionstore.store import SessionStore

__all__ = [
    "DEFAULT_TABLE_NAME",
    "ErrorCode",
    "InvalidTableNameError",
    "MemoryStore",
    "PostgresStore",
    "RedisStore",
    "Session",
    "SessionBackendError",
    "SessionId",
    "SessionIdError",
    "SessionRecord",
    "SessionSerializationError",
    "SessionStore",
    "SessionStoreError",
    "SqliteStore",
    "create_session_store",
]
