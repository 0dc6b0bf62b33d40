"""
SQLite session store.

Uses the standard library ``sqlite3`` driver. The connection belongs to
the caller; the store never opens or closes it. Statements run in the
event loop's default executor, one at a time, and each write commits
before it returns.
"""

import asyncio
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sessionstore.sql.base import SqlSessionStore
from sessionstore.sql.table_name import DEFAULT_TABLE_NAME


class SqliteStore(SqlSessionStore):
    """
    A SQLite session store.

    Expiration times are stored as integer Unix timestamps (seconds).

    Example:
        >>> connection = sqlite3.connect("sessions.db", check_same_thread=False)
        >>> store = SqliteStore(connection)
        >>> await store.migrate()
    """

    backend_name = "sqlite"
    expiration_column_type = "integer"
    backend_errors = (sqlite3.Error,)

    def __init__(
        self,
        connection: sqlite3.Connection,
        table_name: str = DEFAULT_TABLE_NAME,
    ):
        """
        Initialize the store.

        Args:
            connection: Open connection, created with
                ``check_same_thread=False`` since statements run on
                executor threads.
            table_name: Name of the session table.

        Raises:
            InvalidTableNameError: If the table name is not allowed.
        """
        super().__init__(table_name)
        self._connection = connection
        # sqlite3 connections must not be used by two threads at once
        self._lock = threading.Lock()

    def _placeholder(self, index: int) -> str:
        return "?"

    def _encode_expiration(self, value: Optional[datetime]) -> Optional[int]:
        if value is None:
            return None
        return int(value.timestamp())

    def _decode_expiration(self, value: Any) -> Optional[datetime]:
        if value is None:
            return None
        return datetime.fromtimestamp(int(value), tz=timezone.utc)

    async def _execute(self, query: str, params: Sequence[Any]) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._execute_sync, query, tuple(params))

    async def _fetch_one(self, query: str, params: Sequence[Any]) -> Optional[Sequence[Any]]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._fetch_one_sync, query, tuple(params))

    def _execute_sync(self, query: str, params: tuple) -> int:
        with self._lock:
            # Commits on success, rolls back on error
            with self._connection:
                cursor = self._connection.execute(query, params)
                return max(cursor.rowcount, 0)

    def _fetch_one_sync(self, query: str, params: tuple) -> Optional[Sequence[Any]]:
        with self._lock:
            return self._connection.execute(query, params).fetchone()
