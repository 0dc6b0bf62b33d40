"""
PostgreSQL session store.

Uses an asyncpg connection pool supplied by the caller. The pool decides
how many statements run concurrently and how callers queue when it is
exhausted; this store adds no throttling of its own.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Sequence

import asyncpg

from sessionstore.models import normalize_expiration
from sessionstore.sql.base import SqlSessionStore
from sessionstore.sql.table_name import DEFAULT_TABLE_NAME

if TYPE_CHECKING:
    from asyncpg import Pool


class PostgresStore(SqlSessionStore):
    """
    A PostgreSQL session store.

    Expiration times are stored as ``timestamptz``.

    Thread Safety:
        Safe to share between tasks. The asyncpg pool handles connection
        management internally.

    Example:
        >>> pool = await asyncpg.create_pool(dsn)
        >>> store = PostgresStore(pool, table_name="web_sessions")
        >>> await store.migrate()
    """

    backend_name = "postgres"
    expiration_column_type = "timestamptz"
    backend_errors = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)

    def __init__(self, pool: "Pool", table_name: str = DEFAULT_TABLE_NAME):
        """
        Initialize the store.

        Args:
            pool: asyncpg pool owned by the caller. The store never
                closes it.
            table_name: Name of the session table.

        Raises:
            InvalidTableNameError: If the table name is not allowed.
        """
        super().__init__(table_name)
        self._pool = pool

    def _placeholder(self, index: int) -> str:
        return f"${index}"

    def _encode_expiration(self, value: Optional[datetime]) -> Optional[datetime]:
        return value

    def _decode_expiration(self, value: Any) -> Optional[datetime]:
        return normalize_expiration(value)

    async def _execute(self, query: str, params: Sequence[Any]) -> int:
        status = await self._pool.execute(query, *params)
        return _affected_rows(status)

    async def _fetch_one(self, query: str, params: Sequence[Any]) -> Optional[Sequence[Any]]:
        return await self._pool.fetchrow(query, *params)


def _affected_rows(status: str) -> int:
    """Row count from a command tag such as ``"DELETE 3"``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
