"""
Backend selection.

The host application builds its own pool, connection or client and hands
it over here together with the settings; this module only decides which
store class wraps it.
"""

import logging
from typing import Any, Optional

from sessionstore.config import ConfigurationError, SessionStoreSettings, StoreType
from sessionstore.memory_store import MemoryStore
from sessionstore.redis_store import RedisStore
from sessionstore.sql import PostgresStore, SqliteStore
from sessionstore.store import SessionStore

logger = logging.getLogger(__name__)


def create_session_store(
    settings: SessionStoreSettings,
    pool: Optional[Any] = None,
) -> SessionStore:
    """
    Create the session store named by ``settings.store_type``.

    Args:
        settings: Validated session store settings.
        pool: The backend handle owned by the caller: a
            ``sqlite3.Connection`` for sqlite, an ``asyncpg.Pool`` for
            postgres, a ``redis.asyncio.Redis`` client for redis. Ignored
            for memory.

    Returns:
        A store implementing the SessionStore contract.

    Raises:
        ConfigurationError: If a durable backend is selected without a pool.
    """
    store_type = StoreType(settings.store_type)

    if store_type == StoreType.MEMORY:
        store: SessionStore = MemoryStore()
    else:
        if pool is None:
            raise ConfigurationError(
                f"store_type '{store_type.value}' requires a connection pool or client",
                missing_fields=["pool"],
            )
        if store_type == StoreType.SQLITE:
            store = SqliteStore(pool, table_name=settings.table_name)
        elif store_type == StoreType.POSTGRES:
            store = PostgresStore(pool, table_name=settings.table_name)
        else:
            store = RedisStore(pool, key_prefix=settings.redis_key_prefix)

    logger.info(
        "Session store created",
        extra={"extra_data": {"backend": store.backend_name}},
    )
    return store
