"""
Relational session stores.

SqliteStore and PostgresStore share SqlSessionStore's statements and
table-name validation and differ only in driver, placeholder syntax and
expiration column type.
"""

from sessionstore.sql.base import SqlSessionStore
from sessionstore.sql.postgres_store import PostgresStore
from sessionstore.sql.sqlite_store import SqliteStore
from sessionstore.sql.table_name import (
    DEFAULT_TABLE_NAME,
    is_valid_table_name,
    validate_table_name,
)

__all__ = [
    "DEFAULT_TABLE_NAME",
    "PostgresStore",
    "SqlSessionStore",
    "SqliteStore",
    "is_valid_table_name",
    "validate_table_name",
]
