"""
Table name validation for the relational stores.

The table name is the only value interpolated into generated SQL text,
so it is checked against a strict allow-list before any store is built.
"""

import string

from sessionstore.errors import InvalidTableNameError

DEFAULT_TABLE_NAME = "sessions"

_ALLOWED_CHARACTERS = frozenset(string.ascii_letters + string.digits + "-_")


def is_valid_table_name(name: str) -> bool:
    """Whether ``name`` is non-empty ASCII alphanumerics, hyphens and underscores."""
    return bool(name) and all(c in _ALLOWED_CHARACTERS for c in name)


def validate_table_name(name: str) -> str:
    """
    Validate a table name.

    Args:
        name: Candidate table name.

    Returns:
        The name, unchanged.

    Raises:
        InvalidTableNameError: If the name is empty or contains any other
            character.
    """
    if not isinstance(name, str) or not is_valid_table_name(name):
        raise InvalidTableNameError(str(name))
    return name


def quote_identifier(name: str) -> str:
    """Quote an already validated table name for use in SQL text."""
    return f'"{validate_table_name(name)}"'
