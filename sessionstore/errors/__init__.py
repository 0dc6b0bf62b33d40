"""
Error handling module for the session store.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- SessionStoreError and one subclass per failure kind
- Factory helpers the backends use to tag errors with their name
"""

from sessionstore.errors.codes import ErrorCode
from sessionstore.errors.exceptions import (
    InvalidTableNameError,
    SessionBackendError,
    SessionIdError,
    SessionSerializationError,
    SessionStoreError,
    backend_error,
    corrupted_session_id,
    serialization_error,
)

__all__ = [
    "ErrorCode",
    "InvalidTableNameError",
    "SessionBackendError",
    "SessionIdError",
    "SessionSerializationError",
    "SessionStoreError",
    "backend_error",
    "corrupted_session_id",
    "serialization_error",
]
