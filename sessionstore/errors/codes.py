"""
Error code catalog for the session store.

This module defines the error codes raised by every session store
backend, covering payload serialization, backend connectivity, stored
identifier corruption and configuration mistakes.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session store.

    Each error code carries a suggested HTTP status code so that the
    session middleware consuming this package can map a failure to a
    generic response without inspecting the backend:
    - Serialization and corruption errors (500): stored state is unusable
    - Backend errors (503): the underlying store is unreachable
    - Configuration errors (500): the store was set up incorrectly
    """

    SESSION_SERIALIZATION_ERROR = "SESSION_SERIALIZATION_ERROR"
    """Session payload could not be encoded or decoded (HTTP 500)"""

    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """SQL engine, Redis or other backend unavailable (HTTP 503)"""

    SESSION_ID_CORRUPTED = "SESSION_ID_CORRUPTED"
    """Stored or supplied session identifier is malformed (HTTP 500)"""

    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    """Store configured with an invalid value (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.SESSION_SERIALIZATION_ERROR: 500,
    ErrorCode.SESSION_STORE_UNAVAILABLE: 503,
    ErrorCode.SESSION_ID_CORRUPTED: 500,
    ErrorCode.INVALID_CONFIGURATION: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
