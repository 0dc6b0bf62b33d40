"""
Exception classes for the session store.

Every backend raises subclasses of SessionStoreError, so callers can
catch one type regardless of which store is configured. Each subclass
pins the ErrorCode for its failure kind; the backend that raised it is
recorded in ``details["backend"]``.
"""

from typing import Any, Optional

from sessionstore.errors.codes import ErrorCode, get_default_status_code


class SessionStoreError(Exception):
    """
    Base exception class for all session store errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The HTTP status code a caller should respond with
    - details: Optional additional context (e.g., backend, table name)

    Example:
        raise SessionStoreError(
            error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
            message="Failed to save session",
            details={"backend": "postgres"}
        )
    """

    default_error_code: ErrorCode = ErrorCode.SESSION_STORE_UNAVAILABLE

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize a SessionStoreError.

        Args:
            message: A human-readable error message
            error_code: The error code (defaults to the class's code)
            status_code: The HTTP status code (defaults to the error code's default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code or self.default_error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(self.error_code)
        self.details = details
        super().__init__(message)

    @property
    def backend(self) -> Optional[str]:
        """Name of the backend that raised the error, if recorded."""
        if self.details is None:
            return None
        return self.details.get("backend")

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.

        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


class SessionSerializationError(SessionStoreError):
    """Session payload could not be encoded to or decoded from storage."""

    default_error_code = ErrorCode.SESSION_SERIALIZATION_ERROR


class SessionBackendError(SessionStoreError):
    """The underlying store was unreachable or rejected a statement."""

    default_error_code = ErrorCode.SESSION_STORE_UNAVAILABLE


class SessionIdError(SessionStoreError, ValueError):
    """A session identifier failed to parse."""

    default_error_code = ErrorCode.SESSION_ID_CORRUPTED


class InvalidTableNameError(SessionStoreError, ValueError):
    """A relational store was configured with an unsafe table name."""

    default_error_code = ErrorCode.INVALID_CONFIGURATION

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(
            f"Invalid table name {table_name!r}. Table names must be "
            "alphanumeric and may contain hyphens or underscores.",
            details={"table_name": table_name},
        )


# Convenience factory functions used by the backends

def serialization_error(
    message: str,
    backend: str,
    details: Optional[dict[str, Any]] = None
) -> SessionSerializationError:
    """Create a serialization error for the given backend."""
    return SessionSerializationError(
        message=message,
        details={"backend": backend, **(details or {})}
    )


def backend_error(
    message: str,
    backend: str,
    details: Optional[dict[str, Any]] = None
) -> SessionBackendError:
    """Create a backend unavailable error for the given backend."""
    return SessionBackendError(
        message=message,
        details={"backend": backend, **(details or {})}
    )


def corrupted_session_id(
    value: str,
    backend: Optional[str] = None
) -> SessionIdError:
    """Create an error for a stored identifier that no longer parses."""
    details: dict[str, Any] = {"value": value}
    if backend is not None:
        details["backend"] = backend
    return SessionIdError(
        message=f"Invalid session id: {value!r}",
        details=details
    )
