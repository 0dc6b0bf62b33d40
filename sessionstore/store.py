"""
Session store abstraction.

This module defines the abstract interface every session backend
implements, so session middleware can persist sessions in process
memory, SQLite, PostgreSQL or Redis without knowing which one is
configured.
"""

from abc import ABC, abstractmethod
from typing import Optional

from sessionstore.ids import SessionId
from sessionstore.models import Session, SessionRecord


class SessionStore(ABC):
    """
    Abstract base class for session storage implementations.

    All methods are async to support non-blocking I/O with external
    storage systems. Implementations never retry internally and never
    swallow errors from ``save``, ``load``, ``delete`` or
    ``delete_expired``; failures are raised as SessionStoreError
    subclasses.

    Each backend enforces expiration itself: ``load`` must not return a
    record whose expiration time is not in the future.
    """

    #: Backend name recorded in errors, logs and spans.
    backend_name: str = "abstract"

    @abstractmethod
    async def save(self, record: SessionRecord) -> None:
        """
        Persist a session record, keyed by ``record.id``.

        If a record with the same id exists, its expiration time and
        data are fully replaced.

        Args:
            record: The record to store.

        Raises:
            SessionSerializationError: If the payload cannot be encoded.
            SessionBackendError: If the underlying store fails.
        """
        pass

    @abstractmethod
    async def load(self, session_id: SessionId) -> Optional[Session]:
        """
        Retrieve a session by id.

        Args:
            session_id: Identifier of the session.

        Returns:
            The session, or None if it does not exist or has expired.

        Raises:
            SessionSerializationError: If the stored payload cannot be decoded.
            SessionIdError: If the stored identifier is corrupted.
            SessionBackendError: If the underlying store fails.
        """
        pass

    @abstractmethod
    async def delete(self, session_id: SessionId) -> None:
        """
        Delete a session by id.

        This operation is idempotent - deleting a non-existent session
        does not raise an error.

        Args:
            session_id: Identifier of the session to delete.

        Raises:
            SessionBackendError: If the underlying store fails.
        """
        pass

    @abstractmethod
    async def delete_expired(self) -> int:
        """
        Remove every record whose expiration time has passed.

        Nothing calls this automatically; applications that want expired
        rows reclaimed schedule it themselves.

        Returns:
            Number of records removed.

        Raises:
            SessionBackendError: If the underlying store fails.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check connectivity and health of the session store.

        Returns:
            True if the store is healthy and accessible, False otherwise.

        Note:
            This method should not raise exceptions - connectivity issues
            should be caught and result in a False return value.
        """
        pass
