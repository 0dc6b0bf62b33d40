"""
Redis-based session store implementation.

Each session is one Redis string holding a JSON document with the
record's id, expiration time and data. Records with an expiration time
get a matching key expiry, so Redis evicts them on its own.
"""

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from redis.exceptions import RedisError

from sessionstore.errors import (
    SessionIdError,
    backend_error,
    corrupted_session_id,
    serialization_error,
)
from sessionstore.ids import SessionId
from sessionstore.models import Session, SessionRecord
from sessionstore.payload import check_payload
from sessionstore.store import SessionStore
from sessionstore.telemetry import short_id, store_span

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "session:"


class RedisStore(SessionStore):
    """
    Redis-backed session store implementation.

    The client is created and closed by the caller, for example with
    ``redis.asyncio.from_url(url)``. Sessions are stored under
    ``<key_prefix><session id>`` for namespace isolation.

    Attributes:
        key_prefix: Prefix prepended to every session key
    """

    backend_name = "redis"

    def __init__(self, client: "Redis", key_prefix: str = DEFAULT_KEY_PREFIX):
        """
        Initialize the Redis session store.

        Args:
            client: An async Redis client owned by the caller.
            key_prefix: Prefix for session keys. Defaults to "session:".
        """
        self._client = client
        self.key_prefix = key_prefix

    def _get_key(self, session_id: SessionId) -> str:
        """
        Generate the Redis key for a session.

        Args:
            session_id: The session identifier.

        Returns:
            Redis key with the configured prefix.
        """
        return f"{self.key_prefix}{session_id}"

    async def save(self, record: SessionRecord) -> None:
        """
        Store a session record.

        A record that has already expired is removed instead of written,
        since Redis cannot hold a key with an expiry in the past.
        """
        key = self._get_key(record.id)
        expiration = record.expiration_time

        check_payload(record.data, self.backend_name)
        try:
            payload = json.dumps({
                "id": str(record.id),
                "expiration_time": int(expiration.timestamp()) if expiration else None,
                "data": record.data,
            }, allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.error(
                "Failed to serialize session",
                extra={"extra_data": {
                    "backend": self.backend_name,
                    "operation": "save",
                    "session_id": short_id(record.id),
                    "error": str(e),
                }},
            )
            raise serialization_error(
                f"Session data is not JSON serializable: {e}", self.backend_name
            ) from e

        with store_span(self.backend_name, "save"):
            try:
                if expiration is None:
                    await self._client.set(key, payload)
                elif record.is_expired():
                    await self._client.delete(key)
                else:
                    await self._client.set(key, payload, exat=int(expiration.timestamp()))
            except (RedisError, OSError) as e:
                raise self._backend_failure("save", record.id, e) from e

        logger.debug(
            "Session saved",
            extra={"extra_data": {
                "backend": self.backend_name,
                "session_id": short_id(record.id),
            }},
        )

    async def load(self, session_id: SessionId) -> Optional[Session]:
        key = self._get_key(session_id)

        with store_span(self.backend_name, "load"):
            try:
                payload = await self._client.get(key)
            except (RedisError, OSError) as e:
                raise self._backend_failure("load", session_id, e) from e

        if payload is None:
            logger.debug(
                "Session not found",
                extra={"extra_data": {
                    "backend": self.backend_name,
                    "session_id": short_id(session_id),
                }},
            )
            return None

        record = self._decode(payload)
        # Key expiry has one-second resolution; don't rely on it alone
        if record.is_expired():
            return None
        return Session.from_record(record)

    async def delete(self, session_id: SessionId) -> None:
        with store_span(self.backend_name, "delete"):
            try:
                await self._client.delete(self._get_key(session_id))
            except (RedisError, OSError) as e:
                raise self._backend_failure("delete", session_id, e) from e

        logger.debug(
            "Session deleted",
            extra={"extra_data": {
                "backend": self.backend_name,
                "session_id": short_id(session_id),
            }},
        )

    async def delete_expired(self) -> int:
        # Redis evicts expired keys itself.
        return 0

    async def health_check(self) -> bool:
        """
        Check connectivity and health of the Redis store.

        Returns:
            True if Redis answers PING, False otherwise.
        """
        try:
            result = await self._client.ping()
            return result is True
        except Exception as e:
            logger.warning(
                "Session store health check failed",
                extra={"extra_data": {"backend": self.backend_name, "error": str(e)}},
            )
            return False

    def _decode(self, payload: Any) -> SessionRecord:
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            document = json.loads(payload)
            raw_id = document["id"]
            raw_expiration = document["expiration_time"]
            data = document["data"]
            expiration_time = None
            if raw_expiration is not None:
                expiration_time = datetime.fromtimestamp(int(raw_expiration), tz=timezone.utc)
        except (TypeError, ValueError, KeyError, OverflowError, OSError) as e:
            logger.error(
                "Failed to deserialize session",
                extra={"extra_data": {"backend": self.backend_name, "error": str(e)}},
            )
            raise serialization_error(
                f"Stored session document is malformed: {e}", self.backend_name
            ) from e

        if not isinstance(data, dict):
            raise serialization_error(
                f"Stored session data must be a JSON object, got {type(data).__name__}",
                self.backend_name,
            )

        try:
            session_id = SessionId.parse(raw_id)
        except SessionIdError as e:
            logger.error(
                "Stored session id is corrupted",
                extra={"extra_data": {"backend": self.backend_name}},
            )
            raise corrupted_session_id(str(raw_id), self.backend_name) from e

        return SessionRecord(id=session_id, expiration_time=expiration_time, data=data)

    def _backend_failure(self, operation: str, session_id: SessionId, error: Exception):
        logger.error(
            f"Failed to {operation} session in Redis",
            extra={"extra_data": {
                "backend": self.backend_name,
                "operation": operation,
                "session_id": short_id(session_id),
                "error": str(error),
            }},
        )
        return backend_error(
            f"Redis {operation} failed: {error}",
            self.backend_name,
            details={"operation": operation},
        )
