"""
Shared implementation of the relational session stores.

SqlSessionStore turns the store contract into five statements against a
single table and leaves connection handling, placeholder syntax and the
expiration column type to the engine-specific subclasses.

Schema (identical across engines apart from the expiration type):

    id              text primary key not null
    expiration_time <integer | timestamptz> null
    data            text not null   -- JSON-encoded session payload
"""

import logging
from abc import abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Optional, Sequence, TypeVar

from sessionstore.errors import (
    SessionIdError,
    backend_error,
    corrupted_session_id,
)
from sessionstore.ids import SessionId
from sessionstore.models import Session, SessionRecord, utc_now
from sessionstore.payload import decode_payload, encode_payload
from sessionstore.sql.table_name import (
    DEFAULT_TABLE_NAME,
    quote_identifier,
    validate_table_name,
)
from sessionstore.store import SessionStore
from sessionstore.telemetry import short_id, store_span

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlSessionStore(SessionStore):
    """
    Base class for session stores backed by a SQL engine.

    Subclasses provide the engine hooks: ``_placeholder``,
    ``_encode_expiration``, ``_decode_expiration``, ``_execute`` and
    ``_fetch_one``, plus the ``backend_errors`` they translate into
    SessionBackendError.

    The table name is validated here, before any statement is built,
    and is the only value interpolated into SQL text. Every data value
    is a bound parameter.
    """

    #: Column type used for expiration_time in ``migrate``.
    expiration_column_type: str = "integer"

    #: Engine exceptions reported as SessionBackendError.
    backend_errors: tuple[type[BaseException], ...] = ()

    def __init__(self, table_name: str = DEFAULT_TABLE_NAME):
        """
        Initialize the store.

        Args:
            table_name: Name of the session table.

        Raises:
            InvalidTableNameError: If the table name is not allowed.
        """
        self.table_name = validate_table_name(table_name)
        table = quote_identifier(self.table_name)
        p = self._placeholder

        self._migrate_query = (
            f"create table if not exists {table} ("
            " id text primary key not null,"
            f" expiration_time {self.expiration_column_type} null,"
            " data text not null"
            ")"
        )
        self._save_query = (
            f"insert into {table} (id, expiration_time, data)"
            f" values ({p(1)}, {p(2)}, {p(3)})"
            " on conflict (id) do update set"
            " expiration_time = excluded.expiration_time,"
            " data = excluded.data"
        )
        self._load_query = (
            f"select id, expiration_time, data from {table}"
            f" where id = {p(1)}"
            f" and (expiration_time is null or expiration_time > {p(2)})"
        )
        self._delete_query = f"delete from {table} where id = {p(1)}"
        self._delete_expired_query = (
            f"delete from {table} where expiration_time <= {p(1)}"
        )

    # ------------------------------------------------------------------
    # Engine hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _placeholder(self, index: int) -> str:
        """Bind-parameter marker for the 1-based ``index``."""

    @abstractmethod
    def _encode_expiration(self, value: Optional[datetime]) -> Any:
        """Convert an expiration time to the engine's column value."""

    @abstractmethod
    def _decode_expiration(self, value: Any) -> Optional[datetime]:
        """Convert a stored column value back to an expiration time."""

    @abstractmethod
    async def _execute(self, query: str, params: Sequence[Any]) -> int:
        """Run a statement and return the number of affected rows."""

    @abstractmethod
    async def _fetch_one(self, query: str, params: Sequence[Any]) -> Optional[Sequence[Any]]:
        """Run a query and return its first row, if any."""

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def migrate(self) -> None:
        """
        Create the session table if it does not exist.

        Safe to call on every startup.

        Raises:
            SessionBackendError: If the engine rejects the statement.
        """
        await self._call("migrate", self._execute(self._migrate_query, ()))
        logger.info(
            "Session table ready",
            extra={"extra_data": {"backend": self.backend_name, "table": self.table_name}},
        )

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    async def save(self, record: SessionRecord) -> None:
        payload = encode_payload(record.data, self.backend_name)
        params = (
            str(record.id),
            self._encode_expiration(record.expiration_time),
            payload,
        )
        with store_span(self.backend_name, "save", {"db.sql.table": self.table_name}):
            await self._call("save", self._execute(self._save_query, params), record.id)

        logger.debug(
            "Session saved",
            extra={"extra_data": {
                "backend": self.backend_name,
                "session_id": short_id(record.id),
            }},
        )

    async def load(self, session_id: SessionId) -> Optional[Session]:
        params = (str(session_id), self._encode_expiration(utc_now()))
        with store_span(self.backend_name, "load", {"db.sql.table": self.table_name}):
            row = await self._call(
                "load", self._fetch_one(self._load_query, params), session_id
            )

        if row is None:
            logger.debug(
                "Session not found",
                extra={"extra_data": {
                    "backend": self.backend_name,
                    "session_id": short_id(session_id),
                }},
            )
            return None

        return Session.from_record(self._row_to_record(row))

    async def delete(self, session_id: SessionId) -> None:
        with store_span(self.backend_name, "delete", {"db.sql.table": self.table_name}):
            await self._call(
                "delete", self._execute(self._delete_query, (str(session_id),)), session_id
            )

        logger.debug(
            "Session deleted",
            extra={"extra_data": {
                "backend": self.backend_name,
                "session_id": short_id(session_id),
            }},
        )

    async def delete_expired(self) -> int:
        params = (self._encode_expiration(utc_now()),)
        with store_span(self.backend_name, "delete_expired", {"db.sql.table": self.table_name}):
            count = await self._call(
                "delete_expired", self._execute(self._delete_expired_query, params)
            )

        if count:
            logger.info(
                "Expired sessions removed",
                extra={"extra_data": {"backend": self.backend_name, "count": count}},
            )
        return count

    async def health_check(self) -> bool:
        try:
            row = await self._fetch_one("select 1", ())
            return row is not None
        except Exception as e:
            logger.warning(
                "Session store health check failed",
                extra={"extra_data": {"backend": self.backend_name, "error": str(e)}},
            )
            return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call(
        self,
        operation: str,
        awaitable: Awaitable[T],
        session_id: Optional[SessionId] = None,
    ) -> T:
        """Await an engine call, translating engine errors."""
        try:
            return await awaitable
        except self.backend_errors as e:
            context = {"backend": self.backend_name, "operation": operation, "error": str(e)}
            if session_id is not None:
                context["session_id"] = short_id(session_id)
            logger.error(f"Session store {operation} failed", extra={"extra_data": context})
            raise backend_error(
                f"Session store {operation} failed: {e}",
                self.backend_name,
                details={"operation": operation, "table": self.table_name},
            ) from e

    def _row_to_record(self, row: Sequence[Any]) -> SessionRecord:
        raw_id, raw_expiration, raw_data = row[0], row[1], row[2]

        try:
            session_id = SessionId.parse(raw_id)
        except SessionIdError as e:
            logger.error(
                "Stored session id is corrupted",
                extra={"extra_data": {"backend": self.backend_name, "table": self.table_name}},
            )
            raise corrupted_session_id(str(raw_id), self.backend_name) from e

        return SessionRecord(
            id=session_id,
            expiration_time=self._decode_expiration(raw_expiration),
            data=decode_payload(raw_data, self.backend_name),
        )
