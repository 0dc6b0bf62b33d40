"""
In-process session store.

Records live in a dict guarded by one lock for the whole table, so the
store is safe to share between tasks and threads. Nothing survives a
process restart, and expired records stay in memory until they are
deleted or ``delete_expired`` is called.
"""

import logging
import threading
from datetime import datetime
from typing import NamedTuple, Optional

from sessionstore.ids import SessionId
from sessionstore.models import Session, SessionRecord, utc_now
from sessionstore.payload import decode_payload, encode_payload
from sessionstore.store import SessionStore
from sessionstore.telemetry import short_id, store_span

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    expiration_time: Optional[datetime]
    payload: str


class _Table:
    """A record mapping and the lock that guards it."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.records: dict[SessionId, _Entry] = {}


class MemoryStore(SessionStore):
    """
    Session store that lives only in memory.

    This is useful for tests and single-process development servers but
    is not recommended for production. Stores built with
    ``MemoryStore(shared=other)`` see the same table as ``other``.

    Payloads are kept as the same JSON text the durable backends write,
    so a payload that would not survive a database round trip is
    rejected here too, and callers never share objects with the table.
    Critical sections never await and never encode or decode.
    """

    backend_name = "memory"

    def __init__(self, shared: Optional["MemoryStore"] = None):
        self._table = shared._table if shared is not None else _Table()

    def __len__(self) -> int:
        with self._table.lock:
            return len(self._table.records)

    async def save(self, record: SessionRecord) -> None:
        entry = _Entry(record.expiration_time, encode_payload(record.data, self.backend_name))

        with store_span(self.backend_name, "save"):
            with self._table.lock:
                self._table.records[record.id] = entry
        logger.debug(
            "Session saved",
            extra={"extra_data": {
                "backend": self.backend_name,
                "operation": "save",
                "session_id": short_id(record.id),
            }},
        )

    async def load(self, session_id: SessionId) -> Optional[Session]:
        with store_span(self.backend_name, "load"):
            with self._table.lock:
                entry = self._table.records.get(session_id)

        if entry is None:
            logger.debug(
                "Session not found",
                extra={"extra_data": {
                    "backend": self.backend_name,
                    "operation": "load",
                    "session_id": short_id(session_id),
                }},
            )
            return None

        record = SessionRecord(
            id=session_id,
            expiration_time=entry.expiration_time,
            data=decode_payload(entry.payload, self.backend_name),
        )
        if record.is_expired():
            logger.debug(
                "Session expired",
                extra={"extra_data": {
                    "backend": self.backend_name,
                    "operation": "load",
                    "session_id": short_id(session_id),
                }},
            )
            return None

        return Session.from_record(record)

    async def delete(self, session_id: SessionId) -> None:
        with store_span(self.backend_name, "delete"):
            with self._table.lock:
                self._table.records.pop(session_id, None)
        logger.debug(
            "Session deleted",
            extra={"extra_data": {
                "backend": self.backend_name,
                "operation": "delete",
                "session_id": short_id(session_id),
            }},
        )

    async def delete_expired(self) -> int:
        now = utc_now()
        with store_span(self.backend_name, "delete_expired"):
            with self._table.lock:
                expired = [
                    session_id
                    for session_id, entry in self._table.records.items()
                    if entry.expiration_time is not None and entry.expiration_time <= now
                ]
                for session_id in expired:
                    del self._table.records[session_id]
        if expired:
            logger.info(
                "Expired sessions removed",
                extra={"extra_data": {
                    "backend": self.backend_name,
                    "operation": "delete_expired",
                    "count": len(expired),
                }},
            )
        return len(expired)

    async def health_check(self) -> bool:
        return True
