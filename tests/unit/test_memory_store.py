"""
Unit tests for the in-memory session store.
"""

import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest

from sessionstore import MemoryStore, SessionId, SessionRecord, SessionSerializationError


class TestMemoryStoreBasics:
    """Save, load and delete behavior."""

    @pytest.mark.asyncio
    async def test_round_trip(self, memory_store, sample_record):
        await memory_store.save(sample_record)

        session = await memory_store.load(sample_record.id)

        assert session is not None
        assert session.id == sample_record.id
        assert session.expiration_time == sample_record.expiration_time
        assert session.data == sample_record.data

    @pytest.mark.asyncio
    async def test_load_missing_returns_none(self, memory_store, session_id):
        assert await memory_store.load(session_id) is None

    @pytest.mark.asyncio
    async def test_save_overwrites_existing_record(self, memory_store, session_id):
        await memory_store.save(SessionRecord(id=session_id, data={"step": 1}))
        await memory_store.save(SessionRecord(id=session_id, data={"other": True}))

        session = await memory_store.load(session_id)

        assert session.data == {"other": True}

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, memory_store, sample_record):
        await memory_store.save(sample_record)

        await memory_store.delete(sample_record.id)
        await memory_store.delete(sample_record.id)

        assert await memory_store.load(sample_record.id) is None

    @pytest.mark.asyncio
    async def test_delete_unknown_id_succeeds(self, memory_store, session_id):
        await memory_store.delete(session_id)

    @pytest.mark.asyncio
    async def test_ids_are_isolated(self, memory_store):
        a = SessionRecord(id=SessionId.generate(), data={"who": "a"})
        b = SessionRecord(id=SessionId.generate(), data={"who": "b"})

        await memory_store.save(a)
        await memory_store.save(b)
        await memory_store.delete(a.id)

        assert await memory_store.load(a.id) is None
        assert (await memory_store.load(b.id)).data == {"who": "b"}


class TestMemoryStoreExpiration:
    """The memory store filters expired records itself."""

    @pytest.mark.asyncio
    async def test_expired_record_is_not_loaded(self, memory_store, session_id, past_expiration):
        await memory_store.save(
            SessionRecord(id=session_id, expiration_time=past_expiration, data={"user": 1})
        )

        assert await memory_store.load(session_id) is None
        # Still physically stored until deleted
        assert len(memory_store) == 1

    @pytest.mark.asyncio
    async def test_resaving_with_past_expiration_hides_session(self, memory_store):
        session_id = SessionId.generate()
        await memory_store.save(SessionRecord(id=session_id, data={"user": 1}))
        assert (await memory_store.load(session_id)).data == {"user": 1}

        await memory_store.save(
            SessionRecord(
                id=session_id,
                expiration_time=datetime.now(timezone.utc) - timedelta(seconds=1),
                data={"user": 1},
            )
        )

        assert await memory_store.load(session_id) is None

    @pytest.mark.asyncio
    async def test_delete_expired_removes_only_expired(
        self, memory_store, past_expiration, future_expiration
    ):
        expired = SessionRecord(id=SessionId.generate(), expiration_time=past_expiration)
        live = SessionRecord(id=SessionId.generate(), expiration_time=future_expiration)
        forever = SessionRecord(id=SessionId.generate())
        for record in (expired, live, forever):
            await memory_store.save(record)

        removed = await memory_store.delete_expired()

        assert removed == 1
        assert len(memory_store) == 2
        assert await memory_store.load(live.id) is not None
        assert await memory_store.load(forever.id) is not None


class TestMemoryStoreIsolation:
    """Stored payloads are JSON text, never shared with callers."""

    @pytest.mark.asyncio
    async def test_mutating_saved_record_does_not_change_store(self, memory_store, sample_record):
        await memory_store.save(sample_record)
        sample_record.data["user"] = 999

        session = await memory_store.load(sample_record.id)

        assert session.data["user"] == 1

    @pytest.mark.asyncio
    async def test_mutating_loaded_session_does_not_change_store(self, memory_store, sample_record):
        await memory_store.save(sample_record)
        first = await memory_store.load(sample_record.id)
        first.data["cart"]["items"] = 50

        second = await memory_store.load(sample_record.id)

        assert second.data["cart"]["items"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            {"lock": threading.Lock()},
            {"tags": {"a", "b"}},
            {"pair": (1, 2)},
            {1: "int key"},
            {"nested": {"ratio": float("nan")}},
        ],
    )
    async def test_non_json_payload_raises_serialization_error(
        self, memory_store, session_id, data
    ):
        record = SessionRecord(id=session_id, data=data)

        with pytest.raises(SessionSerializationError):
            await memory_store.save(record)

        assert await memory_store.load(session_id) is None

    @pytest.mark.asyncio
    async def test_shared_stores_see_same_table(self, sample_record):
        first = MemoryStore()
        second = MemoryStore(shared=first)

        await first.save(sample_record)

        assert await second.load(sample_record.id) is not None

    @pytest.mark.asyncio
    async def test_independent_stores_do_not_share(self, sample_record):
        first = MemoryStore()
        second = MemoryStore()

        await first.save(sample_record)

        assert await second.load(sample_record.id) is None


class TestMemoryStoreConcurrency:
    """Concurrent access from many tasks and threads."""

    @pytest.mark.asyncio
    async def test_concurrent_saves_from_tasks(self, memory_store):
        records = [SessionRecord(id=SessionId.generate(), data={"n": n}) for n in range(200)]

        await asyncio.gather(*(memory_store.save(r) for r in records))

        assert len(memory_store) == 200
        loaded = await asyncio.gather(*(memory_store.load(r.id) for r in records))
        assert [s.data["n"] for s in loaded] == list(range(200))

    def test_concurrent_saves_from_threads(self, memory_store):
        def worker(offset: int) -> None:
            for n in range(50):
                record = SessionRecord(id=SessionId(offset * 1000 + n), data={"n": n})
                asyncio.run(memory_store.save(record))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(memory_store) == 400

    @pytest.mark.asyncio
    async def test_health_check(self, memory_store):
        assert await memory_store.health_check() is True
