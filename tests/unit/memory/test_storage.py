"""Tests for memory storage backends."""

from pathlib import Path

import pytest
import pytest_asyncio

from astreus_memory.core.exceptions import ConfigurationError, StorageError
from astreus_memory.memory.storage import (
    InMemoryMemoryStorage,
    SQLiteMemoryStorage,
    create_memory_storage,
)
from astreus_memory.models.memory import MemoryEntry, MemoryRole
from tests.utils import make_settings


def make_entry(session_id: str, content: str, **kwargs) -> MemoryEntry:
    return MemoryEntry(session_id=session_id, role=MemoryRole.USER, content=content, **kwargs)


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def storage(request, temp_dir: Path):
    if request.param == "memory":
        backend = InMemoryMemoryStorage()
    else:
        backend = SQLiteMemoryStorage(temp_dir / "memory.db")
    await backend.initialize()
    yield backend
    await backend.close()


class TestMemoryStorage:
    """Behaviour shared by every memory storage backend."""

    async def test_insert_and_get(self, storage):
        entry = make_entry("s1", "hello", user_id="u1", metadata={"k": [1, 2]})
        await storage.insert(entry)

        stored = await storage.get(entry.id)
        assert stored.id == entry.id
        assert stored.session_id == "s1"
        assert stored.user_id == "u1"
        assert stored.role == MemoryRole.USER
        assert stored.metadata == {"k": [1, 2]}
        assert stored.created_at == entry.created_at
        assert stored.embedding is None

    async def test_get_missing(self, storage):
        assert await storage.get("nope") is None
        assert await storage.get_many(["nope"]) == {}

    async def test_duplicate_id_rejected(self, storage):
        entry = make_entry("s1", "hello")
        await storage.insert(entry)

        with pytest.raises(StorageError):
            await storage.insert(entry)

    async def test_session_order_and_limit(self, storage):
        entries = [make_entry("s1", f"m{i}") for i in range(4)]
        await storage.insert(make_entry("s2", "elsewhere"))
        for entry in entries:
            await storage.insert(entry)

        listed = await storage.list_session("s1")
        assert [e.content for e in listed] == ["m0", "m1", "m2", "m3"]

        recent = await storage.list_session("s1", limit=2)
        assert [e.content for e in recent] == ["m2", "m3"]

        assert await storage.oldest_ids("s1", 2) == [entries[0].id, entries[1].id]
        assert await storage.oldest_ids("s1", 0) == []
        assert await storage.session_entry_ids("s1") == [e.id for e in entries]

    async def test_count(self, storage):
        await storage.insert(make_entry("s1", "a"))
        await storage.insert(make_entry("s1", "b"))
        await storage.insert(make_entry("s2", "c"))

        assert await storage.count("s1") == 2
        assert await storage.count("s2") == 1
        assert await storage.count("s3") == 0
        assert await storage.count() == 3

    async def test_delete(self, storage):
        a = make_entry("s1", "a")
        b = make_entry("s1", "b")
        await storage.insert(a)
        await storage.insert(b)

        assert await storage.delete([a.id, "missing"]) == 1
        assert await storage.get(a.id) is None
        assert await storage.count() == 1
        assert await storage.delete([]) == 0

    async def test_embeddings(self, storage):
        embedded = make_entry("s1", "a", embedding=[0.5, 0.5])
        plain = make_entry("s2", "b")
        await storage.insert(embedded)
        await storage.insert(plain)

        assert await storage.list_embeddings() == [(embedded.id, "s1", [0.5, 0.5])]
        assert [e.id for e in await storage.list_unembedded()] == [plain.id]

        assert await storage.set_embedding(plain.id, [1.0, 0.0]) is True
        assert (await storage.get(plain.id)).embedding == [1.0, 0.0]
        assert await storage.list_unembedded() == []
        assert await storage.set_embedding("missing", [1.0, 0.0]) is False

    async def test_list_sessions_by_first_activity(self, storage):
        await storage.insert(make_entry("beta", "1"))
        await storage.insert(make_entry("alpha", "2"))
        await storage.insert(make_entry("beta", "3"))

        assert await storage.list_sessions() == ["beta", "alpha"]


class TestStorageLifecycle:
    """Backend construction and lifecycle."""

    async def test_in_memory_requires_initialize(self):
        storage = InMemoryMemoryStorage()
        with pytest.raises(StorageError):
            await storage.count()

    async def test_sqlite_requires_initialize(self, temp_dir: Path):
        storage = SQLiteMemoryStorage(temp_dir / "memory.db")
        with pytest.raises(StorageError):
            await storage.count()

    def test_sqlite_rejects_bad_table_name(self, temp_dir: Path):
        with pytest.raises(ConfigurationError):
            SQLiteMemoryStorage(temp_dir / "memory.db", table_name="1bad")

    async def test_sqlite_persists_across_connections(self, temp_dir: Path):
        path = temp_dir / "nested" / "memory.db"
        entry = make_entry("s1", "remember me", embedding=[1.0, 2.0])

        storage = SQLiteMemoryStorage(path)
        await storage.initialize()
        await storage.insert(entry)
        await storage.close()

        reopened = SQLiteMemoryStorage(path)
        await reopened.initialize()
        assert (await reopened.get(entry.id)).content == "remember me"
        assert await reopened.list_embeddings() == [(entry.id, "s1", [1.0, 2.0])]
        await reopened.close()

    async def test_tables_are_independent(self, temp_dir: Path):
        path = temp_dir / "shared.db"
        first = SQLiteMemoryStorage(path, table_name="agent_a")
        second = SQLiteMemoryStorage(path, table_name="agent_b")
        await first.initialize()
        await second.initialize()

        await first.insert(make_entry("s1", "only in a"))

        assert await first.count() == 1
        assert await second.count() == 0
        await first.close()
        await second.close()

    @pytest.mark.parametrize(
        "backend,expected",
        [("memory", InMemoryMemoryStorage), ("sqlite", SQLiteMemoryStorage)],
    )
    def test_factory(self, temp_dir: Path, backend: str, expected):
        settings = make_settings(temp_dir, STORAGE_BACKEND=backend)
        assert isinstance(create_memory_storage(settings), expected)

    def test_factory_unknown_backend(self, temp_dir: Path):
        settings = make_settings(temp_dir, STORAGE_BACKEND="postgres")
        with pytest.raises(ConfigurationError):
            create_memory_storage(settings)
