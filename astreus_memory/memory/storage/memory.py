"""In-process memory storage implementation."""

from typing import Dict, List, Optional, Tuple

from ...core.exceptions import StorageError
from ...models.memory import MemoryEntry
from .base import MemoryStorage


class InMemoryMemoryStorage(MemoryStorage):
    """Dictionary-backed storage. Contents are lost when the process exits."""

    def __init__(self) -> None:
        # Dicts keep insertion order, which is the session order
        self._entries: Dict[str, MemoryEntry] = {}
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True
        self.logger.info("In-memory storage initialized")

    async def close(self) -> None:
        self._entries.clear()
        self._initialized = False
        self.logger.info("In-memory storage closed")

    def _check(self) -> None:
        if not self._initialized:
            raise StorageError("Storage not initialized")

    async def insert(self, entry: MemoryEntry) -> None:
        self._check()
        if entry.id in self._entries:
            raise StorageError(f"Entry already exists: {entry.id}", "insert")
        self._entries[entry.id] = entry

    async def get(self, entry_id: str) -> Optional[MemoryEntry]:
        self._check()
        return self._entries.get(entry_id)

    async def get_many(self, entry_ids: List[str]) -> Dict[str, MemoryEntry]:
        self._check()
        return {eid: self._entries[eid] for eid in entry_ids if eid in self._entries}

    def _session(self, session_id: str) -> List[MemoryEntry]:
        return [e for e in self._entries.values() if e.session_id == session_id]

    async def list_session(self, session_id: str, limit: Optional[int] = None) -> List[MemoryEntry]:
        self._check()
        entries = self._session(session_id)
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    async def oldest_ids(self, session_id: str, count: int) -> List[str]:
        self._check()
        if count <= 0:
            return []
        return [e.id for e in self._session(session_id)[:count]]

    async def count(self, session_id: Optional[str] = None) -> int:
        self._check()
        if session_id is None:
            return len(self._entries)
        return len(self._session(session_id))

    async def delete(self, entry_ids: List[str]) -> int:
        self._check()
        removed = 0
        for entry_id in entry_ids:
            if self._entries.pop(entry_id, None) is not None:
                removed += 1
        return removed

    async def session_entry_ids(self, session_id: str) -> List[str]:
        self._check()
        return [e.id for e in self._session(session_id)]

    async def set_embedding(self, entry_id: str, embedding: List[float]) -> bool:
        self._check()
        entry = self._entries.get(entry_id)
        if entry is None:
            return False
        self._entries[entry_id] = entry.model_copy(update={"embedding": list(embedding)})
        return True

    async def list_embeddings(self) -> List[Tuple[str, str, List[float]]]:
        self._check()
        return [
            (e.id, e.session_id, e.embedding)
            for e in self._entries.values()
            if e.embedding is not None
        ]

    async def list_unembedded(self) -> List[MemoryEntry]:
        self._check()
        return [e for e in self._entries.values() if e.embedding is None]

    async def list_sessions(self) -> List[str]:
        self._check()
        return list(dict.fromkeys(e.session_id for e in self._entries.values()))
