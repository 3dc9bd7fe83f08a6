"""Abstract base class for memory storage implementations."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from ...config.logging import LoggerMixin
from ...models.memory import MemoryEntry


class MemoryStorage(ABC, LoggerMixin):
    """Persistence contract for conversation entries.

    Backends only need key lookup, ordered range scans by session and an
    optional vector column. Entries within a session are returned in
    insertion order.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the storage backend."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the storage backend."""
        pass

    @abstractmethod
    async def insert(self, entry: MemoryEntry) -> None:
        """Append an entry. Fails if the id already exists."""
        pass

    @abstractmethod
    async def get(self, entry_id: str) -> Optional[MemoryEntry]:
        """Retrieve an entry by id."""
        pass

    @abstractmethod
    async def get_many(self, entry_ids: List[str]) -> Dict[str, MemoryEntry]:
        """Retrieve the entries that exist among ``entry_ids``."""
        pass

    @abstractmethod
    async def list_session(self, session_id: str, limit: Optional[int] = None) -> List[MemoryEntry]:
        """Entries of a session oldest first; ``limit`` keeps the most recent N."""
        pass

    @abstractmethod
    async def oldest_ids(self, session_id: str, count: int) -> List[str]:
        """Ids of the ``count`` oldest entries of a session."""
        pass

    @abstractmethod
    async def count(self, session_id: Optional[str] = None) -> int:
        """Number of entries in a session, or in the whole store."""
        pass

    @abstractmethod
    async def delete(self, entry_ids: List[str]) -> int:
        """Delete entries by id. Returns the number removed."""
        pass

    @abstractmethod
    async def session_entry_ids(self, session_id: str) -> List[str]:
        """All entry ids of a session."""
        pass

    @abstractmethod
    async def set_embedding(self, entry_id: str, embedding: List[float]) -> bool:
        """Attach an embedding to an existing entry. Returns False if missing."""
        pass

    @abstractmethod
    async def list_embeddings(self) -> List[Tuple[str, str, List[float]]]:
        """``(entry_id, session_id, embedding)`` for every embedded entry."""
        pass

    @abstractmethod
    async def list_unembedded(self) -> List[MemoryEntry]:
        """Entries stored without an embedding, oldest first."""
        pass

    @abstractmethod
    async def list_sessions(self) -> List[str]:
        """Distinct session ids, ordered by first activity."""
        pass
