"""Core memory manager with lifecycle management and coordination."""

import asyncio
import weakref
from typing import Any, Dict, List, Optional, Set, Union

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import AstreusError, ConfigurationError, MemoryError
from ...models.memory import MemoryEntry, MemoryEntryCreate, MemoryRole, MemorySearchResult, MemoryStats
from ...rag.embeddings import EmbeddingManager, EmbeddingProvider
from ...rag.index import VectorIndex
from ...utils.validation import validate_table_name
from ..storage import MemoryStorage, create_memory_storage
from .operations import MemoryOperations
from .queries import MemoryQueries


class SessionLocks:
    """Lazily created ``asyncio.Lock`` per session id.

    Locks are held weakly; a session's lock is dropped once no coroutine
    holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._locks

    def get(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock


class MemoryManager(LoggerMixin):
    """Append-only conversation store with optional semantic search.

    Entries are partitioned by session. Each session keeps at most
    ``max_entries`` entries; the oldest are evicted first. When embeddings are
    enabled every entry is also indexed for ``search_similar``.
    """

    def __init__(
        self,
        settings: Settings,
        storage: Optional[MemoryStorage] = None,
        embedding_manager: Optional[EmbeddingManager] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        table_name: Optional[str] = None,
        max_entries: Optional[int] = None,
        enable_embeddings: Optional[bool] = None,
    ) -> None:
        settings.validate_engine()
        if max_entries is not None and max_entries < 1:
            raise ConfigurationError("max_entries must be positive", "max_entries")
        if table_name is not None:
            validate_table_name(table_name)

        self.settings = settings
        self.table_name = table_name or settings.MEMORY_TABLE_NAME
        self.max_entries = max_entries or settings.MAX_ENTRIES
        self.enable_embeddings = (
            settings.ENABLE_EMBEDDINGS if enable_embeddings is None else enable_embeddings
        )

        self.storage: Optional[MemoryStorage] = storage
        self.embeddings: Optional[EmbeddingManager] = embedding_manager
        self.index: Optional[VectorIndex] = None
        self._embedding_provider = embedding_provider
        self._owns_embeddings = embedding_manager is None
        self._initialized = False

        self._locks = SessionLocks()
        self._pending: Set[str] = set()

        # Delegate operation handlers
        self._operations: Optional[MemoryOperations] = None
        self._queries: Optional[MemoryQueries] = None

    async def initialize(self) -> None:
        """Initialize storage, the embedding pipeline and the vector index."""
        try:
            if self.storage is None:
                self.storage = create_memory_storage(self.settings, self.table_name)
            await self.storage.initialize()

            if self.enable_embeddings:
                await self._initialize_index()

            self._operations = MemoryOperations(
                self.storage,
                self.settings,
                self.logger,
                locks=self._locks,
                pending=self._pending,
                max_entries=self.max_entries,
                embeddings=self.embeddings,
                index=self.index,
            )
            self._queries = MemoryQueries(
                self.storage,
                self.settings,
                self.logger,
                pending=self._pending,
                embeddings=self.embeddings,
                index=self.index,
            )

            self._initialized = True

            self.logger.info(
                "Memory manager initialized",
                backend=type(self.storage).__name__,
                max_entries=self.max_entries,
                embeddings=self.enable_embeddings,
                indexed=len(self.index) if self.index is not None else 0,
                pending=len(self._pending),
            )

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to initialize memory manager", error=str(e))
            raise MemoryError(f"Memory manager initialization failed: {e}") from e

    async def _initialize_index(self) -> None:
        if self.embeddings is None:
            self.embeddings = EmbeddingManager(self.settings, self._embedding_provider)
        if not self.embeddings.is_initialized:
            await self.embeddings.initialize()

        self.index = VectorIndex(self.embeddings.dimension)

        # Rebuild the index from persisted vectors; a stored vector of the
        # wrong dimension is a configuration error
        for entry_id, session_id, embedding in await self.storage.list_embeddings():
            self.index.upsert(entry_id, embedding, partition=session_id)

        self._pending.update(entry.id for entry in await self.storage.list_unembedded())

    async def close(self) -> None:
        """Close memory manager and storage."""
        if self.storage:
            await self.storage.close()
            self.storage = None

        if self.embeddings and self._owns_embeddings:
            await self.embeddings.close()
            self.embeddings = None

        self.index = None
        self._pending.clear()
        self._operations = None
        self._queries = None
        self._initialized = False
        self.logger.info("Memory manager closed")

    def _ensure_initialized(self) -> None:
        """Ensure the memory manager is initialized."""
        if not self._initialized or not self.storage or not self._operations or not self._queries:
            raise MemoryError("Memory manager not initialized")

    @property
    def pending_embeddings(self) -> List[str]:
        """Ids of entries stored without an embedding that await re-indexing."""
        return sorted(self._pending)

    # Write operations - delegated to MemoryOperations
    async def add(
        self,
        session_id: Union[str, MemoryEntryCreate],
        role: Union[MemoryRole, str, None] = None,
        content: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Append an entry to a session and return its id."""
        self._ensure_initialized()
        if isinstance(session_id, MemoryEntryCreate):
            request = session_id
            session_id, role, content = request.session_id, request.role, request.content
            user_id, metadata = request.user_id, request.metadata
        entry = await self._operations.add(session_id, role, content, user_id, metadata)
        return entry.id

    async def delete(self, entry_ids: List[str]) -> int:
        """Delete entries by id. Returns the number removed."""
        self._ensure_initialized()
        return await self._operations.delete(entry_ids)

    async def clear(self, session_id: str) -> int:
        """Delete every entry of a session. Returns the number removed."""
        self._ensure_initialized()
        return await self._operations.clear(session_id)

    async def reindex_pending(self) -> int:
        """Retry embedding entries whose embedding previously failed."""
        self._ensure_initialized()
        if not self.enable_embeddings:
            raise ConfigurationError("Embeddings are not enabled", "ENABLE_EMBEDDINGS")
        return await self._operations.reindex_pending()

    # Query operations - delegated to MemoryQueries
    async def get_entry(self, entry_id: str) -> MemoryEntry:
        """Retrieve an entry by id."""
        self._ensure_initialized()
        return await self._queries.get_entry(entry_id)

    async def get_by_session(self, session_id: str, limit: Optional[int] = None) -> List[MemoryEntry]:
        """Entries of a session oldest first; ``limit`` keeps the most recent N."""
        self._ensure_initialized()
        return await self._queries.get_by_session(session_id, limit)

    async def search_similar(
        self,
        query: str,
        session_id: Optional[str] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[MemorySearchResult]:
        """Semantic search over entries, optionally restricted to one session."""
        self._ensure_initialized()
        if not self.enable_embeddings:
            raise ConfigurationError("Embeddings are not enabled", "ENABLE_EMBEDDINGS")
        return await self._queries.search_similar(query, session_id, limit, threshold)

    async def count(self, session_id: Optional[str] = None) -> int:
        """Number of live entries in a session, or in the whole store."""
        self._ensure_initialized()
        return await self._queries.count(session_id)

    async def list_sessions(self) -> List[str]:
        """Session ids ordered by first activity."""
        self._ensure_initialized()
        return await self._queries.list_sessions()

    async def get_stats(self) -> MemoryStats:
        """Get memory usage statistics."""
        self._ensure_initialized()
        return await self._queries.get_stats()
