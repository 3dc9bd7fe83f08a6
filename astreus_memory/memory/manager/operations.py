"""Memory write operations handler."""

from typing import Any, Dict, List, Optional, Set

from ...config.settings import Settings
from ...core.exceptions import AstreusError, EmbeddingProviderError, MemoryError, StorageError
from ...models.base import utc_now
from ...models.memory import MemoryEntry
from ...rag.embeddings import EmbeddingManager
from ...rag.index import VectorIndex
from ...utils.validation import validate_memory_entry, validate_session_id
from ..storage import MemoryStorage


class MemoryOperations:
    """Handles add, delete, eviction and re-indexing of memory entries.

    Embedding calls are awaited before the session lock is taken. Index
    removal always precedes the storage delete, so a query can never return
    an entry that is being removed.
    """

    def __init__(
        self,
        storage: MemoryStorage,
        settings: Settings,
        logger,
        locks,
        pending: Set[str],
        max_entries: int,
        embeddings: Optional[EmbeddingManager] = None,
        index: Optional[VectorIndex] = None,
    ):
        self.storage = storage
        self.settings = settings
        self.logger = logger
        self.locks = locks
        self.pending = pending
        self.max_entries = max_entries
        self.embeddings = embeddings
        self.index = index

    async def add(
        self,
        session_id: str,
        role: Any,
        content: str,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MemoryEntry:
        """Store a new entry, index it and apply the retention policy."""
        role = validate_memory_entry(session_id, role, content, user_id, metadata)

        entry = MemoryEntry(
            session_id=session_id,
            user_id=user_id,
            role=role,
            content=content,
            metadata=metadata or {},
        )

        embedding = None
        if self.embeddings is not None:
            try:
                embedding = await self.embeddings.embed(content)
            except EmbeddingProviderError as e:
                self.logger.warning(
                    "Memory entry stored without embedding",
                    entry_id=entry.id,
                    session_id=session_id,
                    error=str(e),
                )
            else:
                entry = entry.model_copy(update={"embedding": embedding})

        try:
            async with self.locks.get(session_id):
                # Stamp at append time so creation order matches storage order
                entry = entry.model_copy(update={"created_at": utc_now()})
                await self.storage.insert(entry)

                if embedding is not None:
                    self.index.upsert(entry.id, embedding, partition=session_id)
                elif self.index is not None:
                    self.pending.add(entry.id)

                evicted = await self._evict(session_id)

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to add memory entry", session_id=session_id, error=str(e))
            raise MemoryError(f"Failed to add entry to session '{session_id}': {e}", session_id) from e

        self.logger.info(
            "Memory entry added",
            entry_id=entry.id,
            session_id=session_id,
            role=role.value,
            indexed=embedding is not None,
            evicted=evicted,
        )
        return entry

    async def _evict(self, session_id: str) -> int:
        """Drop the oldest entries of a session beyond ``max_entries``."""
        overflow = await self.storage.count(session_id) - self.max_entries
        if overflow <= 0:
            return 0

        oldest = await self.storage.oldest_ids(session_id, overflow)
        removed = await self._remove(oldest)
        self.logger.debug("Evicted oldest entries", session_id=session_id, count=removed)
        return removed

    async def _remove(self, entry_ids: List[str]) -> int:
        """Remove entries from the index first, then from storage."""
        if not entry_ids:
            return 0

        if self.index is not None:
            self.index.remove_many(entry_ids)
        self.pending.difference_update(entry_ids)

        try:
            return await self.storage.delete(entry_ids)
        except StorageError:
            # Entries survive in storage without a vector; re-index restores them
            if self.index is not None:
                self.pending.update(entry_ids)
            self.logger.error("Storage delete failed after index removal", count=len(entry_ids))
            raise

    async def delete(self, entry_ids: List[str]) -> int:
        """Delete entries by id, serialized per owning session."""
        if not entry_ids:
            return 0

        try:
            entries = await self.storage.get_many(list(dict.fromkeys(entry_ids)))

            by_session: Dict[str, List[str]] = {}
            for entry in entries.values():
                by_session.setdefault(entry.session_id, []).append(entry.id)

            removed = 0
            for session_id in sorted(by_session):
                async with self.locks.get(session_id):
                    removed += await self._remove(by_session[session_id])

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to delete memory entries", count=len(entry_ids), error=str(e))
            raise MemoryError(f"Failed to delete entries: {e}") from e

        self.logger.info("Memory entries deleted", requested=len(entry_ids), removed=removed)
        return removed

    async def clear(self, session_id: str) -> int:
        """Delete every entry of a session."""
        validate_session_id(session_id)

        try:
            async with self.locks.get(session_id):
                entry_ids = await self.storage.session_entry_ids(session_id)
                removed = await self._remove(entry_ids)

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to clear session", session_id=session_id, error=str(e))
            raise MemoryError(f"Failed to clear session '{session_id}': {e}", session_id) from e

        self.logger.info("Session cleared", session_id=session_id, removed=removed)
        return removed

    async def reindex_pending(self) -> int:
        """Embed and index entries whose embedding failed earlier."""
        if not self.pending:
            return 0

        batch_size = self.settings.EMBEDDING_BATCH_SIZE
        pending_ids = sorted(self.pending)
        reindexed = 0

        for start in range(0, len(pending_ids), batch_size):
            batch_ids = pending_ids[start:start + batch_size]
            entries = await self.storage.get_many(batch_ids)

            # Entries deleted since they were queued need no vector
            self.pending.difference_update(set(batch_ids) - set(entries))
            if not entries:
                continue

            batch = list(entries.values())
            try:
                vectors = await self.embeddings.embed_batch([entry.content for entry in batch])
            except EmbeddingProviderError as e:
                self.logger.warning("Re-index batch failed", count=len(batch), error=str(e))
                continue

            for entry, vector in zip(batch, vectors):
                async with self.locks.get(entry.session_id):
                    if not await self.storage.set_embedding(entry.id, vector):
                        self.pending.discard(entry.id)
                        continue
                    self.index.upsert(entry.id, vector, partition=entry.session_id)
                    self.pending.discard(entry.id)
                    reindexed += 1

        self.logger.info("Pending embeddings re-indexed", reindexed=reindexed, remaining=len(self.pending))
        return reindexed
