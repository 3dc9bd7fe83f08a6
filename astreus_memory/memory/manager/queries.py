"""Memory query and statistics operations handler."""

from typing import List, Optional, Set

from ...config.settings import Settings
from ...core.exceptions import AstreusError, EntryNotFoundError, MemoryError
from ...models.memory import MemoryEntry, MemorySearchResult, MemoryStats
from ...rag.embeddings import EmbeddingManager
from ...rag.index import VectorIndex
from ...utils.validation import (
    validate_identifier,
    validate_limit,
    validate_search_query,
    validate_session_id,
    validate_similarity_threshold,
)
from ..storage import MemoryStorage


class MemoryQueries:
    """Handles read-only operations for memory management."""

    def __init__(
        self,
        storage: MemoryStorage,
        settings: Settings,
        logger,
        pending: Set[str],
        embeddings: Optional[EmbeddingManager] = None,
        index: Optional[VectorIndex] = None,
    ):
        self.storage = storage
        self.settings = settings
        self.logger = logger
        self.pending = pending
        self.embeddings = embeddings
        self.index = index

    async def get_entry(self, entry_id: str) -> MemoryEntry:
        """Retrieve an entry by id."""
        validate_identifier(entry_id, "entry_id")
        entry = await self.storage.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    async def get_by_session(self, session_id: str, limit: Optional[int] = None) -> List[MemoryEntry]:
        """List the entries of a session, oldest first."""
        validate_session_id(session_id)
        validate_limit(limit)

        try:
            entries = await self.storage.list_session(session_id, limit)
            self.logger.debug("Listed session entries", session_id=session_id, count=len(entries))
            return entries

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to list session entries", session_id=session_id, error=str(e))
            raise MemoryError(f"Failed to list session '{session_id}': {e}", session_id) from e

    async def search_similar(
        self,
        query: str,
        session_id: Optional[str] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[MemorySearchResult]:
        """Rank entries by similarity to ``query``.

        ``session_id`` restricts candidates before ranking, so ``limit``
        applies to that session's entries only.
        """
        validate_search_query(query)
        if session_id is not None:
            validate_session_id(session_id)
        validate_limit(limit)
        validate_similarity_threshold(threshold)

        limit = limit or self.settings.MAX_RESULTS_PER_QUERY
        if threshold is None:
            threshold = self.settings.SIMILARITY_THRESHOLD

        query_vector = await self.embeddings.embed(query)
        hits = self.index.query(query_vector, limit=limit, threshold=threshold, partition=session_id)
        if not hits:
            return []

        try:
            entries = await self.storage.get_many([entry_id for entry_id, _ in hits])
        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to resolve search hits", error=str(e))
            raise MemoryError(f"Failed to search memory: {e}", session_id) from e

        results = []
        for entry_id, score in hits:
            entry = entries.get(entry_id)
            if entry is None:
                # Only logged when this call actually removes the orphan
                if self.index.remove(entry_id):
                    self.logger.warning(
                        "Consistency warning: skipped index entry without a stored source",
                        entry_id=entry_id,
                    )
                continue
            results.append(MemorySearchResult(item=entry, score=score, rank=len(results) + 1))

        self.logger.debug(
            "Memory search completed",
            session_id=session_id,
            results=len(results),
            threshold=threshold,
        )
        return results

    async def count(self, session_id: Optional[str] = None) -> int:
        if session_id is not None:
            validate_session_id(session_id)
        return await self.storage.count(session_id)

    async def list_sessions(self) -> List[str]:
        return await self.storage.list_sessions()

    async def get_stats(self) -> MemoryStats:
        """Get memory usage statistics from the live store."""
        try:
            stats = MemoryStats(
                session_count=len(await self.storage.list_sessions()),
                message_count=await self.storage.count(),
                indexed_count=len(self.index) if self.index is not None else 0,
                pending_embeddings=len(self.pending),
            )

            self.logger.debug(
                "Memory stats retrieved",
                sessions=stats.session_count,
                messages=stats.message_count,
            )
            return stats

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to get memory stats", error=str(e))
            raise MemoryError(f"Failed to get memory stats: {e}") from e
