"""Search operations handler for the RAG engine."""

from typing import Any, Dict, List, Optional

from ...config.settings import Settings
from ...core.exceptions import AstreusError, RAGError
from ...models.rag import Chunk, Document, DocumentSearchResult
from ...utils.validation import validate_limit, validate_search_query, validate_similarity_threshold
from ..embeddings import EmbeddingManager
from ..index import VectorIndex
from ..storage import DocumentStorage


def matches_filter(chunk: Chunk, document: Document, metadata_filter: Dict[str, Any]) -> bool:
    """True when every filter key equals the chunk's or the document's value."""
    for key, expected in metadata_filter.items():
        if key in chunk.metadata:
            if chunk.metadata[key] != expected:
                return False
        elif document.metadata.get(key) != expected:
            return False
    return True


class SearchOperations:
    """Handles similarity search and resolution of hits to their documents."""

    def __init__(
        self,
        storage: DocumentStorage,
        embeddings: EmbeddingManager,
        index: VectorIndex,
        settings: Settings,
        logger,
        max_results: int,
    ):
        self.storage = storage
        self.embeddings = embeddings
        self.index = index
        self.settings = settings
        self.logger = logger
        self.max_results = max_results

    async def search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[DocumentSearchResult]:
        """Rank chunks by similarity to ``query``."""
        validate_search_query(query)
        validate_limit(limit)
        validate_similarity_threshold(threshold)

        limit = limit or self.max_results
        if threshold is None:
            threshold = self.settings.SIMILARITY_THRESHOLD

        query_embedding = await self.embeddings.embed(query)

        # A metadata filter is applied after ranking, so rank every candidate
        candidates = len(self.index) if metadata_filter else limit
        hits = self.index.query(query_embedding, limit=max(candidates, 1), threshold=threshold)
        if not hits:
            return []

        try:
            chunks = await self.storage.get_chunks([chunk_id for chunk_id, _ in hits])
            documents = await self.storage.get_documents(
                list(dict.fromkeys(chunk.document_id for chunk in chunks.values()))
            )
        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to resolve search hits", error=str(e))
            raise RAGError(f"Failed to search documents: {e}") from e

        results: List[DocumentSearchResult] = []
        for chunk_id, score in hits:
            chunk = chunks.get(chunk_id)
            document = documents.get(chunk.document_id) if chunk else None
            if chunk is None or document is None:
                if self.index.remove(chunk_id):
                    self.logger.warning(
                        "Consistency warning: skipped index entry without a stored source",
                        chunk_id=chunk_id,
                    )
                continue

            if metadata_filter and not matches_filter(chunk, document, metadata_filter):
                continue

            results.append(
                DocumentSearchResult(
                    item=chunk,
                    document=document,
                    score=score,
                    rank=len(results) + 1,
                )
            )
            if len(results) >= limit:
                break

        self.logger.info("Document search completed", results=len(results), threshold=threshold)
        return results
