"""Statistics operations handler for the RAG engine."""

from ...config.settings import Settings
from ...core.exceptions import AstreusError, RAGError
from ...models.rag import RAGStats
from ..embeddings import EmbeddingManager
from ..storage import DocumentStorage


class StatsOperations:
    """Handles statistics over the document collection."""

    def __init__(self, storage: DocumentStorage, embeddings: EmbeddingManager, settings: Settings, logger):
        self.storage = storage
        self.embeddings = embeddings
        self.settings = settings
        self.logger = logger

    async def get_stats(self) -> RAGStats:
        """Get statistics about the document collection."""
        try:
            counts = await self.storage.get_stats()

            stats = RAGStats(
                document_count=counts["document_count"],
                chunk_count=counts["chunk_count"],
                indexed_chunk_count=counts["indexed_chunk_count"],
                total_content_length=counts["total_content_length"],
                embedding_dimension=self.embeddings.dimension,
                embedding_model=self.embeddings.model_name,
            )

            self.logger.debug(
                "RAG stats retrieved",
                documents=stats.document_count,
                chunks=stats.chunk_count,
            )
            return stats

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to get RAG stats", error=str(e))
            raise RAGError(f"Failed to get collection stats: {e}") from e
