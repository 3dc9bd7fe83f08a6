"""Core RAG engine with lifecycle management and coordination."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import AstreusError, ConfigurationError, RAGError, ValidationError
from ...models.rag import Document, DocumentCreate, DocumentSearchResult, IngestionResult, ParseOptions, RAGStats
from ...utils.validation import validate_table_name
from ..chunking import Chunker
from ..embeddings import EmbeddingManager, EmbeddingProvider
from ..index import VectorIndex
from ..parsing import DocumentParser, TextDocumentParser
from ..storage import DocumentStorage, create_document_storage
from .ingestion import DocumentOperations
from .search import SearchOperations
from .stats import StatsOperations


class RAGEngine(LoggerMixin):
    """Retrieval engine over chunked, embedded documents.

    Documents are split by the Chunker, embedded in batches, persisted with
    their chunks and indexed per chunk. Searches return the matched chunk
    together with its owning document.
    """

    def __init__(
        self,
        settings: Settings,
        storage: Optional[DocumentStorage] = None,
        embedding_manager: Optional[EmbeddingManager] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        table_name: Optional[str] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        max_documents: Optional[int] = None,
        max_results_per_query: Optional[int] = None,
    ) -> None:
        settings.validate_engine()
        if table_name is not None:
            validate_table_name(table_name)
        if max_documents is not None and max_documents < 1:
            raise ConfigurationError("max_documents must be positive", "max_documents")
        if max_results_per_query is not None and max_results_per_query < 1:
            raise ConfigurationError(
                "max_results_per_query must be positive", "max_results_per_query"
            )

        self.settings = settings
        self.table_name = table_name or settings.RAG_TABLE_NAME
        self.chunker = Chunker(
            chunk_size if chunk_size is not None else settings.CHUNK_SIZE,
            chunk_overlap if chunk_overlap is not None else settings.CHUNK_OVERLAP,
        )
        self.max_documents = max_documents if max_documents is not None else settings.MAX_DOCUMENTS
        self.max_results_per_query = max_results_per_query or settings.MAX_RESULTS_PER_QUERY

        self.storage: Optional[DocumentStorage] = storage
        self.embeddings: Optional[EmbeddingManager] = embedding_manager
        self.index: Optional[VectorIndex] = None
        self._embedding_provider = embedding_provider
        self._owns_embeddings = embedding_manager is None
        self._initialized = False

        # Delegate operation handlers
        self._documents: Optional[DocumentOperations] = None
        self._search: Optional[SearchOperations] = None
        self._stats: Optional[StatsOperations] = None

    async def initialize(self) -> None:
        """Initialize storage, embeddings and rebuild the vector index."""
        try:
            if self.storage is None:
                self.storage = create_document_storage(self.settings, self.table_name)
            await self.storage.initialize()

            if self.embeddings is None:
                self.embeddings = EmbeddingManager(self.settings, self._embedding_provider)
            if not self.embeddings.is_initialized:
                await self.embeddings.initialize()

            self.index = VectorIndex(self.embeddings.dimension)
            for chunk_id, document_id, embedding in await self.storage.list_chunk_embeddings():
                self.index.upsert(chunk_id, embedding, partition=document_id)

            self._documents = DocumentOperations(
                self.storage,
                self.embeddings,
                self.index,
                self.chunker,
                self.settings,
                self.logger,
                max_documents=self.max_documents,
            )
            self._search = SearchOperations(
                self.storage,
                self.embeddings,
                self.index,
                self.settings,
                self.logger,
                max_results=self.max_results_per_query,
            )
            self._stats = StatsOperations(self.storage, self.embeddings, self.settings, self.logger)

            self._initialized = True

            self.logger.info(
                "RAG engine initialized",
                backend=type(self.storage).__name__,
                chunk_size=self.chunker.chunk_size,
                chunk_overlap=self.chunker.chunk_overlap,
                indexed_chunks=len(self.index),
            )

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to initialize RAG engine", error=str(e))
            raise RAGError(f"RAG engine initialization failed: {e}") from e

    async def close(self) -> None:
        """Close the RAG engine."""
        if self.storage:
            await self.storage.close()
            self.storage = None

        if self.embeddings and self._owns_embeddings:
            await self.embeddings.close()
            self.embeddings = None

        self.index = None
        self._documents = None
        self._search = None
        self._stats = None
        self._initialized = False
        self.logger.info("RAG engine closed")

    def _ensure_initialized(self) -> None:
        """Ensure the engine is initialized."""
        if not self._initialized or not self._documents or not self._search or not self._stats:
            raise RAGError("RAG engine not initialized")

    # Document operations - delegated to DocumentOperations
    async def ingest(
        self,
        document: Union[DocumentCreate, Mapping[str, Any]],
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> IngestionResult:
        """Ingest a document. Check ``result.is_partial`` for unindexed chunks."""
        self._ensure_initialized()
        if not isinstance(document, DocumentCreate):
            try:
                document = DocumentCreate.model_validate(dict(document))
            except ValueError as e:
                raise ValidationError(f"Invalid document: {e}", "document") from e
        return await self._documents.ingest(document, chunk_size, chunk_overlap)

    async def ingest_file(
        self,
        path: Union[str, Path],
        parser: Optional[DocumentParser] = None,
        options: Optional[ParseOptions] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> IngestionResult:
        """Parse a file and ingest the resulting document."""
        self._ensure_initialized()
        parser = parser or TextDocumentParser()
        options = options or ParseOptions()

        loop = asyncio.get_running_loop()
        document = await loop.run_in_executor(None, parser.parse, Path(path), options)

        self.logger.debug("File parsed", path=str(path), parser=type(parser).__name__)
        return await self._documents.ingest(document, chunk_size, chunk_overlap)

    async def get_document(self, document_id: str) -> Document:
        """Get a document with its chunks."""
        self._ensure_initialized()
        return await self._documents.get_document(document_id)

    async def list_documents(self) -> List[Document]:
        """List documents without their chunks, oldest first."""
        self._ensure_initialized()
        return await self._documents.list_documents()

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document and every vector of its chunks."""
        self._ensure_initialized()
        return await self._documents.delete_document(document_id)

    async def update_document_metadata(
        self, document_id: str, metadata: Dict[str, Any], merge: bool = True
    ) -> Document:
        self._ensure_initialized()
        return await self._documents.update_metadata(document_id, metadata, merge)

    async def reindex_document(self, document_id: str) -> IngestionResult:
        """Retry indexing the chunks of a document that are not yet indexed."""
        self._ensure_initialized()
        return await self._documents.reindex(document_id)

    # Search operations - delegated to SearchOperations
    async def search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
        metadata_filter: Optional[Dict[str, Any]] = None,
    ) -> List[DocumentSearchResult]:
        """Search for chunks similar to ``query``."""
        self._ensure_initialized()
        return await self._search.search(query, limit, threshold, metadata_filter)

    # Statistics operations - delegated to StatsOperations
    async def get_stats(self) -> RAGStats:
        self._ensure_initialized()
        return await self._stats.get_stats()
