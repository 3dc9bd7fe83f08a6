"""Document ingestion and lifecycle operations handler."""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from ...config.settings import Settings
from ...core.exceptions import (
    AstreusError,
    DocumentNotFoundError,
    EmbeddingProviderError,
    RAGError,
    StorageError,
    ValidationError,
)
from ...models.base import new_id, utc_now
from ...models.rag import Chunk, Document, DocumentCreate, IngestionResult
from ...utils.async_utils import gather_with_concurrency
from ...utils.validation import validate_document_metadata, validate_identifier, validate_rag_data
from ..chunking import Chunker
from ..embeddings import EmbeddingManager
from ..index import VectorIndex
from ..storage import DocumentStorage


class DocumentOperations:
    """Handles ingestion, deletion and re-indexing of documents.

    Chunk vectors are computed before the write lock is taken. A chunk the
    provider fails on is stored with ``indexed=False``; the rest of the
    document is still persisted and searchable. Whitespace-only chunks are
    stored but never embedded.
    """

    def __init__(
        self,
        storage: DocumentStorage,
        embeddings: EmbeddingManager,
        index: VectorIndex,
        chunker: Chunker,
        settings: Settings,
        logger,
        max_documents: Optional[int] = None,
    ):
        self.storage = storage
        self.embeddings = embeddings
        self.index = index
        self.chunker = chunker
        self.settings = settings
        self.logger = logger
        self.max_documents = max_documents
        self._write_lock = asyncio.Lock()

    async def ingest(
        self,
        request: DocumentCreate,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> IngestionResult:
        """Chunk, embed, persist and index one document."""
        validate_rag_data(request.content, request.metadata, request.document_id)

        chunker = self.chunker
        if chunk_size is not None or chunk_overlap is not None:
            chunker = Chunker(
                chunk_size if chunk_size is not None else self.chunker.chunk_size,
                chunk_overlap if chunk_overlap is not None else self.chunker.chunk_overlap,
            )

        document_id = request.document_id or new_id()
        await self._check_capacity(document_id)

        metadata = dict(request.metadata or {})
        title = request.title or metadata.get("title") or ""
        chunks = chunker.chunk_document(
            document_id, request.content, metadata, page_breaks=request.page_breaks or None
        )

        vectors, errors = await self._embed_chunks(chunks)
        chunks = [chunk.model_copy(update={"indexed": chunk.id in vectors}) for chunk in chunks]

        document = Document(
            id=document_id,
            title=title,
            content=request.content,
            metadata=metadata,
            chunks=chunks,
            embedding_model=self.embeddings.model_name,
        )

        try:
            async with self._write_lock:
                await self._check_capacity(document_id)
                await self.storage.insert_document(document, vectors)
                for chunk in chunks:
                    if chunk.indexed:
                        self.index.upsert(chunk.id, vectors[chunk.id], partition=document_id)

        except AstreusError:
            raise
        except Exception as e:
            self.logger.error("Failed to ingest document", document_id=document_id, error=str(e))
            raise RAGError(f"Failed to ingest document: {e}", document_id) from e

        result = IngestionResult(
            document=document,
            indexed_chunk_ids=[chunk.id for chunk in chunks if chunk.indexed],
            failed_chunk_ids=[c.id for c in chunks if c.indexable and not c.indexed],
            skipped_chunk_ids=[chunk.id for chunk in chunks if not chunk.indexable],
            errors=errors,
        )

        if result.is_partial:
            self.logger.warning(
                "Document ingested with unindexed chunks",
                document_id=document_id,
                failed=len(result.failed_chunk_ids),
                chunks=len(chunks),
            )
        else:
            self.logger.info(
                "Document ingested",
                document_id=document_id,
                chunks=len(chunks),
                skipped=len(result.skipped_chunk_ids),
            )
        return result

    async def _check_capacity(self, document_id: str) -> None:
        if await self.storage.get_document(document_id, include_chunks=False) is not None:
            raise ValidationError(f"Document already exists: {document_id}", "document_id")

        if self.max_documents is not None:
            if await self.storage.count_documents() >= self.max_documents:
                error = RAGError(
                    f"Document limit reached (max {self.max_documents})", document_id
                )
                error.error_code = "DOCUMENT_LIMIT_REACHED"
                raise error

    async def _embed_chunks(self, chunks: List[Chunk]) -> Tuple[Dict[str, List[float]], List[str]]:
        """Embed chunks in batches. Returns vectors by chunk id and provider errors.

        Whitespace-only chunks are never sent to the provider. A failed batch
        is retried one chunk at a time so only the offending chunks stay
        unindexed.
        """
        chunks = [chunk for chunk in chunks if chunk.indexable]
        batch_size = self.settings.EMBEDDING_BATCH_SIZE
        batches = [chunks[i:i + batch_size] for i in range(0, len(chunks), batch_size)]

        outcomes = await self._embed_batches(batches)

        vectors: Dict[str, List[float]] = {}
        errors: List[str] = []
        retry: List[Chunk] = []
        for batch, outcome in zip(batches, outcomes):
            if isinstance(outcome, EmbeddingProviderError):
                if len(batch) == 1:
                    errors.append(str(outcome))
                else:
                    self.logger.warning(
                        "Embedding batch failed, retrying chunks individually",
                        count=len(batch),
                        error=str(outcome),
                    )
                    retry.extend(batch)
                continue
            for chunk, vector in zip(batch, outcome):
                vectors[chunk.id] = vector

        if retry:
            singles = [[chunk] for chunk in retry]
            for (chunk,), outcome in zip(singles, await self._embed_batches(singles)):
                if isinstance(outcome, EmbeddingProviderError):
                    errors.append(f"{chunk.id}: {outcome}")
                else:
                    vectors[chunk.id] = outcome[0]

        return vectors, errors

    async def _embed_batches(self, batches: List[List[Chunk]]) -> List[Any]:
        outcomes = await gather_with_concurrency(
            [self.embeddings.embed_batch([chunk.content for chunk in batch]) for batch in batches],
            max_concurrency=self.settings.EMBEDDING_CONCURRENCY,
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException) and not isinstance(outcome, EmbeddingProviderError):
                raise outcome
        return outcomes

    async def get_document(self, document_id: str) -> Document:
        validate_identifier(document_id, "document_id")
        document = await self.storage.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def list_documents(self) -> List[Document]:
        return await self.storage.list_documents()

    async def delete_document(self, document_id: str) -> bool:
        """Delete a document, removing its chunk vectors from the index first."""
        validate_identifier(document_id, "document_id")

        async with self._write_lock:
            if await self.storage.get_document(document_id, include_chunks=False) is None:
                raise DocumentNotFoundError(document_id)

            removed = self.index.remove_partition(document_id)
            try:
                await self.storage.delete_document(document_id)
            except StorageError:
                self.logger.error(
                    "Document delete failed after index removal; reindex_document restores it",
                    document_id=document_id,
                )
                raise

        self.logger.info("Document deleted", document_id=document_id, vectors_removed=removed)
        return True

    async def update_metadata(
        self, document_id: str, metadata: Dict[str, Any], merge: bool = True
    ) -> Document:
        """Amend a document's metadata. Content and chunks never change."""
        validate_identifier(document_id, "document_id")
        validate_document_metadata(metadata)

        async with self._write_lock:
            document = await self.storage.get_document(document_id)
            if document is None:
                raise DocumentNotFoundError(document_id)

            new_metadata = {**document.metadata, **metadata} if merge else dict(metadata)
            updated_at = utc_now()
            await self.storage.update_metadata(document_id, new_metadata, updated_at)

        self.logger.info("Document metadata updated", document_id=document_id)
        return document.model_copy(update={"metadata": new_metadata, "updated_at": updated_at})

    async def reindex(self, document_id: str) -> IngestionResult:
        """Embed and index chunks that are missing from the vector index."""
        document = await self.get_document(document_id)
        missing = [
            c for c in document.chunks if c.indexable and (not c.indexed or c.id not in self.index)
        ]

        vectors, errors = await self._embed_chunks(missing)

        async with self._write_lock:
            for chunk in missing:
                if chunk.id not in vectors:
                    continue
                if await self.storage.set_chunk_embedding(chunk.id, vectors[chunk.id]):
                    self.index.upsert(chunk.id, vectors[chunk.id], partition=document_id)

        document = await self.get_document(document_id)
        result = IngestionResult(
            document=document,
            indexed_chunk_ids=[chunk.id for chunk in document.chunks if chunk.indexed],
            failed_chunk_ids=[chunk.id for chunk in missing if chunk.id not in vectors],
            skipped_chunk_ids=[chunk.id for chunk in document.chunks if not chunk.indexable],
            errors=errors,
        )
        self.logger.info(
            "Document re-indexed",
            document_id=document_id,
            reindexed=len(vectors),
            failed=len(result.failed_chunk_ids),
        )
        return result
