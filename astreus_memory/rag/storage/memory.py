"""In-process document storage implementation."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ...core.exceptions import StorageError
from ...models.rag import Chunk, Document
from .base import DocumentStorage


class InMemoryDocumentStorage(DocumentStorage):
    """Dictionary-backed storage. Contents are lost when the process exits."""

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._embeddings: Dict[str, List[float]] = {}
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True
        self.logger.info("In-memory document storage initialized")

    async def close(self) -> None:
        self._documents.clear()
        self._embeddings.clear()
        self._initialized = False
        self.logger.info("In-memory document storage closed")

    def _check(self) -> None:
        if not self._initialized:
            raise StorageError("Storage not initialized")

    async def insert_document(self, document: Document, embeddings: Dict[str, List[float]]) -> None:
        self._check()
        if document.id in self._documents:
            raise StorageError(f"Document already exists: {document.id}", "insert_document")
        self._documents[document.id] = document
        for chunk in document.chunks:
            if chunk.indexed and chunk.id in embeddings:
                self._embeddings[chunk.id] = list(embeddings[chunk.id])

    async def get_document(self, document_id: str, include_chunks: bool = True) -> Optional[Document]:
        self._check()
        document = self._documents.get(document_id)
        if document is None or include_chunks:
            return document
        return document.without_chunks()

    async def get_documents(self, document_ids: List[str]) -> Dict[str, Document]:
        self._check()
        return {
            doc_id: self._documents[doc_id].without_chunks()
            for doc_id in document_ids
            if doc_id in self._documents
        }

    async def list_documents(self) -> List[Document]:
        self._check()
        return [document.without_chunks() for document in self._documents.values()]

    async def count_documents(self) -> int:
        self._check()
        return len(self._documents)

    async def delete_document(self, document_id: str) -> bool:
        self._check()
        document = self._documents.pop(document_id, None)
        if document is None:
            return False
        for chunk in document.chunks:
            self._embeddings.pop(chunk.id, None)
        return True

    async def update_metadata(
        self, document_id: str, metadata: Dict[str, Any], updated_at: datetime
    ) -> bool:
        self._check()
        document = self._documents.get(document_id)
        if document is None:
            return False
        self._documents[document_id] = document.model_copy(
            update={"metadata": dict(metadata), "updated_at": updated_at}
        )
        return True

    def _find_chunk(self, chunk_id: str) -> Optional[Tuple[Document, int]]:
        document_id = chunk_id.rsplit("#", 1)[0]
        document = self._documents.get(document_id)
        if document is None:
            return None
        for position, chunk in enumerate(document.chunks):
            if chunk.id == chunk_id:
                return document, position
        return None

    async def get_chunks(self, chunk_ids: List[str]) -> Dict[str, Chunk]:
        self._check()
        chunks = {}
        for chunk_id in chunk_ids:
            found = self._find_chunk(chunk_id)
            if found:
                document, position = found
                chunks[chunk_id] = document.chunks[position]
        return chunks

    async def set_chunk_embedding(self, chunk_id: str, embedding: List[float]) -> bool:
        self._check()
        found = self._find_chunk(chunk_id)
        if found is None:
            return False
        document, position = found
        chunks = list(document.chunks)
        chunks[position] = chunks[position].model_copy(update={"indexed": True})
        self._documents[document.id] = document.model_copy(update={"chunks": chunks})
        self._embeddings[chunk_id] = list(embedding)
        return True

    async def list_chunk_embeddings(self) -> List[Tuple[str, str, List[float]]]:
        self._check()
        return [
            (chunk.id, document.id, self._embeddings[chunk.id])
            for document in self._documents.values()
            for chunk in document.chunks
            if chunk.indexed and chunk.id in self._embeddings
        ]

    async def get_stats(self) -> Dict[str, int]:
        self._check()
        documents = list(self._documents.values())
        return {
            "document_count": len(documents),
            "total_content_length": sum(document.content_length for document in documents),
            "chunk_count": sum(len(document.chunks) for document in documents),
            "indexed_chunk_count": sum(document.indexed_chunk_count for document in documents),
        }
