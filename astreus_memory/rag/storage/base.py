"""Abstract base class for document storage implementations."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ...config.logging import LoggerMixin
from ...models.rag import Chunk, Document


class DocumentStorage(ABC, LoggerMixin):
    """Persistence contract for documents, their chunks and chunk vectors.

    A document and its chunks are written and deleted together. Documents
    returned by listing methods carry no chunk list.
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
    async def insert_document(self, document: Document, embeddings: Dict[str, List[float]]) -> None:
        """Persist a document with its chunks and the vectors of indexed chunks."""
        pass

    @abstractmethod
    async def get_document(self, document_id: str, include_chunks: bool = True) -> Optional[Document]:
        """Retrieve a document by id."""
        pass

    @abstractmethod
    async def get_documents(self, document_ids: List[str]) -> Dict[str, Document]:
        """Retrieve the existing documents among ``document_ids``, without chunks."""
        pass

    @abstractmethod
    async def list_documents(self) -> List[Document]:
        """All documents without chunks, oldest first."""
        pass

    @abstractmethod
    async def count_documents(self) -> int:
        pass

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document and its chunks. Returns False if missing."""
        pass

    @abstractmethod
    async def update_metadata(
        self, document_id: str, metadata: Dict[str, Any], updated_at: datetime
    ) -> bool:
        """Replace a document's metadata. Returns False if missing."""
        pass

    @abstractmethod
    async def get_chunks(self, chunk_ids: List[str]) -> Dict[str, Chunk]:
        """Retrieve the existing chunks among ``chunk_ids``."""
        pass

    @abstractmethod
    async def set_chunk_embedding(self, chunk_id: str, embedding: List[float]) -> bool:
        """Store a chunk vector and mark the chunk indexed."""
        pass

    @abstractmethod
    async def list_chunk_embeddings(self) -> List[Tuple[str, str, List[float]]]:
        """``(chunk_id, document_id, embedding)`` for every indexed chunk."""
        pass

    @abstractmethod
    async def get_stats(self) -> Dict[str, int]:
        """Counts of documents, chunks, indexed chunks and total content length."""
        pass
