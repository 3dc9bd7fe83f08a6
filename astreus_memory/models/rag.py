"""RAG (Retrieval Augmented Generation) domain models for Astreus."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.exceptions import PartialIngestionError
from .base import AstreusBaseModel, IdentifiedModel, SearchResult, StatsModel, new_id


class Chunk(AstreusBaseModel):
    """A bounded, overlapping slice of a document's content."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: str = Field(default_factory=new_id, description="Unique chunk identifier")
    document_id: str = Field(description="Identifier of the owning document")
    content: str = Field(description="Chunk text")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Position and page/section attributes"
    )
    indexed: bool = Field(
        default=False,
        description="Whether the chunk embedding is present in the vector index"
    )

    @property
    def chunk_index(self) -> int:
        return self.metadata.get("chunk_index", 0)

    @property
    def indexable(self) -> bool:
        """Whitespace-only chunks carry nothing to embed."""
        return bool(self.content.strip())


class Document(IdentifiedModel):
    """A document in the RAG engine."""

    title: str = Field(default="", description="Document title")
    content: str = Field(description="Document content text")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Document metadata and attributes"
    )
    chunks: List[Chunk] = Field(
        default_factory=list,
        description="Ordered chunks produced at ingestion"
    )
    embedding_model: Optional[str] = Field(
        default=None,
        description="Name of the embedding model used"
    )

    @property
    def content_length(self) -> int:
        """Get character length of content."""
        return len(self.content)

    @property
    def word_count(self) -> int:
        """Estimate word count in content."""
        return len(self.content.split())

    @property
    def indexed_chunk_count(self) -> int:
        return sum(1 for chunk in self.chunks if chunk.indexed)

    def without_chunks(self) -> "Document":
        """Copy of the document with the chunk list dropped."""
        return self.model_copy(update={"chunks": []})


class DocumentCreate(AstreusBaseModel):
    """Request to ingest a new document."""

    content: str = Field(description="Document content")
    title: Optional[str] = Field(default=None, description="Document title")
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Document metadata"
    )
    document_id: Optional[str] = Field(
        default=None,
        description="Custom document ID (auto-generated if not provided)"
    )
    page_breaks: List[int] = Field(
        default_factory=list,
        description="Character offsets at which pages 2, 3, ... begin"
    )

    @field_validator('content')
    @classmethod
    def content_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Content cannot be empty')
        return v


class IngestionStatus(str, Enum):
    """Outcome of a document ingestion."""

    COMPLETE = "complete"
    PARTIAL = "partial"


class IngestionResult(AstreusBaseModel):
    """Result of ingesting one document."""

    document: Document = Field(description="The persisted document with its chunks")
    indexed_chunk_ids: List[str] = Field(default_factory=list)
    failed_chunk_ids: List[str] = Field(default_factory=list)
    skipped_chunk_ids: List[str] = Field(
        default_factory=list,
        description="Whitespace-only chunks stored without a vector"
    )
    errors: List[str] = Field(
        default_factory=list,
        description="Provider errors for the failed chunks"
    )

    @property
    def status(self) -> IngestionStatus:
        return IngestionStatus.PARTIAL if self.failed_chunk_ids else IngestionStatus.COMPLETE

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_chunk_ids)

    def raise_for_partial(self) -> None:
        """Raise PartialIngestionError if any chunk failed to index."""
        if self.failed_chunk_ids:
            raise PartialIngestionError(
                self.document.id, self.failed_chunk_ids, len(self.document.chunks)
            )


class DocumentSearchResult(SearchResult[Chunk]):
    """Search hit: the matched chunk resolved back to its document."""

    document: Document = Field(description="Owning document (without chunk list)")

    @property
    def chunk(self) -> Chunk:
        return self.item

    @property
    def content(self) -> str:
        return self.item.content

    @property
    def page(self) -> Optional[int]:
        return self.item.metadata.get("page")

    @property
    def section(self) -> Optional[str]:
        return self.item.metadata.get("section")


class RAGStats(StatsModel):
    """Statistics about the RAG document collection."""

    document_count: int = Field(ge=0, description="Total number of documents")
    chunk_count: int = Field(ge=0, description="Total number of chunks")
    indexed_chunk_count: int = Field(ge=0, description="Chunks present in the vector index")
    embedding_dimension: Optional[int] = Field(
        default=None,
        ge=1,
        description="Embedding vector dimension"
    )
    embedding_model: Optional[str] = Field(
        default=None,
        description="Embedding model in use"
    )
    total_content_length: int = Field(
        default=0,
        ge=0,
        description="Total character length of all documents"
    )


class ParseOptions(AstreusBaseModel):
    """Options understood by document parsers."""

    title_from_filename: bool = Field(default=True)
    extract_images: bool = Field(default=False)
    ocr_enabled: bool = Field(default=False)
    language: str = Field(default="en")
    metadata: Dict[str, Any] = Field(default_factory=dict)
