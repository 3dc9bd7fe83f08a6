"""Core functionality shared by the memory store and the RAG engine."""

from .exceptions import (
    AstreusError,
    ConfigurationError,
    DimensionMismatchError,
    DocumentNotFoundError,
    EmbeddingProviderError,
    EntryNotFoundError,
    MemoryError,
    NotFoundError,
    PartialIngestionError,
    RAGError,
    SessionNotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "AstreusError",
    "ConfigurationError",
    "DimensionMismatchError",
    "DocumentNotFoundError",
    "EmbeddingProviderError",
    "EntryNotFoundError",
    "MemoryError",
    "NotFoundError",
    "PartialIngestionError",
    "RAGError",
    "SessionNotFoundError",
    "StorageError",
    "ValidationError",
]
