"""Astreus memory domain models."""

from .base import (
    AstreusBaseModel,
    IdentifiedModel,
    SearchResult,
    StatsModel,
    TimestampedModel,
)
from .memory import (
    MemoryEntry,
    MemoryEntryCreate,
    MemoryRole,
    MemorySearchResult,
    MemoryStats,
)
from .rag import (
    Chunk,
    Document,
    DocumentCreate,
    DocumentSearchResult,
    IngestionResult,
    IngestionStatus,
    ParseOptions,
    RAGStats,
)

__all__ = [
    # Base models
    "AstreusBaseModel",
    "TimestampedModel",
    "IdentifiedModel",
    "SearchResult",
    "StatsModel",

    # Memory models
    "MemoryEntry",
    "MemoryEntryCreate",
    "MemoryRole",
    "MemorySearchResult",
    "MemoryStats",

    # RAG models
    "Chunk",
    "Document",
    "DocumentCreate",
    "DocumentSearchResult",
    "IngestionResult",
    "IngestionStatus",
    "ParseOptions",
    "RAGStats",
]
