"""
RAG retrieval engine over chunked, embedded documents.

This package provides a modular retrieval engine with:

- **Core Management**: Main RAGEngine class with lifecycle and coordination
- **Document Operations**: ingestion, deletion, metadata amendment, re-indexing
- **Search Operations**: vector similarity search with filtering and ranking
- **Statistics**: collection counts and embedding information

Ingestion is partial-success: chunks whose embedding batch failed are stored
unindexed and reported in the IngestionResult rather than aborting the
document.
"""

from .core import RAGEngine

__all__ = ["RAGEngine"]
