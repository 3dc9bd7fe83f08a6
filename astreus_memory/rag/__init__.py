"""Retrieval-augmented generation: chunking, embeddings, vector index and engine."""

from .chunking import Chunker, chunk_text
from .embeddings import EmbeddingManager, EmbeddingProvider
from .engine import RAGEngine
from .index import VectorIndex
from .parsing import DocumentParser, TextDocumentParser

__all__ = [
    "Chunker",
    "chunk_text",
    "EmbeddingManager",
    "EmbeddingProvider",
    "RAGEngine",
    "VectorIndex",
    "DocumentParser",
    "TextDocumentParser",
]
