"""
Astreus memory - conversation memory and retrieval-augmented generation for agents.

This package provides:
- Session-partitioned conversation memory with FIFO retention
- Optional semantic search over memory entries
- Document ingestion with overlapping chunking and batched embeddings
- Exact cosine-similarity vector search with scores in [0, 1]
- A tool registry that exposes memory and retrieval to agents
"""

__version__ = "0.1.0"

from .config.settings import Settings
from .memory import MemoryManager, Session, SessionManager
from .rag import RAGEngine

__all__ = ["Settings", "MemoryManager", "Session", "SessionManager", "RAGEngine"]
