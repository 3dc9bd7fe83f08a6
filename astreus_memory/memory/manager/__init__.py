"""
Conversation memory management.

This package provides a modular memory manager with:

- **Core Management**: Main MemoryManager class with lifecycle and coordination
- **Write Operations**: add, delete, clear, FIFO eviction and re-indexing
- **Query Operations**: history, semantic search, counts and statistics

Architecture:
- MemoryManager: Main coordinator that delegates to operation handlers
- Storage abstraction: Pluggable backends (SQLite/in-memory) handled transparently
- Vector index: Entries are indexed per session when embeddings are enabled
- Per-session locks: Writers to different sessions never wait on each other
"""

from .core import MemoryManager

__all__ = ["MemoryManager"]
