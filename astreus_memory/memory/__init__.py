"""Conversation memory with per-session retention and semantic search."""

from .manager import MemoryManager
from .session import Session, SessionManager
from .storage import InMemoryMemoryStorage, MemoryStorage, SQLiteMemoryStorage
from ..models.memory import MemoryEntry, MemoryRole

__all__ = [
    "MemoryManager",
    "Session",
    "SessionManager",
    "MemoryStorage",
    "SQLiteMemoryStorage",
    "InMemoryMemoryStorage",
    "MemoryEntry",
    "MemoryRole",
]
