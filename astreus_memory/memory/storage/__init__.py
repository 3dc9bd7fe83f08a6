"""Memory storage package.

This package provides storage implementations for the memory system:
- base: Abstract base class defining the storage interface
- sqlite: SQLite-based implementation for local persistence
- memory: In-process implementation for tests and ephemeral sessions
"""

from typing import Optional

from ...config.settings import Settings
from ...core.exceptions import ConfigurationError
from .base import MemoryStorage
from .memory import InMemoryMemoryStorage
from .sqlite import SQLiteMemoryStorage


def create_memory_storage(settings: Settings, table_name: Optional[str] = None) -> MemoryStorage:
    """Build the storage backend selected by ``STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "sqlite":
        return SQLiteMemoryStorage(
            settings.SQLITE_DATABASE_PATH, table_name or settings.MEMORY_TABLE_NAME
        )
    if settings.STORAGE_BACKEND == "memory":
        return InMemoryMemoryStorage()
    raise ConfigurationError(
        f"Unknown storage backend: {settings.STORAGE_BACKEND}", "STORAGE_BACKEND"
    )


__all__ = [
    "MemoryStorage",
    "SQLiteMemoryStorage",
    "InMemoryMemoryStorage",
    "create_memory_storage",
]
