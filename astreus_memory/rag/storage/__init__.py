"""Document storage package.

- base: Abstract base class defining the storage interface
- sqlite: SQLite-based implementation (documents table plus ``<table>_chunks``)
- memory: In-process implementation for tests and ephemeral corpora
"""

from typing import Optional

from ...config.settings import Settings
from ...core.exceptions import ConfigurationError
from .base import DocumentStorage
from .memory import InMemoryDocumentStorage
from .sqlite import SQLiteDocumentStorage


def create_document_storage(settings: Settings, table_name: Optional[str] = None) -> DocumentStorage:
    """Build the storage backend selected by ``STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "sqlite":
        return SQLiteDocumentStorage(
            settings.SQLITE_DATABASE_PATH, table_name or settings.RAG_TABLE_NAME
        )
    if settings.STORAGE_BACKEND == "memory":
        return InMemoryDocumentStorage()
    raise ConfigurationError(
        f"Unknown storage backend: {settings.STORAGE_BACKEND}", "STORAGE_BACKEND"
    )


__all__ = [
    "DocumentStorage",
    "SQLiteDocumentStorage",
    "InMemoryDocumentStorage",
    "create_document_storage",
]
