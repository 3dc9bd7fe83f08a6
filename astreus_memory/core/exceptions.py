"""Custom exceptions for Astreus memory and RAG."""

from typing import Any, Dict, List, Optional


class AstreusError(Exception):
    """Base exception for all Astreus memory errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]
        if self.error_code:
            parts.append(f"(code: {self.error_code})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ConfigurationError(AstreusError):
    """Raised when there's a configuration issue."""

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, "CONFIGURATION_ERROR", details)


class DimensionMismatchError(ConfigurationError):
    """Raised when a vector does not match the index dimension."""

    def __init__(self, expected: int, actual: int, vector_id: Optional[str] = None) -> None:
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}",
            "embedding_dimension",
        )
        self.error_code = "DIMENSION_MISMATCH"
        self.details.update({"expected": expected, "actual": actual})
        if vector_id:
            self.details["vector_id"] = vector_id


class EmbeddingProviderError(AstreusError):
    """Raised when the embedding provider fails to produce vectors."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        details = {"provider": provider} if provider else {}
        super().__init__(message, "EMBEDDING_PROVIDER_ERROR", details)


class StorageError(AstreusError):
    """Raised when the storage backend fails to read or write."""

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        details = {"operation": operation} if operation else {}
        super().__init__(message, "STORAGE_ERROR", details)


class NotFoundError(AstreusError):
    """Raised when an operation targets an unknown identifier."""

    def __init__(self, message: str, resource: str, identifier: str) -> None:
        super().__init__(message, "NOT_FOUND", {"resource": resource, "id": identifier})


class SessionNotFoundError(NotFoundError):
    """Raised when a session has no entries."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}", "session", session_id)
        self.error_code = "SESSION_NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    """Raised when a memory entry is not found."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Memory entry not found: {entry_id}", "entry", entry_id)
        self.error_code = "ENTRY_NOT_FOUND"


class DocumentNotFoundError(NotFoundError):
    """Raised when a requested document is not found."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}", "document", document_id)
        self.error_code = "DOCUMENT_NOT_FOUND"


class MemoryError(AstreusError):
    """Raised when there's a memory management issue."""

    def __init__(self, message: str, session_id: Optional[str] = None) -> None:
        details = {"session_id": session_id} if session_id else {}
        super().__init__(message, "MEMORY_ERROR", details)


class RAGError(AstreusError):
    """Raised when there's a RAG engine issue."""

    def __init__(self, message: str, document_id: Optional[str] = None) -> None:
        details = {"document_id": document_id} if document_id else {}
        super().__init__(message, "RAG_ERROR", details)


class PartialIngestionError(RAGError):
    """Raised when some chunks of an ingested document could not be indexed.

    The document itself has been persisted; the failed chunks can be indexed
    later with ``RAGEngine.reindex_document``.
    """

    def __init__(self, document_id: str, failed_chunk_ids: List[str], total_chunks: int) -> None:
        super().__init__(
            f"{len(failed_chunk_ids)} of {total_chunks} chunks failed to index "
            f"for document {document_id}",
            document_id,
        )
        self.error_code = "PARTIAL_INGESTION"
        self.failed_chunk_ids = list(failed_chunk_ids)
        self.details.update(
            {"failed_chunk_ids": self.failed_chunk_ids, "total_chunks": total_chunks}
        )


class ValidationError(AstreusError):
    """Raised when data validation fails."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)
