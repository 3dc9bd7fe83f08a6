"""Document and RAG-related validation utilities."""

from typing import Any, Dict, Optional

from ...core.exceptions import ConfigurationError, ValidationError
from .common import validate_identifier, validate_json_mapping


def validate_document_content(content: str) -> None:
    """Validate document content."""
    if not isinstance(content, str):
        raise ValidationError("Document content must be a string", "content")

    if not content.strip():
        raise ValidationError("Document content cannot be empty", "content")

    if len(content) > 10 * 1024 * 1024:  # 10MB limit
        raise ValidationError("Document content too large (max 10MB)", "content")


def validate_document_metadata(metadata: Optional[Dict[str, Any]]) -> None:
    """Validate document metadata."""
    validate_json_mapping(metadata, "metadata", 64 * 1024)


def validate_search_query(query: str) -> None:
    """Validate search query."""
    if not isinstance(query, str):
        raise ValidationError("Search query must be a string", "query")

    if not query.strip():
        raise ValidationError("Search query cannot be empty", "query")

    if len(query) > 10000:
        raise ValidationError("Search query too long (max 10000 characters)", "query")


def validate_limit(limit: Optional[int]) -> None:
    """Validate limit parameter."""
    if limit is None:
        return

    if not isinstance(limit, int) or isinstance(limit, bool):
        raise ValidationError("Limit must be an integer", "limit")

    if limit < 1:
        raise ValidationError("Limit must be positive", "limit")

    if limit > 1000:
        raise ValidationError("Limit too large (max 1000)", "limit")


def validate_similarity_threshold(threshold: Optional[float]) -> None:
    """Validate similarity threshold."""
    if threshold is None:
        return

    if not isinstance(threshold, (int, float)) or isinstance(threshold, bool):
        raise ValidationError("Similarity threshold must be a number", "threshold")

    if not (0.0 <= threshold <= 1.0):
        raise ValidationError("Similarity threshold must be between 0.0 and 1.0", "threshold")


def validate_chunking(chunk_size: int, chunk_overlap: int) -> None:
    """Validate chunking parameters.

    Raises ConfigurationError because chunking parameters are part of the
    engine configuration, even when passed per call.
    """
    if not isinstance(chunk_size, int) or not isinstance(chunk_overlap, int):
        raise ConfigurationError("Chunk size and overlap must be integers", "chunk_size")

    if chunk_size <= 0:
        raise ConfigurationError("Chunk size must be positive", "chunk_size")

    if chunk_overlap <= 0:
        raise ConfigurationError("Chunk overlap must be positive", "chunk_overlap")

    if chunk_overlap >= chunk_size:
        raise ConfigurationError(
            f"Chunk overlap ({chunk_overlap}) must be smaller than chunk size ({chunk_size})",
            "chunk_overlap",
        )


def validate_rag_data(
    content: str,
    metadata: Optional[Dict[str, Any]] = None,
    document_id: Optional[str] = None,
) -> None:
    """Validate all RAG-related data."""
    validate_document_content(content)
    validate_document_metadata(metadata)

    if document_id is not None:
        validate_identifier(document_id, "document_id")
