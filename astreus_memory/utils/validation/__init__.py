"""Validation utilities package.

Domain-specific validation functions organized by concern:
- memory: session ids, roles, entry content and metadata
- documents: document content/metadata, search parameters, chunking
- common: identifiers and JSON mappings shared by both
"""

from .memory import (
    validate_entry_content,
    validate_entry_metadata,
    validate_memory_entry,
    validate_role,
    validate_session_id,
)

from .documents import (
    validate_chunking,
    validate_document_content,
    validate_document_metadata,
    validate_limit,
    validate_rag_data,
    validate_search_query,
    validate_similarity_threshold,
)

from .common import validate_identifier, validate_json_mapping, validate_table_name

__all__ = [
    # Memory validation
    "validate_session_id",
    "validate_role",
    "validate_entry_content",
    "validate_entry_metadata",
    "validate_memory_entry",

    # Document validation
    "validate_document_content",
    "validate_document_metadata",
    "validate_search_query",
    "validate_limit",
    "validate_similarity_threshold",
    "validate_chunking",
    "validate_rag_data",

    # Common validation
    "validate_identifier",
    "validate_json_mapping",
    "validate_table_name",
]
