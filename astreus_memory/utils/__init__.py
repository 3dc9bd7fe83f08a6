"""Utility functions and helpers."""

from .async_utils import gather_with_concurrency, retry_with_backoff
from .validation import validate_memory_entry, validate_rag_data

__all__ = [
    "gather_with_concurrency",
    "retry_with_backoff",
    "validate_memory_entry",
    "validate_rag_data",
]
