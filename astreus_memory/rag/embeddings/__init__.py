"""
Embedding generation and management for memory and RAG.

Provider backends:

- **API Provider**: external OpenAI-compatible endpoints
- **Local Provider**: sentence-transformers running in-process

EmbeddingManager selects a provider from settings (or takes an explicit
provider instance), enforces a fixed vector dimension, applies timeouts and
retries, and reports every failure as EmbeddingProviderError.
"""

from .base import EmbeddingProvider
from .manager import EmbeddingManager

__all__ = ["EmbeddingManager", "EmbeddingProvider"]
