"""Abstract base classes for embedding providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import EmbeddingProviderError


class EmbeddingProvider(ABC, LoggerMixin):
    """Abstract base class for embedding providers.

    Implementations turn text into fixed-dimension float vectors. ``embed_texts``
    must return exactly one vector per input, in input order.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the embedding provider."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the embedding provider and clean up resources."""
        pass

    @abstractmethod
    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts."""
        pass

    @abstractmethod
    def get_embedding_dimension(self) -> int:
        """Get the dimension of embeddings produced by this provider."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the name of this provider."""
        pass

    @property
    def model_name(self) -> str:
        return self.settings.EMBEDDING_MODEL

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self) -> None:
        """Ensure the provider is initialized."""
        if not self._initialized:
            raise EmbeddingProviderError(
                f"{self.provider_name} provider not initialized", self.provider_name
            )

    async def embed_text(self, text: str) -> List[float]:
        """Generate embedding for a single text."""
        if not text.strip():
            raise EmbeddingProviderError("Cannot embed empty text", self.provider_name)

        embeddings = await self.embed_texts([text])
        if len(embeddings) != 1:
            raise EmbeddingProviderError(
                f"Expected 1 embedding, provider returned {len(embeddings)}",
                self.provider_name,
            )
        return embeddings[0]

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the embedding model."""
        self._ensure_initialized()

        return {
            "model_name": self.model_name,
            "provider": self.provider_name,
            "dimension": self.get_embedding_dimension(),
        }
