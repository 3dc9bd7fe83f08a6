"""Main embedding manager that coordinates between providers."""

import asyncio
import math
from typing import Any, Dict, List, Optional

from ...config.logging import LoggerMixin
from ...config.settings import Settings
from ...core.exceptions import ConfigurationError, DimensionMismatchError, EmbeddingProviderError
from ...utils.async_utils import retry_with_backoff
from .api import ApiEmbeddingProvider
from .base import EmbeddingProvider
from .local import LocalEmbeddingProvider


class EmbeddingManager(LoggerMixin):
    """Wraps an embedding provider with timeouts, retries and dimension checks.

    All provider failures, including timeouts and malformed output, surface as
    ``EmbeddingProviderError`` chained to the upstream exception. A vector is
    never fabricated for a failed input.
    """

    def __init__(self, settings: Settings, provider: Optional[EmbeddingProvider] = None):
        self.settings = settings
        self.provider: Optional[EmbeddingProvider] = provider
        self._dimension: Optional[int] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the embedding manager with appropriate provider."""
        if self.provider is None:
            if self.settings.EMBEDDING_PROVIDER == "api":
                self.provider = ApiEmbeddingProvider(self.settings)
            elif self.settings.EMBEDDING_PROVIDER == "local":
                self.provider = LocalEmbeddingProvider(self.settings)
            else:
                raise ConfigurationError(
                    f"Unknown embedding provider: {self.settings.EMBEDDING_PROVIDER}",
                    "EMBEDDING_PROVIDER",
                )

        try:
            if not self.provider.is_initialized:
                await self.provider.initialize()
            provider_dimension = self.provider.get_embedding_dimension()
        except EmbeddingProviderError:
            raise
        except Exception as e:
            self.logger.error("Failed to initialize embedding manager", error=str(e))
            raise EmbeddingProviderError(
                f"Embedding manager initialization failed: {e}",
                getattr(self.provider, "provider_name", None),
            ) from e

        override = self.settings.EMBEDDING_DIMENSION
        if override is not None and override != provider_dimension:
            self.logger.error(
                "Configured embedding dimension does not match provider",
                configured=override,
                provider_dimension=provider_dimension,
            )
            raise DimensionMismatchError(override, provider_dimension)
        self._dimension = provider_dimension

        self._initialized = True
        self.logger.info(
            "Embedding manager initialized",
            provider=self.provider.provider_name,
            model=self.provider.model_name,
            dimension=self._dimension,
        )

    async def close(self) -> None:
        """Close the embedding manager."""
        if self.provider:
            await self.provider.close()

        self._initialized = False
        self.logger.info("Embedding manager closed")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _ensure_initialized(self) -> None:
        """Ensure the embedding manager is initialized."""
        if not self._initialized or not self.provider:
            raise EmbeddingProviderError("Embedding manager not initialized")

    @property
    def dimension(self) -> int:
        """Dimension D shared by every vector this manager returns."""
        self._ensure_initialized()
        return self._dimension

    @property
    def model_name(self) -> str:
        self._ensure_initialized()
        return self.provider.model_name

    async def embed(self, text: str) -> List[float]:
        """Generate embedding for a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts, in input order."""
        self._ensure_initialized()

        if not texts:
            return []

        async def _call() -> List[List[float]]:
            return await asyncio.wait_for(
                self.provider.embed_texts(list(texts)),
                timeout=self.settings.EMBEDDING_TIMEOUT_SECONDS,
            )

        try:
            vectors = await retry_with_backoff(
                _call,
                max_retries=self.settings.EMBEDDING_MAX_RETRIES,
                base_delay=0.5,
                max_delay=5.0,
            )
        except asyncio.TimeoutError as e:
            self.logger.error(
                "Embedding request timed out",
                count=len(texts),
                timeout=self.settings.EMBEDDING_TIMEOUT_SECONDS,
            )
            raise EmbeddingProviderError(
                f"Embedding request timed out after {self.settings.EMBEDDING_TIMEOUT_SECONDS}s",
                self.provider.provider_name,
            ) from e
        except EmbeddingProviderError:
            raise
        except Exception as e:
            self.logger.error("Failed to embed texts", count=len(texts), error=str(e))
            raise EmbeddingProviderError(
                f"Failed to embed texts: {e}", self.provider.provider_name
            ) from e

        self._check_vectors(texts, vectors)
        return [[float(x) for x in vector] for vector in vectors]

    def _check_vectors(self, texts: List[str], vectors: List[List[float]]) -> None:
        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"Provider returned {len(vectors)} embeddings for {len(texts)} inputs",
                self.provider.provider_name,
            )
        for vector in vectors:
            if len(vector) != self._dimension:
                raise EmbeddingProviderError(
                    f"Provider returned a {len(vector)}-dimensional vector, "
                    f"expected {self._dimension}",
                    self.provider.provider_name,
                )
            if not all(math.isfinite(x) for x in vector) or not any(vector):
                raise EmbeddingProviderError(
                    "Provider returned a zero or non-finite vector",
                    self.provider.provider_name,
                )

    def get_embedding_dimension(self) -> int:
        """Get the dimension of embeddings produced by the model."""
        return self.dimension

    def get_model_info(self) -> Dict[str, Any]:
        """Get information about the embedding model."""
        self._ensure_initialized()
        info = self.provider.get_model_info()
        info["dimension"] = self._dimension
        return info

    async def embed_text(self, text: str) -> List[float]:
        return await self.embed(text)

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        return await self.embed_batch(texts)
