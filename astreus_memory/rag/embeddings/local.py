"""Local sentence-transformers embedding provider implementation."""

import asyncio
from typing import Dict, List, Optional

try:
    from sentence_transformers import SentenceTransformer
except ImportError:
    SentenceTransformer = None

from ...core.exceptions import EmbeddingProviderError
from .base import EmbeddingProvider


class LocalEmbeddingProvider(EmbeddingProvider):
    """Local sentence-transformers embedding provider."""

    def __init__(self, settings=None):
        super().__init__(settings)
        self.model: Optional["SentenceTransformer"] = None

    @property
    def provider_name(self) -> str:
        return "local"

    async def initialize(self) -> None:
        """Initialize local sentence-transformers model."""
        if SentenceTransformer is None:
            raise EmbeddingProviderError(
                "sentence-transformers not available. Install with: pip install astreus-memory[local]",
                self.provider_name,
            )

        try:
            # Model loading is blocking; keep it off the event loop
            loop = asyncio.get_running_loop()
            self.model = await loop.run_in_executor(
                None,
                lambda: SentenceTransformer(self.model_name)
            )

            self._initialized = True

            self.logger.info(
                "Local embedding provider initialized",
                model=self.model_name,
                dimensions=self.model.get_sentence_embedding_dimension()
            )

        except Exception as e:
            self.logger.error("Failed to initialize local embedding provider", error=str(e))
            raise EmbeddingProviderError(
                f"Local embedding provider initialization failed: {e}", self.provider_name
            ) from e

    async def close(self) -> None:
        """Close the local embedding provider."""
        self.model = None
        self._initialized = False
        self.logger.info("Local embedding provider closed")

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings using local model."""
        self._ensure_initialized()

        if not texts:
            return []

        if any(not text.strip() for text in texts):
            raise EmbeddingProviderError("Cannot embed empty text", self.provider_name)

        loop = asyncio.get_running_loop()
        embeddings = await loop.run_in_executor(
            None,
            lambda: [emb.tolist() for emb in self.model.encode(texts, convert_to_tensor=False)]
        )

        self.logger.debug(
            "Texts embedded locally",
            count=len(texts),
            embedding_dim=len(embeddings[0]) if embeddings else 0
        )
        return embeddings

    def get_embedding_dimension(self) -> int:
        """Get the dimension of embeddings produced by the local model."""
        self._ensure_initialized()
        return self.model.get_sentence_embedding_dimension()

    def get_model_info(self) -> Dict:
        """Get local provider model information."""
        info = super().get_model_info()
        if self.model:
            info["max_sequence_length"] = getattr(self.model, 'max_seq_length', 'unknown')
        return info
