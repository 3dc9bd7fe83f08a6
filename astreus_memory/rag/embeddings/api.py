"""API-based embedding provider implementation."""

from typing import Dict, List, Optional

import aiohttp

from ...core.exceptions import EmbeddingProviderError
from .base import EmbeddingProvider

# Common dimensions for popular API models
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "all-MiniLM-L6-v2": 384,
    "all-mpnet-base-v2": 768,
}


class ApiEmbeddingProvider(EmbeddingProvider):
    """Embedding provider for OpenAI-compatible ``/v1/embeddings`` endpoints."""

    def __init__(self, settings=None):
        super().__init__(settings)
        self._session: Optional[aiohttp.ClientSession] = None
        self._dimension: Optional[int] = None

    @property
    def provider_name(self) -> str:
        return "api"

    async def initialize(self) -> None:
        """Initialize API-based embedding provider."""
        if not self.settings.EMBEDDING_API_BASE:
            raise EmbeddingProviderError(
                "EMBEDDING_API_BASE required for API provider", self.provider_name
            )

        timeout = aiohttp.ClientTimeout(total=self.settings.EMBEDDING_TIMEOUT_SECONDS)
        self._session = aiohttp.ClientSession(timeout=timeout)

        # Probe the endpoint once; this also pins the real dimension
        try:
            probe = await self._api_embed_texts(["dimension probe"])
            self._dimension = len(probe[0])
            self._initialized = True

            self.logger.info(
                "API embedding provider initialized",
                api_base=self.settings.EMBEDDING_API_BASE,
                model=self.model_name,
                dimension=self._dimension,
            )
        except Exception as e:
            await self._session.close()
            self._session = None
            raise EmbeddingProviderError(
                f"API embedding provider initialization failed: {e}", self.provider_name
            ) from e

    async def close(self) -> None:
        """Close the API embedding provider."""
        if self._session:
            await self._session.close()
            self._session = None

        self._initialized = False
        self.logger.info("API embedding provider closed")

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings using API."""
        self._ensure_initialized()

        if not texts:
            return []

        if any(not text.strip() for text in texts):
            raise EmbeddingProviderError("Cannot embed empty text", self.provider_name)

        embeddings = await self._api_embed_texts(texts)

        self.logger.debug(
            "Texts embedded via API",
            count=len(texts),
            embedding_dim=len(embeddings[0]) if embeddings else 0
        )

        return embeddings

    async def _api_embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Call the embeddings endpoint and return vectors in input order."""
        if not self._session:
            raise EmbeddingProviderError("HTTP session not initialized", self.provider_name)

        headers = {
            "Content-Type": "application/json"
        }

        if self.settings.EMBEDDING_API_KEY:
            headers["Authorization"] = f"Bearer {self.settings.EMBEDDING_API_KEY}"

        payload = {
            "model": self.model_name,
            "input": texts
        }

        url = f"{self.settings.EMBEDDING_API_BASE.rstrip('/')}/v1/embeddings"

        try:
            async with self._session.post(url, headers=headers, json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise EmbeddingProviderError(
                        f"API request failed: {response.status} - {error_text}",
                        self.provider_name,
                    )
                data = await response.json()
        except aiohttp.ClientError as e:
            raise EmbeddingProviderError(f"API request error: {e}", self.provider_name) from e

        items = sorted(data["data"], key=lambda item: item.get("index", 0))
        if len(items) != len(texts):
            raise EmbeddingProviderError(
                f"API returned {len(items)} embeddings for {len(texts)} inputs",
                self.provider_name,
            )
        return [item["embedding"] for item in items]

    def get_embedding_dimension(self) -> int:
        """Get the dimension of embeddings produced by the API model."""
        if self._dimension is not None:
            return self._dimension
        return MODEL_DIMENSIONS.get(self.model_name, 1536)

    def get_model_info(self) -> Dict:
        """Get API provider model information."""
        info = super().get_model_info()
        info["api_base"] = self.settings.EMBEDDING_API_BASE
        return info
