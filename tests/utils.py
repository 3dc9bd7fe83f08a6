"""Test utilities and helper functions for Astreus memory tests."""

import hashlib
import re
from typing import Iterable, List, Optional

from astreus_memory.config.settings import Settings
from astreus_memory.rag.embeddings.base import EmbeddingProvider

TOKEN_PATTERN = re.compile(r"\w+")


class HashingEmbeddingProvider(EmbeddingProvider):
    """Deterministic bag-of-words provider.

    Each token increments one hashed coordinate, so identical texts get
    identical vectors (score 1.0) and texts without shared tokens are
    orthogonal (score 0.5).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dimension: int = 256,
        fail_on: Iterable[str] = (),
    ):
        super().__init__(settings)
        self.dimension = dimension
        self.fail_on = set(fail_on)
        self.calls: List[List[str]] = []

    @property
    def provider_name(self) -> str:
        return "hashing"

    async def initialize(self) -> None:
        self._initialized = True

    async def close(self) -> None:
        self._initialized = False

    def get_embedding_dimension(self) -> int:
        return self.dimension

    def vector(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for token in TOKEN_PATTERN.findall(text.lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "big") % self.dimension] += 1.0
        return vector

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        self._ensure_initialized()
        self.calls.append(list(texts))
        for text in texts:
            for marker in self.fail_on:
                if marker in text:
                    raise RuntimeError(f"upstream rejected input containing {marker!r}")
        return [self.vector(text) for text in texts]


def make_settings(tmp_path, **overrides) -> Settings:
    """Settings isolated to ``tmp_path`` with fast failure paths."""
    values = dict(
        DEBUG=True,
        STORAGE_BACKEND="memory",
        SQLITE_DATABASE_PATH=tmp_path / "astreus.db",
        EMBEDDING_PROVIDER="local",
        EMBEDDING_MAX_RETRIES=0,
        EMBEDDING_TIMEOUT_SECONDS=5.0,
        EMBEDDING_API_KEY=None,
        EMBEDDING_DIMENSION=None,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)
