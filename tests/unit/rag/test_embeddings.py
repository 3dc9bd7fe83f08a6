"""Tests for the embedding manager."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from astreus_memory.config.settings import Settings
from astreus_memory.core.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingProviderError,
)
from astreus_memory.rag.embeddings import EmbeddingManager
from tests.utils import HashingEmbeddingProvider, make_settings


class TestEmbeddingManager:
    """Test EmbeddingManager functionality."""

    async def test_initialize_with_explicit_provider(self, test_settings: Settings):
        provider = HashingEmbeddingProvider(test_settings, dimension=32)
        manager = EmbeddingManager(test_settings, provider)

        await manager.initialize()

        assert manager.is_initialized
        assert manager.dimension == 32
        assert manager.provider is provider

    async def test_explicit_provider_overrides_setting(self, temp_dir):
        settings = make_settings(temp_dir, EMBEDDING_PROVIDER="api")
        provider = HashingEmbeddingProvider(settings)
        manager = EmbeddingManager(settings, provider)

        await manager.initialize()

        assert manager.provider.provider_name == "hashing"

    async def test_unknown_provider(self, temp_dir):
        settings = make_settings(temp_dir, EMBEDDING_PROVIDER="carrier-pigeon")
        manager = EmbeddingManager(settings)

        with pytest.raises(ConfigurationError):
            await manager.initialize()

    async def test_embed_batch_preserves_order(self, test_settings: Settings):
        provider = HashingEmbeddingProvider(test_settings)
        manager = EmbeddingManager(test_settings, provider)
        await manager.initialize()

        texts = ["alpha", "beta gamma", "delta"]
        vectors = await manager.embed_batch(texts)

        assert vectors == [provider.vector(text) for text in texts]
        assert await manager.embed("beta gamma") == provider.vector("beta gamma")

    async def test_embed_batch_empty(self, test_settings: Settings):
        manager = EmbeddingManager(test_settings, HashingEmbeddingProvider(test_settings))
        await manager.initialize()

        assert await manager.embed_batch([]) == []

    async def test_upstream_failure_is_wrapped(self, test_settings: Settings):
        provider = HashingEmbeddingProvider(test_settings, fail_on=["boom"])
        manager = EmbeddingManager(test_settings, provider)
        await manager.initialize()

        with pytest.raises(EmbeddingProviderError) as exc_info:
            await manager.embed("this goes boom")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.details["provider"] == "hashing"

    async def test_retries_transient_failure(self, temp_dir):
        settings = make_settings(temp_dir, EMBEDDING_MAX_RETRIES=1)
        provider = HashingEmbeddingProvider(settings, dimension=4)
        manager = EmbeddingManager(settings, provider)
        await manager.initialize()

        provider.embed_texts = AsyncMock(
            side_effect=[RuntimeError("flaky"), [[1.0, 0.0, 0.0, 0.0]]]
        )
        vectors = await manager.embed_batch(["text"])

        assert vectors == [[1.0, 0.0, 0.0, 0.0]]
        assert provider.embed_texts.await_count == 2

    async def test_timeout_is_wrapped(self, temp_dir):
        settings = make_settings(temp_dir, EMBEDDING_TIMEOUT_SECONDS=0.01)
        provider = HashingEmbeddingProvider(settings)
        manager = EmbeddingManager(settings, provider)
        await manager.initialize()

        async def slow(texts):
            await asyncio.sleep(1)
            return [provider.vector(t) for t in texts]

        provider.embed_texts = slow

        with pytest.raises(EmbeddingProviderError, match="timed out") as exc_info:
            await manager.embed("slow text")
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)

    async def test_wrong_vector_count(self, test_settings: Settings):
        provider = HashingEmbeddingProvider(test_settings, dimension=4)
        manager = EmbeddingManager(test_settings, provider)
        await manager.initialize()
        provider.embed_texts = AsyncMock(return_value=[[1.0, 0.0, 0.0, 0.0]])

        with pytest.raises(EmbeddingProviderError, match="1 embeddings for 2 inputs"):
            await manager.embed_batch(["a", "b"])

    async def test_wrong_dimension(self, test_settings: Settings):
        provider = HashingEmbeddingProvider(test_settings, dimension=4)
        manager = EmbeddingManager(test_settings, provider)
        await manager.initialize()
        provider.embed_texts = AsyncMock(return_value=[[1.0, 0.0]])

        with pytest.raises(EmbeddingProviderError, match="expected 4"):
            await manager.embed("a")

    async def test_zero_vector_is_rejected(self, test_settings: Settings):
        provider = HashingEmbeddingProvider(test_settings, dimension=4)
        manager = EmbeddingManager(test_settings, provider)
        await manager.initialize()

        # No word characters means no tokens and an all-zero vector
        with pytest.raises(EmbeddingProviderError, match="zero"):
            await manager.embed("?!")

    async def test_dimension_override_matches_provider(self, temp_dir):
        settings = make_settings(temp_dir, EMBEDDING_DIMENSION=64)
        manager = EmbeddingManager(settings, HashingEmbeddingProvider(settings, dimension=64))
        await manager.initialize()

        assert manager.dimension == 64
        assert len(await manager.embed("hello")) == 64

    async def test_dimension_override_mismatch_fails_setup(self, temp_dir):
        settings = make_settings(temp_dir, EMBEDDING_DIMENSION=128)
        manager = EmbeddingManager(settings, HashingEmbeddingProvider(settings, dimension=64))

        with pytest.raises(DimensionMismatchError) as exc_info:
            await manager.initialize()

        assert isinstance(exc_info.value, ConfigurationError)
        assert exc_info.value.details["expected"] == 128
        assert exc_info.value.details["actual"] == 64
        assert not manager.is_initialized

    async def test_not_initialized(self, test_settings: Settings):
        manager = EmbeddingManager(test_settings, HashingEmbeddingProvider(test_settings))

        with pytest.raises(EmbeddingProviderError, match="not initialized"):
            await manager.embed("hello")

    async def test_model_info(self, test_settings: Settings):
        manager = EmbeddingManager(test_settings, HashingEmbeddingProvider(test_settings, dimension=8))
        await manager.initialize()

        info = manager.get_model_info()
        assert info["dimension"] == 8
        assert info["provider"] == "hashing"
