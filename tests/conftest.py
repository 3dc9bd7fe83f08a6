"""Pytest configuration and shared fixtures for Astreus memory tests."""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from astreus_memory.config.settings import Settings
from astreus_memory.memory.manager import MemoryManager
from astreus_memory.rag.engine import RAGEngine
from tests.utils import HashingEmbeddingProvider, make_settings


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Temporary directory for test files."""
    return tmp_path


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """In-memory storage settings with embeddings disabled."""
    return make_settings(temp_dir)


@pytest.fixture
def sqlite_settings(temp_dir: Path) -> Settings:
    """SQLite storage settings rooted in the temporary directory."""
    return make_settings(temp_dir, STORAGE_BACKEND="sqlite")


@pytest.fixture
def embedding_provider(test_settings: Settings) -> HashingEmbeddingProvider:
    return HashingEmbeddingProvider(test_settings)


@pytest_asyncio.fixture
async def memory_manager(test_settings: Settings) -> AsyncGenerator[MemoryManager, None]:
    """Memory manager without embeddings."""
    manager = MemoryManager(test_settings)
    await manager.initialize()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def semantic_memory(
    test_settings: Settings, embedding_provider: HashingEmbeddingProvider
) -> AsyncGenerator[MemoryManager, None]:
    """Memory manager with embeddings from the hashing provider."""
    manager = MemoryManager(
        test_settings, embedding_provider=embedding_provider, enable_embeddings=True
    )
    await manager.initialize()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def rag_engine(
    test_settings: Settings, embedding_provider: HashingEmbeddingProvider
) -> AsyncGenerator[RAGEngine, None]:
    """RAG engine with small chunks and the hashing provider."""
    engine = RAGEngine(
        test_settings,
        embedding_provider=embedding_provider,
        chunk_size=100,
        chunk_overlap=20,
    )
    await engine.initialize()
    yield engine
    await engine.close()
