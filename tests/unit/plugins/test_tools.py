"""Tests for the memory and RAG tool providers."""

import pytest

from astreus_memory.memory.manager import MemoryManager
from astreus_memory.plugins import MemoryToolProvider, RAGToolProvider, ToolRegistry
from astreus_memory.rag.engine import RAGEngine


@pytest.fixture
def memory_registry(semantic_memory: MemoryManager) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(MemoryToolProvider(semantic_memory))
    return registry


@pytest.fixture
def rag_registry(rag_engine: RAGEngine) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(RAGToolProvider(rag_engine))
    return registry


class TestMemoryTools:
    """Test memory tools through the registry."""

    def test_tool_names(self, semantic_memory: MemoryManager):
        tools = MemoryToolProvider(semantic_memory, prefix="chat").get_tools()
        assert [t.name for t in tools] == [
            "chat_add",
            "chat_history",
            "chat_search",
            "chat_clear",
            "chat_stats",
        ]

    async def test_add_and_history(self, memory_registry: ToolRegistry):
        added = await memory_registry.execute(
            "memory_add", {"session_id": "s1", "content": "hello", "metadata": {"mood": "good"}}
        )
        assert added.success
        await memory_registry.execute(
            "memory_add", {"session_id": "s1", "role": "assistant", "content": "hi"}
        )

        history = await memory_registry.execute("memory_history", {"session_id": "s1"})
        assert [(e["role"], e["content"]) for e in history.output] == [
            ("user", "hello"),
            ("assistant", "hi"),
        ]
        assert history.output[0]["id"] == added.output["id"]
        assert history.output[0]["metadata"] == {"mood": "good"}
        assert "embedding" not in history.output[0]

        recent = await memory_registry.execute("memory_history", {"session_id": "s1", "limit": 1})
        assert [e["content"] for e in recent.output] == ["hi"]

    async def test_add_rejects_unknown_role(self, memory_registry: ToolRegistry):
        result = await memory_registry.execute(
            "memory_add", {"session_id": "s1", "role": "narrator", "content": "x"}
        )
        assert not result.success
        assert "role" in result.error

    async def test_search(self, memory_registry: ToolRegistry):
        await memory_registry.execute("memory_add", {"session_id": "s1", "content": "pizza night"})
        await memory_registry.execute("memory_add", {"session_id": "s2", "content": "pizza night"})

        result = await memory_registry.execute(
            "memory_search", {"query": "pizza night", "session_id": "s2", "threshold": 0.9}
        )
        assert result.success
        assert [hit["entry"]["session_id"] for hit in result.output] == ["s2"]
        assert result.output[0]["rank"] == 1

    async def test_clear_requires_confirmation(self, memory_registry: ToolRegistry):
        await memory_registry.execute("memory_add", {"session_id": "s1", "content": "x"})

        declined = await memory_registry.execute("memory_clear", {"session_id": "s1", "confirm": False})
        assert declined.output == {"removed": 0, "cleared": False}

        missing = await memory_registry.execute("memory_clear", {"session_id": "s1"})
        assert not missing.success

        cleared = await memory_registry.execute("memory_clear", {"session_id": "s1", "confirm": True})
        assert cleared.output == {"removed": 1, "cleared": True}

    async def test_stats(self, memory_registry: ToolRegistry):
        await memory_registry.execute("memory_add", {"session_id": "s1", "content": "x"})

        result = await memory_registry.execute("memory_stats")
        assert result.output["message_count"] == 1
        assert result.output["session_count"] == 1
        assert result.output["indexed_count"] == 1


class TestRAGTools:
    """Test RAG tools through the registry."""

    async def test_ingest_search_delete(self, rag_registry: ToolRegistry):
        ingested = await rag_registry.execute(
            "rag_ingest",
            {
                "content": "The capital of France is Paris.",
                "title": "Geography",
                "document_id": "geo",
                "metadata": {"topic": "geography"},
            },
        )
        assert ingested.output == {
            "document_id": "geo",
            "status": "complete",
            "chunks": 1,
            "failed_chunk_ids": [],
            "skipped_chunk_ids": [],
        }

        found = await rag_registry.execute(
            "rag_search",
            {"query": "The capital of France is Paris.", "metadata_filter": {"topic": "geography"}},
        )
        assert found.output[0]["document_id"] == "geo"
        assert found.output[0]["title"] == "Geography"
        assert found.output[0]["score"] == pytest.approx(1.0)

        document = await rag_registry.execute("rag_get_document", {"document_id": "geo"})
        assert document.output["metadata"] == {"topic": "geography"}
        assert "chunks" not in document.output

        deleted = await rag_registry.execute("rag_delete_document", {"document_id": "geo"})
        assert deleted.output == {"deleted": True}

        missing = await rag_registry.execute("rag_get_document", {"document_id": "geo"})
        assert not missing.success
        assert "Document not found" in missing.error

    async def test_ingest_requires_content(self, rag_registry: ToolRegistry):
        result = await rag_registry.execute("rag_ingest", {"title": "Empty"})
        assert result.error == "Missing required parameter: content"

    async def test_stats(self, rag_registry: ToolRegistry):
        await rag_registry.execute("rag_ingest", {"content": "some text"})

        result = await rag_registry.execute("rag_stats")
        assert result.output["document_count"] == 1
        assert result.output["embedding_dimension"] == 256
