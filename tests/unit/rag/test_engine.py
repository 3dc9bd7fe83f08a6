"""Tests for the RAG engine."""

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from astreus_memory.config.settings import Settings
from astreus_memory.core.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    PartialIngestionError,
    RAGError,
    ValidationError,
)
from astreus_memory.models.rag import DocumentCreate, IngestionStatus, ParseOptions
from astreus_memory.rag.engine import RAGEngine
from tests.utils import HashingEmbeddingProvider, make_settings

LONG_TEXT = " ".join(f"token{i}" for i in range(60))

POISONED_TEXT = (
    ("lorem ipsum dolor sit amet " * 5)[:130]
    + "POISON"
    + " consectetur adipiscing elit" * 10
)


class TestRAGEngineLifecycle:
    """Engine construction and initialization."""

    async def test_not_initialized(self, test_settings: Settings, embedding_provider):
        engine = RAGEngine(test_settings, embedding_provider=embedding_provider)

        with pytest.raises(RAGError, match="not initialized"):
            await engine.search("anything")

    def test_invalid_chunking(self, test_settings: Settings):
        with pytest.raises(ConfigurationError):
            RAGEngine(test_settings, chunk_size=10, chunk_overlap=10)

    def test_invalid_max_documents(self, test_settings: Settings):
        with pytest.raises(ConfigurationError):
            RAGEngine(test_settings, max_documents=0)


class TestRAGEngineIngestion:
    """Ingestion, retrieval and deletion of documents."""

    async def test_chunk_text_is_top_hit(self, rag_engine: RAGEngine):
        result = await rag_engine.ingest(
            DocumentCreate(content=LONG_TEXT, title="Tokens", document_id="doc-1")
        )

        assert result.status == IngestionStatus.COMPLETE
        chunks = result.document.chunks
        assert len(chunks) > 1
        assert result.indexed_chunk_ids == [chunk.id for chunk in chunks]

        target = chunks[2]
        hits = await rag_engine.search(target.content, limit=3)

        assert hits[0].chunk.id == target.id
        assert hits[0].score == pytest.approx(1.0)
        assert hits[0].document.id == "doc-1"
        assert hits[0].document.title == "Tokens"
        assert hits[0].document.chunks == []
        assert [hit.rank for hit in hits] == list(range(1, len(hits) + 1))

    async def test_ingest_mapping(self, rag_engine: RAGEngine):
        result = await rag_engine.ingest(
            {"content": "mapping based document", "title": "Mapped", "document_id": "m1"}
        )

        assert result.document.id == "m1"
        document = await rag_engine.get_document("m1")
        assert document.title == "Mapped"
        assert len(document.chunks) == 1

    @pytest.mark.parametrize("payload", [{"content": "   "}, {"body": "no content key"}])
    async def test_ingest_invalid_mapping(self, rag_engine: RAGEngine, payload):
        with pytest.raises(ValidationError):
            await rag_engine.ingest(payload)

    async def test_title_falls_back_to_metadata(self, rag_engine: RAGEngine):
        result = await rag_engine.ingest(
            DocumentCreate(content="some content", metadata={"title": "From metadata"})
        )
        assert result.document.title == "From metadata"

    async def test_per_call_chunking(self, rag_engine: RAGEngine):
        result = await rag_engine.ingest(
            DocumentCreate(content="abcdefghij klmnopqrst", document_id="small"),
            chunk_size=10,
            chunk_overlap=2,
        )
        assert [chunk.content for chunk in result.document.chunks] == [
            "abcdefghij",
            "ij klmnopq",
            "pqrst",
        ]

    async def test_duplicate_document_id(self, rag_engine: RAGEngine):
        await rag_engine.ingest(DocumentCreate(content="first", document_id="dup"))

        with pytest.raises(ValidationError, match="already exists"):
            await rag_engine.ingest(DocumentCreate(content="second", document_id="dup"))

    async def test_delete_removes_every_chunk(self, rag_engine: RAGEngine):
        result = await rag_engine.ingest(DocumentCreate(content=LONG_TEXT, document_id="gone"))
        chunk_text = result.document.chunks[0].content

        assert await rag_engine.delete_document("gone") is True

        assert len(rag_engine.index) == 0
        assert await rag_engine.search(chunk_text, threshold=0.0) == []
        with pytest.raises(DocumentNotFoundError):
            await rag_engine.get_document("gone")
        with pytest.raises(DocumentNotFoundError):
            await rag_engine.delete_document("gone")

    async def test_delete_keeps_other_documents(self, rag_engine: RAGEngine):
        await rag_engine.ingest(DocumentCreate(content="keep this text", document_id="keep"))
        await rag_engine.ingest(DocumentCreate(content="drop this text", document_id="drop"))

        await rag_engine.delete_document("drop")

        hits = await rag_engine.search("keep this text", threshold=0.9)
        assert [hit.document.id for hit in hits] == ["keep"]
        assert [doc.id for doc in await rag_engine.list_documents()] == ["keep"]

    async def test_document_limit(self, test_settings: Settings, embedding_provider):
        engine = RAGEngine(test_settings, embedding_provider=embedding_provider, max_documents=1)
        await engine.initialize()

        await engine.ingest(DocumentCreate(content="one", document_id="a"))
        with pytest.raises(RAGError) as exc_info:
            await engine.ingest(DocumentCreate(content="two", document_id="b"))
        assert exc_info.value.error_code == "DOCUMENT_LIMIT_REACHED"

        await engine.delete_document("a")
        await engine.ingest(DocumentCreate(content="two", document_id="b"))
        await engine.close()

    async def test_document_limit_under_concurrency(self, test_settings: Settings, embedding_provider):
        engine = RAGEngine(test_settings, embedding_provider=embedding_provider, max_documents=3)
        await engine.initialize()

        outcomes = await asyncio.gather(
            *(engine.ingest(DocumentCreate(content=f"document {i}")) for i in range(6)),
            return_exceptions=True,
        )

        failures = [o for o in outcomes if isinstance(o, Exception)]
        assert len(failures) == 3
        assert all(f.error_code == "DOCUMENT_LIMIT_REACHED" for f in failures)
        assert (await engine.get_stats()).document_count == 3
        await engine.close()

    async def test_update_metadata(self, rag_engine: RAGEngine):
        await rag_engine.ingest(
            DocumentCreate(content="content", document_id="meta", metadata={"a": 1, "b": 2})
        )

        merged = await rag_engine.update_document_metadata("meta", {"b": 3, "c": 4})
        assert merged.metadata == {"a": 1, "b": 3, "c": 4}
        assert merged.updated_at is not None

        replaced = await rag_engine.update_document_metadata("meta", {"only": True}, merge=False)
        assert replaced.metadata == {"only": True}
        assert (await rag_engine.get_document("meta")).metadata == {"only": True}

        with pytest.raises(DocumentNotFoundError):
            await rag_engine.update_document_metadata("missing", {})

    async def test_orphaned_chunk_is_skipped(self, rag_engine: RAGEngine):
        await rag_engine.ingest(DocumentCreate(content="orphan chunk text", document_id="o"))
        await rag_engine.storage.delete_document("o")

        assert await rag_engine.search("orphan chunk text") == []
        assert "o#0" not in rag_engine.index


class TestPartialIngestion:
    """Provider failures during ingestion."""

    @pytest.fixture
    def failing_provider(self, test_settings: Settings) -> HashingEmbeddingProvider:
        return HashingEmbeddingProvider(test_settings, fail_on=["POISON"])

    @pytest_asyncio.fixture
    async def engine(self, temp_dir: Path, failing_provider):
        settings = make_settings(temp_dir, EMBEDDING_BATCH_SIZE=1)
        engine = RAGEngine(
            settings, embedding_provider=failing_provider, chunk_size=100, chunk_overlap=20
        )
        await engine.initialize()
        yield engine
        await engine.close()

    async def test_failed_batch_leaves_document_stored(self, engine: RAGEngine):
        result = await engine.ingest(DocumentCreate(content=POISONED_TEXT, document_id="p"))

        assert result.is_partial
        assert result.failed_chunk_ids == ["p#1"]
        assert len(result.errors) == 1
        with pytest.raises(PartialIngestionError) as exc_info:
            result.raise_for_partial()
        assert exc_info.value.failed_chunk_ids == ["p#1"]

        document = await engine.get_document("p")
        assert len(document.chunks) == 5
        assert [chunk.indexed for chunk in document.chunks] == [True, False, True, True, True]

        stats = await engine.get_stats()
        assert stats.chunk_count == 5
        assert stats.indexed_chunk_count == 4

    async def test_reindex_after_recovery(self, engine: RAGEngine, failing_provider):
        result = await engine.ingest(DocumentCreate(content=POISONED_TEXT, document_id="p"))
        poisoned = result.document.chunks[1].content

        failing_provider.fail_on.clear()
        reindexed = await engine.reindex_document("p")

        assert not reindexed.is_partial
        assert len(reindexed.indexed_chunk_ids) == 5
        hits = await engine.search(poisoned, limit=1)
        assert hits[0].chunk.id == "p#1"
        assert hits[0].score == pytest.approx(1.0)

    async def test_reindex_still_failing(self, engine: RAGEngine):
        await engine.ingest(DocumentCreate(content=POISONED_TEXT, document_id="p"))

        result = await engine.reindex_document("p")
        assert result.failed_chunk_ids == ["p#1"]


class BlankRejectingProvider(HashingEmbeddingProvider):
    """Rejects whitespace-only input the way hosted embedding APIs do."""

    async def embed_texts(self, texts):
        if any(not text.strip() for text in texts):
            raise ValueError("Cannot embed empty text")
        return await super().embed_texts(texts)


GAPPED_TEXT = "alpha beta gamma " * 5 + " " * 400 + "delta epsilon"


class TestChunkIsolation:
    """Blank windows and failing chunks do not take their neighbours down."""

    async def test_blank_chunks_are_skipped(self, test_settings: Settings):
        provider = BlankRejectingProvider(test_settings)
        engine = RAGEngine(test_settings, embedding_provider=provider, chunk_size=100, chunk_overlap=20)
        await engine.initialize()
        try:
            result = await engine.ingest(DocumentCreate(content=GAPPED_TEXT, document_id="b"))

            assert len(result.document.chunks) == 6
            assert result.indexed_chunk_ids == ["b#0", "b#1", "b#5"]
            assert result.skipped_chunk_ids == ["b#2", "b#3", "b#4"]
            assert result.failed_chunk_ids == []
            assert result.status == IngestionStatus.COMPLETE
            assert all(text.strip() for call in provider.calls for text in call)

            hits = await engine.search("alpha beta gamma")
            assert hits
            assert hits[0].chunk.id in {"b#0", "b#1"}

            calls = len(provider.calls)
            reindexed = await engine.reindex_document("b")
            assert reindexed.failed_chunk_ids == []
            assert reindexed.skipped_chunk_ids == ["b#2", "b#3", "b#4"]
            assert len(provider.calls) == calls
        finally:
            await engine.close()

    async def test_failed_batch_is_retried_per_chunk(self, temp_dir: Path):
        settings = make_settings(temp_dir, EMBEDDING_BATCH_SIZE=8)
        provider = HashingEmbeddingProvider(settings, fail_on=["POISON"])
        engine = RAGEngine(settings, embedding_provider=provider, chunk_size=100, chunk_overlap=20)
        await engine.initialize()
        try:
            result = await engine.ingest(DocumentCreate(content=POISONED_TEXT, document_id="p"))

            assert result.failed_chunk_ids == ["p#1"]
            assert result.indexed_chunk_ids == ["p#0", "p#2", "p#3", "p#4"]
            assert len(result.errors) == 1
            assert result.errors[0].startswith("p#1")

            # One batch call for all five chunks, then one call per chunk
            assert [len(call) for call in provider.calls] == [5, 1, 1, 1, 1, 1]
        finally:
            await engine.close()


class TestRAGEngineSearch:
    """Search parameters and metadata filtering."""

    async def test_empty_index(self, rag_engine: RAGEngine):
        assert await rag_engine.search("nothing here") == []

    async def test_limit_and_threshold(self, rag_engine: RAGEngine):
        await rag_engine.ingest(DocumentCreate(content=LONG_TEXT, document_id="d"))

        hits = await rag_engine.search("token1 token2 token3", limit=2)
        assert len(hits) <= 2

        strict = await rag_engine.search("completely unrelated words", threshold=0.75)
        assert strict == []

    async def test_invalid_parameters(self, rag_engine: RAGEngine):
        with pytest.raises(ValidationError):
            await rag_engine.search("  ")
        with pytest.raises(ValidationError):
            await rag_engine.search("query", limit=0)
        with pytest.raises(ValidationError):
            await rag_engine.search("query", threshold=1.5)

    async def test_metadata_filter_on_document(self, rag_engine: RAGEngine):
        await rag_engine.ingest(
            DocumentCreate(content="shared words here", document_id="a", metadata={"category": "a"})
        )
        await rag_engine.ingest(
            DocumentCreate(content="shared words here", document_id="b", metadata={"category": "b"})
        )

        hits = await rag_engine.search("shared words here", limit=1, metadata_filter={"category": "b"})

        # Ranking alone would return document "a" first
        assert [hit.document.id for hit in hits] == ["b"]

        assert await rag_engine.search("shared words", metadata_filter={"category": "c"}) == []

    async def test_metadata_filter_prefers_chunk_value(self, rag_engine: RAGEngine):
        await rag_engine.ingest(
            DocumentCreate(content="sectioned text", document_id="s", metadata={"section": "Intro"})
        )

        hits = await rag_engine.search("sectioned text", metadata_filter={"section": "Intro"})
        assert [hit.section for hit in hits] == ["Intro"]


class TestFileIngestion:
    """Ingestion through document parsers."""

    async def test_ingest_markdown_with_pages(self, rag_engine: RAGEngine, temp_dir: Path):
        path = temp_dir / "notes.md"
        path.write_text("page one words here\fpage two words here\fpage three words")

        result = await rag_engine.ingest_file(path, chunk_size=20, chunk_overlap=5)

        document = result.document
        assert document.title == "notes"
        assert document.metadata["file_type"] == "md"
        assert document.metadata["page_count"] == 3
        assert [chunk.metadata["page"] for chunk in document.chunks] == [1, 1, 2, 3]

        hits = await rag_engine.search("page three words", metadata_filter={"page": 3})
        assert hits
        assert all(hit.page == 3 for hit in hits)

    async def test_title_from_heading(self, rag_engine: RAGEngine, temp_dir: Path):
        path = temp_dir / "guide.markdown"
        path.write_text("intro line\n# Real Title\nbody text")

        result = await rag_engine.ingest_file(path, options=ParseOptions(title_from_filename=False))
        assert result.document.title == "Real Title"

    async def test_unsupported_file(self, rag_engine: RAGEngine, temp_dir: Path):
        path = temp_dir / "image.png"
        path.write_bytes(b"\x89PNG")

        with pytest.raises(ValidationError, match="Unsupported"):
            await rag_engine.ingest_file(path)

    async def test_missing_file(self, rag_engine: RAGEngine, temp_dir: Path):
        with pytest.raises(ValidationError):
            await rag_engine.ingest_file(temp_dir / "missing.txt")

    @pytest.mark.parametrize("content", ["", "  \n\t "])
    async def test_empty_file(self, rag_engine: RAGEngine, temp_dir: Path, content: str):
        path = temp_dir / "empty.txt"
        path.write_text(content)

        with pytest.raises(ValidationError, match="no text content") as exc_info:
            await rag_engine.ingest_file(path)
        assert exc_info.value.details["field"] == "source"

    async def test_long_paginated_file(self, rag_engine: RAGEngine, temp_dir: Path):
        path = temp_dir / "scan.txt"
        path.write_text("\f".join(f"page {i}" for i in range(12000)))

        result = await rag_engine.ingest_file(path, chunk_size=10000, chunk_overlap=100)

        document = result.document
        assert document.metadata["page_count"] == 12000
        assert "page_breaks" not in document.metadata
        assert document.chunks[0].metadata["page"] == 1
        assert document.chunks[1].metadata["page"] > 1


class TestRAGStats:
    """Collection statistics."""

    async def test_stats(self, rag_engine: RAGEngine):
        first = await rag_engine.ingest(DocumentCreate(content=LONG_TEXT))
        await rag_engine.ingest(DocumentCreate(content="short one"))

        stats = await rag_engine.get_stats()

        assert stats.document_count == 2
        assert stats.chunk_count == len(first.document.chunks) + 1
        assert stats.indexed_chunk_count == stats.chunk_count
        assert stats.total_content_length == len(LONG_TEXT) + len("short one")
        assert stats.embedding_dimension == 256
