"""RAG-related agent tools."""

from typing import Any, Dict, List

from ..config.logging import LoggerMixin
from ..rag.engine import RAGEngine
from .schema import NumberParameter, ObjectParameter, StringParameter, ToolDefinition


class RAGToolProvider(LoggerMixin):
    """Exposes a RAGEngine as agent tools."""

    def __init__(self, rag_engine: RAGEngine, prefix: str = "rag"):
        self.rag_engine = rag_engine
        self.prefix = prefix

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name=f"{self.prefix}_ingest",
                description="Add a document to the knowledge base.",
                parameters={
                    "content": StringParameter(description="Document text", required=True),
                    "title": StringParameter(description="Document title"),
                    "document_id": StringParameter(description="Custom document id"),
                    "metadata": ObjectParameter(description="Arbitrary JSON metadata"),
                },
                execute=self._ingest,
            ),
            ToolDefinition(
                name=f"{self.prefix}_search",
                description="Find document passages relevant to a query.",
                parameters={
                    "query": StringParameter(description="Search text", required=True),
                    "limit": NumberParameter(description="Maximum results", minimum=1, maximum=1000),
                    "threshold": NumberParameter(
                        description="Minimum similarity score", minimum=0.0, maximum=1.0
                    ),
                    "metadata_filter": ObjectParameter(
                        description="Only return passages whose metadata has these values"
                    ),
                },
                execute=self._search,
            ),
            ToolDefinition(
                name=f"{self.prefix}_get_document",
                description="Fetch a document by id.",
                parameters={
                    "document_id": StringParameter(description="Document id", required=True),
                },
                execute=self._get_document,
            ),
            ToolDefinition(
                name=f"{self.prefix}_delete_document",
                description="Remove a document and its passages from the knowledge base.",
                parameters={
                    "document_id": StringParameter(description="Document id", required=True),
                },
                execute=self._delete_document,
            ),
            ToolDefinition(
                name=f"{self.prefix}_stats",
                description="Counts of documents and indexed passages.",
                execute=self._stats,
            ),
        ]

    async def _ingest(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.rag_engine.ingest(params)
        self.logger.debug("RAG tool ingested document", document_id=result.document.id)
        return {
            "document_id": result.document.id,
            "status": result.status.value,
            "chunks": len(result.document.chunks),
            "failed_chunk_ids": result.failed_chunk_ids,
            "skipped_chunk_ids": result.skipped_chunk_ids,
        }

    async def _search(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        limit = params.get("limit")
        results = await self.rag_engine.search(
            params["query"],
            limit=int(limit) if limit is not None else None,
            threshold=params.get("threshold"),
            metadata_filter=params.get("metadata_filter"),
        )
        return [
            {
                "rank": r.rank,
                "score": r.score,
                "content": r.content,
                "page": r.page,
                "section": r.section,
                "document_id": r.document.id,
                "title": r.document.title,
            }
            for r in results
        ]

    async def _get_document(self, params: Dict[str, Any]) -> Dict[str, Any]:
        document = await self.rag_engine.get_document(params["document_id"])
        return document.without_chunks().model_dump(mode="json", exclude={"chunks"})

    async def _delete_document(self, params: Dict[str, Any]) -> Dict[str, Any]:
        deleted = await self.rag_engine.delete_document(params["document_id"])
        return {"deleted": deleted}

    async def _stats(self, params: Dict[str, Any]) -> Dict[str, Any]:
        stats = await self.rag_engine.get_stats()
        return stats.model_dump(mode="json")
