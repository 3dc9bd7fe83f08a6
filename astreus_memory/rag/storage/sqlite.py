"""SQLite-based document storage implementation."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

from ...core.exceptions import StorageError
from ...models.rag import Chunk, Document
from ...utils.validation import validate_table_name
from .base import DocumentStorage

DOCUMENT_COLUMNS = "id, title, content, metadata, embedding_model, created_at, updated_at"
CHUNK_COLUMNS = "id, document_id, content, metadata, indexed"


class SQLiteDocumentStorage(DocumentStorage):
    """Documents in ``<table>``, chunks and their vectors in ``<table>_chunks``."""

    def __init__(self, db_path: Path, table_name: str = "rag_documents") -> None:
        self.db_path = Path(db_path)
        self.table = validate_table_name(table_name)
        self.chunk_table = f"{self.table}_chunks"
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize SQLite database."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)
            await self._create_tables()

            self.logger.info(
                "SQLite document storage initialized",
                db_path=str(self.db_path),
                table=self.table,
            )

        except Exception as e:
            raise StorageError(f"Failed to initialize SQLite storage: {e}", "initialize") from e

    async def close(self) -> None:
        """Close SQLite connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self.logger.info("SQLite document storage closed")

    async def _create_tables(self) -> None:
        """Create necessary database tables."""
        create_tables_sql = f"""
        CREATE TABLE IF NOT EXISTS {self.table} (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            title TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL,
            metadata TEXT,
            embedding_model TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );
        CREATE TABLE IF NOT EXISTS {self.chunk_table} (
            id TEXT PRIMARY KEY,
            document_id TEXT NOT NULL,
            chunk_index INTEGER NOT NULL,
            content TEXT NOT NULL,
            metadata TEXT,
            indexed INTEGER NOT NULL DEFAULT 0,
            embedding TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_{self.chunk_table}_document
            ON {self.chunk_table}(document_id, chunk_index);
        """

        await self._connection.executescript(create_tables_sql)
        await self._connection.commit()

    def _conn(self) -> aiosqlite.Connection:
        if not self._connection:
            raise StorageError("Storage not initialized")
        return self._connection

    async def insert_document(self, document: Document, embeddings: Dict[str, List[float]]) -> None:
        """Write the document row and all chunk rows in one transaction."""
        conn = self._conn()
        try:
            await conn.execute(
                f"INSERT INTO {self.table} ({DOCUMENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.title,
                    document.content,
                    json.dumps(document.metadata),
                    document.embedding_model,
                    document.created_at.isoformat(),
                    document.updated_at.isoformat() if document.updated_at else None,
                ),
            )
            await conn.executemany(
                f"INSERT INTO {self.chunk_table} "
                f"(id, document_id, chunk_index, content, metadata, indexed, embedding) "
                f"VALUES (?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        chunk.id,
                        chunk.document_id,
                        chunk.chunk_index,
                        chunk.content,
                        json.dumps(chunk.metadata),
                        1 if chunk.indexed else 0,
                        json.dumps(embeddings[chunk.id]) if chunk.id in embeddings else None,
                    )
                    for chunk in document.chunks
                ],
            )
            await conn.commit()
        except Exception as e:
            await conn.rollback()
            raise StorageError(f"Failed to store document: {e}", "insert_document") from e

    async def get_document(self, document_id: str, include_chunks: bool = True) -> Optional[Document]:
        rows = await self._fetch(
            f"SELECT {DOCUMENT_COLUMNS} FROM {self.table} WHERE id = ?",
            (document_id,),
            "get_document",
        )
        if not rows:
            return None

        chunks: List[Chunk] = []
        if include_chunks:
            chunk_rows = await self._fetch(
                f"SELECT {CHUNK_COLUMNS} FROM {self.chunk_table} "
                f"WHERE document_id = ? ORDER BY chunk_index ASC",
                (document_id,),
                "get_document",
            )
            chunks = [self._row_to_chunk(row) for row in chunk_rows]

        return self._row_to_document(rows[0], chunks)

    async def get_documents(self, document_ids: List[str]) -> Dict[str, Document]:
        if not document_ids:
            return {}
        placeholders = ",".join("?" * len(document_ids))
        rows = await self._fetch(
            f"SELECT {DOCUMENT_COLUMNS} FROM {self.table} WHERE id IN ({placeholders})",
            tuple(document_ids),
            "get_documents",
        )
        documents = [self._row_to_document(row) for row in rows]
        return {document.id: document for document in documents}

    async def list_documents(self) -> List[Document]:
        rows = await self._fetch(
            f"SELECT {DOCUMENT_COLUMNS} FROM {self.table} ORDER BY seq ASC", (), "list_documents"
        )
        return [self._row_to_document(row) for row in rows]

    async def count_documents(self) -> int:
        rows = await self._fetch(f"SELECT COUNT(*) FROM {self.table}", (), "count_documents")
        return rows[0][0]

    async def delete_document(self, document_id: str) -> bool:
        """Delete the document row and its chunk rows in one transaction."""
        conn = self._conn()
        try:
            await conn.execute(f"DELETE FROM {self.chunk_table} WHERE document_id = ?", (document_id,))
            cursor = await conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (document_id,))
            await conn.commit()
            return cursor.rowcount > 0
        except Exception as e:
            await conn.rollback()
            raise StorageError(f"Failed to delete document: {e}", "delete_document") from e

    async def update_metadata(
        self, document_id: str, metadata: Dict[str, Any], updated_at: datetime
    ) -> bool:
        conn = self._conn()
        try:
            cursor = await conn.execute(
                f"UPDATE {self.table} SET metadata = ?, updated_at = ? WHERE id = ?",
                (json.dumps(metadata), updated_at.isoformat(), document_id),
            )
            await conn.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(f"Failed to update document metadata: {e}", "update_metadata") from e

    async def get_chunks(self, chunk_ids: List[str]) -> Dict[str, Chunk]:
        if not chunk_ids:
            return {}
        placeholders = ",".join("?" * len(chunk_ids))
        rows = await self._fetch(
            f"SELECT {CHUNK_COLUMNS} FROM {self.chunk_table} WHERE id IN ({placeholders})",
            tuple(chunk_ids),
            "get_chunks",
        )
        chunks = [self._row_to_chunk(row) for row in rows]
        return {chunk.id: chunk for chunk in chunks}

    async def set_chunk_embedding(self, chunk_id: str, embedding: List[float]) -> bool:
        conn = self._conn()
        try:
            cursor = await conn.execute(
                f"UPDATE {self.chunk_table} SET embedding = ?, indexed = 1 WHERE id = ?",
                (json.dumps(embedding), chunk_id),
            )
            await conn.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(f"Failed to store chunk embedding: {e}", "set_chunk_embedding") from e

    async def list_chunk_embeddings(self) -> List[Tuple[str, str, List[float]]]:
        rows = await self._fetch(
            f"SELECT c.id, c.document_id, c.embedding FROM {self.chunk_table} c "
            f"JOIN {self.table} d ON d.id = c.document_id "
            f"WHERE c.indexed = 1 AND c.embedding IS NOT NULL "
            f"ORDER BY d.seq ASC, c.chunk_index ASC",
            (),
            "list_chunk_embeddings",
        )
        return [(row[0], row[1], json.loads(row[2])) for row in rows]

    async def get_stats(self) -> Dict[str, int]:
        documents = await self._fetch(
            f"SELECT COUNT(*), COALESCE(SUM(LENGTH(content)), 0) FROM {self.table}", (), "get_stats"
        )
        chunks = await self._fetch(
            f"SELECT COUNT(*), COALESCE(SUM(indexed), 0) FROM {self.chunk_table}", (), "get_stats"
        )
        return {
            "document_count": documents[0][0],
            "total_content_length": documents[0][1],
            "chunk_count": chunks[0][0],
            "indexed_chunk_count": chunks[0][1],
        }

    async def _fetch(self, sql: str, params: tuple, operation: str) -> list:
        conn = self._conn()
        try:
            cursor = await conn.execute(sql, params)
            return await cursor.fetchall()
        except Exception as e:
            raise StorageError(f"Failed to {operation.replace('_', ' ')}: {e}", operation) from e

    def _row_to_document(self, row, chunks: Optional[List[Chunk]] = None) -> Document:
        """Convert database row to Document object."""
        return Document(
            id=row[0],
            title=row[1] or "",
            content=row[2],
            metadata=json.loads(row[3]) if row[3] else {},
            embedding_model=row[4],
            created_at=datetime.fromisoformat(row[5]),
            updated_at=datetime.fromisoformat(row[6]) if row[6] else None,
            chunks=chunks or [],
        )

    def _row_to_chunk(self, row) -> Chunk:
        """Convert database row to Chunk object."""
        return Chunk(
            id=row[0],
            document_id=row[1],
            content=row[2],
            metadata=json.loads(row[3]) if row[3] else {},
            indexed=bool(row[4]),
        )
