"""SQLite-based memory storage implementation."""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import aiosqlite

from ...core.exceptions import StorageError
from ...models.memory import MemoryEntry, MemoryRole
from ...utils.validation import validate_table_name
from .base import MemoryStorage

COLUMNS = "id, session_id, user_id, role, content, metadata, created_at, embedding"


class SQLiteMemoryStorage(MemoryStorage):
    """SQLite-based memory storage implementation."""

    def __init__(self, db_path: Path, table_name: str = "memories") -> None:
        self.db_path = Path(db_path)
        self.table = validate_table_name(table_name)
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize SQLite database."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)
            await self._create_tables()

            self.logger.info(
                "SQLite memory storage initialized", db_path=str(self.db_path), table=self.table
            )

        except Exception as e:
            raise StorageError(f"Failed to initialize SQLite storage: {e}", "initialize") from e

    async def close(self) -> None:
        """Close SQLite connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
            self.logger.info("SQLite memory storage closed")

    async def _create_tables(self) -> None:
        """Create necessary database tables."""
        create_table_sql = f"""
        CREATE TABLE IF NOT EXISTS {self.table} (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            session_id TEXT NOT NULL,
            user_id TEXT,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            metadata TEXT,
            created_at TEXT NOT NULL,
            embedding TEXT
        )
        """

        create_index_sql = f"""
        CREATE INDEX IF NOT EXISTS idx_{self.table}_session ON {self.table}(session_id, seq);
        CREATE INDEX IF NOT EXISTS idx_{self.table}_user ON {self.table}(user_id);
        """

        await self._connection.execute(create_table_sql)
        await self._connection.executescript(create_index_sql)
        await self._connection.commit()

    def _conn(self) -> aiosqlite.Connection:
        if not self._connection:
            raise StorageError("Storage not initialized")
        return self._connection

    async def insert(self, entry: MemoryEntry) -> None:
        """Append an entry to SQLite."""
        conn = self._conn()
        try:
            await conn.execute(
                f"INSERT INTO {self.table} ({COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.id,
                    entry.session_id,
                    entry.user_id,
                    entry.role.value,
                    entry.content,
                    json.dumps(entry.metadata),
                    entry.created_at.isoformat(),
                    json.dumps(entry.embedding) if entry.embedding is not None else None,
                ),
            )
            await conn.commit()
        except Exception as e:
            raise StorageError(f"Failed to store entry: {e}", "insert") from e

    async def get(self, entry_id: str) -> Optional[MemoryEntry]:
        """Retrieve an entry by id from SQLite."""
        rows = await self._fetch(
            f"SELECT {COLUMNS} FROM {self.table} WHERE id = ?", (entry_id,), "get"
        )
        return self._row_to_entry(rows[0]) if rows else None

    async def get_many(self, entry_ids: List[str]) -> Dict[str, MemoryEntry]:
        if not entry_ids:
            return {}
        placeholders = ",".join("?" * len(entry_ids))
        rows = await self._fetch(
            f"SELECT {COLUMNS} FROM {self.table} WHERE id IN ({placeholders})",
            tuple(entry_ids),
            "get_many",
        )
        entries = [self._row_to_entry(row) for row in rows]
        return {entry.id: entry for entry in entries}

    async def list_session(self, session_id: str, limit: Optional[int] = None) -> List[MemoryEntry]:
        if limit is None:
            sql = f"SELECT {COLUMNS} FROM {self.table} WHERE session_id = ? ORDER BY seq ASC"
            params: tuple = (session_id,)
        else:
            sql = (
                f"SELECT {COLUMNS} FROM ("
                f"SELECT seq, {COLUMNS} FROM {self.table} WHERE session_id = ? "
                f"ORDER BY seq DESC LIMIT ?) ORDER BY seq ASC"
            )
            params = (session_id, limit)
        rows = await self._fetch(sql, params, "list_session")
        return [self._row_to_entry(row) for row in rows]

    async def oldest_ids(self, session_id: str, count: int) -> List[str]:
        if count <= 0:
            return []
        rows = await self._fetch(
            f"SELECT id FROM {self.table} WHERE session_id = ? ORDER BY seq ASC LIMIT ?",
            (session_id, count),
            "oldest_ids",
        )
        return [row[0] for row in rows]

    async def count(self, session_id: Optional[str] = None) -> int:
        if session_id is None:
            rows = await self._fetch(f"SELECT COUNT(*) FROM {self.table}", (), "count")
        else:
            rows = await self._fetch(
                f"SELECT COUNT(*) FROM {self.table} WHERE session_id = ?", (session_id,), "count"
            )
        return rows[0][0]

    async def delete(self, entry_ids: List[str]) -> int:
        """Delete entries by id from SQLite."""
        if not entry_ids:
            return 0
        conn = self._conn()
        try:
            placeholders = ",".join("?" * len(entry_ids))
            cursor = await conn.execute(
                f"DELETE FROM {self.table} WHERE id IN ({placeholders})", tuple(entry_ids)
            )
            await conn.commit()
            return cursor.rowcount
        except Exception as e:
            raise StorageError(f"Failed to delete entries: {e}", "delete") from e

    async def session_entry_ids(self, session_id: str) -> List[str]:
        rows = await self._fetch(
            f"SELECT id FROM {self.table} WHERE session_id = ? ORDER BY seq ASC",
            (session_id,),
            "session_entry_ids",
        )
        return [row[0] for row in rows]

    async def set_embedding(self, entry_id: str, embedding: List[float]) -> bool:
        conn = self._conn()
        try:
            cursor = await conn.execute(
                f"UPDATE {self.table} SET embedding = ? WHERE id = ?",
                (json.dumps(embedding), entry_id),
            )
            await conn.commit()
            return cursor.rowcount > 0
        except Exception as e:
            raise StorageError(f"Failed to store embedding: {e}", "set_embedding") from e

    async def list_embeddings(self) -> List[Tuple[str, str, List[float]]]:
        rows = await self._fetch(
            f"SELECT id, session_id, embedding FROM {self.table} "
            f"WHERE embedding IS NOT NULL ORDER BY seq ASC",
            (),
            "list_embeddings",
        )
        return [(row[0], row[1], json.loads(row[2])) for row in rows]

    async def list_unembedded(self) -> List[MemoryEntry]:
        rows = await self._fetch(
            f"SELECT {COLUMNS} FROM {self.table} WHERE embedding IS NULL ORDER BY seq ASC",
            (),
            "list_unembedded",
        )
        return [self._row_to_entry(row) for row in rows]

    async def list_sessions(self) -> List[str]:
        rows = await self._fetch(
            f"SELECT session_id, MIN(seq) AS first_seq FROM {self.table} "
            f"GROUP BY session_id ORDER BY first_seq ASC",
            (),
            "list_sessions",
        )
        return [row[0] for row in rows]

    async def _fetch(self, sql: str, params: tuple, operation: str) -> list:
        conn = self._conn()
        try:
            cursor = await conn.execute(sql, params)
            return await cursor.fetchall()
        except Exception as e:
            raise StorageError(f"Failed to {operation.replace('_', ' ')}: {e}", operation) from e

    def _row_to_entry(self, row) -> MemoryEntry:
        """Convert database row to MemoryEntry object."""
        return MemoryEntry(
            id=row[0],
            session_id=row[1],
            user_id=row[2],
            role=MemoryRole(row[3]),
            content=row[4],
            metadata=json.loads(row[5]) if row[5] else {},
            created_at=datetime.fromisoformat(row[6]),
            embedding=json.loads(row[7]) if row[7] else None,
        )
