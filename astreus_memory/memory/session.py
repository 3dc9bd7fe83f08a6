"""Session-scoped views over the memory store."""

from typing import Any, Dict, List, Optional, Union

from ..config.logging import LoggerMixin
from ..core.exceptions import SessionNotFoundError
from ..models.memory import MemoryEntry, MemoryRole, MemorySearchResult
from ..utils.validation import validate_session_id
from .manager import MemoryManager


class Session:
    """A conversation session. Holds no state beyond its id."""

    def __init__(self, manager: MemoryManager, session_id: str):
        self.manager = manager
        self.session_id = session_id

    def __repr__(self) -> str:
        return f"Session(id={self.session_id!r})"

    async def add(
        self,
        role: Union[MemoryRole, str],
        content: str,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        return await self.manager.add(self.session_id, role, content, user_id, metadata)

    async def history(self, limit: Optional[int] = None) -> List[MemoryEntry]:
        """Entries oldest first; ``limit`` keeps the most recent N."""
        return await self.manager.get_by_session(self.session_id, limit)

    async def search(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[MemorySearchResult]:
        return await self.manager.search_similar(query, self.session_id, limit, threshold)

    async def count(self) -> int:
        return await self.manager.count(self.session_id)

    async def clear(self) -> int:
        return await self.manager.clear(self.session_id)


class SessionManager(LoggerMixin):
    """Hands out Session views backed by a MemoryManager."""

    def __init__(self, memory_manager: MemoryManager):
        self.memory = memory_manager

    def session(self, session_id: str) -> Session:
        """Return a view over ``session_id``. The session need not exist yet."""
        validate_session_id(session_id)
        return Session(self.memory, session_id)

    async def get_session(self, session_id: str) -> Session:
        """Return a view over an existing session."""
        if not await self.exists(session_id):
            raise SessionNotFoundError(session_id)
        return Session(self.memory, session_id)

    async def exists(self, session_id: str) -> bool:
        validate_session_id(session_id)
        return await self.memory.count(session_id) > 0

    async def list_sessions(self) -> List[str]:
        sessions = await self.memory.list_sessions()
        self.logger.debug("Listed sessions", count=len(sessions))
        return sessions
