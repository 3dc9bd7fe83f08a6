"""Memory-related agent tools."""

from typing import Any, Dict, List

from ..config.logging import LoggerMixin
from ..memory.manager import MemoryManager
from ..models.memory import MemoryRole
from .schema import BooleanParameter, NumberParameter, ObjectParameter, StringParameter, ToolDefinition


class MemoryToolProvider(LoggerMixin):
    """Exposes a MemoryManager as agent tools."""

    def __init__(self, memory_manager: MemoryManager, prefix: str = "memory"):
        self.memory_manager = memory_manager
        self.prefix = prefix

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name=f"{self.prefix}_add",
                description="Append a message to a conversation session.",
                parameters={
                    "session_id": StringParameter(description="Session identifier", required=True),
                    "role": StringParameter(
                        description="Author of the message",
                        enum=[role.value for role in MemoryRole],
                        default=MemoryRole.USER.value,
                    ),
                    "content": StringParameter(description="Message text", required=True),
                    "user_id": StringParameter(description="Optional user identifier"),
                    "metadata": ObjectParameter(description="Arbitrary JSON metadata"),
                },
                execute=self._add,
            ),
            ToolDefinition(
                name=f"{self.prefix}_history",
                description="Return the messages of a session, oldest first.",
                parameters={
                    "session_id": StringParameter(description="Session identifier", required=True),
                    "limit": NumberParameter(
                        description="Return only the most recent N messages", minimum=1, maximum=1000
                    ),
                },
                execute=self._history,
            ),
            ToolDefinition(
                name=f"{self.prefix}_search",
                description="Find earlier messages similar to a query.",
                parameters={
                    "query": StringParameter(description="Search text", required=True),
                    "session_id": StringParameter(description="Restrict the search to one session"),
                    "limit": NumberParameter(description="Maximum results", minimum=1, maximum=1000),
                    "threshold": NumberParameter(
                        description="Minimum similarity score", minimum=0.0, maximum=1.0
                    ),
                },
                execute=self._search,
            ),
            ToolDefinition(
                name=f"{self.prefix}_clear",
                description="Delete every message of a session.",
                parameters={
                    "session_id": StringParameter(description="Session identifier", required=True),
                    "confirm": BooleanParameter(
                        description="Must be true to clear the session", required=True
                    ),
                },
                execute=self._clear,
            ),
            ToolDefinition(
                name=f"{self.prefix}_stats",
                description="Counts of sessions, messages and indexed messages.",
                execute=self._stats,
            ),
        ]

    async def _add(self, params: Dict[str, Any]) -> Dict[str, Any]:
        entry_id = await self.memory_manager.add(
            params["session_id"],
            params["role"],
            params["content"],
            user_id=params.get("user_id"),
            metadata=params.get("metadata"),
        )
        self.logger.debug("Memory tool added entry", entry_id=entry_id)
        return {"id": entry_id}

    async def _history(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        limit = params.get("limit")
        entries = await self.memory_manager.get_by_session(
            params["session_id"], int(limit) if limit is not None else None
        )
        return [entry.to_dict() for entry in entries]

    async def _search(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        limit = params.get("limit")
        results = await self.memory_manager.search_similar(
            params["query"],
            session_id=params.get("session_id"),
            limit=int(limit) if limit is not None else None,
            threshold=params.get("threshold"),
        )
        return [
            {"rank": r.rank, "score": r.score, "entry": r.entry.to_dict()}
            for r in results
        ]

    async def _clear(self, params: Dict[str, Any]) -> Dict[str, Any]:
        if not params["confirm"]:
            return {"removed": 0, "cleared": False}
        removed = await self.memory_manager.clear(params["session_id"])
        return {"removed": removed, "cleared": True}

    async def _stats(self, params: Dict[str, Any]) -> Dict[str, Any]:
        stats = await self.memory_manager.get_stats()
        return stats.model_dump(mode="json")
