"""Memory domain models for Astreus."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from .base import AstreusBaseModel, SearchResult, StatsModel, new_id, utc_now


class MemoryRole(str, Enum):
    """Who produced a conversation entry."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class MemoryEntry(AstreusBaseModel):
    """A single append-only conversation entry."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    id: str = Field(default_factory=new_id, description="Globally unique entry id")
    session_id: str = Field(description="Session partition this entry belongs to")
    user_id: Optional[str] = Field(default=None, description="Optional user identifier")
    role: MemoryRole = Field(description="Role of the entry author")
    content: str = Field(description="Entry text")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Opaque metadata")
    created_at: datetime = Field(default_factory=utc_now, description="Creation timestamp")
    embedding: Optional[List[float]] = Field(
        default=None,
        description="Embedding vector when semantic search is enabled"
    )

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        """Convert entry to a JSON-compatible dictionary."""
        exclude = None if include_embedding else {"embedding"}
        return self.model_dump(mode="json", exclude=exclude)


class MemoryEntryCreate(AstreusBaseModel):
    """Request to append a new entry to a session."""

    session_id: str = Field(description="Target session")
    role: MemoryRole = Field(description="Role of the entry author")
    content: str = Field(description="Entry text")
    user_id: Optional[str] = Field(default=None, description="Optional user identifier")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Optional metadata")

    @field_validator('session_id', 'content')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v


class MemorySearchResult(SearchResult[MemoryEntry]):
    """Semantic search hit over memory entries."""

    @property
    def entry(self) -> MemoryEntry:
        return self.item

    @property
    def session_id(self) -> str:
        """Parent session of the matched entry."""
        return self.item.session_id


class MemoryStats(StatsModel):
    """Live statistics about the memory store."""

    session_count: int = Field(ge=0, description="Number of sessions with entries")
    message_count: int = Field(ge=0, description="Number of stored entries")
    indexed_count: int = Field(default=0, ge=0, description="Entries present in the vector index")
    pending_embeddings: int = Field(
        default=0,
        ge=0,
        description="Entries whose embedding failed and await re-indexing"
    )
