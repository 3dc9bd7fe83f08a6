"""Base model classes and generics for Astreus memory."""

from datetime import datetime, UTC
from typing import Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar('T')


def utc_now() -> datetime:
    """Timezone-aware current time used for every timestamp."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a globally unique identifier."""
    return str(uuid4())


class AstreusBaseModel(BaseModel):
    """Base model with common configuration for all Astreus models."""

    model_config = ConfigDict(
        # Keep enum objects in memory, serialize values only when needed
        use_enum_values=False,
        populate_by_name=True,
        validate_assignment=True,
        extra='forbid',
    )


class TimestampedModel(AstreusBaseModel):
    """Base model for entities with timestamps."""

    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the entity was created"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="When the entity was last updated"
    )


class IdentifiedModel(TimestampedModel):
    """Base model for entities with ID and timestamps."""

    id: str = Field(default_factory=new_id, description="Unique identifier")


class StatsModel(AstreusBaseModel):
    """Base model for statistics responses."""

    generated_at: datetime = Field(
        default_factory=utc_now,
        description="When these statistics were generated"
    )


class SearchResult(AstreusBaseModel, Generic[T]):
    """Generic search result with scoring."""

    item: T = Field(description="The matching item")
    score: float = Field(ge=0.0, le=1.0, description="Similarity score (0-1)")
    rank: int = Field(ge=1, description="Result ranking (1-based)")
