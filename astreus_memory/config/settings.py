"""Configuration settings for Astreus memory and RAG."""

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Engine settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    DEBUG: bool = Field(default=False, description="Debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FILE: Optional[Path] = Field(
        default=None, description="Optional file that receives a copy of all log records"
    )

    # Storage Configuration
    STORAGE_BACKEND: str = Field(
        default="sqlite", description="Storage backend: 'sqlite' or 'memory'"
    )
    SQLITE_DATABASE_PATH: Path = Field(
        default=Path("./data/astreus.db"), description="SQLite database path"
    )
    MEMORY_TABLE_NAME: str = Field(
        default="memories", description="Table holding conversation entries"
    )
    RAG_TABLE_NAME: str = Field(
        default="rag_documents", description="Table holding RAG documents"
    )

    # Memory Configuration
    MAX_ENTRIES: int = Field(
        default=100, description="Maximum entries retained per session (oldest evicted first)"
    )
    ENABLE_EMBEDDINGS: bool = Field(
        default=False, description="Index memory entries for semantic search"
    )

    # Embedding Configuration
    EMBEDDING_PROVIDER: str = Field(
        default="local", description="Embedding provider: 'local' or 'api'"
    )
    EMBEDDING_MODEL: str = Field(
        default="all-MiniLM-L6-v2", description="Embedding model name"
    )
    EMBEDDING_DIMENSION: Optional[int] = Field(
        default=None, description="Override for the embedding vector dimension"
    )
    EMBEDDING_API_BASE: Optional[str] = Field(
        default=None, description="Embedding API base URL (e.g., http://localhost:4000)"
    )
    EMBEDDING_API_KEY: Optional[str] = Field(
        default=None, description="Embedding API key"
    )
    EMBEDDING_BATCH_SIZE: int = Field(
        default=32, description="Number of texts sent to the provider per call"
    )
    EMBEDDING_CONCURRENCY: int = Field(
        default=4, description="Maximum embedding batches in flight during ingestion"
    )
    EMBEDDING_TIMEOUT_SECONDS: float = Field(
        default=30.0, description="Timeout for a single embedding call"
    )
    EMBEDDING_MAX_RETRIES: int = Field(
        default=2, description="Retries for a failed embedding call"
    )

    # RAG Configuration
    CHUNK_SIZE: int = Field(default=1000, description="Chunk size in characters")
    CHUNK_OVERLAP: int = Field(default=200, description="Overlap between consecutive chunks")
    MAX_DOCUMENTS: Optional[int] = Field(
        default=None, description="Maximum number of documents per RAG instance"
    )
    MAX_RESULTS_PER_QUERY: int = Field(
        default=5, description="Default number of search results"
    )
    SIMILARITY_THRESHOLD: float = Field(
        default=0.0, description="Default minimum similarity score (0-1)"
    )

    def validate_engine(self) -> None:
        """Reject settings the memory store and RAG engine cannot run with."""
        if self.STORAGE_BACKEND not in ("sqlite", "memory"):
            raise ConfigurationError(
                f"Unknown storage backend: {self.STORAGE_BACKEND}", "STORAGE_BACKEND"
            )
        if self.MAX_ENTRIES < 1:
            raise ConfigurationError("MAX_ENTRIES must be positive", "MAX_ENTRIES")
        if self.CHUNK_SIZE < 1 or self.CHUNK_OVERLAP < 1:
            raise ConfigurationError(
                "CHUNK_SIZE and CHUNK_OVERLAP must be positive", "CHUNK_SIZE"
            )
        if self.CHUNK_OVERLAP >= self.CHUNK_SIZE:
            raise ConfigurationError(
                "CHUNK_OVERLAP must be smaller than CHUNK_SIZE", "CHUNK_OVERLAP"
            )
        if self.MAX_DOCUMENTS is not None and self.MAX_DOCUMENTS < 1:
            raise ConfigurationError("MAX_DOCUMENTS must be positive", "MAX_DOCUMENTS")
        if self.MAX_RESULTS_PER_QUERY < 1:
            raise ConfigurationError(
                "MAX_RESULTS_PER_QUERY must be positive", "MAX_RESULTS_PER_QUERY"
            )
        if not 0.0 <= self.SIMILARITY_THRESHOLD <= 1.0:
            raise ConfigurationError(
                "SIMILARITY_THRESHOLD must be between 0.0 and 1.0", "SIMILARITY_THRESHOLD"
            )
        if self.EMBEDDING_DIMENSION is not None and self.EMBEDDING_DIMENSION < 1:
            raise ConfigurationError(
                "EMBEDDING_DIMENSION must be positive", "EMBEDDING_DIMENSION"
            )
        if self.EMBEDDING_BATCH_SIZE < 1 or self.EMBEDDING_CONCURRENCY < 1:
            raise ConfigurationError(
                "Embedding batch size and concurrency must be positive", "EMBEDDING_BATCH_SIZE"
            )

    def create_directories(self) -> None:
        """Create necessary directories."""
        if self.STORAGE_BACKEND == "sqlite":
            self.SQLITE_DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
        if self.LOG_FILE:
            self.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = self.model_dump()
        if data.get("EMBEDDING_API_KEY"):
            data["EMBEDDING_API_KEY"] = "***"
        return data

    def __repr__(self) -> str:
        """String representation of settings."""
        return (
            f"Settings(backend={self.STORAGE_BACKEND}, "
            f"embeddings={self.ENABLE_EMBEDDINGS}, debug={self.DEBUG})"
        )
