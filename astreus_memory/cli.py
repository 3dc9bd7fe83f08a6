"""Command-line interface for Astreus memory."""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .config.logging import setup_logging
from .config.settings import Settings
from .core.exceptions import AstreusError
from .memory.manager import MemoryManager
from .rag.engine import RAGEngine

app = typer.Typer(
    name="astreus-memory",
    help="Astreus memory - conversation memory and document retrieval for agents",
    add_completion=False,
)
console = Console()


def _load_settings(debug: bool) -> Settings:
    settings = Settings()
    if debug:
        settings.DEBUG = True
        settings.LOG_LEVEL = "DEBUG"
    setup_logging(settings)
    settings.create_directories()
    return settings


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except AstreusError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@app.command("init")
def init_project(
    directory: Path = typer.Argument(Path("."), help="Directory to initialize"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing files"),
) -> None:
    """Initialize a new project with a .env file and a data directory."""
    directory = directory.resolve()

    if not directory.exists():
        directory.mkdir(parents=True)

    config_file = directory / ".env"
    data_dir = directory / "data"

    if config_file.exists() and not force:
        console.print(f"[yellow]Configuration file already exists: {config_file}[/yellow]")
        console.print("Use --force to overwrite")
        return

    data_dir.mkdir(exist_ok=True)

    config_content = """# Astreus memory configuration
DEBUG=false
LOG_LEVEL=INFO

# Storage
STORAGE_BACKEND=sqlite
SQLITE_DATABASE_PATH=./data/astreus.db
MEMORY_TABLE_NAME=memories
RAG_TABLE_NAME=rag_documents

# Memory
MAX_ENTRIES=100
ENABLE_EMBEDDINGS=false

# Embeddings (local or api)
EMBEDDING_PROVIDER=local
EMBEDDING_MODEL=all-MiniLM-L6-v2
# EMBEDDING_API_BASE=http://localhost:4000
# EMBEDDING_API_KEY=

# RAG
CHUNK_SIZE=1000
CHUNK_OVERLAP=200
MAX_RESULTS_PER_QUERY=5
"""

    config_file.write_text(config_content)
    console.print(f"[green]Initialized Astreus memory project in {directory}[/green]")
    console.print(f"Configuration file: {config_file}")
    console.print(f"Data directory: {data_dir}")


@app.command("ingest")
def ingest_files(
    paths: List[Path] = typer.Argument(..., help="Text or markdown files to ingest"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Chunk size in characters"),
    chunk_overlap: Optional[int] = typer.Option(None, "--chunk-overlap", help="Chunk overlap"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Ingest files into the document store."""
    settings = _load_settings(debug)

    async def _ingest() -> None:
        engine = RAGEngine(settings)
        await engine.initialize()
        try:
            for path in paths:
                result = await engine.ingest_file(
                    path, chunk_size=chunk_size, chunk_overlap=chunk_overlap
                )
                colour = "yellow" if result.is_partial else "green"
                console.print(
                    f"[{colour}]{path}: {result.status.value}, "
                    f"{len(result.indexed_chunk_ids)}/{len(result.document.chunks)} chunks indexed "
                    f"(id {result.document.id})[/{colour}]"
                )
        finally:
            await engine.close()

    _run(_ingest())


@app.command("search")
def search_documents(
    query: str = typer.Argument(..., help="Search text"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Minimum score (0-1)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Search ingested documents."""
    settings = _load_settings(debug)

    async def _search() -> None:
        engine = RAGEngine(settings)
        await engine.initialize()
        try:
            results = await engine.search(query, limit=limit, threshold=threshold)
        finally:
            await engine.close()

        if not results:
            console.print("[yellow]No matching passages[/yellow]")
            return

        table = Table(title=f"Results for {query!r}")
        table.add_column("#", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Document")
        table.add_column("Page", justify="right")
        table.add_column("Passage")
        for result in results:
            table.add_row(
                str(result.rank),
                f"{result.score:.3f}",
                result.document.title or result.document.id,
                str(result.page) if result.page is not None else "",
                result.content[:120].replace("\n", " "),
            )
        console.print(table)

    _run(_search())


@app.command("history")
def show_history(
    session_id: str = typer.Argument(..., help="Session identifier"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Most recent N messages"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Print the messages of a session."""
    settings = _load_settings(debug)

    async def _history() -> None:
        manager = MemoryManager(settings, enable_embeddings=False)
        await manager.initialize()
        try:
            entries = await manager.get_by_session(session_id, limit)
        finally:
            await manager.close()

        if not entries:
            console.print(f"[yellow]No messages in session {session_id}[/yellow]")
            return

        for entry in entries:
            timestamp = entry.created_at.strftime("%Y-%m-%d %H:%M:%S")
            console.print(f"[dim]{timestamp}[/dim] [bold]{entry.role.value}[/bold]: {entry.content}")

    _run(_history())


@app.command("stats")
def show_stats(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Show memory and document statistics."""
    settings = _load_settings(debug)

    async def _stats() -> None:
        manager = MemoryManager(settings, enable_embeddings=False)
        await manager.initialize()
        try:
            memory_stats = await manager.get_stats()
        finally:
            await manager.close()

        table = Table(title="Astreus memory")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Sessions", str(memory_stats.session_count))
        table.add_row("Messages", str(memory_stats.message_count))

        engine = RAGEngine(settings)
        await engine.initialize()
        try:
            rag_stats = await engine.get_stats()
        finally:
            await engine.close()

        table.add_row("Documents", str(rag_stats.document_count))
        table.add_row("Chunks", str(rag_stats.chunk_count))
        table.add_row("Indexed chunks", str(rag_stats.indexed_chunk_count))
        table.add_row("Embedding model", rag_stats.embedding_model or "")
        console.print(table)

    _run(_stats())


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from . import __version__
    console.print(f"Astreus memory version {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
