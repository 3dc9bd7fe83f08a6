"""Tests for the command-line interface."""

import asyncio
from pathlib import Path

import pytest
from typer.testing import CliRunner

from astreus_memory import __version__
from astreus_memory.cli import app
from astreus_memory.memory.manager import MemoryManager
from tests.utils import make_settings

runner = CliRunner()


@pytest.fixture
def cli_env(temp_dir: Path, monkeypatch) -> Path:
    """Run commands from an isolated directory backed by a temporary database."""
    monkeypatch.chdir(temp_dir)
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_DATABASE_PATH", str(temp_dir / "data" / "cli.db"))
    return temp_dir


class TestCLI:
    """Test CLI commands that need no embedding model."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_init_writes_env_file(self, temp_dir: Path):
        target = temp_dir / "project"

        result = runner.invoke(app, ["init", str(target)])

        assert result.exit_code == 0
        assert (target / "data").is_dir()
        assert "STORAGE_BACKEND=sqlite" in (target / ".env").read_text()

    def test_init_keeps_existing_config(self, temp_dir: Path):
        (temp_dir / ".env").write_text("DEBUG=true\n")

        result = runner.invoke(app, ["init", str(temp_dir)])

        assert result.exit_code == 0
        assert "--force" in result.stdout
        assert (temp_dir / ".env").read_text() == "DEBUG=true\n"

        forced = runner.invoke(app, ["init", str(temp_dir), "--force"])
        assert forced.exit_code == 0
        assert "MAX_ENTRIES=100" in (temp_dir / ".env").read_text()

    def test_history(self, cli_env: Path):
        settings = make_settings(
            cli_env, STORAGE_BACKEND="sqlite", SQLITE_DATABASE_PATH=cli_env / "data" / "cli.db"
        )

        async def seed() -> None:
            manager = MemoryManager(settings)
            await manager.initialize()
            try:
                await manager.add("chat", "user", "remember the milk")
            finally:
                await manager.close()

        asyncio.run(seed())

        result = runner.invoke(app, ["history", "chat"])
        assert result.exit_code == 0
        assert "remember the milk" in result.stdout

        empty = runner.invoke(app, ["history", "other"])
        assert "No messages in session other" in empty.stdout

    def test_domain_error_exits_nonzero(self, cli_env: Path):
        result = runner.invoke(app, ["history", "chat", "--limit", "0"])

        assert result.exit_code == 1
        assert "Error" in result.stdout
