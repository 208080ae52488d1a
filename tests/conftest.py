from __future__ import annotations

import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path

import pytest

from gitgate_mcp.executor import CommandExecutor
from gitgate_mcp.models import ExecutionResult


class SpyExecutor(CommandExecutor):
    """Executor double that records commands instead of spawning processes."""

    def __init__(self, output: str = "", exit_code: int = 0, repository: Path | None = None) -> None:
        super().__init__(repository=repository or Path.cwd())
        self.output = output
        self.exit_code = exit_code
        self.commands: list[str] = []

    def execute(self, command: str) -> ExecutionResult:
        self.commands.append(command)
        return ExecutionResult(
            success=self.exit_code == 0,
            exit_code=self.exit_code,
            raw_output=self.output,
            command_executed=command,
            timestamp=datetime.now(timezone.utc),
        )


@pytest.fixture()
def spy_executor() -> SpyExecutor:
    return SpyExecutor()


@pytest.fixture()
def make_spy():
    def _make(output: str = "", exit_code: int = 0) -> SpyExecutor:
        return SpyExecutor(output=output, exit_code=exit_code)

    return _make


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True)


@pytest.fixture()
def git_repo(tmp_path: Path) -> Path:
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "commit.gpgsign", "false")
    _git(repo, "config", "color.ui", "false")
    return repo
