"""Read-only repository summary used to render initial state."""

from __future__ import annotations

from .constants import DEFAULT_BRANCH
from .executor import CommandExecutor
from .models import RepositoryInfo

CURRENT_BRANCH_COMMAND = "git branch --show-current 2>/dev/null"
PORCELAIN_STATUS_COMMAND = "git status --porcelain 2>/dev/null"


class RepositoryIntrospector:
    """Summarize branch and pending changes outside the action whitelist."""

    def __init__(self, executor: CommandExecutor | None = None) -> None:
        self.executor = executor or CommandExecutor()

    def inspect(self) -> RepositoryInfo:
        if not (self.executor.repository / ".git").exists():
            return RepositoryInfo(is_repo=False)

        branch_result = self.executor.execute(CURRENT_BRANCH_COMMAND)
        current_branch = branch_result.raw_output.strip() if branch_result.success else ""

        status_result = self.executor.execute(PORCELAIN_STATUS_COMMAND)
        lines = [line for line in status_result.raw_output.split("\n") if line.strip()]
        staged, unstaged = _count_changes(lines)
        return RepositoryInfo(
            is_repo=True,
            current_branch=current_branch or DEFAULT_BRANCH,
            has_changes=bool(lines),
            staged_count=staged,
            unstaged_count=unstaged,
        )


def _count_changes(lines: list[str]) -> tuple[int, int]:
    """Count index (X) and worktree (Y) changes from porcelain ``XY path`` lines."""
    staged = 0
    unstaged = 0
    for line in lines:
        if line.startswith("??"):
            unstaged += 1
            continue
        index_code = line[:1]
        worktree_code = line[1:2]
        if index_code not in ("", " "):
            staged += 1
        if worktree_code not in ("", " "):
            unstaged += 1
    return staged, unstaged
