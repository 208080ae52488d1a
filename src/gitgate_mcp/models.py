"""Pydantic models for gateway requests, results and parsed repository views."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .constants import NO_COMMITS_MESSAGE


class Action(str, Enum):
    STATUS = "status"
    STATUS_FULL = "status-full"
    ADD = "add"
    ADD_FILE = "add-file"
    COMMIT = "commit"
    FETCH = "fetch"
    PULL = "pull"
    PUSH = "push"
    LOG = "log"
    BRANCH = "branch"
    GRAPH = "graph"
    CLONE = "clone"


class ChangeKind(str, Enum):
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"


class CommandTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Action
    command: str


class SanitizedParameters(BaseModel):
    """Shell-escaped parameter values, ready to be embedded in a command line."""

    model_config = ConfigDict(frozen=True)

    files: tuple[str, ...] | None = None
    message: str | None = None
    url: str | None = None


class GatewayRequest(BaseModel):
    """Request shape only; the action string reaches the registry untouched."""

    action: str
    parameters: dict[str, str] = Field(default_factory=dict)


class ExecutionResult(BaseModel):
    """Outcome of one executed command. A non-zero exit code is not an error."""

    model_config = ConfigDict(frozen=True)

    success: bool
    exit_code: int
    raw_output: str
    command_executed: str
    timestamp: datetime
    elapsed_ms: float = 0.0

    def to_response(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "output": self.raw_output,
            "returnCode": self.exit_code,
            "command": self.command_executed,
            "timestamp": self.timestamp.isoformat(),
        }


class PorcelainChangeRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: Literal["porcelain"] = "porcelain"
    path: str
    kind: ChangeKind
    code: str
    rename_from: str | None = None
    rename_to: str | None = None


class FallbackChangeRecord(BaseModel):
    """Line without a recognized status prefix, kept as a modified path."""

    model_config = ConfigDict(frozen=True)

    source: Literal["fallback"] = "fallback"
    path: str
    kind: ChangeKind = ChangeKind.MODIFIED


ChangeRecord = Annotated[
    Union[PorcelainChangeRecord, FallbackChangeRecord],
    Field(discriminator="source"),
]


class ChangeStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    files_changed: int
    insertions: int = 0
    deletions: int = 0
    summary: str


class FullCommitNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["full"] = "full"
    short_hash: str
    date: str
    subject: str
    message: str
    author: str
    change_stat: ChangeStat | None = None
    lane: int = 0


class BareCommitNode(BaseModel):
    """Commit line carrying only a hash, without date, message or author."""

    model_config = ConfigDict(frozen=True)

    variant: Literal["bare"] = "bare"
    short_hash: str
    lane: int = 0


class PlaceholderNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant: Literal["placeholder"] = "placeholder"
    message: str = NO_COMMITS_MESSAGE


CommitNode = Annotated[
    Union[FullCommitNode, BareCommitNode, PlaceholderNode],
    Field(discriminator="variant"),
]


class MergeEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    branch: str
    after_hash: str | None = None
    position: int = 0


class GraphModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    nodes: tuple[CommitNode, ...]
    merges: tuple[MergeEdge, ...] = ()
    branches: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return all(isinstance(node, PlaceholderNode) for node in self.nodes)

    @property
    def commit_count(self) -> int:
        return sum(1 for node in self.nodes if not isinstance(node, PlaceholderNode))

    def duplicate_hashes(self) -> list[str]:
        """Short hashes shared by more than one node, in first-seen order."""
        counts = Counter(
            node.short_hash for node in self.nodes if not isinstance(node, PlaceholderNode)
        )
        return [short_hash for short_hash, count in counts.items() if count > 1]


class RepositoryInfo(BaseModel):
    is_repo: bool
    current_branch: str = ""
    has_changes: bool = False
    staged_count: int = 0
    unstaged_count: int = 0
