"""Parser for the pipe-delimited ``git log --graph`` output used by the graph action.

Each commit line looks like ``* a1b2c3d|2024-01-01|Fix bug|Alice`` where the
leading graph glyphs (``*``, ``|``, ``\\``, ``/``) locate the commit's lane.
``--stat`` blocks follow their commit and end with a summary such as
``3 files changed, 10 insertions(+), 2 deletions(-)``.
"""

from __future__ import annotations

import re

from .constants import SHORT_HASH_LENGTH
from .models import (
    BareCommitNode,
    ChangeStat,
    CommitNode,
    FullCommitNode,
    GraphModel,
    MergeEdge,
    PlaceholderNode,
)

SHORT_HASH_PATTERN = re.compile(rf"\b[0-9a-f]{{{SHORT_HASH_LENGTH}}}\b")
FILES_CHANGED_PATTERN = re.compile(r"(\d+)\s+files?\s+changed")
INSERTIONS_PATTERN = re.compile(r"(\d+)\s+insertions?\(\+\)")
DELETIONS_PATTERN = re.compile(r"(\d+)\s+deletions?\(-\)")
# Only plural summaries are appended to the commit message.
ANNOTATED_STAT_MARKER = "files changed"
FIELD_SEPARATOR = "|"
MERGE_MARKER = "Merge:"
BULLET_GLYPH = "*"
GRAPH_COLUMN_WIDTH = 2


class GraphBuilder:
    """Build a :class:`GraphModel` from graph log text. Stateless between calls."""

    def parse(self, log_text: str) -> GraphModel:
        lines = log_text.split("\n")
        nodes: list[CommitNode] = []
        merges: list[MergeEdge] = []
        branches: list[str] = []

        for index, line in enumerate(lines):
            fields = line.split(FIELD_SEPARATOR)
            if len(fields) == 4:
                node = _parse_full_commit(fields, lines, index)
                if node is not None:
                    _observe_lane(branches, node.lane)
                    nodes.append(node)
                continue

            stripped = line.strip()
            if stripped.startswith(MERGE_MARKER):
                if len(branches) > 1:
                    merges.append(
                        MergeEdge(
                            branch=branches[1],
                            after_hash=_last_hash(nodes),
                            position=len(nodes),
                        )
                    )
                continue

            if stripped.startswith(BULLET_GLYPH):
                match = SHORT_HASH_PATTERN.search(line)
                if match:
                    lane = _lane_of(line)
                    _observe_lane(branches, lane)
                    nodes.append(BareCommitNode(short_hash=match.group(0), lane=lane))

        if not nodes:
            return GraphModel(nodes=(PlaceholderNode(),))
        return GraphModel(nodes=tuple(nodes), merges=tuple(merges), branches=tuple(branches))


def parse_log(log_text: str) -> GraphModel:
    return GraphBuilder().parse(log_text)


def branch_name(lane: int) -> str:
    return f"lane-{lane}"


def _parse_full_commit(fields: list[str], lines: list[str], index: int) -> FullCommitNode | None:
    graph_field, date, message, author = fields
    match = SHORT_HASH_PATTERN.search(graph_field)
    if not match:
        return None

    subject = message.strip()
    change_stat = _find_change_stat(lines, index + 1)
    annotated = subject
    if change_stat and ANNOTATED_STAT_MARKER in change_stat.summary:
        annotated = f"{subject} ({change_stat.summary})"
    return FullCommitNode(
        short_hash=match.group(0),
        date=date.strip(),
        subject=subject,
        message=annotated,
        author=author.strip(),
        change_stat=change_stat,
        lane=_lane_of(graph_field[: match.start()]),
    )


def _find_change_stat(lines: list[str], start: int) -> ChangeStat | None:
    """Return the first stat summary between ``start`` and the next commit line."""
    for line in lines[start:]:
        if _is_commit_line(line):
            return None
        match = FILES_CHANGED_PATTERN.search(line)
        if match:
            insertions = INSERTIONS_PATTERN.search(line)
            deletions = DELETIONS_PATTERN.search(line)
            return ChangeStat(
                files_changed=int(match.group(1)),
                insertions=int(insertions.group(1)) if insertions else 0,
                deletions=int(deletions.group(1)) if deletions else 0,
                summary=match.group(0),
            )
    return None


def _is_commit_line(line: str) -> bool:
    fields = line.split(FIELD_SEPARATOR)
    if len(fields) == 4 and SHORT_HASH_PATTERN.search(fields[0]):
        return True
    return line.strip().startswith(BULLET_GLYPH) and bool(SHORT_HASH_PATTERN.search(line))


def _lane_of(graph_prefix: str) -> int:
    column = graph_prefix.find(BULLET_GLYPH)
    if column < 0:
        return 0
    return column // GRAPH_COLUMN_WIDTH


def _observe_lane(branches: list[str], lane: int) -> None:
    name = branch_name(lane)
    if name not in branches:
        branches.append(name)


def _last_hash(nodes: list[CommitNode]) -> str | None:
    for node in reversed(nodes):
        if isinstance(node, (FullCommitNode, BareCommitNode)):
            return node.short_hash
    return None
