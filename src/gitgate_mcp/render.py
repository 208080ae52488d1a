"""Mermaid rendering of parsed commit graphs."""

from __future__ import annotations

from .models import BareCommitNode, FullCommitNode, GraphModel, MergeEdge, PlaceholderNode

MERMAID_HEADER = "gitGraph"


def render_mermaid(graph: GraphModel) -> str:
    """Render a ``gitGraph`` block; merges are emitted where they appeared in the log."""
    lines = [MERMAID_HEADER]
    merges_by_position: dict[int, list[MergeEdge]] = {}
    for merge in graph.merges:
        merges_by_position.setdefault(merge.position, []).append(merge)

    for position, node in enumerate(graph.nodes):
        for merge in merges_by_position.get(position, []):
            lines.append(f"  merge {merge.branch}")
        if isinstance(node, FullCommitNode):
            lines.append(f'  commit id: "{node.short_hash}" msg: "{_quote(node.message)}"')
        elif isinstance(node, BareCommitNode):
            lines.append(f'  commit id: "{node.short_hash}"')
        elif isinstance(node, PlaceholderNode):
            lines.append(f'  commit id: "{_quote(node.message)}"')

    for merge in merges_by_position.get(len(graph.nodes), []):
        lines.append(f"  merge {merge.branch}")
    return "\n".join(lines) + "\n"


def _quote(value: str) -> str:
    return value.replace('"', "'")
