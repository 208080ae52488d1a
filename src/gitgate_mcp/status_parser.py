"""Parser for porcelain change-status output."""

from __future__ import annotations

from .models import ChangeKind, ChangeRecord, FallbackChangeRecord, PorcelainChangeRecord

# Checked in order against the trimmed line.
STATUS_PREFIXES: tuple[tuple[str, ChangeKind], ...] = (
    ("M ", ChangeKind.MODIFIED),
    ("A ", ChangeKind.ADDED),
    ("D ", ChangeKind.DELETED),
    ("R ", ChangeKind.RENAMED),
    ("?? ", ChangeKind.ADDED),
)
RENAME_ARROW = " -> "


def parse_status(status_text: str) -> list[ChangeRecord]:
    """Parse status lines into change records, preserving input order.

    Lines without a recognized prefix are kept as ``FallbackChangeRecord``
    entries (kind ``modified``) rather than rejected.
    """
    records: list[ChangeRecord] = []
    for line in status_text.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#") or len(trimmed) <= 2:
            continue
        records.append(_parse_line(trimmed))
    return records


def _parse_line(trimmed: str) -> ChangeRecord:
    for prefix, kind in STATUS_PREFIXES:
        if not trimmed.startswith(prefix):
            continue
        path = trimmed[len(prefix):].strip()
        rename_from: str | None = None
        rename_to: str | None = None
        if kind == ChangeKind.RENAMED and RENAME_ARROW in path:
            rename_from, rename_to = (part.strip() for part in path.split(RENAME_ARROW, 1))
        return PorcelainChangeRecord(
            path=path,
            kind=kind,
            code=prefix.strip(),
            rename_from=rename_from,
            rename_to=rename_to,
        )
    return FallbackChangeRecord(path=trimmed)


class StatusParser:
    """Object seam over :func:`parse_status` for injection into the gateway."""

    def parse(self, status_text: str) -> list[ChangeRecord]:
        return parse_status(status_text)
