"""JSONL audit trail of gateway tool calls."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
TRUNCATED_SUFFIX = "...[TRUNCATED]"

SENSITIVE_KEY_PATTERN = re.compile(r"(?i)(password|passwd|secret|token|api[_-]?key|authorization)")

# Applied in order; bearer tokens go first so "Authorization: Bearer x" loses x.
STRING_REDACTIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?i)\b((?:https?|git)://)[^/\s:@']+(?::[^/\s@']*)?@"), rf"\1{REDACTED}@"),
    (re.compile(r"(?i)\bbearer\s+[a-z0-9\-\._~\+\/]+=*"), f"Bearer {REDACTED}"),
    (
        re.compile(
            r"(?i)\b(password|passwd|secret|token|api[_-]?key|authorization)\s*[:=]\s*([^\s,;]+)"
        ),
        rf"\1={REDACTED}",
    ),
    (re.compile(r"(?i)\b(?:ghp|gho|ghs|github_pat|glpat)_[A-Za-z0-9_\-]{16,}\b"), REDACTED),
)

SUMMARY_FIELDS = (
    ("action", "request", "action"),
    ("command", "response", "command"),
    ("return_code", "response", "returnCode"),
    ("error_code", "response", "error_code"),
)


@dataclass(slots=True)
class AuditLogger:
    """Append one scrubbed JSON line per gateway tool call when a path is set."""

    log_path: Path | None = None
    redact_sensitive: bool = True
    max_field_chars: int = 4000

    @property
    def enabled(self) -> bool:
        return self.log_path is not None

    def log_tool_event(
        self,
        tool_name: str,
        status: str,
        request_payload: dict[str, Any],
        response_payload: dict[str, Any],
    ) -> None:
        if not self.log_path:
            return

        sections = {
            "request": self._scrub(request_payload),
            "response": self._scrub(response_payload),
        }
        event: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": "gateway_tool_call",
            "tool_name": tool_name,
            "status": status,
            **sections,
        }
        summary = {
            name: sections[section][key]
            for name, section, key in SUMMARY_FIELDS
            if key in sections[section]
        }
        if summary:
            event["summary"] = summary

        line = json.dumps(event, ensure_ascii=True, sort_keys=True)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        except OSError:
            logger.warning("Unable to write audit event to %s", self.log_path, exc_info=True)

    def _scrub(self, value: Any, key: str | None = None) -> Any:
        """Redact and truncate one value in a single recursive pass."""
        if self.redact_sensitive and key is not None and SENSITIVE_KEY_PATTERN.search(key):
            return REDACTED
        if isinstance(value, dict):
            return {item_key: self._scrub(item, str(item_key)) for item_key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._scrub(item) for item in value]
        if not isinstance(value, str):
            return value

        if self.redact_sensitive:
            value = redact_text(value)
        if self.max_field_chars > 0:
            value = truncate_text(value, self.max_field_chars)
        return value


def redact_text(value: str) -> str:
    for pattern, replacement in STRING_REDACTIONS:
        value = pattern.sub(replacement, value)
    return value


def truncate_text(value: str, max_chars: int) -> str:
    if len(value) <= max_chars:
        return value
    if max_chars <= len(TRUNCATED_SUFFIX):
        return TRUNCATED_SUFFIX[:max_chars]
    return value[: max_chars - len(TRUNCATED_SUFFIX)] + TRUNCATED_SUFFIX
