"""Domain-specific error types for gateway operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes a gateway response can carry."""

    NOT_ALLOWED = "NOT_ALLOWED"
    INVALID_URL = "INVALID_URL"
    NO_VALID_INPUT = "NO_VALID_INPUT"
    INVALID_INPUT = "INVALID_INPUT"
    FORBIDDEN = "FORBIDDEN"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class GatewayError(Exception):
    """Rejection raised before (or instead of) running a command."""

    code: ErrorCode
    message: str
    suggestion: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> dict[str, Any]:
        """Degraded response shape: no ``command`` and no ``returnCode``."""
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_code": self.code.value,
            "suggestion": self.suggestion or "",
        }
        if self.details:
            payload["details"] = self.details
        return payload
