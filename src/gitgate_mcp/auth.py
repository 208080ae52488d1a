"""Environment-based access gate for gateway requests."""

from __future__ import annotations

import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from .constants import DEFAULT_REQUIRED_ENV, FORBIDDEN_MESSAGE
from .errors import ErrorCode, GatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessGate:
    """Allow requests only when the configured environment matches the required one."""

    environment: str = ""
    required_environment: str = DEFAULT_REQUIRED_ENV

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "AccessGate":
        return cls(
            environment=env.get("GITGATE_ENV", "").strip(),
            required_environment=env.get("GITGATE_REQUIRED_ENV", DEFAULT_REQUIRED_ENV).strip()
            or DEFAULT_REQUIRED_ENV,
        )

    def allows(self) -> bool:
        if not self.environment:
            return False
        return hmac.compare_digest(
            self.environment.encode("utf-8"),
            self.required_environment.encode("utf-8"),
        )

    def forbidden_error(self) -> GatewayError:
        return GatewayError(
            ErrorCode.FORBIDDEN,
            FORBIDDEN_MESSAGE,
            f"Set GITGATE_ENV={self.required_environment} on the gateway host.",
        )

    def forbidden_payload(self) -> dict[str, Any]:
        return self.forbidden_error().to_payload()


class AccessGateMiddleware:
    """Reject HTTP requests with 403 before they reach the MCP app when the gate is closed."""

    def __init__(self, app: ASGIApp, gate: AccessGate) -> None:
        self._app = app
        self._gate = gate

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self._gate.allows():
            await self._app(scope, receive, send)
            return

        logger.warning("Rejected %s %s: access gate closed.", scope.get("method"), scope.get("path"))
        response = JSONResponse(self._gate.forbidden_payload(), status_code=403)
        await response(scope, receive, send)
