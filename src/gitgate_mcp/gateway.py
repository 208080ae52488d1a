"""Command gateway: whitelist, sanitize, build, execute and interpret git actions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .builder import CommandBuilder
from .errors import ErrorCode, GatewayError
from .executor import CommandExecutor
from .graph_builder import GraphBuilder
from .limits import RepositoryLocks
from .models import Action, ChangeRecord, ExecutionResult, GatewayRequest, GraphModel
from .registry import CommandRegistry
from .render import render_mermaid
from .sanitizer import ParameterSanitizer
from .status_parser import StatusParser

logger = logging.getLogger(__name__)


class CommandGateway:
    """Programmatic API over the closed set of git actions.

    ``run`` raises :class:`GatewayError` for rejected requests; ``handle`` is
    the request/response boundary and never raises.
    """

    def __init__(
        self,
        repository: Path | str | None = None,
        serialize_execution: bool = False,
        registry: CommandRegistry | None = None,
        sanitizer: ParameterSanitizer | None = None,
        builder: CommandBuilder | None = None,
        executor: CommandExecutor | None = None,
        status_parser: StatusParser | None = None,
        graph_builder: GraphBuilder | None = None,
    ) -> None:
        self.registry = registry or CommandRegistry()
        self.sanitizer = sanitizer or ParameterSanitizer()
        self.builder = builder or CommandBuilder()
        self.executor = executor or CommandExecutor(
            repository=repository,
            locks=RepositoryLocks(enabled=serialize_execution),
        )
        self.status_parser = status_parser or StatusParser()
        self.graph_builder = graph_builder or GraphBuilder()

    def build_command(self, action: str, parameters: Mapping[str, str] | None = None) -> str:
        """Resolve, sanitize and compose without executing anything."""
        template = self.registry.resolve(action)
        sanitized = self.sanitizer.sanitize_for(template.action, parameters or {})
        return self.builder.build(template.action, template, sanitized)

    def run(self, action: str, parameters: Mapping[str, str] | None = None) -> ExecutionResult:
        command = self.build_command(action, parameters)
        return self.executor.execute(command)

    def changes(self) -> tuple[ExecutionResult, list[ChangeRecord]]:
        result = self.run(Action.STATUS.value)
        records = self.status_parser.parse(result.raw_output) if result.success else []
        return result, records

    def graph(self) -> tuple[ExecutionResult, GraphModel]:
        result = self.run(Action.GRAPH.value)
        return result, self.graph_builder.parse(result.raw_output if result.success else "")

    def handle(self, request: GatewayRequest | Mapping[str, Any]) -> dict[str, Any]:
        """Execute one request and return the wire response shape."""
        try:
            if not isinstance(request, GatewayRequest):
                request = GatewayRequest.model_validate(request)
            result = self.run(request.action, request.parameters)
            response = result.to_response()
            if result.success:
                response.update(self._interpret(request.action, result))
            return response
        except Exception as exc:  # noqa: BLE001
            return error_response(exc)

    def describe_actions(self) -> list[dict[str, str]]:
        return [
            {"action": template.action.value, "command": template.command}
            for template in self.registry.templates().values()
        ]

    def _interpret(self, action: str, result: ExecutionResult) -> dict[str, Any]:
        if action == Action.STATUS.value:
            records = self.status_parser.parse(result.raw_output)
            return {"changes": [record.model_dump(mode="json") for record in records]}
        if action == Action.GRAPH.value:
            graph = self.graph_builder.parse(result.raw_output)
            return {
                "graph": graph.model_dump(mode="json"),
                "mermaid": render_mermaid(graph),
            }
        return {}


def error_response(exc: Exception) -> dict[str, Any]:
    """Convert any exception raised inside the gateway into the degraded response."""
    if isinstance(exc, GatewayError):
        payload = exc.to_payload()
    elif isinstance(exc, ValidationError):
        payload = GatewayError(
            ErrorCode.INVALID_INPUT,
            "Request validation failed",
            "Send an 'action' string and string-valued 'parameters'.",
            {"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ).to_payload()
    else:
        logger.exception("Unhandled gateway exception", exc_info=exc)
        payload = GatewayError(
            ErrorCode.INTERNAL_ERROR,
            str(exc),
            "Check server logs and retry the operation.",
        ).to_payload()
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    return payload
