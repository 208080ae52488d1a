"""MCP server entrypoint and tool definitions for the git gateway."""

from __future__ import annotations

import argparse
import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Annotated, Any, Callable

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .audit import AuditLogger
from .auth import AccessGate, AccessGateMiddleware
from .gateway import CommandGateway, error_response
from .introspect import RepositoryIntrospector
from .render import render_mermaid
from .runtime import (
    TRANSPORTS,
    get_allow_public_http_default,
    get_runtime_audit_defaults,
    get_runtime_defaults,
    get_runtime_gateway_defaults,
    normalize_repository_path,
    validate_audit_max_field_chars,
    validate_streamable_http_binding,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    name="git-gateway",
    instructions=(
        "Run a fixed set of git actions against the configured repository. "
        "Use git_actions to list them, git_run to execute one, git_changes for parsed "
        "porcelain status, git_graph for the commit graph and git_repo_info for a summary."
    ),
)

gateway = CommandGateway()
introspector = RepositoryIntrospector(executor=gateway.executor)
access_gate = AccessGate.from_env(os.environ)
audit_logger = AuditLogger()

READ_ONLY_TOOL_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=True,
    idempotentHint=True,
    destructiveHint=False,
    openWorldHint=False,
)

WRITE_TOOL_ANNOTATIONS = ToolAnnotations(
    readOnlyHint=False,
    idempotentHint=False,
    destructiveHint=False,
    openWorldHint=True,
)


def _build_correlation_id() -> str:
    """Generate short operation correlation IDs for diagnostics."""
    return uuid.uuid4().hex[:12]


def _log_tool_phase(
    *,
    correlation_id: str,
    tool_name: str,
    phase: str,
    status: str,
    elapsed_seconds: float,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit structured phase-level diagnostics for tool execution."""
    payload: dict[str, Any] = {
        "event_type": "gateway_tool_phase",
        "correlation_id": correlation_id,
        "tool_name": tool_name,
        "phase": phase,
        "status": status,
        "elapsed_ms": round(elapsed_seconds * 1000, 3),
    }
    if details:
        payload["details"] = details
    logger.info("gateway_tool_phase %s", json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _run_tool(
    tool_name: str,
    request_payload: dict[str, Any],
    operation: Callable[[], dict[str, Any]],
) -> dict[str, Any]:
    """Check the access gate, run the operation and emit a structured audit event."""
    total_start = time.perf_counter()
    correlation_id = _build_correlation_id()
    enriched_request_payload = dict(request_payload)
    enriched_request_payload["correlation_id"] = correlation_id

    access_start = time.perf_counter()
    allowed = access_gate.allows()
    _log_tool_phase(
        correlation_id=correlation_id,
        tool_name=tool_name,
        phase="access",
        status="ok" if allowed else "forbidden",
        elapsed_seconds=time.perf_counter() - access_start,
    )

    if allowed:
        operation_start = time.perf_counter()
        try:
            response_payload = dict(operation())
        except Exception as exc:  # noqa: BLE001
            response_payload = error_response(exc)
        phase_details: dict[str, Any] = {}
        if "error_code" in response_payload:
            phase_details["error_code"] = response_payload["error_code"]
        elif "returnCode" in response_payload:
            phase_details["return_code"] = response_payload["returnCode"]
        _log_tool_phase(
            correlation_id=correlation_id,
            tool_name=tool_name,
            phase="operation_execution",
            status="ok" if response_payload.get("success") else "error",
            elapsed_seconds=time.perf_counter() - operation_start,
            details=phase_details,
        )
    else:
        response_payload = access_gate.forbidden_payload()

    response_payload["correlation_id"] = correlation_id
    status = "success" if response_payload.get("success") else "error"
    _log_tool_phase(
        correlation_id=correlation_id,
        tool_name=tool_name,
        phase="total",
        status="ok" if status == "success" else "error",
        elapsed_seconds=time.perf_counter() - total_start,
    )
    audit_logger.log_tool_event(
        tool_name=tool_name,
        status=status,
        request_payload=enriched_request_payload,
        response_payload=response_payload,
    )
    return response_payload


@mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def git_actions() -> dict[str, Any]:
    """List the whitelisted git actions and the command each one runs."""

    def _operation() -> dict[str, Any]:
        actions = gateway.describe_actions()
        return {"success": True, "count": len(actions), "actions": actions}

    return _run_tool("git_actions", request_payload={}, operation=_operation)


@mcp.tool(annotations=WRITE_TOOL_ANNOTATIONS)
def git_run(
    action: Annotated[
        str,
        Field(description="Whitelisted action name, e.g. status, add-file, commit, clone"),
    ],
    files: Annotated[
        str | None,
        Field(description="Space-delimited repository paths for add-file"),
    ] = None,
    message: Annotated[str | None, Field(description="Commit message for commit")] = None,
    url: Annotated[
        str | None,
        Field(description="http(s):// or git:// repository URL for clone"),
    ] = None,
) -> dict[str, Any]:
    """Execute one whitelisted git action and return its captured result."""
    parameters = {
        key: value
        for key, value in (("files", files), ("message", message), ("url", url))
        if value is not None
    }
    request_payload = {"action": action, "parameters": parameters}

    def _operation() -> dict[str, Any]:
        return gateway.handle(request_payload)

    return _run_tool("git_run", request_payload=request_payload, operation=_operation)


@mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def git_changes() -> dict[str, Any]:
    """Return porcelain status parsed into change records."""

    def _operation() -> dict[str, Any]:
        result, records = gateway.changes()
        response = result.to_response()
        response["changes"] = [record.model_dump(mode="json") for record in records]
        response["count"] = len(records)
        return response

    return _run_tool("git_changes", request_payload={}, operation=_operation)


@mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def git_graph() -> dict[str, Any]:
    """Return the recent commit graph as structured nodes plus a Mermaid gitGraph."""

    def _operation() -> dict[str, Any]:
        result, graph = gateway.graph()
        response = result.to_response()
        response["graph"] = graph.model_dump(mode="json")
        response["mermaid"] = render_mermaid(graph)
        response["duplicate_hashes"] = graph.duplicate_hashes()
        return response

    return _run_tool("git_graph", request_payload={}, operation=_operation)


@mcp.tool(annotations=READ_ONLY_TOOL_ANNOTATIONS)
def git_repo_info() -> dict[str, Any]:
    """Summarize the current branch and pending change counts."""

    def _operation() -> dict[str, Any]:
        info = introspector.inspect()
        return {"success": True, **info.model_dump(mode="json")}

    return _run_tool("git_repo_info", request_payload={}, operation=_operation)


def _run_streamable_http_with_access_gate(gate: AccessGate) -> None:
    """Serve streamable HTTP with the access gate in front of the MCP app."""
    import uvicorn

    wrapped_app = AccessGateMiddleware(app=mcp.streamable_http_app(), gate=gate)
    config = uvicorn.Config(
        wrapped_app,
        host=mcp.settings.host,
        port=mcp.settings.port,
        log_level=mcp.settings.log_level.lower(),
    )
    uvicorn.Server(config).run()


def _effective_runtime_config_payload(
    *,
    transport: str,
    host: str,
    port: int,
    allow_public_http: bool,
    repository: str,
    serialize_execution: bool,
    gate: AccessGate,
    audit_log_file: str,
    audit_redact_sensitive: bool,
    audit_max_field_chars: int,
) -> dict[str, Any]:
    """Build runtime configuration output for preflight diagnostics."""
    return {
        "transport": transport,
        "host": host,
        "port": port,
        "allow_public_http": allow_public_http,
        "repository": repository,
        "serialize_execution": serialize_execution,
        "access_gate": {
            "required_environment": gate.required_environment,
            "open": gate.allows(),
        },
        "audit": {
            "log_file": audit_log_file or None,
            "redact_sensitive": audit_redact_sensitive,
            "max_field_chars": audit_max_field_chars,
        },
    }


def main() -> None:
    """Run the git gateway MCP server in stdio or streamable HTTP mode."""
    parser = argparse.ArgumentParser(description="Git gateway MCP server")
    try:
        transport_default, host_default, port_default = get_runtime_defaults()
        allow_public_http_default = get_allow_public_http_default()
        gateway_defaults = get_runtime_gateway_defaults()
        audit_defaults = get_runtime_audit_defaults()
    except ValueError as exc:
        parser.error(str(exc))
    parser.add_argument(
        "--transport",
        choices=sorted(TRANSPORTS),
        default=transport_default,
        help="Server transport mode (default: stdio).",
    )
    parser.add_argument("--host", default=host_default, help="Host for streamable HTTP transport.")
    parser.add_argument(
        "--port",
        type=int,
        default=port_default,
        help="Port for streamable HTTP transport.",
    )
    parser.add_argument(
        "--allow-public-http",
        action=argparse.BooleanOptionalAction,
        default=allow_public_http_default,
        help="Allow non-loopback streamable-http host binding.",
    )
    parser.add_argument(
        "--repository",
        default=gateway_defaults.repository,
        help="Absolute path of the repository commands run in (default: current directory).",
    )
    parser.add_argument(
        "--serialize-execution",
        action=argparse.BooleanOptionalAction,
        default=gateway_defaults.serialize_execution,
        help="Run at most one command at a time per repository (default: disabled).",
    )
    parser.add_argument(
        "--audit-log-file",
        default=audit_defaults.audit_log_path,
        help="Optional JSONL audit log path for tool calls.",
    )
    parser.add_argument(
        "--audit-redact-sensitive",
        action=argparse.BooleanOptionalAction,
        default=audit_defaults.audit_redact_sensitive,
        help="Redact credentials and tokens in audit logs (default: enabled).",
    )
    parser.add_argument(
        "--audit-max-field-chars",
        type=int,
        default=audit_defaults.audit_max_field_chars,
        help="Max characters for each string field written to audit logs.",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate runtime settings and exit without starting server transport.",
    )
    parser.add_argument(
        "--print-effective-config",
        action="store_true",
        help="Print effective runtime configuration and exit.",
    )
    args = parser.parse_args()

    try:
        validate_streamable_http_binding(
            transport=args.transport,
            host=args.host,
            allow_public_http=args.allow_public_http,
        )
        validate_audit_max_field_chars(int(args.audit_max_field_chars))
        repository = (
            normalize_repository_path(args.repository, key="repository")
            if str(args.repository).strip()
            else str(Path.cwd())
        )
    except ValueError as exc:
        parser.error(str(exc))

    global access_gate
    global audit_logger
    global gateway
    global introspector
    gateway = CommandGateway(
        repository=repository,
        serialize_execution=bool(args.serialize_execution),
    )
    introspector = RepositoryIntrospector(executor=gateway.executor)
    access_gate = AccessGate(
        environment=gateway_defaults.environment,
        required_environment=gateway_defaults.required_environment,
    )
    audit_path = str(args.audit_log_file).strip()
    audit_logger = AuditLogger(
        log_path=Path(audit_path) if audit_path else None,
        redact_sensitive=bool(args.audit_redact_sensitive),
        max_field_chars=int(args.audit_max_field_chars),
    )
    mcp.settings.host = args.host
    mcp.settings.port = int(args.port)

    if args.print_effective_config:
        print(
            json.dumps(
                _effective_runtime_config_payload(
                    transport=str(args.transport),
                    host=str(args.host),
                    port=int(args.port),
                    allow_public_http=bool(args.allow_public_http),
                    repository=repository,
                    serialize_execution=bool(args.serialize_execution),
                    gate=access_gate,
                    audit_log_file=audit_path,
                    audit_redact_sensitive=bool(args.audit_redact_sensitive),
                    audit_max_field_chars=int(args.audit_max_field_chars),
                ),
                indent=2,
                sort_keys=True,
            )
        )

    if args.check_config or args.print_effective_config:
        if not args.print_effective_config:
            print("Configuration is valid.")
        return

    if not access_gate.allows():
        logger.warning(
            "Access gate closed: every tool call will be rejected until GITGATE_ENV=%s.",
            access_gate.required_environment,
        )

    if args.transport == "stdio":
        mcp.run()
        return

    _run_streamable_http_with_access_gate(access_gate)


if __name__ == "__main__":
    main()
