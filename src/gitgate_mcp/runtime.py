"""Runtime configuration helpers."""

from __future__ import annotations

import ipaddress
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_REQUIRED_ENV

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}
TRANSPORTS = {"stdio", "streamable-http"}


@dataclass(frozen=True)
class RuntimeGatewayDefaults:
    """Gateway settings sourced from environment variables or CLI."""

    repository: str
    serialize_execution: bool
    environment: str
    required_environment: str


@dataclass(frozen=True)
class RuntimeAuditDefaults:
    """Audit log settings sourced from environment variables or CLI."""

    audit_log_path: str
    audit_redact_sensitive: bool
    audit_max_field_chars: int


def get_runtime_defaults(env: Mapping[str, str] | None = None) -> tuple[str, str, int]:
    """Validate and return transport/host/port defaults from environment variables."""
    source = os.environ if env is None else env

    transport_default = source.get("GITGATE_MCP_TRANSPORT", "stdio")
    if transport_default not in TRANSPORTS:
        raise ValueError("GITGATE_MCP_TRANSPORT must be 'stdio' or 'streamable-http'.")

    host_default = source.get("GITGATE_MCP_HOST", "127.0.0.1")

    port_env = source.get("GITGATE_MCP_PORT", "8000")
    try:
        port_default = int(port_env)
    except ValueError as exc:
        raise ValueError("GITGATE_MCP_PORT must be an integer.") from exc
    if not (1 <= port_default <= 65535):
        raise ValueError("GITGATE_MCP_PORT must be between 1 and 65535.")

    validate_streamable_http_binding(
        transport=transport_default,
        host=host_default,
        allow_public_http=get_allow_public_http_default(source),
    )
    return transport_default, host_default, port_default


def get_allow_public_http_default(env: Mapping[str, str] | None = None) -> bool:
    source = os.environ if env is None else env
    return _parse_bool_env(source=source, key="GITGATE_MCP_ALLOW_PUBLIC_HTTP", default=False)


def get_runtime_gateway_defaults(env: Mapping[str, str] | None = None) -> RuntimeGatewayDefaults:
    """Return repository, serialization and access-gate settings."""
    source = os.environ if env is None else env
    repository = source.get("GITGATE_REPOSITORY", "").strip()
    if repository:
        repository = normalize_repository_path(repository, key="GITGATE_REPOSITORY")

    required_environment = source.get("GITGATE_REQUIRED_ENV", DEFAULT_REQUIRED_ENV).strip()
    if not required_environment:
        raise ValueError("GITGATE_REQUIRED_ENV must not be empty.")

    return RuntimeGatewayDefaults(
        repository=repository,
        serialize_execution=_parse_bool_env(
            source=source,
            key="GITGATE_SERIALIZE_EXECUTION",
            default=False,
        ),
        environment=source.get("GITGATE_ENV", "").strip(),
        required_environment=required_environment,
    )


def get_runtime_audit_defaults(env: Mapping[str, str] | None = None) -> RuntimeAuditDefaults:
    """Return validated audit log settings from environment variables."""
    source = os.environ if env is None else env
    audit_max_field_chars = _parse_int_env(
        source=source,
        key="GITGATE_AUDIT_MAX_FIELD_CHARS",
        default=4000,
        min_value=0,
    )
    validate_audit_max_field_chars(audit_max_field_chars)
    return RuntimeAuditDefaults(
        audit_log_path=source.get("GITGATE_AUDIT_LOG", "").strip(),
        audit_redact_sensitive=_parse_bool_env(
            source=source,
            key="GITGATE_AUDIT_REDACT",
            default=True,
        ),
        audit_max_field_chars=audit_max_field_chars,
    )


def validate_audit_max_field_chars(audit_max_field_chars: int) -> None:
    if audit_max_field_chars < 0 or (0 < audit_max_field_chars < 64):
        raise ValueError("audit-max-field-chars must be 0 or >= 64.")


def validate_streamable_http_binding(transport: str, host: str, allow_public_http: bool) -> None:
    """Validate host exposure policy for streamable HTTP transport."""
    if transport != "streamable-http":
        return
    if not host.strip():
        raise ValueError("Host must not be empty when using streamable-http transport.")
    if not is_loopback_host(host) and not allow_public_http:
        raise ValueError(
            "Refusing non-loopback streamable-http binding without explicit opt-in. "
            "Set --allow-public-http or GITGATE_MCP_ALLOW_PUBLIC_HTTP=true."
        )


def is_loopback_host(host: str) -> bool:
    """Return whether a host value maps to a loopback interface."""
    normalized = host.strip().lower().strip("[]")
    if normalized in {"localhost", "127.0.0.1", "::1"}:
        return True
    try:
        return ipaddress.ip_address(normalized).is_loopback
    except ValueError:
        return False


def normalize_repository_path(value: str, key: str = "repository") -> str:
    """Require an absolute repository path and return it resolved."""
    normalized = str(value).strip()
    if not normalized:
        raise ValueError(f"{key} must be non-empty.")
    path = Path(normalized).expanduser()
    if not path.is_absolute():
        raise ValueError(f"{key} must be an absolute path: {normalized}")
    return str(path.resolve(strict=False))


def _parse_bool_env(source: Mapping[str, str], key: str, default: bool) -> bool:
    raw = source.get(key)
    if raw is None or not str(raw).strip():
        return default
    normalized = str(raw).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean value (true/false).")


def _parse_int_env(
    source: Mapping[str, str],
    key: str,
    default: int,
    min_value: int | None = None,
) -> int:
    raw = source.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer.") from exc
    if min_value is not None and parsed < min_value:
        raise ValueError(f"{key} must be >= {min_value}.")
    return parsed
