from __future__ import annotations

from pathlib import Path

import pytest

from gitgate_mcp.runtime import (
    get_allow_public_http_default,
    get_runtime_audit_defaults,
    get_runtime_defaults,
    get_runtime_gateway_defaults,
    is_loopback_host,
    normalize_repository_path,
    validate_audit_max_field_chars,
    validate_streamable_http_binding,
)


def test_runtime_defaults_without_env() -> None:
    assert get_runtime_defaults({}) == ("stdio", "127.0.0.1", 8000)


def test_runtime_defaults_read_env() -> None:
    env = {
        "GITGATE_MCP_TRANSPORT": "streamable-http",
        "GITGATE_MCP_HOST": "localhost",
        "GITGATE_MCP_PORT": "9001",
    }
    assert get_runtime_defaults(env) == ("streamable-http", "localhost", 9001)


@pytest.mark.parametrize(
    "env",
    [
        {"GITGATE_MCP_TRANSPORT": "sse"},
        {"GITGATE_MCP_PORT": "abc"},
        {"GITGATE_MCP_PORT": "0"},
        {"GITGATE_MCP_PORT": "70000"},
        {"GITGATE_MCP_TRANSPORT": "streamable-http", "GITGATE_MCP_HOST": "0.0.0.0"},
    ],
)
def test_runtime_defaults_reject_invalid_env(env: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        get_runtime_defaults(env)


def test_public_http_binding_requires_opt_in() -> None:
    env = {
        "GITGATE_MCP_TRANSPORT": "streamable-http",
        "GITGATE_MCP_HOST": "0.0.0.0",
        "GITGATE_MCP_ALLOW_PUBLIC_HTTP": "true",
    }
    assert get_allow_public_http_default(env) is True
    assert get_runtime_defaults(env)[1] == "0.0.0.0"


def test_streamable_http_binding_rejects_empty_host() -> None:
    with pytest.raises(ValueError):
        validate_streamable_http_binding("streamable-http", "  ", allow_public_http=True)
    validate_streamable_http_binding("stdio", "0.0.0.0", allow_public_http=False)


@pytest.mark.parametrize(
    ("host", "expected"),
    [("localhost", True), ("127.0.0.2", True), ("[::1]", True), ("10.0.0.5", False), ("example.com", False)],
)
def test_is_loopback_host(host: str, expected: bool) -> None:
    assert is_loopback_host(host) is expected


def test_gateway_defaults(tmp_path: Path) -> None:
    defaults = get_runtime_gateway_defaults(
        {
            "GITGATE_REPOSITORY": str(tmp_path),
            "GITGATE_SERIALIZE_EXECUTION": "yes",
            "GITGATE_ENV": " dev ",
        }
    )

    assert defaults.repository == str(tmp_path.resolve())
    assert defaults.serialize_execution is True
    assert defaults.environment == "dev"
    assert defaults.required_environment == "dev"


def test_gateway_defaults_when_unset() -> None:
    defaults = get_runtime_gateway_defaults({})

    assert defaults.repository == ""
    assert defaults.serialize_execution is False
    assert defaults.environment == ""


@pytest.mark.parametrize(
    "env",
    [
        {"GITGATE_REPOSITORY": "relative/path"},
        {"GITGATE_SERIALIZE_EXECUTION": "maybe"},
        {"GITGATE_REQUIRED_ENV": "   "},
    ],
)
def test_gateway_defaults_reject_invalid_env(env: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        get_runtime_gateway_defaults(env)


def test_audit_defaults() -> None:
    defaults = get_runtime_audit_defaults(
        {
            "GITGATE_AUDIT_LOG": " /tmp/audit.jsonl ",
            "GITGATE_AUDIT_REDACT": "off",
            "GITGATE_AUDIT_MAX_FIELD_CHARS": "0",
        }
    )

    assert defaults.audit_log_path == "/tmp/audit.jsonl"
    assert defaults.audit_redact_sensitive is False
    assert defaults.audit_max_field_chars == 0


@pytest.mark.parametrize("value", ["-1", "10", "63", "many"])
def test_audit_defaults_reject_invalid_max_field_chars(value: str) -> None:
    with pytest.raises(ValueError):
        get_runtime_audit_defaults({"GITGATE_AUDIT_MAX_FIELD_CHARS": value})


def test_validate_audit_max_field_chars_bounds() -> None:
    validate_audit_max_field_chars(0)
    validate_audit_max_field_chars(64)
    with pytest.raises(ValueError):
        validate_audit_max_field_chars(1)


def test_normalize_repository_path() -> None:
    assert normalize_repository_path("/tmp/../tmp/repo") == str(Path("/tmp/repo").resolve())
    with pytest.raises(ValueError):
        normalize_repository_path("")
    with pytest.raises(ValueError):
        normalize_repository_path("repo")
