"""Command line interface for the git gateway with parity to MCP tools."""

from __future__ import annotations

import argparse
import json
import os
import sys
from collections.abc import Mapping
from typing import Any

import yaml

from .auth import AccessGate
from .gateway import CommandGateway, error_response
from .introspect import RepositoryIntrospector
from .render import render_mermaid
from .runtime import normalize_repository_path


def _print_payload(payload: dict[str, Any], output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, indent=2))
        return
    if output_format == "yaml":
        print(yaml.safe_dump(payload, sort_keys=False, allow_unicode=False), end="")
        return

    status = "OK" if payload.get("success") else "FAILED"
    headline = payload.get("command") or payload.get("error", "")
    print(f"[{status}] {headline}")

    if "error_code" in payload:
        print(f"error_code: {payload['error_code']}")
        if payload.get("suggestion"):
            print(f"suggestion: {payload['suggestion']}")
        return

    if "returnCode" in payload:
        print(f"returnCode: {payload['returnCode']}")

    if "changes" in payload:
        for record in payload["changes"]:
            marker = "~" if record.get("source") == "fallback" else "-"
            print(f"{marker} [{record.get('kind')}] {record.get('path')}")
    elif "mermaid" in payload:
        print(payload["mermaid"], end="")
    elif "actions" in payload:
        for item in payload["actions"]:
            print(f"{item['action']}: {item['command']}")
    elif "is_repo" in payload:
        for key in ("is_repo", "current_branch", "has_changes", "staged_count", "unstaged_count"):
            print(f"{key}: {payload.get(key)}")
    elif payload.get("output"):
        print(payload["output"])


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gitgate-cli", description="Git gateway CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def _add_common(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "-d",
            "--directory",
            default="",
            help="Repository directory (default: GITGATE_REPOSITORY or current directory)",
        )
        output = subparser.add_mutually_exclusive_group()
        output.add_argument("--json", action="store_true", help="Output machine-readable JSON")
        output.add_argument("--yaml", action="store_true", help="Output YAML")

    run = subparsers.add_parser("run", help="Execute one whitelisted action")
    run.add_argument("action", help="Action name, e.g. status, add-file, commit, clone")
    run.add_argument("--files", default=None, help="Space-delimited paths for add-file")
    run.add_argument("-m", "--message", default=None, help="Commit message for commit")
    run.add_argument("--url", default=None, help="Repository URL for clone")
    _add_common(run)

    changes = subparsers.add_parser("changes", help="Show parsed porcelain status")
    _add_common(changes)

    graph = subparsers.add_parser("graph", help="Show the recent commit graph")
    graph.add_argument(
        "--mermaid",
        action="store_true",
        help="Print only the Mermaid gitGraph block",
    )
    _add_common(graph)

    info = subparsers.add_parser("info", help="Summarize branch and pending changes")
    _add_common(info)

    actions = subparsers.add_parser("actions", help="List whitelisted actions")
    _add_common(actions)

    return parser


def _resolve_repository(directory: str, env: Mapping[str, str]) -> str | None:
    value = directory.strip() or env.get("GITGATE_REPOSITORY", "").strip()
    if not value:
        return None
    return normalize_repository_path(os.path.abspath(value), key="directory")


def main(argv: list[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    source = os.environ if env is None else env
    output_format = "json" if args.json else "yaml" if args.yaml else "text"

    gate = AccessGate.from_env(source)
    if not gate.allows():
        _print_payload(gate.forbidden_payload(), output_format)
        return 1

    try:
        gateway = CommandGateway(repository=_resolve_repository(args.directory, source))

        if args.command == "run":
            parameters = {
                key: value
                for key, value in (("files", args.files), ("message", args.message), ("url", args.url))
                if value is not None
            }
            response = gateway.handle({"action": args.action, "parameters": parameters})
        elif args.command == "changes":
            result, records = gateway.changes()
            response = result.to_response()
            response["changes"] = [record.model_dump(mode="json") for record in records]
        elif args.command == "graph":
            result, graph_model = gateway.graph()
            if args.mermaid and output_format == "text":
                print(render_mermaid(graph_model), end="")
                return 0 if result.success else 1
            response = result.to_response()
            response["graph"] = graph_model.model_dump(mode="json")
            response["mermaid"] = render_mermaid(graph_model)
        elif args.command == "info":
            info = RepositoryIntrospector(executor=gateway.executor).inspect()
            response = {"success": True, **info.model_dump(mode="json")}
        else:
            listed = gateway.describe_actions()
            response = {"success": True, "count": len(listed), "actions": listed}
    except Exception as exc:  # noqa: BLE001
        response = error_response(exc)

    _print_payload(response, output_format)
    return 0 if response.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
