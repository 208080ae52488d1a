from __future__ import annotations

import json
from pathlib import Path

import yaml

from gitgate_mcp.cli import main

DEV_ENV = {"GITGATE_ENV": "dev"}


def _run_cli_json(args: list[str], capsys, env: dict[str, str] | None = None) -> dict:
    exit_code = main(args + ["--json"], env=DEV_ENV if env is None else env)
    assert exit_code in (0, 1)
    output = capsys.readouterr().out
    return {"exit_code": exit_code, "payload": json.loads(output)}


def test_cli_rejects_everything_when_gate_is_closed(tmp_path: Path, capsys) -> None:
    for env in ({}, {"GITGATE_ENV": "production"}):
        result = _run_cli_json(["actions", "-d", str(tmp_path)], capsys, env=env)
        assert result["exit_code"] == 1
        assert result["payload"]["error_code"] == "FORBIDDEN"
        assert "GITGATE_ENV=dev" in result["payload"]["suggestion"]


def test_cli_custom_required_environment(tmp_path: Path, capsys) -> None:
    env = {"GITGATE_ENV": "staging", "GITGATE_REQUIRED_ENV": "staging"}

    result = _run_cli_json(["actions", "-d", str(tmp_path)], capsys, env=env)

    assert result["exit_code"] == 0


def test_cli_lists_actions_as_json_and_yaml(tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["actions", "-d", str(tmp_path)], capsys)
    assert result["exit_code"] == 0
    assert result["payload"]["count"] == 12

    exit_code = main(["actions", "-d", str(tmp_path), "--yaml"], env=DEV_ENV)
    payload = yaml.safe_load(capsys.readouterr().out)
    assert exit_code == 0
    assert {"action": "clone", "command": "git clone"} in payload["actions"]


def test_cli_run_rejects_unknown_action(tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["run", "rebase", "-d", str(tmp_path)], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "NOT_ALLOWED"


def test_cli_run_rejects_invalid_clone_url(tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["run", "clone", "--url", "ftp://x", "-d", str(tmp_path)], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "INVALID_URL"


def test_cli_text_output_for_rejection(tmp_path: Path, capsys) -> None:
    exit_code = main(["run", "add-file", "--files", "../x", "-d", str(tmp_path)], env=DEV_ENV)

    output = capsys.readouterr().out
    assert exit_code == 1
    assert output.startswith("[FAILED] No valid files provided.")
    assert "error_code: NO_VALID_INPUT" in output


def test_cli_info_outside_repository(tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["info", "-d", str(tmp_path)], capsys)

    assert result["exit_code"] == 0
    assert result["payload"]["is_repo"] is False


def test_cli_graph_mermaid_placeholder_outside_repository(tmp_path: Path, capsys) -> None:
    exit_code = main(["graph", "--mermaid", "-d", str(tmp_path)], env=DEV_ENV)

    assert exit_code == 1
    assert capsys.readouterr().out == 'gitGraph\n  commit id: "No commits found"\n'


def test_cli_repository_from_environment(git_repo: Path, capsys) -> None:
    (git_repo / "notes.txt").write_text("draft\n", encoding="utf-8")
    env = {**DEV_ENV, "GITGATE_REPOSITORY": str(git_repo)}

    result = _run_cli_json(["changes"], capsys, env=env)

    assert result["exit_code"] == 0
    assert result["payload"]["command"] == "git status --porcelain"
    assert [change["path"] for change in result["payload"]["changes"]] == ["notes.txt"]


def test_cli_commit_flow_in_text_mode(git_repo: Path, capsys) -> None:
    (git_repo / "a.txt").write_text("hello\n", encoding="utf-8")
    directory = ["-d", str(git_repo)]

    assert main(["run", "add-file", "--files", "a.txt", *directory], env=DEV_ENV) == 0
    assert main(["run", "commit", "-m", "add a", *directory], env=DEV_ENV) == 0
    capsys.readouterr()

    assert main(["graph", "--mermaid", *directory], env=DEV_ENV) == 0
    mermaid = capsys.readouterr().out
    assert mermaid.startswith("gitGraph\n  commit id: ")
    assert 'msg: "add a"\n' in mermaid

    assert main(["info", *directory], env=DEV_ENV) == 0
    assert "has_changes: False" in capsys.readouterr().out
