"""Subprocess execution of built gateway commands."""

from __future__ import annotations

import logging
import subprocess
import time
from datetime import datetime, timezone
from pathlib import Path

from .errors import ErrorCode, GatewayError
from .limits import RepositoryLocks
from .models import ExecutionResult

logger = logging.getLogger(__name__)


class CommandExecutor:
    """Run one command in the repository directory and normalize its result.

    The call blocks until the process exits: there is no timeout, no partial
    output and no cancellation. stdout and stderr are merged into one text.
    A command that cannot be launched (missing directory, embedded NUL byte)
    raises ``EXECUTION_ERROR``.
    """

    def __init__(
        self,
        repository: Path | str | None = None,
        locks: RepositoryLocks | None = None,
    ) -> None:
        self.repository = Path(repository) if repository else Path.cwd()
        self.locks = locks or RepositoryLocks()

    def execute(self, command: str) -> ExecutionResult:
        timestamp = datetime.now(timezone.utc)
        start = time.perf_counter()
        logger.debug("Executing %r in %s", command, self.repository)
        try:
            with self.locks.hold(self.repository):
                completed = subprocess.run(
                    command,
                    shell=True,
                    cwd=self.repository,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    check=False,
                )
        except (OSError, ValueError) as exc:
            raise GatewayError(
                ErrorCode.EXECUTION_ERROR,
                f"Unable to execute command in {self.repository}",
                "Check that the repository directory exists and is accessible.",
                {"command": command, "exception": exc.__class__.__name__},
            ) from exc

        elapsed_ms = round((time.perf_counter() - start) * 1000, 3)
        logger.debug(
            "Command %r exited with %d after %.3f ms", command, completed.returncode, elapsed_ms
        )
        return ExecutionResult(
            success=completed.returncode == 0,
            exit_code=completed.returncode,
            raw_output=(completed.stdout or "").rstrip("\r\n"),
            command_executed=command,
            timestamp=timestamp,
            elapsed_ms=elapsed_ms,
        )
