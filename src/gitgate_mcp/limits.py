"""Optional serialization of command execution per repository."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from pathlib import Path
from threading import Lock


class RepositoryLocks:
    """In-memory mutex registry keyed by resolved repository path.

    Disabled registries hand out no-op contexts, so concurrent commands against
    the same working tree interleave exactly as the underlying git allows.
    """

    def __init__(self, enabled: bool = False) -> None:
        self._registry_lock = Lock()
        self._locks: dict[str, Lock] = {}
        self.enabled = bool(enabled)

    @contextlib.contextmanager
    def hold(self, repository: Path) -> Iterator[None]:
        """Hold the repository mutex for the duration of the block when enabled."""
        if not self.enabled:
            yield
            return

        with self._lock_for(repository):
            yield

    def _lock_for(self, repository: Path) -> Lock:
        key = str(repository.resolve(strict=False))
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = Lock()
                self._locks[key] = lock
            return lock
