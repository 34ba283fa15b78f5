"""Marker files that carry deployment state between runs.

Three plain-text files per project form the only durable memory:

- the content hash of the last deployed config
- the last deployed rendered config itself
- the Unix time of the last floating tag check

A missing file is a valid first-run state. Writes go through a temporary file
and ``os.replace`` so a reader never sees a partial file.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path
from types import TracebackType
from typing import IO

from composewatch.lib.errors import DeploymentError, RunLockedError
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import StackSnapshot
from composewatch.models.project import ProjectConfig

logger = get_logger(__name__)


def _read_marker(path: Path) -> str | None:
    if not path.exists():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to read state marker at {path}: {exc}",
        ) from exc


def atomic_write_text(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` in a single rename."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to write state marker to {path}: {exc}",
        ) from exc


class StateStore:
    """Reads and writes the per-project state markers."""

    def __init__(
        self, hash_file: Path, snapshot_file: Path, floating_pull_file: Path
    ) -> None:
        self.hash_file = hash_file
        self.snapshot_file = snapshot_file
        self.floating_pull_file = floating_pull_file

    @classmethod
    def from_config(cls, config: ProjectConfig) -> StateStore:
        """Create a store for the marker paths of a project."""
        return cls(
            hash_file=config.hash_file,
            snapshot_file=config.snapshot_file,
            floating_pull_file=config.floating_pull_file,
        )

    def load_hash(self) -> str | None:
        """Return the last deployed hash, or None when never deployed."""
        content = _read_marker(self.hash_file)
        if content is None or not content.strip():
            return None
        return content.strip()

    def load_snapshot(self) -> str | None:
        """Return the last deployed rendered config, or None."""
        return _read_marker(self.snapshot_file)

    def save_snapshot(self, snapshot: StackSnapshot) -> None:
        """Store a snapshot as the new baseline.

        The config text is written before the hash so an interrupted save
        never leaves a hash without its matching text.
        """
        atomic_write_text(self.snapshot_file, snapshot.content)
        atomic_write_text(self.hash_file, snapshot.content_hash + "\n")
        logger.debug(f"Stored config snapshot {snapshot.content_hash[:12]}")

    def load_last_floating_pull(self) -> int:
        """Return the epoch of the last floating tag check (0 when absent)."""
        content = _read_marker(self.floating_pull_file)
        if content is None or not content.strip():
            return 0
        try:
            return int(content.strip())
        except ValueError as exc:
            raise DeploymentError(
                operation="state",
                message=(
                    f"Invalid floating pull timestamp in {self.floating_pull_file}: "
                    f"{content.strip()!r}"
                ),
            ) from exc

    def save_last_floating_pull(self, epoch: int) -> None:
        """Record the time of a floating tag check."""
        atomic_write_text(self.floating_pull_file, f"{epoch}\n")


class RunLock:
    """Advisory lock that keeps overlapping runs of one project apart.

    Uses a non-blocking ``flock`` so a scheduled run that starts while the
    previous one is still working gives up immediately instead of queueing.

    Example:
        >>> with RunLock(config.lock_file):
        ...     run.execute()
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._handle: IO[str] | None = None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            RunLockedError: If another process holds it
            DeploymentError: If the lock file cannot be opened
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.path, "a+", encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            raise DeploymentError(
                operation="lock",
                message=f"Failed to open lock file {self.path}: {exc}",
            ) from exc

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            handle.close()
            raise RunLockedError(str(self.path)) from exc

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n")
        handle.flush()
        self._handle = handle

    def release(self) -> None:
        """Release the lock if held."""
        if self._handle is None:
            return
        fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        self._handle.close()
        self._handle = None

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
