"""Git working copy management for the watched project."""

from __future__ import annotations

import subprocess  # nosec B404
from pathlib import Path

from composewatch.lib.errors import GitCommandError
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import RepositoryState

logger = get_logger(__name__)


class RepositorySynchronizer:
    """Keeps a local clone in step with the tracked remote branch.

    Commit identifiers are read before any reset, so a run that was not asked
    to force-sync can tell whether the remote actually moved.

    Example:
        >>> sync = RepositorySynchronizer(
        ...     "git@github.com:org/app.git", Path("/opt/app/repo")
        ... )
        >>> state = sync.synchronize()
        >>> state.changed
        False
    """

    def __init__(
        self,
        repo_url: str,
        repo_dir: Path,
        remote: str = "origin",
        branch: str = "main",
        git_binary: str = "git",
    ) -> None:
        self.repo_url = repo_url
        self.repo_dir = repo_dir
        self.remote = remote
        self.branch = branch
        self.git_binary = git_binary

    @property
    def remote_ref(self) -> str:
        return f"{self.remote}/{self.branch}"

    def ensure_clone(self) -> bool:
        """Clone the repository if no clone exists yet.

        Returns:
            True when a fresh clone was made
        """
        if (self.repo_dir / ".git").exists():
            return False
        logger.info(f"Cloning {self.repo_url} into {self.repo_dir}")
        self.repo_dir.parent.mkdir(parents=True, exist_ok=True)
        self._run(
            ["clone", "--quiet", self.repo_url, str(self.repo_dir)],
            operation="clone",
            in_repo=False,
        )
        return True

    def fetch(self) -> None:
        """Fetch the tracked branch from the remote."""
        self._run(["fetch", "--quiet", self.remote, self.branch], operation="fetch")

    def reset_to_remote(self) -> None:
        """Hard-reset the working tree to the remote branch tip."""
        logger.debug(f"Resetting working tree to {self.remote_ref}")
        self._run(["reset", "--hard", "-q", self.remote_ref], operation="reset")

    def local_commit(self) -> str:
        """Commit id of HEAD."""
        return self._run(["rev-parse", "HEAD"], operation="rev-parse").strip()

    def remote_commit(self) -> str:
        """Commit id of the remote tracking ref."""
        return self._run(["rev-parse", self.remote_ref], operation="rev-parse").strip()

    def latest_commit_message(self) -> str:
        """Full message of the commit at HEAD."""
        return self._run(["log", "-1", "--pretty=%B"], operation="log").strip()

    def synchronize(self, force_sync: bool = False) -> RepositoryState:
        """Clone if needed, fetch, and read local and remote commits.

        Args:
            force_sync: Reset the working tree to the remote tip before the
                commits are read

        Returns:
            RepositoryState with HEAD and remote commit ids

        Raises:
            GitCommandError: If any git command fails
        """
        self.ensure_clone()

        if force_sync:
            logger.info("--force-sync requested, resetting to remote before sync")
            self.fetch()
            self.reset_to_remote()

        self.fetch()
        state = RepositoryState(
            local_commit=self.local_commit(),
            remote_commit=self.remote_commit(),
        )
        logger.debug(
            f"Local {state.local_commit[:7]}, remote {state.remote_commit[:7]}"
        )
        return state

    def _run(
        self,
        args: list[str],
        operation: str,
        in_repo: bool = True,
    ) -> str:
        command = [self.git_binary, *args]
        result = subprocess.run(  # noqa: S603  # nosec B603
            command,
            cwd=str(self.repo_dir) if in_repo else None,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise GitCommandError(
                operation=operation,
                command=command,
                exit_code=result.returncode,
                stderr=result.stderr.strip(),
            )
        return result.stdout
