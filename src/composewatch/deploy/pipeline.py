"""A single deployment pass for one project.

The run is linear and synchronous:

1. sync the clone and read local/remote commits (before any reset)
2. render the current config and load the stored baseline
3. apply the preflight rules (force-up, nothing to do, floating refresh)
4. otherwise reset to the remote tip, re-render, parse the commit message
   and apply the change rules
5. execute the chosen action, store the new baseline, report the outcome

Failures propagate to the caller unchanged; nothing is stored for a run that
did not finish its compose calls.
"""

from __future__ import annotations

import dataclasses
import shutil
import time
from collections.abc import Callable, Iterable

from composewatch.deploy.classifier import (
    ClassifierSignals,
    classify_change,
    classify_preflight,
)
from composewatch.deploy.compose import ComposeRuntime
from composewatch.deploy.directives import parse_commit_directives
from composewatch.deploy.executor import ActionExecutor
from composewatch.deploy.floating import FloatingTagScheduler
from composewatch.deploy.repository import RepositorySynchronizer
from composewatch.deploy.snapshot import StackSnapshotter
from composewatch.deploy.state import StateStore
from composewatch.lib.errors import DependencyNotAvailableError
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import (
    ActionKind,
    DeploymentAction,
    DeploymentOutcome,
)
from composewatch.models.project import ProjectConfig
from composewatch.notify.reporter import Reporter

logger = get_logger(__name__)

REQUIRED_BINARIES = ("git", "docker")


def check_dependencies(binaries: Iterable[str] = REQUIRED_BINARIES) -> None:
    """Fail early when a required executable is missing.

    Raises:
        DependencyNotAvailableError: For the first missing executable
    """
    for binary in binaries:
        if shutil.which(binary) is None:
            raise DependencyNotAvailableError(binary)


class DeploymentRun:
    """Runs one pass of the watch-and-deploy loop for a project."""

    def __init__(
        self,
        config: ProjectConfig,
        synchronizer: RepositorySynchronizer,
        runtime: ComposeRuntime,
        store: StateStore,
        reporter: Reporter,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.synchronizer = synchronizer
        self.runtime = runtime
        self.store = store
        self.reporter = reporter
        self.snapshotter = StackSnapshotter(runtime, store)
        self.scheduler = FloatingTagScheduler(
            runtime,
            store,
            interval_minutes=config.floating_image_pull_interval_minutes,
            tags=config.floating_tags,
            clock=clock,
        )
        self.executor = ActionExecutor(runtime, self.snapshotter, self.scheduler)

    @classmethod
    def from_config(cls, config: ProjectConfig, reporter: Reporter) -> DeploymentRun:
        """Wire the real git and compose collaborators for a project."""
        synchronizer = RepositorySynchronizer(
            repo_url=config.repo_url,
            repo_dir=config.repo_dir,
            remote=config.remote,
            branch=config.branch,
        )
        runtime = ComposeRuntime(
            project_name=config.project_name,
            working_dir=config.repo_dir,
            compose_files=config.compose_files,
        )
        return cls(
            config=config,
            synchronizer=synchronizer,
            runtime=runtime,
            store=StateStore.from_config(config),
            reporter=reporter,
        )

    def execute(
        self, force_sync: bool = False, force_up: bool = False
    ) -> DeploymentOutcome:
        """Run the pass and report its outcome.

        Args:
            force_sync: Hard-reset to the remote before reading commits
            force_up: Bring the stack up without comparing anything

        Returns:
            The outcome that was reported

        Raises:
            ComposeWatchError: On any git, compose or state failure
        """
        logger.info("Starting sync...")
        repository = self.synchronizer.synchronize(force_sync=force_sync)
        snapshot = self.snapshotter.capture()
        floating_due = self.scheduler.is_refresh_due(snapshot.content)
        running = self.runtime.list_running_container_ids()

        signals = ClassifierSignals(
            repository=repository,
            has_previous_snapshot=self.snapshotter.has_previous,
            floating_refresh_due=floating_due,
            containers_running=bool(running),
            force_up=force_up,
        )

        action = classify_preflight(signals)
        if action is not None:
            return self._finish(action, commit=repository.remote_commit)

        if signals.first_deployment:
            logger.warning(
                f"No running containers for project ({self.config.project_name}) "
                "- performing initial deployment."
            )
        else:
            logger.info("Git changes detected or initial deploy. Pulling latest...")

        self.synchronizer.reset_to_remote()
        self.snapshotter.capture()
        commit_message = self.synchronizer.latest_commit_message()
        directives = parse_commit_directives(commit_message)
        if directives.any:
            logger.info(f"Commit directives: {directives}")

        hash_changed = self.snapshotter.hash_changed
        signals = dataclasses.replace(
            signals,
            directives=directives,
            hash_changed=hash_changed,
            structural_removal=(
                hash_changed and self.snapshotter.structural_removal_detected()
            ),
        )
        action = classify_change(signals)
        return self._finish(
            action,
            commit=repository.remote_commit,
            commit_message=commit_message,
        )

    def _finish(
        self,
        action: DeploymentAction,
        commit: str,
        commit_message: str | None = None,
    ) -> DeploymentOutcome:
        logger.info(f"Selected action: {action.label}")
        outcome = DeploymentOutcome(
            project_name=self.config.project_name,
            action=action,
            commit=commit,
            commit_message=commit_message,
        )
        if action.kind is not ActionKind.NO_ACTION:
            result = self.executor.execute(action)
            outcome.updated_services = result.updated_services
        self.reporter.report_outcome(outcome)
        return outcome
