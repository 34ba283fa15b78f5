"""Maps a deployment action to an ordered list of compose operations."""

from __future__ import annotations

from dataclasses import dataclass, field

from composewatch.deploy.compose import ComposeRuntime
from composewatch.deploy.floating import FloatingTagScheduler
from composewatch.deploy.snapshot import StackSnapshotter
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import ActionKind, DeploymentAction, FloatingUpdate

logger = get_logger(__name__)


@dataclass(frozen=True)
class ComposeStep:
    """One compose invocation in an execution plan.

    Attributes:
        operation: "down", "pull" or "up"
        build: Rebuild images during ``up``
        service: Limit ``up`` to one service
    """

    operation: str
    build: bool = False
    service: str | None = None

    def describe(self) -> str:
        """Render the step as the equivalent compose command line."""
        if self.operation == "down":
            return "down --remove-orphans"
        if self.operation == "pull":
            return "pull"
        parts = ["up", "-d"]
        if self.build:
            parts.append("--build")
        if self.service:
            parts.append(self.service)
        return " ".join(parts)


DOWN = ComposeStep("down")
PULL = ComposeStep("pull")
UP = ComposeStep("up")
UP_BUILD = ComposeStep("up", build=True)


def plan(action: DeploymentAction, image_changed: bool) -> list[ComposeStep]:
    """Return the compose steps for an action.

    Args:
        action: Action chosen by the classifier
        image_changed: The config changed and declares images, so a pull is
            needed before recreating

    Returns:
        Ordered steps; empty for actions that touch nothing. Floating tag
        refreshes are planned by the scheduler and also return no steps here.
    """
    pull = [PULL] if image_changed else []
    kind = action.kind

    if kind in (ActionKind.FORCED_UP, ActionKind.SAFE_UP):
        return [UP]
    if kind in (ActionKind.FULL_RESTART, ActionKind.FORCED_FULL_RESTART):
        return [DOWN, *pull, UP_BUILD]
    if kind in (ActionKind.SAFE_UPDATE, ActionKind.FORCED_UPDATE):
        return [*pull, UP_BUILD]
    if kind is ActionKind.RESTART_SERVICE:
        return [ComposeStep("up", build=True, service=action.service)]
    return []


@dataclass
class ExecutionResult:
    """What an executed action did.

    Attributes:
        action: The executed action
        steps: Compose steps that ran, in order
        updated_services: Services refreshed by a floating tag check
    """

    action: DeploymentAction
    steps: list[ComposeStep] = field(default_factory=list)
    updated_services: list[FloatingUpdate] = field(default_factory=list)


class ActionExecutor:
    """Runs the compose steps for an action and records the new baseline.

    State is written only after every step succeeded. A failing step raises
    and leaves the stored snapshot, hash and floating timestamp untouched.
    """

    def __init__(
        self,
        runtime: ComposeRuntime,
        snapshotter: StackSnapshotter,
        scheduler: FloatingTagScheduler,
    ) -> None:
        self.runtime = runtime
        self.snapshotter = snapshotter
        self.scheduler = scheduler

    def execute(self, action: DeploymentAction) -> ExecutionResult:
        """Execute an action.

        Raises:
            ComposeCommandError: If a compose step fails
        """
        if action.kind is ActionKind.FLOATING_REFRESH:
            updates = self.scheduler.refresh(self.snapshotter.current_content)
            return ExecutionResult(action=action, updated_services=updates)

        image_changed = (
            self.snapshotter.current is not None
            and self.snapshotter.has_image_directive_changed()
        )
        steps = plan(action, image_changed)
        for step in steps:
            self._run_step(step)

        if action.persists_snapshot:
            self.snapshotter.persist()

        return ExecutionResult(action=action, steps=steps)

    def _run_step(self, step: ComposeStep) -> None:
        logger.debug(f"Executing compose step: {step.describe()}")
        if step.operation == "down":
            self.runtime.down(remove_orphans=True)
        elif step.operation == "pull":
            self.runtime.pull()
        elif step.operation == "up":
            self.runtime.up(build=step.build, service=step.service)
        else:
            raise ValueError(f"Unknown compose step: {step.operation}")
