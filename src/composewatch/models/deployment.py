"""Value types shared by the deployment decision engine.

Everything here is immutable and lives for a single run. The only state that
survives between runs is kept in marker files by
:mod:`composewatch.deploy.state`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

# Compose service names; a leading "-" would be read as a CLI option
SERVICE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass(frozen=True)
class RepositoryState:
    """Local and remote commit identifiers, read before any reset.

    Attributes:
        local_commit: Commit checked out in the working tree (HEAD)
        remote_commit: Tip of the tracked remote branch after fetch
    """

    local_commit: str
    remote_commit: str

    @property
    def changed(self) -> bool:
        """True when the remote branch moved away from the checkout."""
        return self.local_commit != self.remote_commit


@dataclass(frozen=True)
class StackSnapshot:
    """Canonical rendering of the resolved compose stack.

    Two snapshots are equal when their hashes match.
    """

    content: str
    content_hash: str


@dataclass(frozen=True)
class CommitDirectives:
    """Deployment directives embedded in the latest commit message.

    Several markers may be present at once; the classifier decides which one
    wins.
    """

    skip: bool = False
    force_full_restart: bool = False
    force_update: bool = False
    restart_target: str | None = None

    @property
    def any(self) -> bool:
        """True when at least one directive is set."""
        return (
            self.skip
            or self.force_full_restart
            or self.force_update
            or self.restart_target is not None
        )


class ActionKind(str, Enum):
    """Closed set of deployment actions a run can produce."""

    NO_ACTION = "no_action"
    FORCED_UP = "forced_up"
    FLOATING_REFRESH = "floating_refresh"
    SKIP = "skip"
    FULL_RESTART = "full_restart"
    RESTART_SERVICE = "restart_service"
    FORCED_FULL_RESTART = "forced_full_restart"
    FORCED_UPDATE = "forced_update"
    SAFE_UPDATE = "safe_update"
    SAFE_UP = "safe_up"


# Actions driven by a commit or a config change; their reports carry the commit
_COMMIT_DETAIL_KINDS = frozenset(
    {
        ActionKind.FULL_RESTART,
        ActionKind.SAFE_UPDATE,
        ActionKind.FORCED_FULL_RESTART,
        ActionKind.FORCED_UPDATE,
        ActionKind.RESTART_SERVICE,
    }
)

# Actions after which the rendered config becomes the new baseline
_PERSISTING_KINDS = _COMMIT_DETAIL_KINDS | {ActionKind.SAFE_UP}


@dataclass(frozen=True)
class DeploymentAction:
    """The single action chosen for a run.

    Attributes:
        kind: Which action to take
        service: Target service, only for ``RESTART_SERVICE``
    """

    kind: ActionKind
    service: str | None = None

    def __post_init__(self) -> None:
        """Enforce that only service restarts carry a service name."""
        if self.kind is ActionKind.RESTART_SERVICE and not self.service:
            raise ValueError("RESTART_SERVICE requires a service name")
        if self.service is not None and not SERVICE_NAME_PATTERN.fullmatch(
            self.service
        ):
            raise ValueError(f"Invalid service name: {self.service!r}")
        if self.kind is not ActionKind.RESTART_SERVICE and self.service is not None:
            raise ValueError(f"{self.kind.value} does not take a service name")

    @classmethod
    def restart(cls, service: str) -> DeploymentAction:
        """Build a single-service restart action."""
        return cls(ActionKind.RESTART_SERVICE, service)

    @property
    def label(self) -> str:
        """Human-readable description used in reports."""
        if self.kind is ActionKind.RESTART_SERVICE:
            return (
                f"Restarted service `{self.service}` "
                f"[compose:restart:{self.service}]"
            )
        return _LABELS[self.kind]

    @property
    def includes_commit_details(self) -> bool:
        """Whether the report should include the commit id and message."""
        return self.kind in _COMMIT_DETAIL_KINDS

    @property
    def persists_snapshot(self) -> bool:
        """Whether a successful run stores the rendered config as baseline."""
        return self.kind in _PERSISTING_KINDS


_LABELS: dict[ActionKind, str] = {
    ActionKind.NO_ACTION: "No Git changes detected",
    ActionKind.FORCED_UP: "Forced up via --force-up flag",
    ActionKind.FLOATING_REFRESH: "Floating tag image(s) refreshed",
    ActionKind.SKIP: "Deployment skipped [compose:noop]",
    ActionKind.FULL_RESTART: (
        "Compose file changed - removal detected, full restart triggered"
    ),
    ActionKind.FORCED_FULL_RESTART: "Forced full restart [compose:down]",
    ActionKind.FORCED_UPDATE: "Forced update [compose:up]",
    ActionKind.SAFE_UPDATE: "Compose file changed - safe update",
    ActionKind.SAFE_UP: "No Compose file changes - safe up",
}

NO_ACTION = DeploymentAction(ActionKind.NO_ACTION)
FORCED_UP = DeploymentAction(ActionKind.FORCED_UP)
FLOATING_REFRESH = DeploymentAction(ActionKind.FLOATING_REFRESH)
SKIP = DeploymentAction(ActionKind.SKIP)
FULL_RESTART = DeploymentAction(ActionKind.FULL_RESTART)
FORCED_FULL_RESTART = DeploymentAction(ActionKind.FORCED_FULL_RESTART)
FORCED_UPDATE = DeploymentAction(ActionKind.FORCED_UPDATE)
SAFE_UPDATE = DeploymentAction(ActionKind.SAFE_UPDATE)
SAFE_UP = DeploymentAction(ActionKind.SAFE_UP)


@dataclass(frozen=True)
class FloatingUpdate:
    """A service whose floating tag now resolves to a different image."""

    service: str
    image: str
    running_image_id: str
    latest_image_id: str


@dataclass
class DeploymentOutcome:
    """Result of a run, handed to the reporter.

    Attributes:
        project_name: Compose project name
        action: Action that was executed
        commit: Remote commit the run deployed, when known
        commit_message: Message of that commit, when read
        updated_services: Services refreshed by a floating tag check
    """

    project_name: str
    action: DeploymentAction
    commit: str | None = None
    commit_message: str | None = None
    updated_services: list[FloatingUpdate] = field(default_factory=list)

    @property
    def label(self) -> str:
        """Shortcut for the action label."""
        return self.action.label
