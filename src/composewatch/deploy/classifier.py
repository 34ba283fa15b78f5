"""Deployment decision table.

Rules are evaluated in order and the first one that yields an action wins.
Operator overrides come before automatic detection, and destructive actions
come before additive ones:

    1. --force-up flag                       -> FORCED_UP
    2. nothing changed, containers running   -> NO_ACTION
    3. floating tag refresh due              -> FLOATING_REFRESH
    4. [compose:noop]                        -> SKIP
    5. [compose:down]                        -> FORCED_FULL_RESTART
    6. [compose:restart:<name>]              -> RESTART_SERVICE(name)
    7. [compose:up]                          -> FORCED_UPDATE
    8. config hash changed                   -> FULL_RESTART if a block was
                                                removed, else SAFE_UPDATE
    9. anything else                         -> SAFE_UP

Rules 1-3 only need the state known before the working tree is reset; rules
4-9 need the commit message and the rendered config of the new tip. The
pipeline evaluates them as two stages, :func:`classify_preflight` and
:func:`classify_change`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from composewatch.models.deployment import (
    FLOATING_REFRESH,
    FORCED_FULL_RESTART,
    FORCED_UP,
    FORCED_UPDATE,
    FULL_RESTART,
    NO_ACTION,
    SAFE_UP,
    SAFE_UPDATE,
    SKIP,
    CommitDirectives,
    DeploymentAction,
    RepositoryState,
)


@dataclass(frozen=True)
class ClassifierSignals:
    """Everything the decision table looks at for one run.

    Attributes:
        repository: Local and remote commits, read before any reset
        has_previous_snapshot: A baseline hash was stored by an earlier run
        floating_refresh_due: The floating tag scheduler says a check is due
        containers_running: The project has at least one running container
        force_up: Operator passed --force-up
        directives: Directives parsed from the latest commit message
        hash_changed: Rendered config hash differs from the baseline
        structural_removal: A service, volume or network block was removed
    """

    repository: RepositoryState
    has_previous_snapshot: bool
    floating_refresh_due: bool
    containers_running: bool
    force_up: bool = False
    directives: CommitDirectives = field(default_factory=CommitDirectives)
    hash_changed: bool = False
    structural_removal: bool = False

    @property
    def unchanged(self) -> bool:
        """No remote change, a baseline exists, and no floating check is due."""
        return (
            not self.repository.changed
            and self.has_previous_snapshot
            and not self.floating_refresh_due
        )

    @property
    def first_deployment(self) -> bool:
        """Nothing changed but no container runs, so deploy as if new.

        This also fires when an operator stopped the stack by hand; the two
        cases cannot be told apart from these signals.
        """
        return self.unchanged and not self.containers_running


Rule = Callable[[ClassifierSignals], DeploymentAction | None]


def _forced_up(signals: ClassifierSignals) -> DeploymentAction | None:
    return FORCED_UP if signals.force_up else None


def _unchanged(signals: ClassifierSignals) -> DeploymentAction | None:
    if signals.unchanged and signals.containers_running:
        return NO_ACTION
    return None


def _floating_refresh(signals: ClassifierSignals) -> DeploymentAction | None:
    return FLOATING_REFRESH if signals.floating_refresh_due else None


def _skip(signals: ClassifierSignals) -> DeploymentAction | None:
    return SKIP if signals.directives.skip else None


def _forced_full_restart(signals: ClassifierSignals) -> DeploymentAction | None:
    return FORCED_FULL_RESTART if signals.directives.force_full_restart else None


def _restart_service(signals: ClassifierSignals) -> DeploymentAction | None:
    target = signals.directives.restart_target
    return DeploymentAction.restart(target) if target else None


def _forced_update(signals: ClassifierSignals) -> DeploymentAction | None:
    return FORCED_UPDATE if signals.directives.force_update else None


def _config_changed(signals: ClassifierSignals) -> DeploymentAction | None:
    if not signals.hash_changed:
        return None
    return FULL_RESTART if signals.structural_removal else SAFE_UPDATE


PREFLIGHT_RULES: tuple[Rule, ...] = (_forced_up, _unchanged, _floating_refresh)
CHANGE_RULES: tuple[Rule, ...] = (
    _skip,
    _forced_full_restart,
    _restart_service,
    _forced_update,
    _config_changed,
)


def _first_match(
    rules: tuple[Rule, ...], signals: ClassifierSignals
) -> DeploymentAction | None:
    for rule in rules:
        action = rule(signals)
        if action is not None:
            return action
    return None


def classify_preflight(signals: ClassifierSignals) -> DeploymentAction | None:
    """Apply rules 1-3. None means the run continues to the change rules."""
    return _first_match(PREFLIGHT_RULES, signals)


def classify_change(signals: ClassifierSignals) -> DeploymentAction:
    """Apply rules 4-9 for a run with a remote change or a first deploy."""
    return _first_match(CHANGE_RULES, signals) or SAFE_UP


def classify(signals: ClassifierSignals) -> DeploymentAction:
    """Apply the whole decision table."""
    return classify_preflight(signals) or classify_change(signals)
