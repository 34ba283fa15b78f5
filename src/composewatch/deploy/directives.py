"""Deployment directives embedded in commit messages.

Recognized markers::

    [compose:noop]            skip this deploy
    [compose:down]            full teardown and recreate
    [compose:up]              recreate with rebuild, no teardown
    [compose:restart:<name>]  recreate only service <name>
"""

import re

from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import SERVICE_NAME_PATTERN, CommitDirectives

logger = get_logger(__name__)

SKIP_MARKER = "[compose:noop]"
FULL_RESTART_MARKER = "[compose:down]"
FORCE_UPDATE_MARKER = "[compose:up]"
RESTART_PATTERN = re.compile(r"\[compose:restart:(.+?)\]")


def parse_commit_directives(message: str | None) -> CommitDirectives:
    """Extract directives from a commit message.

    Only the first restart marker is honored when several are present. A
    restart marker whose name is not a valid compose service name is ignored.

    Example:
        >>> parse_commit_directives("fix api [compose:restart:api]").restart_target
        'api'
    """
    if not message:
        return CommitDirectives()

    restart_match = RESTART_PATTERN.search(message)
    restart_target = restart_match.group(1).strip() if restart_match else None
    if restart_target and not SERVICE_NAME_PATTERN.fullmatch(restart_target):
        logger.warning(
            f"Ignoring restart directive for invalid service name {restart_target!r}"
        )
        restart_target = None

    return CommitDirectives(
        skip=SKIP_MARKER in message,
        force_full_restart=FULL_RESTART_MARKER in message,
        force_update=FORCE_UPDATE_MARKER in message,
        restart_target=restart_target or None,
    )
