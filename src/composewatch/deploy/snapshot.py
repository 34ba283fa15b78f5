"""Rendered compose config snapshots and change detection."""

from __future__ import annotations

import hashlib
import re
from difflib import SequenceMatcher

from composewatch.deploy.compose import ComposeRuntime
from composewatch.deploy.state import StateStore
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import StackSnapshot

logger = get_logger(__name__)

IMAGE_LINE_PATTERN = re.compile(r"^\s*image:", re.MULTILINE)

# A whole section header, or a bare block key (a named service, volume,
# network or nested block) indented by at least two spaces
REMOVAL_LINE_PATTERN = re.compile(
    r"^(?:\s*(?:services|volumes|networks):|\s{2,}[A-Za-z0-9_.-]+:)$"
)


def compute_content_hash(content: str) -> str:
    """Return the sha256 hex digest of rendered config text."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def removed_lines(previous: str, current: str) -> list[str]:
    """Return lines present in ``previous`` that the diff marks as removed."""
    old = previous.splitlines()
    new = current.splitlines()
    matcher = SequenceMatcher(a=old, b=new, autojunk=False)
    removed: list[str] = []
    for tag, i1, i2, _j1, _j2 in matcher.get_opcodes():
        if tag in ("delete", "replace"):
            removed.extend(old[i1:i2])
    return removed


def detect_structural_removal(previous: str | None, current: str) -> bool:
    """Check whether a named resource disappeared between two renderings.

    Edits inside a surviving resource (a new image tag, a changed port) are
    not removals. A missing previous rendering counts as a removal so the
    first observed deploy takes the full restart path.
    """
    if previous is None:
        return True
    for line in removed_lines(previous, current):
        if REMOVAL_LINE_PATTERN.match(line.rstrip()):
            logger.debug(f"Removed block detected: {line.strip()}")
            return True
    return False


def has_image_declarations(content: str) -> bool:
    """True when the rendered config declares at least one ``image:``."""
    return IMAGE_LINE_PATTERN.search(content) is not None


class StackSnapshotter:
    """Captures the current rendered config and compares it to the baseline.

    Call :meth:`capture` first; the comparison helpers refer to the most
    recent capture.
    """

    def __init__(self, runtime: ComposeRuntime, store: StateStore) -> None:
        self.runtime = runtime
        self.store = store
        self.current: StackSnapshot | None = None
        self.previous_hash: str | None = None
        self.previous_content: str | None = None

    def capture(self) -> StackSnapshot:
        """Render the config and load the stored baseline.

        Raises:
            ComposeCommandError: If the config cannot be rendered
        """
        content = self.runtime.render_config()
        self.current = StackSnapshot(
            content=content, content_hash=compute_content_hash(content)
        )
        self.previous_hash = self.store.load_hash()
        self.previous_content = self.store.load_snapshot()
        logger.debug(
            f"Config hash {self.current.content_hash[:12]} "
            f"(previous {self.previous_hash[:12] if self.previous_hash else 'none'})"
        )
        return self.current

    def _require_current(self) -> StackSnapshot:
        if self.current is None:
            raise RuntimeError("capture() must be called before comparing snapshots")
        return self.current

    @property
    def current_hash(self) -> str:
        return self._require_current().content_hash

    @property
    def current_content(self) -> str:
        return self._require_current().content

    @property
    def has_previous(self) -> bool:
        """True when a baseline hash was stored by an earlier run."""
        return self.previous_hash is not None

    @property
    def hash_changed(self) -> bool:
        return self.current_hash != self.previous_hash

    def has_image_directive_changed(self) -> bool:
        """True when the config changed and declares images.

        Used to decide whether a deploy should pull before recreating.
        """
        current = self._require_current()
        return self.hash_changed and has_image_declarations(current.content)

    def structural_removal_detected(self) -> bool:
        """True when a service, volume or network block was removed."""
        current = self._require_current()
        return detect_structural_removal(self.previous_content, current.content)

    def persist(self) -> None:
        """Store the current capture as the new baseline."""
        self.store.save_snapshot(self._require_current())
