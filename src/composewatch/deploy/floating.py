"""Periodic refresh of images that use floating tags.

Images tagged ``latest``, ``develop`` and similar can change upstream without
any commit to the watched repository. The scheduler checks them at most once
per configured interval and recreates the stack only when a service's
running image differs from the freshly pulled one.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable

import yaml

from composewatch.deploy.compose import ComposeRuntime
from composewatch.deploy.state import StateStore
from composewatch.lib.errors import DeploymentError
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import FloatingUpdate
from composewatch.models.project import DEFAULT_FLOATING_TAGS

logger = get_logger(__name__)

IMAGE_VALUE_PATTERN = re.compile(r"^\s*image:\s*(?P<ref>\S+)\s*$")


def floating_tag_pattern(tags: Iterable[str]) -> re.Pattern[str]:
    """Build a pattern matching image references that end in a floating tag."""
    alternatives = "|".join(re.escape(tag) for tag in tags)
    return re.compile(rf":(?:{alternatives})$")


def find_floating_images(
    content: str, tags: Iterable[str] = DEFAULT_FLOATING_TAGS
) -> list[str]:
    """Return image references in rendered config that use a floating tag."""
    pattern = floating_tag_pattern(tags)
    images: list[str] = []
    for line in content.splitlines():
        match = IMAGE_VALUE_PATTERN.match(line)
        if not match:
            continue
        ref = match.group("ref").strip("'\"")
        if pattern.search(ref):
            images.append(ref)
    return images


def floating_services(
    content: str, tags: Iterable[str] = DEFAULT_FLOATING_TAGS
) -> dict[str, str]:
    """Map service name to image for services whose image tag is floating.

    Raises:
        DeploymentError: If the rendered config is not valid YAML
    """
    try:
        document = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise DeploymentError(
            operation="floating",
            message=f"Rendered compose config is not valid YAML: {e}",
        ) from e

    services = document.get("services") if isinstance(document, dict) else None
    if not isinstance(services, dict):
        return {}

    pattern = floating_tag_pattern(tags)
    result: dict[str, str] = {}
    for name, definition in services.items():
        if not isinstance(definition, dict):
            continue
        image = definition.get("image")
        if isinstance(image, str) and pattern.search(image):
            result[str(name)] = image
    return result


class FloatingTagScheduler:
    """Decides when floating tag images are due and refreshes them.

    Attributes:
        interval_minutes: Minimum minutes between checks; 0 disables checks
        tags: Tags treated as floating
    """

    def __init__(
        self,
        runtime: ComposeRuntime,
        store: StateStore,
        interval_minutes: int,
        tags: Iterable[str] = DEFAULT_FLOATING_TAGS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.runtime = runtime
        self.store = store
        self.interval_minutes = interval_minutes
        self.tags = list(tags)
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def is_refresh_due(self, content: str, now: int | None = None) -> bool:
        """Check whether a floating tag refresh should run.

        Args:
            content: Rendered compose config
            now: Current Unix time (defaults to the scheduler clock)
        """
        if self.interval_minutes <= 0:
            return False
        if not find_floating_images(content, self.tags):
            return False

        current = self.now() if now is None else now
        last_pull = self.store.load_last_floating_pull()
        elapsed = current - last_pull
        due = elapsed >= self.interval_minutes * 60
        logger.debug(
            f"Floating tags present, {elapsed}s since last check "
            f"(interval {self.interval_minutes}m, due={due})"
        )
        return due

    def refresh(self, content: str, now: int | None = None) -> list[FloatingUpdate]:
        """Pull images and recreate the stack if a floating image moved.

        The check timestamp is recorded after the check completes whether or
        not any service changed; it tracks how often we look, not how often
        images change.

        Returns:
            Services whose running image differs from the pulled image
        """
        logger.info(
            "Floating tag image detected and interval elapsed. "
            "Checking for updated images..."
        )
        self.runtime.pull()

        updates: list[FloatingUpdate] = []
        for service, image in floating_services(content, self.tags).items():
            update = self._check_service(service, image)
            if update is not None:
                updates.append(update)

        if updates:
            names = ", ".join(update.service for update in updates)
            logger.info(f"Floating images changed for: {names}")
            self.runtime.up()
        else:
            logger.info("Floating images are up to date")

        self.store.save_last_floating_pull(self.now() if now is None else now)
        return updates

    def _check_service(self, service: str, image: str) -> FloatingUpdate | None:
        container_ids = self.runtime.list_running_container_ids(service)
        if not container_ids:
            logger.debug(f"No running container for {service}, skipping")
            return None

        running_id = self.runtime.inspect_running_image_id(container_ids[0])
        local_ids = self.runtime.list_local_image_ids(image)
        latest_id = local_ids[0] if local_ids else None

        if not running_id or not latest_id or running_id == latest_id:
            return None
        return FloatingUpdate(
            service=service,
            image=image,
            running_image_id=running_id,
            latest_image_id=latest_id,
        )
