"""Docker Compose runtime wrapper.

Stack-level operations (config, ps, pull, up, down) go through the
``docker compose`` CLI, which owns project semantics. Image identity lookups
go through the Docker SDK.
"""

from __future__ import annotations

import subprocess  # nosec B404
from pathlib import Path
from typing import TYPE_CHECKING

import docker
from docker.errors import APIError, DockerException, NotFound

from composewatch.lib.errors import ComposeCommandError, DependencyNotAvailableError
from composewatch.lib.logging_config import get_logger

if TYPE_CHECKING:
    from docker import DockerClient

logger = get_logger(__name__)


class ComposeRuntime:
    """Runs compose commands for one project from its working tree.

    Example:
        >>> runtime = ComposeRuntime("shop", Path("/opt/shop/repo"))
        >>> runtime.up(build=True)
    """

    def __init__(
        self,
        project_name: str,
        working_dir: Path,
        compose_files: list[str] | None = None,
        docker_binary: str = "docker",
        client: DockerClient | None = None,
    ) -> None:
        """Initialize the runtime.

        Args:
            project_name: Compose project name passed to every command
            working_dir: Directory the compose commands run in
            compose_files: Optional ``-f`` files relative to working_dir
            docker_binary: Docker CLI executable
            client: Docker SDK client; created from the environment on first
                use when omitted
        """
        self.project_name = project_name
        self.working_dir = working_dir
        self.compose_files = compose_files or []
        self.docker_binary = docker_binary
        self._client = client

    @property
    def client(self) -> DockerClient:
        """Docker SDK client, connected lazily.

        Raises:
            DependencyNotAvailableError: If the Docker daemon is unreachable
        """
        if self._client is None:
            try:
                self._client = docker.from_env()  # type: ignore[attr-defined]
            except DockerException as e:
                raise DependencyNotAvailableError(
                    "docker", f"Docker daemon is not available: {e}"
                ) from e
        return self._client

    def base_command(self) -> list[str]:
        command = [self.docker_binary, "compose", "--project-name", self.project_name]
        for compose_file in self.compose_files:
            command.extend(["-f", compose_file])
        return command

    def render_config(self) -> str:
        """Render the fully resolved compose configuration."""
        return self._run(["config"], operation="config")

    def list_running_container_ids(self, service: str | None = None) -> list[str]:
        """Return ids of the project's running containers.

        Args:
            service: Limit the listing to one service
        """
        args = ["ps", "--quiet"]
        if service:
            args.append(service)
        output = self._run(args, operation="ps")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def pull(self) -> None:
        """Pull images for every service."""
        logger.info("Pulling images")
        self._run(["pull"], operation="pull")

    def up(
        self,
        build: bool = False,
        service: str | None = None,
        detach: bool = True,
    ) -> None:
        """Create or recreate the stack, or a single service."""
        args = ["up"]
        if detach:
            args.append("-d")
        if build:
            args.append("--build")
        if service:
            args.append(service)
        logger.info(f"Running {' '.join(args)}")
        self._run(args, operation="up")

    def down(self, remove_orphans: bool = True) -> None:
        """Stop and remove the stack."""
        args = ["down"]
        if remove_orphans:
            args.append("--remove-orphans")
        logger.info(f"Running {' '.join(args)}")
        self._run(args, operation="down")

    def inspect_running_image_id(self, container_id: str) -> str | None:
        """Return the image id backing a container, or None if unresolvable."""
        try:
            container = self.client.containers.get(container_id)
        except (NotFound, APIError) as e:
            logger.debug(f"Could not inspect container {container_id}: {e}")
            return None
        image_id = container.attrs.get("Image")
        return image_id or None

    def list_local_image_ids(self, image_ref: str) -> list[str]:
        """Return ids of local images matching a reference, newest first."""
        try:
            images = self.client.images.list(name=image_ref)
        except APIError as e:
            logger.debug(f"Could not list images for {image_ref}: {e}")
            return []
        return [image.id for image in images if image.id]

    def _run(self, args: list[str], operation: str) -> str:
        command = self.base_command() + args
        result = subprocess.run(  # noqa: S603  # nosec B603
            command,
            cwd=str(self.working_dir),
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            raise ComposeCommandError(
                operation=operation,
                command=command,
                exit_code=result.returncode,
                stderr=result.stderr.strip(),
            )
        if result.stderr.strip():
            logger.debug(result.stderr.strip())
        return result.stdout
