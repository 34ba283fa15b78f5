"""Pydantic model for a watched compose project.

The model mirrors the keys of a project config file. Paths for the on-disk
markers that carry state between runs are derived from ``project_dir``.
"""

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_FLOATING_TAGS = ["latest", "develop", "edge", "nightly"]

# docker compose project names: lowercase alphanumerics, dashes, underscores
PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")
TAG_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


class ProjectConfig(BaseModel):
    """Configuration for a single watched project.

    Attributes:
        project_name: Compose project name used for every runtime call
        project_dir: Directory holding the clone and the state markers
        repo_url: Git URL cloned into ``project_dir/repo``
        branch: Branch tracked on the remote
        remote: Remote name used for fetch and reset
        compose_files: Optional compose files passed with ``-f``
        discord_webhook_url: Webhook receiving deployment notifications
        floating_image_pull_interval_minutes: Minimum minutes between
            floating tag checks; 0 disables them
        floating_tags: Mutable tags treated as floating
        log_level: Default log level when the CLI does not override it
    """

    model_config = ConfigDict(extra="forbid")

    project_name: str = Field(..., description="Compose project name")
    project_dir: Path = Field(..., description="Working directory for the project")
    repo_url: str = Field(..., description="Repository URL")
    branch: str = Field(default="main", description="Tracked branch")
    remote: str = Field(default="origin", description="Git remote name")
    compose_files: list[str] = Field(
        default_factory=list, description="Compose files relative to the repo"
    )
    discord_webhook_url: str = Field(..., description="Discord webhook URL")
    floating_image_pull_interval_minutes: int = Field(
        default=60, ge=0, description="Minutes between floating tag checks"
    )
    floating_tags: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FLOATING_TAGS),
        description="Tags considered floating",
    )
    log_level: str = Field(default="INFO", description="Default log level")

    @field_validator("project_name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """Validate the compose project name."""
        if not PROJECT_NAME_PATTERN.match(v):
            raise ValueError(
                f"Invalid project name: {v}. Must contain only lowercase "
                "letters, numbers, '-' and '_', starting with a letter or number"
            )
        return v

    @field_validator("repo_url", "discord_webhook_url", "branch", "remote")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty strings for required text settings."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("floating_tags")
    @classmethod
    def validate_floating_tags(cls, v: list[str]) -> list[str]:
        """Validate floating tag names."""
        for tag in v:
            if not TAG_PATTERN.match(tag):
                raise ValueError(f"Invalid image tag: {tag!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARN", "WARNING", "ERROR"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def repo_dir(self) -> Path:
        """Local clone location."""
        return self.project_dir / "repo"

    @property
    def hash_file(self) -> Path:
        """Marker holding the last deployed config hash."""
        return self.project_dir / ".compose_hash"

    @property
    def snapshot_file(self) -> Path:
        """Marker holding the last deployed rendered config."""
        return self.project_dir / ".last_compose.yaml"

    @property
    def floating_pull_file(self) -> Path:
        """Marker holding the Unix time of the last floating tag check."""
        return self.project_dir / ".last_floating_pull"

    @property
    def lock_file(self) -> Path:
        """Advisory lock serializing runs for this project."""
        return self.project_dir / ".composewatch.lock"

    @property
    def remote_ref(self) -> str:
        """Remote tracking ref, e.g. ``origin/main``."""
        return f"{self.remote}/{self.branch}"
