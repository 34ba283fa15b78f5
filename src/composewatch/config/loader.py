"""Configuration loader for composewatch projects.

Project configuration may be written either as YAML or as a shell-style
``KEY=VALUE`` env file::

    # project1.env
    PROJECT_NAME=project1
    PROJECT_DIR=/opt/composewatch/projects/project1
    REPO_URL=git@github.com:org/project1.git
    FLOATING_IMAGE_PULL_INTERVAL_MINUTES=30

Both forms resolve ``${VAR}`` references against the process environment.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError as PydanticValidationError

from composewatch.config.env_loader import get_env_var, substitute_env_vars
from composewatch.config.validator import flatten_pydantic_errors
from composewatch.lib.errors import ConfigError
from composewatch.models.project import ProjectConfig

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")

# Fields that may be supplied by the environment when the file omits them
ENV_FALLBACKS = {
    "discord_webhook_url": "DISCORD_WEBHOOK_URL",
    "log_level": "COMPOSEWATCH_LOG_LEVEL",
}

# Env-file values that hold lists are comma or whitespace separated
LIST_FIELDS = ("compose_files", "floating_tags")


def _split_list(value: str) -> list[str]:
    return [item for item in value.replace(",", " ").split() if item]


class ConfigLoader:
    """Loads and validates project configuration files.

    This class handles:
    - Parsing YAML files with environment variable substitution
    - Parsing ``KEY=VALUE`` env files with python-dotenv
    - Applying environment fallbacks for secrets such as the webhook URL
    - Converting validation errors into human-readable messages
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the loader.

        Args:
            env: Environment mapping used for substitution and fallbacks
                (defaults to ``os.environ``)
        """
        self._env = os.environ if env is None else env

    def load_project_config(self, file_path: str | Path) -> ProjectConfig:
        """Load and validate a project configuration file.

        Args:
            file_path: Path to a ``.yaml``/``.yml`` or env-style file

        Returns:
            Validated ProjectConfig

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        path = Path(file_path)
        if not path.is_file():
            raise ConfigError(
                "config_file",
                f"Configuration file not found at {path}. "
                "Please ensure the file exists at this path.",
            )

        if path.suffix.lower() in YAML_SUFFIXES:
            raw = self.parse_yaml(path)
        else:
            raw = self.parse_env_file(path)

        self._apply_env_fallbacks(raw)

        try:
            return ProjectConfig(**raw)
        except PydanticValidationError as e:
            error_text = "\n".join(flatten_pydantic_errors(e))
            raise ConfigError(
                "project_validation",
                f"Invalid project configuration in {path}:\n{error_text}",
            ) from e

    def parse_yaml(self, path: Path) -> dict[str, Any]:
        """Parse a YAML config file after substituting ``${VAR}`` references.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                "config_file", f"Failed to read configuration file {path}: {e}"
            ) from e

        substituted = substitute_env_vars(raw_text, self._env)
        try:
            content = yaml.safe_load(substituted)
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {path}: {str(e)}",
            ) from e

        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(
                "yaml_parse",
                f"Expected a mapping at the top level of {path}",
            )
        return content

    def parse_env_file(self, path: Path) -> dict[str, Any]:
        """Parse a ``KEY=VALUE`` config file into field values.

        Keys are matched case-insensitively against ProjectConfig fields.
        Unrelated keys are ignored, since env files are often shared with
        other tooling.
        """
        values = dotenv_values(path)
        known = set(ProjectConfig.model_fields)
        raw: dict[str, Any] = {}

        for key, value in values.items():
            field_name = key.lower()
            if field_name not in known:
                logger.debug(f"Ignoring unknown key '{key}' in {path}")
                continue
            if value is None or value == "":
                continue
            if field_name in LIST_FIELDS:
                raw[field_name] = _split_list(value)
            else:
                raw[field_name] = value

        return raw

    def _apply_env_fallbacks(self, raw: dict[str, Any]) -> None:
        for field_name, env_name in ENV_FALLBACKS.items():
            if raw.get(field_name):
                continue
            env_value = get_env_var(env_name, self._env)
            if env_value is not None:
                raw[field_name] = env_value
