"""Environment variable helpers for configuration files."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

from composewatch.lib.errors import ConfigError

# ${VAR_NAME} references; names follow shell conventions
ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(text: str, env: Mapping[str, str] | None = None) -> str:
    """Replace ``${VAR_NAME}`` references with environment values.

    Args:
        text: Raw configuration text
        env: Mapping to resolve names from (defaults to ``os.environ``)

    Returns:
        Text with every reference substituted

    Raises:
        ConfigError: If a referenced variable is not set
    """
    source = os.environ if env is None else env

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in source:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return source[name]

    return ENV_VAR_PATTERN.sub(_replace, text)


def get_env_var(name: str, env: Mapping[str, str] | None = None) -> str | None:
    """Return a non-empty environment value or None."""
    source = os.environ if env is None else env
    value = source.get(name)
    return value if value else None
