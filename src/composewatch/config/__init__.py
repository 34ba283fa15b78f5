"""Configuration loading and validation for composewatch projects.

Main components:
- ConfigLoader: Load and validate project config files (YAML or env files)
- Environment variable substitution (${VAR_NAME} pattern)
"""

from composewatch.config.env_loader import get_env_var, substitute_env_vars
from composewatch.config.loader import ConfigLoader

__all__ = [
    "ConfigLoader",
    "get_env_var",
    "substitute_env_vars",
]
