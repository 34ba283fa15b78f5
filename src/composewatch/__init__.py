"""composewatch - keep a Docker Compose stack in step with its git repository.

Each run syncs a clone of the project repository, compares the rendered
compose config and commit directives with the last deployment, and applies
exactly one action: nothing, a service restart, an in-place update or a full
teardown and recreate.
"""

from composewatch.lib.errors import ComposeWatchError, ConfigError, DeploymentError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ComposeWatchError",
    "ConfigError",
    "DeploymentError",
]
