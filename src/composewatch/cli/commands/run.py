"""CLI command that performs one watch-and-deploy pass.

Meant to be invoked periodically (systemd timer, cron) for each project.
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass

import click

from composewatch.config.loader import ConfigLoader
from composewatch.deploy.pipeline import DeploymentRun, check_dependencies
from composewatch.deploy.state import RunLock
from composewatch.lib.errors import (
    ConfigError,
    DependencyNotAvailableError,
    DeploymentError,
    NotificationError,
    RunLockedError,
)
from composewatch.lib.logging_config import get_logger, setup_logging
from composewatch.notify.reporter import DiscordReporter, Reporter

logger = get_logger(__name__)

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARN", "WARNING", "ERROR"]


@dataclass
class ErrorContext:
    """What the error handler knows once the config has been loaded."""

    project_name: str = "composewatch"
    reporter: Reporter | None = None


def _report(context: ErrorContext, error: BaseException, exit_code: int) -> None:
    if context.reporter is None:
        return
    try:
        context.reporter.report_error(context.project_name, error, exit_code)
    except NotificationError as notify_error:
        logger.error(f"Could not deliver error notification: {notify_error}")


@contextmanager
def handle_deployment_errors() -> Generator[ErrorContext, None, None]:
    """Context manager for consistent error handling in CLI commands.

    Failures are logged, reported once through the reporter when one is
    available, and mapped to exit codes.

    Exit codes:
        0: Another run holds the project lock
        2: Configuration error or missing dependency
        3: Unexpected error, or a deployment error without its own status
        4: Notification delivery failed
        n: Exit status of the failing git or compose command
    """
    context = ErrorContext()
    try:
        yield context
    except RunLockedError as e:
        logger.warning(f"{e}; skipping this run")
        sys.exit(0)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except DependencyNotAvailableError as e:
        logger.error(f"Dependency error: {e}")
        click.secho(f"Error: {e.binary} is not available", fg="red", err=True)
        _report(context, e, 2)
        sys.exit(2)
    except NotificationError as e:
        logger.error(f"Notification error: {e}")
        click.secho("Error: notification failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(4)
    except DeploymentError as e:
        exit_code = e.exit_code if e.exit_code > 0 else 3
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        _report(context, e, exit_code)
        sys.exit(exit_code)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        _report(context, e, 3)
        sys.exit(3)


@click.command(name="run")
@click.option(
    "--config-file",
    "config_file",
    type=click.Path(dir_okay=False),
    required=True,
    help="Project configuration file (.yaml or KEY=VALUE env file)",
)
@click.option(
    "--force-sync",
    is_flag=True,
    help="Hard-reset the clone to the remote branch before any other action",
)
@click.option(
    "--force-up",
    is_flag=True,
    help="Run 'docker compose up -d' regardless of git changes",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
    default=None,
    help="Log level (defaults to the config file's log_level, then INFO)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
def run(
    config_file: str,
    force_sync: bool,
    force_up: bool,
    log_level: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Sync the repository and redeploy the compose stack if needed.

    Compares the remote branch, the rendered compose config and commit
    directives against the last deployment and applies exactly one action.

    Example:

        composewatch run --config-file /opt/composewatch/projects/shop.env

        composewatch run --config-file shop.yaml --force-sync --force-up
    """
    setup_logging(verbose=verbose, quiet=quiet, level=log_level)

    with handle_deployment_errors() as context:
        config = ConfigLoader().load_project_config(config_file)
        if log_level is None:
            setup_logging(verbose=verbose, quiet=quiet, level=config.log_level)

        context.project_name = config.project_name
        context.reporter = DiscordReporter(config.discord_webhook_url)

        check_dependencies()

        with RunLock(config.lock_file):
            deployment = DeploymentRun.from_config(config, context.reporter)
            outcome = deployment.execute(force_sync=force_sync, force_up=force_up)

        if not quiet:
            click.echo(outcome.label)
