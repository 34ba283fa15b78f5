"""CLI command that sends a sample notification."""

from __future__ import annotations

import click

from composewatch.cli.commands.run import handle_deployment_errors
from composewatch.config.loader import ConfigLoader
from composewatch.lib.logging_config import setup_logging
from composewatch.models.deployment import SAFE_UPDATE, DeploymentOutcome
from composewatch.notify.reporter import DiscordReporter

SAMPLE_COMMIT = "2d95998b028770216187947dde4583969037fcf6"
SAMPLE_MESSAGE = """This is a test commit message.
It has multiple lines.
- Bullet 1
- Bullet 2
End of message."""


@click.command(name="test-notify")
@click.option(
    "--config-file",
    "config_file",
    type=click.Path(dir_okay=False),
    required=True,
    help="Project configuration file (.yaml or KEY=VALUE env file)",
)
def test_notify(config_file: str) -> None:
    """Send a sample deployment notification to the configured webhook."""
    setup_logging()

    with handle_deployment_errors():
        config = ConfigLoader().load_project_config(config_file)
        reporter = DiscordReporter(config.discord_webhook_url)
        reporter.report_outcome(
            DeploymentOutcome(
                project_name=config.project_name,
                action=SAFE_UPDATE,
                commit=SAMPLE_COMMIT,
                commit_message=SAMPLE_MESSAGE,
            )
        )
        click.secho("Discord test message sent.", fg="green")
