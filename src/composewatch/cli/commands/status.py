"""CLI command that shows the persisted deployment markers."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from composewatch.cli.commands.run import handle_deployment_errors
from composewatch.config.loader import ConfigLoader
from composewatch.deploy.state import StateStore


@click.command(name="status")
@click.option(
    "--config-file",
    "config_file",
    type=click.Path(dir_okay=False),
    required=True,
    help="Project configuration file (.yaml or KEY=VALUE env file)",
)
def status(config_file: str) -> None:
    """Show the last deployed config hash and floating tag check time."""
    with handle_deployment_errors():
        config = ConfigLoader().load_project_config(config_file)
        store = StateStore.from_config(config)

        last_hash = store.load_hash()
        has_snapshot = store.load_snapshot() is not None
        last_pull = store.load_last_floating_pull()
        interval = config.floating_image_pull_interval_minutes

        click.echo()
        click.secho(f"Project: {config.project_name}", bold=True)
        click.echo(f"  Directory:       {config.project_dir}")
        click.echo(f"  Tracking:        {config.repo_url} ({config.remote_ref})")
        click.echo(f"  Config hash:     {last_hash or '(never deployed)'}")
        click.echo(f"  Snapshot stored: {'yes' if has_snapshot else 'no'}")
        if interval == 0:
            click.echo("  Floating tags:   checks disabled")
        elif last_pull:
            checked = datetime.fromtimestamp(last_pull, tz=timezone.utc)
            click.echo(f"  Floating tags:   last checked {checked.isoformat()}")
            click.echo(f"                   every {interval} minutes")
        else:
            click.echo("  Floating tags:   never checked")
        click.echo()
