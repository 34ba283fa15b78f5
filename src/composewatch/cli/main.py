"""Command line entry point for composewatch."""

import click

from composewatch import __version__
from composewatch.cli.commands.notify import test_notify
from composewatch.cli.commands.run import run
from composewatch.cli.commands.status import status


@click.group()
@click.version_option(version=__version__, prog_name="composewatch")
def main() -> None:
    """Watch a git repository and redeploy its Docker Compose stack.

    Each invocation syncs the repository, decides what the stack needs
    (nothing, a service restart, an update or a full restart), applies it
    and reports the result.
    """


main.add_command(run)
main.add_command(status)
main.add_command(test_notify)


if __name__ == "__main__":
    main()
