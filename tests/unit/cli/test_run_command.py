"""Unit tests for the ``composewatch run`` command."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from composewatch.cli.main import main
from composewatch.deploy.state import RunLock
from composewatch.lib.errors import (
    ComposeCommandError,
    DependencyNotAvailableError,
    NotificationError,
)
from composewatch.models.deployment import SAFE_UPDATE, DeploymentOutcome

WEBHOOK = "https://discord.example.com/api/webhooks/1/abc"


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    return tmp_path / "shop"


@pytest.fixture
def config_file(tmp_path: Path, project_dir: Path) -> Path:
    path = tmp_path / "shop.env"
    path.write_text(
        "PROJECT_NAME=shop\n"
        f"PROJECT_DIR={project_dir}\n"
        "REPO_URL=git@github.com:acme/shop.git\n"
        f"DISCORD_WEBHOOK_URL={WEBHOOK}\n"
    )
    return path


@pytest.fixture
def mocks() -> Iterator[dict[str, MagicMock]]:
    with (
        patch("composewatch.cli.commands.run.check_dependencies") as check,
        patch("composewatch.cli.commands.run.DeploymentRun") as deployment_run,
        patch("composewatch.cli.commands.run.DiscordReporter") as reporter_cls,
    ):
        execute = deployment_run.from_config.return_value.execute
        execute.return_value = DeploymentOutcome(
            project_name="shop", action=SAFE_UPDATE
        )
        yield {
            "check": check,
            "deployment_run": deployment_run,
            "execute": execute,
            "reporter": reporter_cls.return_value,
            "reporter_cls": reporter_cls,
        }


class TestRunCommand:
    """Tests for the run command."""

    def test_successful_run(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        result = CliRunner().invoke(main, ["run", "--config-file", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Compose file changed - safe update" in result.output
        mocks["check"].assert_called_once_with()
        mocks["reporter_cls"].assert_called_once_with(WEBHOOK)
        config, reporter = mocks["deployment_run"].from_config.call_args.args
        assert config.project_name == "shop"
        assert reporter is mocks["reporter"]
        mocks["execute"].assert_called_once_with(force_sync=False, force_up=False)

    def test_flags_are_forwarded(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        result = CliRunner().invoke(
            main,
            ["run", "--config-file", str(config_file), "--force-sync", "--force-up"],
        )

        assert result.exit_code == 0, result.output
        mocks["execute"].assert_called_once_with(force_sync=True, force_up=True)

    def test_quiet_suppresses_summary(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        result = CliRunner().invoke(
            main, ["run", "--config-file", str(config_file), "--quiet"]
        )

        assert result.exit_code == 0
        assert "safe update" not in result.output

    def test_missing_config_file(
        self, tmp_path: Path, mocks: dict[str, MagicMock]
    ) -> None:
        result = CliRunner().invoke(
            main, ["run", "--config-file", str(tmp_path / "missing.env")]
        )

        assert result.exit_code == 2
        assert "Configuration error" in result.output
        mocks["execute"].assert_not_called()

    def test_missing_dependency(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        error = DependencyNotAvailableError("git")
        mocks["check"].side_effect = error

        result = CliRunner().invoke(main, ["run", "--config-file", str(config_file)])

        assert result.exit_code == 2
        mocks["reporter"].report_error.assert_called_once_with("shop", error, 2)
        mocks["execute"].assert_not_called()

    def test_compose_failure_uses_command_exit_code(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        error = ComposeCommandError(
            operation="up",
            command=["docker", "compose", "up", "-d", "--build"],
            exit_code=17,
            stderr="build failed",
        )
        mocks["execute"].side_effect = error

        result = CliRunner().invoke(main, ["run", "--config-file", str(config_file)])

        assert result.exit_code == 17
        mocks["reporter"].report_error.assert_called_once_with("shop", error, 17)

    def test_failed_error_notification_keeps_exit_code(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["execute"].side_effect = ComposeCommandError(
            operation="pull",
            command=["docker", "compose", "pull"],
            exit_code=1,
            stderr="denied",
        )
        mocks["reporter"].report_error.side_effect = NotificationError(
            "discord", "HTTP 500"
        )

        result = CliRunner().invoke(main, ["run", "--config-file", str(config_file)])

        assert result.exit_code == 1

    def test_notification_failure(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        mocks["execute"].side_effect = NotificationError("discord", "HTTP 401")

        result = CliRunner().invoke(main, ["run", "--config-file", str(config_file)])

        assert result.exit_code == 4
        mocks["reporter"].report_error.assert_not_called()

    def test_unexpected_error(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        error = RuntimeError("boom")
        mocks["execute"].side_effect = error

        result = CliRunner().invoke(main, ["run", "--config-file", str(config_file)])

        assert result.exit_code == 3
        mocks["reporter"].report_error.assert_called_once_with("shop", error, 3)

    def test_concurrent_run_exits_cleanly(
        self, config_file: Path, project_dir: Path, mocks: dict[str, MagicMock]
    ) -> None:
        """A run that finds the lock held does nothing and exits 0."""
        with RunLock(project_dir / ".composewatch.lock"):
            result = CliRunner().invoke(
                main, ["run", "--config-file", str(config_file)]
            )

        assert result.exit_code == 0
        mocks["execute"].assert_not_called()
        mocks["reporter"].report_error.assert_not_called()

    def test_invalid_log_level(
        self, config_file: Path, mocks: dict[str, MagicMock]
    ) -> None:
        result = CliRunner().invoke(
            main,
            ["run", "--config-file", str(config_file), "--log-level", "chatty"],
        )

        assert result.exit_code == 2
        mocks["execute"].assert_not_called()


class TestMainGroup:
    """Tests for the command group."""

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("run", "status", "test-notify"):
            assert command in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "composewatch, version 0.1.0" in result.output
