"""Unit tests for the composewatch exception hierarchy."""

from __future__ import annotations

from composewatch.lib.errors import (
    CommandError,
    ComposeCommandError,
    ComposeWatchError,
    ConfigError,
    DependencyNotAvailableError,
    DeploymentError,
    GitCommandError,
    NotificationError,
    RunLockedError,
)


class TestConfigError:
    """Tests for ConfigError."""

    def test_message_includes_field(self) -> None:
        error = ConfigError("repo_url", "must not be empty")

        assert isinstance(error, ComposeWatchError)
        assert error.field == "repo_url"
        assert error.message == "must not be empty"
        assert str(error) == "Configuration error in 'repo_url': must not be empty"


class TestDependencyNotAvailableError:
    """Tests for DependencyNotAvailableError."""

    def test_default_message(self) -> None:
        error = DependencyNotAvailableError("git")

        assert error.binary == "git"
        assert "'git' is required but was not found on PATH" in str(error)

    def test_custom_message(self) -> None:
        error = DependencyNotAvailableError("docker", "daemon down")

        assert str(error) == "daemon down"


class TestDeploymentError:
    """Tests for DeploymentError and command errors."""

    def test_defaults_to_exit_code_3(self) -> None:
        error = DeploymentError(operation="state", message="disk full")

        assert error.exit_code == 3
        assert str(error) == "Deployment operation 'state' failed: disk full"

    def test_command_error_carries_process_details(self) -> None:
        error = ComposeCommandError(
            operation="up",
            command=["docker", "compose", "up", "-d"],
            exit_code=18,
            stderr="no such service: api",
        )

        assert isinstance(error, CommandError)
        assert isinstance(error, DeploymentError)
        assert error.exit_code == 18
        assert error.stderr == "no such service: api"
        assert (
            error.message
            == "`docker compose up -d` exited with code 18: no such service: api"
        )
        assert error.summary == "`docker compose up -d` exited with code 18"

    def test_command_error_without_stderr(self) -> None:
        error = GitCommandError(
            operation="fetch",
            command=["git", "fetch"],
            exit_code=1,
            stderr="",
        )

        assert error.message == "`git fetch` exited with code 1"


class TestOtherErrors:
    """Tests for notification and lock errors."""

    def test_notification_error(self) -> None:
        error = NotificationError("discord", "HTTP 404")

        assert error.channel == "discord"
        assert str(error) == "Failed to deliver discord notification: HTTP 404"

    def test_run_locked_error(self) -> None:
        error = RunLockedError("/opt/shop/.composewatch.lock")

        assert error.lock_path == "/opt/shop/.composewatch.lock"
        assert "Another run holds the lock" in str(error)
