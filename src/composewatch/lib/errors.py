"""Custom exception hierarchy for composewatch configuration and deployments."""


class ComposeWatchError(Exception):
    """Base exception for all composewatch errors.

    All composewatch-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI.
    """

    pass


class ConfigError(ComposeWatchError):
    """Exception raised for configuration errors.

    Raised when a project configuration file cannot be loaded, parsed or
    validated, and when a required value is missing.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class DependencyNotAvailableError(ComposeWatchError):
    """Exception raised when a required executable is not installed.

    Attributes:
        binary: Name of the missing executable
        message: Human-readable error message
    """

    def __init__(self, binary: str, message: str | None = None) -> None:
        """Create a dependency error for a missing executable."""
        self.binary = binary
        self.message = message or (
            f"'{binary}' is required but was not found on PATH. "
            f"Install it and try again."
        )
        super().__init__(self.message)


class DeploymentError(ComposeWatchError):
    """Exception raised when a deployment operation fails.

    Attributes:
        operation: Short name of the failing operation (e.g. "state", "up")
        message: Human-readable error message
        exit_code: Exit status the process should terminate with
    """

    def __init__(self, operation: str, message: str, exit_code: int = 3) -> None:
        """Initialize DeploymentError with operation context.

        Args:
            operation: Operation that failed
            message: Descriptive error message
            exit_code: Process exit status associated with the failure
        """
        self.operation = operation
        self.message = message
        self.exit_code = exit_code
        super().__init__(f"Deployment operation '{operation}' failed: {message}")


class CommandError(DeploymentError):
    """Exception raised when an external command exits non-zero.

    Attributes:
        command: The argv that was executed
        stderr: Captured standard error of the command
        summary: The command and its exit status, without stderr
    """

    def __init__(
        self, operation: str, command: list[str], exit_code: int, stderr: str
    ) -> None:
        """Create a command error from a finished process.

        Args:
            operation: Operation the command belonged to
            command: Executed argv
            exit_code: Process exit status
            stderr: Captured standard error output
        """
        self.command = command
        self.stderr = stderr
        self.summary = f"`{' '.join(command)}` exited with code {exit_code}"
        message = self.summary
        if stderr:
            message += f": {stderr}"
        super().__init__(operation=operation, message=message, exit_code=exit_code)


class GitCommandError(CommandError):
    """Exception raised when a git command fails (clone, fetch, reset, ...)."""

    pass


class ComposeCommandError(CommandError):
    """Exception raised when a docker compose command fails.

    The captured stderr is included in the error report so the operator sees
    the runtime's own diagnostics.
    """

    pass


class NotificationError(ComposeWatchError):
    """Exception raised when a notification cannot be delivered.

    Attributes:
        channel: Notification channel name
        message: Human-readable error message
    """

    def __init__(self, channel: str, message: str) -> None:
        """Create a notification delivery error."""
        self.channel = channel
        self.message = message
        super().__init__(f"Failed to deliver {channel} notification: {message}")


class RunLockedError(ComposeWatchError):
    """Exception raised when another run already holds the project lock."""

    def __init__(self, lock_path: str) -> None:
        """Create a lock contention error for the given lock file."""
        self.lock_path = lock_path
        super().__init__(f"Another run holds the lock at {lock_path}")
