"""Outcome and error reporting.

Every report is written to the log. :class:`DiscordReporter` additionally
posts broadcast reports to a Discord webhook as an embed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import requests
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from composewatch.lib.errors import ComposeCommandError, NotificationError
from composewatch.lib.logging_config import get_logger
from composewatch.models.deployment import ActionKind, DeploymentOutcome

logger = get_logger(__name__)

# Discord embed limits
MAX_TITLE_LENGTH = 256
MAX_DESCRIPTION_LENGTH = 4096


class Severity(str, Enum):
    """Report severity, mapped to log level and embed color."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


SEVERITY_COLORS: dict[Severity, int] = {
    Severity.INFO: 5814783,
    Severity.WARNING: 15844367,
    Severity.ERROR: 15158332,
}


@dataclass(frozen=True)
class Report:
    """A titled message for operators.

    Attributes:
        title: Short headline
        message: Body text, may span several lines
        severity: How urgent the report is
        broadcast: Whether notification channels receive it, or only the log
    """

    title: str
    message: str
    severity: Severity = Severity.INFO
    broadcast: bool = True


def outcome_report(outcome: DeploymentOutcome) -> Report:
    """Build the report for a finished run."""
    project = outcome.project_name
    action = outcome.action

    if action.kind is ActionKind.NO_ACTION:
        return Report(
            title=f"{project} - No changes",
            message="No Git changes detected. Exiting.",
            broadcast=False,
        )

    if action.kind is ActionKind.SKIP:
        return Report(
            title="Deployment Skipped",
            message=f"Commit: `{outcome.commit}`\nDirective: `[compose:noop]`",
        )

    if action.kind is ActionKind.FLOATING_REFRESH:
        if not outcome.updated_services:
            return Report(
                title=f"{project} - Floating Tag Check",
                message="Floating tag images are up to date.",
                broadcast=False,
            )
        services = "\n".join(
            f"{update.service} ({update.image})" for update in outcome.updated_services
        )
        return Report(
            title=f"{project} - Floating Tag Update",
            message=(
                f"Action: {action.label}\n\n"
                f"Services updated (image ID changed):\n```\n{services}\n```"
            ),
        )

    message = f"Action: {action.label}"
    if action.includes_commit_details:
        commit_message = outcome.commit_message or ""
        message += f"\nCommit: `{outcome.commit}`\nMessage: {commit_message}"
    return Report(title=f"{project} - Deployment complete", message=message)


def error_report(project_name: str, error: BaseException, exit_code: int) -> Report:
    """Build the report for a failed run, including compose diagnostics."""
    message = f"ERROR: Run failed with exit code {exit_code}\n\n"
    if isinstance(error, ComposeCommandError) and error.stderr:
        message += (
            f"Deployment operation '{error.operation}' failed: {error.summary}"
            f"\n\nDocker Compose error output:\n{error.stderr}"
        )
    else:
        message += str(error)
    return Report(
        title=f"{project_name} - Deployment Error",
        message=message,
        severity=Severity.ERROR,
    )


class Reporter(ABC):
    """Base class for report delivery channels."""

    def send(self, report: Report) -> None:
        """Log a report and deliver it if it is a broadcast.

        Raises:
            NotificationError: If delivery fails
        """
        log = {
            Severity.INFO: logger.info,
            Severity.WARNING: logger.warning,
            Severity.ERROR: logger.error,
        }[report.severity]
        log(f"{report.title}: {report.message}")
        if report.broadcast:
            self.deliver(report)

    def report_outcome(self, outcome: DeploymentOutcome) -> None:
        self.send(outcome_report(outcome))

    def report_error(
        self, project_name: str, error: BaseException, exit_code: int
    ) -> None:
        self.send(error_report(project_name, error, exit_code))

    @abstractmethod
    def deliver(self, report: Report) -> None:
        """Deliver a report through the channel."""


class LogReporter(Reporter):
    """Reporter that only writes to the log."""

    def deliver(self, report: Report) -> None:
        return None


class DiscordReporter(Reporter):
    """Posts reports to a Discord webhook.

    Example:
        >>> reporter = DiscordReporter("https://discord.com/api/webhooks/...")
        >>> reporter.send(Report("shop - Deployment complete", "Action: ..."))
    """

    DEFAULT_TIMEOUT = 10.0  # seconds

    def __init__(
        self,
        webhook_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._session = session or requests.Session()

    @staticmethod
    def build_payload(report: Report) -> dict[str, object]:
        """Build the webhook JSON body for a report."""
        title = report.title.replace("`", "\\`")[:MAX_TITLE_LENGTH]
        description = report.message
        if len(description) > MAX_DESCRIPTION_LENGTH:
            description = description[: MAX_DESCRIPTION_LENGTH - 3] + "..."
        return {
            "embeds": [
                {
                    "title": title,
                    "description": description,
                    "color": SEVERITY_COLORS[report.severity],
                }
            ]
        }

    def deliver(self, report: Report) -> None:
        """POST the report to the webhook.

        Raises:
            NotificationError: On connection problems or a non-2xx response
        """
        try:
            response = self._session.post(
                self.webhook_url,
                json=self.build_payload(report),
                timeout=self.timeout,
            )
        except (Timeout, RequestsConnectionError) as e:
            raise NotificationError("discord", str(e)) from e

        if not response.ok:
            raise NotificationError(
                "discord",
                f"webhook returned HTTP {response.status_code}: {response.text[:200]}",
            )
