"""Outbound transports for notifications, workflow dispatch and annotation."""

from releasehook.transports.base import Notifier, ReleaseAnnotator, WorkflowDispatcher
from releasehook.transports.dry_run import DryRunAnnotator, DryRunDispatcher, DryRunNotifier
from releasehook.transports.github import (
    GitHubClient,
    GitHubReleaseAnnotator,
    GitHubWorkflowDispatcher,
)
from releasehook.transports.mailer import MailerNotifier

__all__ = [
    "Notifier",
    "ReleaseAnnotator",
    "WorkflowDispatcher",
    "DryRunAnnotator",
    "DryRunDispatcher",
    "DryRunNotifier",
    "GitHubClient",
    "GitHubReleaseAnnotator",
    "GitHubWorkflowDispatcher",
    "MailerNotifier",
]
