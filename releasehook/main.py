"""releasehook entry point: wires components together and runs the server."""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from typing import TextIO

import click

from releasehook import __version__
from releasehook.config import OrchestratorConfig, Settings, load_settings, validate_settings
from releasehook.core.classifier import classify, parse_release_metadata, validate_release_metadata
from releasehook.core.orchestrator import WorkflowOrchestrator, WorkflowTable
from releasehook.core.rate_limit import RateLimiter
from releasehook.core.signature import SignatureValidator
from releasehook.errors import ConfigurationError, ReleaseValidationError
from releasehook.models import ReleaseMetadata, ReleaseType, Workflow
from releasehook.transports.base import Notifier, ReleaseAnnotator, WorkflowDispatcher
from releasehook.transports.dry_run import DryRunAnnotator, DryRunDispatcher, DryRunNotifier
from releasehook.transports.github import (
    GitHubClient,
    GitHubReleaseAnnotator,
    GitHubWorkflowDispatcher,
)
from releasehook.transports.mailer import MailerNotifier
from releasehook.utils.logging import get_logger, setup_logging
from releasehook.webhooks.handlers import ReleaseEventHandler
from releasehook.webhooks.server import WebhookServer

log = get_logger(__name__)


def _workflow_tables(config: OrchestratorConfig) -> tuple[WorkflowTable, WorkflowTable]:
    def convert(table: dict[str, list]) -> WorkflowTable:
        converted: dict[ReleaseType, list[Workflow]] = {}
        for target, workflows in table.items():
            try:
                key = ReleaseType(target)
            except ValueError:
                raise ConfigurationError([f"orchestrator: unknown target '{target}'"]) from None
            converted[key] = [Workflow(w.name, dict(w.inputs)) for w in workflows]
        return converted

    return convert(config.workflows), convert(config.prerelease_workflows)


def build_orchestrator(settings: Settings, dispatcher: WorkflowDispatcher) -> WorkflowOrchestrator:
    workflows, prerelease = _workflow_tables(settings.orchestrator)
    return WorkflowOrchestrator(dispatcher, workflows=workflows, prerelease_workflows=prerelease)


class ReleaseHook:
    """Main application: owns the transports, handler and webhook server."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.github: GitHubClient | None = None

        self.notifier: Notifier
        self.dispatcher: WorkflowDispatcher
        self.annotator: ReleaseAnnotator
        if settings.dry_run:
            self.notifier = DryRunNotifier()
            self.dispatcher = DryRunDispatcher()
            self.annotator = DryRunAnnotator()
        else:
            self.github = GitHubClient(settings.github)
            self.notifier = MailerNotifier(settings.mailer)
            self.dispatcher = GitHubWorkflowDispatcher(self.github)
            self.annotator = GitHubReleaseAnnotator(self.github)

        self.orchestrator = build_orchestrator(settings, self.dispatcher)
        self.handler = ReleaseEventHandler(
            self.orchestrator,
            self.notifier,
            self.annotator,
            annotate=settings.github.annotate_releases,
        )
        self.limiter = RateLimiter(
            window_seconds=settings.rate_limit.window_seconds,
            max_requests=settings.rate_limit.max_requests,
        )
        self.validator = SignatureValidator(settings.webhook.secret)
        self.server = WebhookServer(settings, self.handler, self.validator, self.limiter)

    async def start(self) -> None:
        log.info("releasehook_starting", version=__version__, dry_run=self.settings.dry_run)
        await self.server.start()
        log.info("releasehook_ready")

    async def stop(self) -> None:
        log.info("releasehook_stopping")
        await self.server.stop()
        for closeable in (self.notifier, self.dispatcher, self.annotator, self.github):
            if closeable is None:
                continue
            try:
                await closeable.close()
            except Exception:
                log.exception("transport_close_error", transport=type(closeable).__name__)
        log.info("releasehook_stopped")


async def run(settings: Settings) -> None:
    app = ReleaseHook(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(__version__, prog_name="releasehook")
def cli() -> None:
    """releasehook: GitHub release webhooks to workflows and notifications."""


@cli.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--dry-run", is_flag=True, help="Log dispatches and notifications instead of sending them")
def serve(config_path: str | None, log_level: str | None, dry_run: bool) -> None:
    """Start the webhook server."""
    settings = load_settings(config_path)
    if log_level:
        settings.log_level = log_level
    if dry_run:
        settings.dry_run = True
    problems = validate_settings(settings)
    if problems:
        raise click.ClickException(str(ConfigurationError(problems)))

    setup_logging(level=settings.log_level, json_output=settings.log_json)

    asyncio.run(run(settings))


def _echo_plan(metadata: ReleaseMetadata, orchestrator: WorkflowOrchestrator, as_json: bool) -> None:
    workflows = orchestrator.workflows_for(metadata.targets)
    prerelease_workflows = orchestrator.prerelease_workflows_for(metadata.targets)
    warnings = orchestrator.validate_workflows(metadata)

    if as_json:
        result = {
            **metadata.summary(),
            "tag": metadata.tag,
            "name": metadata.name,
            "draft": metadata.draft,
            "workflows": [w.name for w in workflows],
            "prerelease_workflows": [w.name for w in prerelease_workflows],
            "warnings": warnings,
        }
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(f"Type:       {metadata.type.value}")
    click.echo(f"Targets:    {', '.join(t.value for t in metadata.targets)}")
    click.echo(f"Version:    {metadata.version}")
    click.echo(f"Prerelease: {'yes' if metadata.prerelease else 'no'}")
    click.echo(f"Workflows:  {', '.join(w.name for w in workflows) or '-'}")
    click.echo(f"Prerelease workflows: {', '.join(w.name for w in prerelease_workflows) or '-'}")
    for warning in warnings:
        click.echo(f"Warning: {warning}")


@cli.command("classify")
@click.argument("tag")
@click.argument("name", default="")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
def classify_command(tag: str, name: str, as_json: bool, config_path: str | None) -> None:
    """Show how a release TAG (and optional NAME) would be handled."""
    settings = load_settings(config_path)
    try:
        metadata = classify(tag, name)
        validate_release_metadata(metadata)
    except ReleaseValidationError as e:
        raise click.ClickException(str(e)) from e

    _echo_plan(metadata, build_orchestrator(settings, DryRunDispatcher()), as_json)


@cli.command("plan")
@click.argument("metadata_file", type=click.File("r"), default="-")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
def plan_command(metadata_file: TextIO, as_json: bool, config_path: str | None) -> None:
    """Show the workflow plan for release metadata JSON (e.g. from ``classify --json``)."""
    settings = load_settings(config_path)
    try:
        metadata = parse_release_metadata(json.load(metadata_file))
    except ValueError as e:
        raise click.ClickException(f"Invalid release metadata: {e}") from e

    _echo_plan(metadata, build_orchestrator(settings, DryRunDispatcher()), as_json)


@cli.command("check-config")
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
def check_config(config_path: str | None) -> None:
    """Report configuration problems."""
    settings = load_settings(config_path)
    problems = validate_settings(settings)
    try:
        _workflow_tables(settings.orchestrator)
    except ConfigurationError as e:
        problems.extend(e.problems)

    if not problems:
        click.echo("Configuration OK")
        return
    for problem in problems:
        click.echo(f"- {problem}", err=True)
    sys.exit(1)


@cli.command("ping-mailer")
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
def ping_mailer(config_path: str | None) -> None:
    """Check that the mailer API is reachable."""
    settings = load_settings(config_path)
    setup_logging(level=settings.log_level, json_output=settings.log_json)

    async def _ping() -> bool:
        notifier = MailerNotifier(settings.mailer)
        try:
            return await notifier.test_connection()
        finally:
            await notifier.close()

    if asyncio.run(_ping()):
        click.echo("Mailer reachable")
        return
    click.echo("Mailer unreachable", err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
