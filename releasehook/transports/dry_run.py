"""Log-only transports used with ``--dry-run``."""

from __future__ import annotations

from releasehook.models import DispatchContext, NotificationRequest, ReleaseMetadata, Workflow
from releasehook.transports.base import Notifier, ReleaseAnnotator, WorkflowDispatcher
from releasehook.transports.github import render_release_comment
from releasehook.utils.logging import get_logger

log = get_logger(__name__)


class DryRunNotifier(Notifier):
    async def _log(self, request: NotificationRequest) -> None:
        log.info(
            "dry_run_notification",
            kind=request.kind.value,
            repository=request.repository,
            release=request.release.summary() if request.release else None,
            error=request.error,
        )

    async def send_release_published(self, request: NotificationRequest) -> None:
        await self._log(request)

    async def send_prerelease_published(self, request: NotificationRequest) -> None:
        await self._log(request)

    async def send_build_failure(self, request: NotificationRequest) -> None:
        await self._log(request)

    async def send_invalid_metadata(self, request: NotificationRequest) -> None:
        await self._log(request)


class DryRunDispatcher(WorkflowDispatcher):
    async def dispatch(self, workflow: Workflow, context: DispatchContext) -> None:
        log.info(
            "dry_run_dispatch",
            workflow=workflow.name,
            repository=context.repository,
            ref=context.ref,
            inputs=workflow.inputs,
        )


class DryRunAnnotator(ReleaseAnnotator):
    async def annotate(
        self, repository: str, release_id: int, metadata: ReleaseMetadata
    ) -> None:
        log.info(
            "dry_run_annotation",
            repository=repository,
            release_id=release_id,
            comment=render_release_comment(metadata),
        )
