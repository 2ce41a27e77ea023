"""Release event handling: which pipeline steps run for each release action."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable

from releasehook.core.classifier import classify, validate_release_metadata
from releasehook.core.orchestrator import WorkflowOrchestrator
from releasehook.models import (
    DispatchContext,
    DispatchReport,
    NotificationKind,
    NotificationRequest,
    ReleaseMetadata,
)
from releasehook.transports.base import Notifier, ReleaseAnnotator
from releasehook.utils.logging import get_logger
from releasehook.utils.sanitize import (
    extract_safe_fields,
    sanitize_release_tag,
    sanitize_repository_name,
    sanitize_string,
)
from releasehook.webhooks.models import ReleasePayload

log = get_logger(__name__)

RELEASE_NAME_MAX_LENGTH = 256

_LOGGED_RELEASE_FIELDS = ("id", "name", "tag_name", "draft", "prerelease")


@dataclass
class HandlingOutcome:
    action: str
    path: str  # "published", "prerelease", "skipped" or "ignored"
    metadata: ReleaseMetadata | None = None
    dispatch: DispatchReport | None = None
    annotated: bool = False
    workflow_warnings: list[str] = field(default_factory=list)


class ReleaseEventHandler:
    """Runs the published or prerelease pipeline for a release action.

    ``published``: published pipeline.
    ``created``: nothing for drafts, prerelease pipeline for prereleases,
    published pipeline otherwise.
    ``edited``: published pipeline once the release is no longer a draft.
    ``prereleased``: prerelease pipeline.

    A failure anywhere in a pipeline triggers one best-effort
    ``build_failure`` notification and is then re-raised unchanged.
    """

    def __init__(
        self,
        orchestrator: WorkflowOrchestrator,
        notifier: Notifier,
        annotator: ReleaseAnnotator | None = None,
        annotate: bool = True,
    ) -> None:
        self._orchestrator = orchestrator
        self._notifier = notifier
        self._annotator = annotator
        self._annotate_enabled = annotate and annotator is not None

    async def handle(self, payload: ReleasePayload) -> HandlingOutcome:
        action = payload.action
        release = payload.release

        if action == "published":
            return await self._guarded(payload, self._run_published)

        if action == "created":
            if release.draft:
                log.info("draft_release_skipped", **self._log_context(payload))
                return HandlingOutcome(action=action, path="skipped")
            if release.prerelease:
                return await self._guarded(payload, self._run_prerelease)
            return await self._guarded(payload, self._run_published)

        if action == "edited":
            log.info("release_edited", **self._log_context(payload))
            # Only a draft -> published transition re-runs the pipeline
            if release.draft:
                return HandlingOutcome(action=action, path="skipped")
            return await self._guarded(payload, self._run_published)

        if action == "prereleased":
            return await self._guarded(payload, self._run_prerelease)

        log.debug("release_action_ignored", action=sanitize_string(action, 32))
        return HandlingOutcome(action=action, path="ignored")

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    async def _guarded(
        self,
        payload: ReleasePayload,
        pipeline: Callable[[ReleasePayload], Awaitable[HandlingOutcome]],
    ) -> HandlingOutcome:
        try:
            return await pipeline(payload)
        except Exception as exc:
            log.exception("release_processing_failed", **self._log_context(payload))
            await self._notify_failure(payload, exc)
            raise

    async def _run_published(self, payload: ReleasePayload) -> HandlingOutcome:
        log.info("processing_release_published", **self._log_context(payload))

        metadata = self._classify(payload)
        validate_release_metadata(metadata)
        log.info("release_metadata_detected", **metadata.summary())

        warnings = self._orchestrator.validate_workflows(metadata)
        for warning in warnings:
            log.warning("workflow_configuration_drift", detail=warning)

        report = await self._orchestrator.trigger_workflows(
            metadata, self._dispatch_context(payload)
        )

        await self._notifier.send_release_published(
            NotificationRequest(
                kind=NotificationKind.RELEASE_PUBLISHED,
                repository=self._repository(payload),
                release=metadata,
            )
        )

        annotated = await self._annotate(payload, metadata)

        log.info("release_processing_completed", repository=self._repository(payload))
        return HandlingOutcome(
            action=payload.action,
            path="published",
            metadata=metadata,
            dispatch=report,
            annotated=annotated,
            workflow_warnings=warnings,
        )

    async def _run_prerelease(self, payload: ReleasePayload) -> HandlingOutcome:
        log.info("processing_prerelease", **self._log_context(payload))

        metadata = self._classify(payload)
        validate_release_metadata(metadata)

        report = await self._orchestrator.trigger_prerelease_workflows(
            metadata, self._dispatch_context(payload)
        )

        await self._notifier.send_prerelease_published(
            NotificationRequest(
                kind=NotificationKind.PRERELEASE_PUBLISHED,
                repository=self._repository(payload),
                release=metadata,
            )
        )

        return HandlingOutcome(
            action=payload.action,
            path="prerelease",
            metadata=metadata,
            dispatch=report,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _annotate(self, payload: ReleasePayload, metadata: ReleaseMetadata) -> bool:
        """Write the analysis back to the release. Failures are cosmetic."""
        if not self._annotate_enabled:
            return False
        try:
            await self._annotator.annotate(
                self._repository(payload), payload.release.id, metadata
            )
        except Exception:
            log.warning(
                "release_annotation_failed",
                repository=self._repository(payload),
                release_id=payload.release.id,
                exc_info=True,
            )
            return False
        return True

    async def _notify_failure(self, payload: ReleasePayload, exc: Exception) -> None:
        try:
            await self._notifier.send_build_failure(
                NotificationRequest(
                    kind=NotificationKind.BUILD_FAILURE,
                    repository=self._repository(payload),
                    error=str(exc) or type(exc).__name__,
                )
            )
        except Exception:
            log.exception(
                "failure_notification_failed", repository=self._repository(payload)
            )

    @staticmethod
    def _classify(payload: ReleasePayload) -> ReleaseMetadata:
        return classify(
            sanitize_release_tag(payload.release.tag_name),
            sanitize_string(payload.release.name, RELEASE_NAME_MAX_LENGTH),
        )

    @staticmethod
    def _repository(payload: ReleasePayload) -> str:
        return sanitize_repository_name(payload.repository.full_name)

    def _dispatch_context(self, payload: ReleasePayload) -> DispatchContext:
        return DispatchContext(
            repository=self._repository(payload),
            ref=payload.release.tag_name,
            actor=sanitize_string(payload.sender.login, 100),
        )

    def _log_context(self, payload: ReleasePayload) -> dict[str, object]:
        return {
            "repository": self._repository(payload),
            **extract_safe_fields(payload.release.model_dump(), _LOGGED_RELEASE_FIELDS),
        }
