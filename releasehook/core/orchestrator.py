"""Target to workflow fan-out with per-workflow failure isolation."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from releasehook.models import (
    DispatchContext,
    DispatchReport,
    DispatchResult,
    ReleaseMetadata,
    ReleaseType,
    Workflow,
)
from releasehook.transports.base import WorkflowDispatcher
from releasehook.utils.logging import get_logger

log = get_logger(__name__)

WorkflowTable = Mapping[ReleaseType, Sequence[Workflow]]

_ALL_PLATFORMS = "windows,macos,linux"

RELEASE_WORKFLOWS: dict[ReleaseType, tuple[Workflow, ...]] = {
    ReleaseType.MOBILE: (
        Workflow("mobile-build.yml", {"platform": "all"}),
        Workflow("mobile-deploy.yml", {"environment": "staging"}),
    ),
    ReleaseType.DESKTOP: (
        Workflow("desktop-build.yml", {"platforms": _ALL_PLATFORMS}),
        Workflow("desktop-package.yml", {"format": "all"}),
    ),
    ReleaseType.CLOUD: (
        Workflow("cloud-deploy.yml", {"environment": "production"}),
        Workflow("infrastructure-update.yml"),
    ),
    ReleaseType.SDK: (
        Workflow("sdk-build.yml"),
        Workflow("package-publish.yml", {"tag": "latest"}),
    ),
    ReleaseType.GENERAL: (
        Workflow("general-release.yml"),
    ),
}

# General releases have no prerelease pipeline.
PRERELEASE_WORKFLOWS: dict[ReleaseType, tuple[Workflow, ...]] = {
    ReleaseType.MOBILE: (
        Workflow("mobile-build-prerelease.yml", {"platform": "all"}),
    ),
    ReleaseType.DESKTOP: (
        Workflow("desktop-build-prerelease.yml", {"platforms": _ALL_PLATFORMS}),
    ),
    ReleaseType.CLOUD: (
        Workflow("cloud-deploy-staging.yml", {"environment": "staging"}),
    ),
    ReleaseType.SDK: (
        Workflow("sdk-build-prerelease.yml"),
        Workflow("package-publish-beta.yml", {"tag": "beta"}),
    ),
}

REQUIRED_WORKFLOWS: dict[ReleaseType, str] = {
    ReleaseType.MOBILE: "mobile-build.yml",
    ReleaseType.DESKTOP: "desktop-build.yml",
    ReleaseType.CLOUD: "cloud-deploy.yml",
    ReleaseType.SDK: "sdk-build.yml",
    ReleaseType.GENERAL: "general-release.yml",
}


def _collect(table: WorkflowTable, targets: Iterable[ReleaseType]) -> list[Workflow]:
    """Union the workflows of every target, first occurrence of a name wins."""
    seen: set[str] = set()
    workflows: list[Workflow] = []
    for target in targets:
        for workflow in table.get(target, ()):
            if workflow.name in seen:
                continue
            seen.add(workflow.name)
            workflows.append(workflow)
    return workflows


class WorkflowOrchestrator:
    """Maps release targets to workflows and dispatches each independently."""

    def __init__(
        self,
        dispatcher: WorkflowDispatcher,
        workflows: WorkflowTable | None = None,
        prerelease_workflows: WorkflowTable | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._workflows: WorkflowTable = {**RELEASE_WORKFLOWS, **(workflows or {})}
        self._prerelease_workflows: WorkflowTable = {
            **PRERELEASE_WORKFLOWS, **(prerelease_workflows or {})
        }

    def workflows_for(self, targets: Iterable[ReleaseType]) -> list[Workflow]:
        return _collect(self._workflows, targets)

    def prerelease_workflows_for(self, targets: Iterable[ReleaseType]) -> list[Workflow]:
        return _collect(self._prerelease_workflows, targets)

    async def trigger_workflows(
        self, metadata: ReleaseMetadata, context: DispatchContext
    ) -> DispatchReport:
        workflows = self.workflows_for(metadata.targets)
        log.info(
            "triggering_workflows",
            targets=[t.value for t in metadata.targets],
            workflows=[w.name for w in workflows],
        )
        return await self._dispatch_all(workflows, context)

    async def trigger_prerelease_workflows(
        self, metadata: ReleaseMetadata, context: DispatchContext
    ) -> DispatchReport:
        workflows = self.prerelease_workflows_for(metadata.targets)
        log.info(
            "triggering_prerelease_workflows",
            targets=[t.value for t in metadata.targets],
            workflows=[w.name for w in workflows],
        )
        return await self._dispatch_all(workflows, context)

    def validate_workflows(self, metadata: ReleaseMetadata) -> list[str]:
        """List required workflows missing from the computed set."""
        names = {w.name for w in self.workflows_for(metadata.targets)}
        errors: list[str] = []
        for target in metadata.targets:
            required = REQUIRED_WORKFLOWS.get(target)
            if required and required not in names:
                errors.append(
                    f"Required workflow '{required}' not found for target '{target.value}'"
                )
        return errors

    async def _dispatch_all(
        self, workflows: list[Workflow], context: DispatchContext
    ) -> DispatchReport:
        report = DispatchReport()
        for workflow in workflows:
            try:
                await self._dispatcher.dispatch(workflow, context)
            except Exception as exc:
                log.exception(
                    "workflow_dispatch_failed",
                    workflow=workflow.name,
                    repository=context.repository,
                )
                report.results.append(DispatchResult(workflow, error=str(exc) or type(exc).__name__))
            else:
                report.results.append(DispatchResult(workflow))

        if report.failed:
            log.warning(
                "workflow_dispatch_incomplete",
                succeeded=report.succeeded,
                failed=[r.workflow.name for r in report.failed],
            )
        return report
