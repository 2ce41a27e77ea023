"""GitHub REST API transports: workflow dispatch and release annotation."""

from __future__ import annotations

from typing import Any

import httpx

from releasehook import __version__
from releasehook.config import GitHubConfig
from releasehook.errors import AnnotationError, DispatchError
from releasehook.models import DispatchContext, ReleaseMetadata, ReleaseType, Workflow
from releasehook.transports.base import ReleaseAnnotator, WorkflowDispatcher
from releasehook.utils.logging import get_logger

log = get_logger(__name__)

_TYPE_EMOJI = {
    ReleaseType.GENERAL: "\U0001f680",
    ReleaseType.MOBILE: "\U0001f4f1",
    ReleaseType.DESKTOP: "\U0001f5a5\ufe0f",
    ReleaseType.CLOUD: "\u2601\ufe0f",
    ReleaseType.SDK: "\U0001f4e6",
}

ANNOTATION_MARKER = "<!-- releasehook-analysis -->"


def render_release_comment(metadata: ReleaseMetadata) -> str:
    """Markdown summary of a classification, appended to the release notes."""
    targets = ", ".join(f"`{t.value}`" for t in metadata.targets)
    emoji = _TYPE_EMOJI.get(metadata.type, _TYPE_EMOJI[ReleaseType.GENERAL])
    return (
        f"{ANNOTATION_MARKER}\n"
        f"{emoji} **Release Analysis**\n\n"
        f"**Type:** `{metadata.type.value}`\n"
        f"**Targets:** {targets}\n"
        f"**Version:** `{metadata.version}`\n"
        f"**Prerelease:** {'Yes' if metadata.prerelease else 'No'}\n\n"
        "---\n\n"
        "*Detected by releasehook*"
    )


def _split_repository(repository: str) -> tuple[str, str]:
    owner, sep, repo = repository.partition("/")
    if not sep or not owner or not repo:
        raise ValueError(f"Expected owner/repo, got {repository!r}")
    return owner, repo


class GitHubClient:
    """Thin async wrapper over the GitHub REST endpoints releasehook needs."""

    def __init__(self, config: GitHubConfig, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=config.api_url.rstrip("/"),
            timeout=config.timeout,
        )
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {config.token}",
            "User-Agent": f"releasehook/{__version__}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def dispatch_workflow(
        self, repository: str, workflow_id: str, ref: str, inputs: dict[str, str]
    ) -> None:
        owner, repo = _split_repository(repository)
        resp = await self._client.post(
            f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/dispatches",
            json={"ref": ref, "inputs": inputs},
            headers=self._headers,
        )
        resp.raise_for_status()

    async def get_release(self, repository: str, release_id: int) -> dict[str, Any]:
        owner, repo = _split_repository(repository)
        resp = await self._client.get(
            f"/repos/{owner}/{repo}/releases/{release_id}", headers=self._headers
        )
        resp.raise_for_status()
        return resp.json()

    async def append_release_notes(self, repository: str, release_id: int, text: str) -> bool:
        """Append ``text`` to the release body. Returns False if already present."""
        release = await self.get_release(repository, release_id)
        body = release.get("body") or ""
        if ANNOTATION_MARKER in body:
            return False

        owner, repo = _split_repository(repository)
        new_body = f"{body}\n\n{text}" if body else text
        resp = await self._client.patch(
            f"/repos/{owner}/{repo}/releases/{release_id}",
            json={"body": new_body},
            headers=self._headers,
        )
        resp.raise_for_status()
        return True

    async def close(self) -> None:
        await self._client.aclose()


class GitHubWorkflowDispatcher(WorkflowDispatcher):
    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def dispatch(self, workflow: Workflow, context: DispatchContext) -> None:
        log.info(
            "dispatching_workflow",
            workflow=workflow.name,
            repository=context.repository,
            ref=context.ref,
            inputs=workflow.inputs,
        )
        try:
            await self._client.dispatch_workflow(
                context.repository, workflow.name, context.ref, dict(workflow.inputs)
            )
        except (httpx.HTTPError, ValueError) as e:
            raise DispatchError(f"Failed to dispatch {workflow.name}: {e}") from e


class GitHubReleaseAnnotator(ReleaseAnnotator):
    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def annotate(
        self, repository: str, release_id: int, metadata: ReleaseMetadata
    ) -> None:
        try:
            written = await self._client.append_release_notes(
                repository, release_id, render_release_comment(metadata)
            )
        except (httpx.HTTPError, ValueError) as e:
            raise AnnotationError(f"Failed to annotate release {release_id}: {e}") from e

        log.info(
            "release_annotated",
            repository=repository,
            release_id=release_id,
            already_present=not written,
        )
