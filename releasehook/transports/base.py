"""Abstract outbound transports: notifications, workflow dispatch, annotation."""

from __future__ import annotations

from abc import ABC, abstractmethod

from releasehook.models import (
    DispatchContext,
    NotificationKind,
    NotificationRequest,
    ReleaseMetadata,
    Workflow,
)


class Notifier(ABC):
    """Sends one notification per event outcome. Any send may raise."""

    @abstractmethod
    async def send_release_published(self, request: NotificationRequest) -> None: ...

    @abstractmethod
    async def send_prerelease_published(self, request: NotificationRequest) -> None: ...

    @abstractmethod
    async def send_build_failure(self, request: NotificationRequest) -> None: ...

    @abstractmethod
    async def send_invalid_metadata(self, request: NotificationRequest) -> None: ...

    async def send(self, request: NotificationRequest) -> None:
        """Route ``request`` to the send operation for its kind."""
        senders = {
            NotificationKind.RELEASE_PUBLISHED: self.send_release_published,
            NotificationKind.PRERELEASE_PUBLISHED: self.send_prerelease_published,
            NotificationKind.BUILD_FAILURE: self.send_build_failure,
            NotificationKind.INVALID_METADATA: self.send_invalid_metadata,
        }
        await senders[request.kind](request)

    async def close(self) -> None:
        """Clean up resources. Override if needed."""


class WorkflowDispatcher(ABC):
    """Asks an external execution system to run a workflow.

    Returning normally means the request was accepted, nothing more.
    """

    @abstractmethod
    async def dispatch(self, workflow: Workflow, context: DispatchContext) -> None: ...

    async def close(self) -> None:
        """Clean up resources. Override if needed."""


class ReleaseAnnotator(ABC):
    @abstractmethod
    async def annotate(
        self, repository: str, release_id: int, metadata: ReleaseMetadata
    ) -> None: ...

    async def close(self) -> None:
        """Clean up resources. Override if needed."""
