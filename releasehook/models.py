"""Typed release, workflow and notification models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ReleaseType(str, Enum):
    GENERAL = "general"
    MOBILE = "mobile"
    DESKTOP = "desktop"
    CLOUD = "cloud"
    SDK = "sdk"


RELEASE_TYPES: frozenset[str] = frozenset(t.value for t in ReleaseType)

MAX_RELEASE_TARGETS = 4


@dataclass(frozen=True)
class ReleaseMetadata:
    type: ReleaseType
    targets: tuple[ReleaseType, ...]
    version: str
    tag: str
    name: str
    prerelease: bool = False
    draft: bool = False

    def summary(self) -> dict[str, object]:
        """Compact form for logs and notification payloads."""
        return {
            "type": self.type.value,
            "targets": [t.value for t in self.targets],
            "version": self.version,
            "prerelease": self.prerelease,
        }


@dataclass(frozen=True)
class Workflow:
    name: str
    inputs: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchContext:
    """Repository coordinates a workflow is dispatched against."""

    repository: str  # owner/repo
    ref: str
    actor: str = ""


@dataclass
class DispatchResult:
    workflow: Workflow
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DispatchReport:
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def attempted(self) -> list[str]:
        return [r.workflow.name for r in self.results]

    @property
    def succeeded(self) -> list[str]:
        return [r.workflow.name for r in self.results if r.ok]

    @property
    def failed(self) -> list[DispatchResult]:
        return [r for r in self.results if not r.ok]

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.succeeded)


class NotificationKind(str, Enum):
    RELEASE_PUBLISHED = "release_published"
    PRERELEASE_PUBLISHED = "prerelease_published"
    BUILD_FAILURE = "build_failure"
    INVALID_METADATA = "invalid_metadata"


@dataclass(frozen=True)
class NotificationRequest:
    kind: NotificationKind
    repository: str
    release: ReleaseMetadata | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
