"""Exception hierarchy for releasehook."""

from __future__ import annotations


class ReleaseHookError(Exception):
    """Base exception for releasehook errors."""


class ReleaseValidationError(ReleaseHookError, ValueError):
    """Release metadata or target combination is invalid."""


class ConfigurationError(ReleaseHookError):
    """Settings are missing or inconsistent."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__(
            "Configuration validation failed:\n" + "\n".join(self.problems)
        )


class NotificationError(ReleaseHookError):
    """The mailer rejected or failed to accept a notification."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class DispatchError(ReleaseHookError):
    """A workflow dispatch request failed."""


class AnnotationError(ReleaseHookError):
    """Writing the analysis back to the release failed."""
