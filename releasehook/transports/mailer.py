"""E-mail notifications through the mailer HTTP API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from releasehook import __version__
from releasehook.config import MailerConfig
from releasehook.errors import NotificationError
from releasehook.models import NotificationRequest
from releasehook.transports.base import Notifier
from releasehook.utils.logging import get_logger

log = get_logger(__name__)

USER_AGENT = f"releasehook/{__version__}"


class MailerNotifier(Notifier):
    def __init__(self, config: MailerConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout)
        self._headers = {
            "Authorization": f"Bearer {config.api_key}",
            "User-Agent": USER_AGENT,
        }

    async def send_release_published(self, request: NotificationRequest) -> None:
        version = request.release.version if request.release else "unknown"
        await self._send(
            request,
            subject=f"Release Published: {version} - {request.repository}",
            template="release-published",
            data=self._release_data(request),
        )

    async def send_prerelease_published(self, request: NotificationRequest) -> None:
        version = request.release.version if request.release else "unknown"
        await self._send(
            request,
            subject=f"[Pre-release] {version} - {request.repository}",
            template="prerelease-published",
            data=self._release_data(request),
        )

    async def send_build_failure(self, request: NotificationRequest) -> None:
        await self._send(
            request,
            subject=f"Build Failure - {request.repository}",
            template="build-failure",
            data=self._error_data(request),
        )

    async def send_invalid_metadata(self, request: NotificationRequest) -> None:
        await self._send(
            request,
            subject=f"Invalid Release Metadata - {request.repository}",
            template="invalid-metadata",
            data=self._error_data(request),
        )

    async def test_connection(self) -> bool:
        """Check the mailer's health endpoint."""
        try:
            resp = await self._client.get(
                f"{self._config.api_url.rstrip('/')}/health", headers=self._headers
            )
        except httpx.HTTPError:
            log.exception("mailer_connection_test_failed")
            return False
        return resp.is_success

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _release_data(request: NotificationRequest) -> dict[str, Any]:
        release = request.release
        return {
            "repository": request.repository,
            "release": release.summary() if release else None,
            "timestamp": request.timestamp.isoformat(),
            "targets": [t.value for t in release.targets] if release else [],
            "type": release.type.value if release else "general",
        }

    @staticmethod
    def _error_data(request: NotificationRequest) -> dict[str, Any]:
        return {
            "repository": request.repository,
            "error": request.error,
            "timestamp": request.timestamp.isoformat(),
            "release": request.release.summary() if request.release else None,
        }

    async def _send(
        self,
        request: NotificationRequest,
        *,
        subject: str,
        template: str,
        data: dict[str, Any],
    ) -> None:
        body = {
            "from": self._config.from_address,
            "to": self._config.recipients,
            "subject": subject,
            "template": template,
            "templateData": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            resp = await self._client.post(self._config.api_url, json=body, headers=self._headers)
        except httpx.HTTPError as e:
            log.error("notification_send_failed", kind=request.kind.value, error=str(e))
            raise NotificationError(f"Mailer request failed: {e}") from e

        if not resp.is_success:
            log.error(
                "notification_rejected",
                kind=request.kind.value,
                status=resp.status_code,
            )
            raise NotificationError(
                f"Mailer API error: {resp.status_code} - {resp.text[:200]}",
                status_code=resp.status_code,
            )

        log.info(
            "notification_sent",
            kind=request.kind.value,
            repository=request.repository,
            template=template,
        )
