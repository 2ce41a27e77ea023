"""Webhook HTTP server using aiohttp."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from aiohttp import web
from pydantic import ValidationError

from releasehook import __version__
from releasehook.config import Settings
from releasehook.core.rate_limit import RateLimiter
from releasehook.core.signature import SignatureValidator
from releasehook.utils.logging import get_logger
from releasehook.utils.sanitize import sanitize_string
from releasehook.webhooks.handlers import ReleaseEventHandler
from releasehook.webhooks.models import ReleasePayload, WebhookEvent

log = get_logger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'",
}

APP_FEATURES = [
    "Release type detection",
    "Workflow orchestration",
    "Release notifications",
    "Multi-target releases",
]

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


class WebhookServer:
    """Receives GitHub release webhooks and hands them to the release handler."""

    def __init__(
        self,
        settings: Settings,
        handler: ReleaseEventHandler,
        validator: SignatureValidator,
        limiter: RateLimiter,
    ) -> None:
        self._settings = settings
        self._handler = handler
        self._validator = validator
        self._limiter = limiter
        self._runner: web.AppRunner | None = None

    @property
    def webhook_path(self) -> str:
        path = self._settings.webhook.path
        return path if path.startswith("/") else f"/{path}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if not self._validator.is_configured:
            log.warning(
                "webhook_no_secret",
                msg="No webhook secret configured; all deliveries will be rejected.",
            )
        app = self._build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._settings.webhook.bind, self._settings.webhook.port)
        await site.start()
        await self._limiter.start()
        log.info(
            "webhook_server_started",
            bind=self._settings.webhook.bind,
            port=self._settings.webhook.port,
            path=self.webhook_path,
        )

    async def stop(self) -> None:
        await self._limiter.stop()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info("webhook_server_stopped")

    # ------------------------------------------------------------------
    # App construction
    # ------------------------------------------------------------------

    def _build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._security_headers, self._rate_limit])
        app.router.add_post(self.webhook_path, self._handle_webhook)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get(f"{self.webhook_path}/config", self._handle_webhook_config)
        app.router.add_get("/app/info", self._handle_app_info)
        return app

    # ------------------------------------------------------------------
    # Middlewares
    # ------------------------------------------------------------------

    @web.middleware
    async def _security_headers(self, request: web.Request, handler: _Handler) -> web.StreamResponse:
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            exc.headers.update(SECURITY_HEADERS)
            raise
        response.headers.update(SECURITY_HEADERS)
        return response

    @web.middleware
    async def _rate_limit(self, request: web.Request, handler: _Handler) -> web.StreamResponse:
        if not self._limiter.is_allowed(self._client_id(request)):
            return _error(429, "Too many requests")
        return await handler(request)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        # Signature covers the raw bytes, so read before any parsing
        body = await request.read()

        signature = request.headers.get(SIGNATURE_HEADER)
        if not signature:
            return _error(401, "Missing signature")

        if not self._validator.validate(body, signature):
            return _error(401, "Invalid signature")

        event_type = request.headers.get(EVENT_HEADER)
        if not event_type:
            return _error(401, "Missing event header")

        if request.content_type != "application/json":
            return _error(400, "Expected application/json")

        try:
            payload = json.loads(body)
        except ValueError:
            return _error(400, "Invalid JSON")
        if not isinstance(payload, dict):
            return _error(400, "Invalid JSON")

        event = WebhookEvent(
            event_type=sanitize_string(event_type, 64),
            body=body,
            payload=payload,
            delivery_id=sanitize_string(request.headers.get(DELIVERY_HEADER, ""), 64),
        )
        log.info(
            "webhook_received",
            event_type=event.event_type,
            action=sanitize_string(event.action, 32),
            delivery_id=event.delivery_id,
        )

        try:
            await self._dispatch_event(event)
        except ValidationError as exc:
            log.warning("webhook_payload_invalid", errors=exc.error_count())
            return _error(400, "Invalid release payload")
        except Exception:
            log.exception("webhook_processing_failed", delivery_id=event.delivery_id)
            return _error(500, "Internal server error")

        return web.json_response({"status": "processed"})

    async def _dispatch_event(self, event: WebhookEvent) -> None:
        if event.event_type == "release":
            payload = ReleasePayload.model_validate(event.payload)
            await self._handler.handle(payload)
        elif event.event_type == "ping":
            log.info("ping_received", delivery_id=event.delivery_id)
        else:
            log.debug("event_type_ignored", event_type=event.event_type)

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "rate_limit": self._limiter.get_stats(),
        })

    async def _handle_webhook_config(self, request: web.Request) -> web.Response:
        base_url = self._settings.webhook.base_url.rstrip("/")
        return web.json_response({
            "url": f"{base_url}{self.webhook_path}",
            "content_type": "json",
            "insecure_ssl": "0",
            "secret": "configured" if self._validator.is_configured else "not_configured",
        })

    async def _handle_app_info(self, request: web.Request) -> web.Response:
        info: dict[str, Any] = {
            "name": "releasehook",
            "version": __version__,
            "description": "Release orchestration and notifications from GitHub release events",
            "features": APP_FEATURES,
        }
        return web.json_response(info)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _client_id(request: web.Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For", "")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return sanitize_string(first, 64)
        return request.remote or "unknown"
