"""Webhook ingestion: payload models, release handling and the HTTP server."""

from .handlers import HandlingOutcome, ReleaseEventHandler
from .models import ReleasePayload, WebhookEvent
from .server import WebhookServer

__all__ = [
    "HandlingOutcome",
    "ReleaseEventHandler",
    "ReleasePayload",
    "WebhookEvent",
    "WebhookServer",
]
